"""Merge request record as stored in merge_requests/{mr_id}.yaml.

Patches and history events live inside the record, so deleting the file
removes them too.
"""

from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, Field

from reviewit.errors import ValidationFailure
from reviewit.services.store.schemas.history_event import HistoryEvent
from reviewit.services.store.schemas.patch import Patch

# Any status with ordinal >= this is considered a closed merge request
CLOSE_LIMIT = 3


class MergeRequestStatus(str, Enum):
    """Lifecycle states, in ordinal order."""

    OPEN = "open"
    INTEGRATING = "integrating"
    NEEDS_REBASE = "needs_rebase"
    ACCEPTED = "accepted"
    ABANDONED = "abandoned"

    @property
    def ordinal(self) -> int:
        return list(MergeRequestStatus).index(self)


class MergeRequest(BaseModel):
    """Reviewable change proposal with its patches and audit trail."""

    mr_id: int = Field(..., description="Merge request ID")
    project_id: int = Field(..., description="Project the request belongs to")
    target_branch: str = Field(..., description="Branch the patch is integrated into")
    subject: str = Field(..., description="One-line summary (commit subject)")
    author_id: int = Field(..., description="User ID of the author")
    reviewer_id: int | None = Field(default=None, description="User ID of the reviewer, set on accept")
    status: MergeRequestStatus = Field(default=MergeRequestStatus.OPEN, description="Lifecycle state")
    patches: List[Patch] = Field(default_factory=list, description="Versions, oldest first")
    history_events: List[HistoryEvent] = Field(default_factory=list, description="Audit trail, oldest first")
    lock_version: int = Field(default=0, ge=0, description="Bumped on every save; stale writers are rejected")
    created_at: datetime | None = Field(default=None, description="When the request was created")
    updated_at: datetime | None = Field(default=None, description="When the request was last saved")

    model_config = {"extra": "forbid", "populate_by_name": True}

    @property
    def patch(self) -> Patch | None:
        """Current (latest) patch, or None when nothing was submitted."""
        return self.patches[-1] if self.patches else None

    @property
    def closed(self) -> bool:
        return is_closed(self.status)

    @property
    def can_update(self) -> bool:
        return can_update(self.status)

    def validate_record(self) -> None:
        """Check record invariants before saving.

        Raises:
            ValidationFailure: naming the offending field.
        """
        if not self.target_branch or not self.target_branch.strip():
            raise ValidationFailure("target_branch", "can't be blank")
        if not self.subject or not self.subject.strip():
            raise ValidationFailure("subject", "can't be blank")
        if self.reviewer_id is not None and self.reviewer_id == self.author_id:
            raise ValidationFailure("reviewer", "can't be the author.")


def is_closed(status: MergeRequestStatus) -> bool:
    """True for accepted and abandoned."""
    return MergeRequestStatus(status).ordinal >= CLOSE_LIMIT


def can_update(status: MergeRequestStatus) -> bool:
    """Whether a new patch may be added.

    Abandoned requests still accept patches.
    """
    return MergeRequestStatus(status) not in (MergeRequestStatus.ACCEPTED, MergeRequestStatus.INTEGRATING)
