"""Merge request lifecycle: open -> integrating -> needs_rebase | accepted, or abandoned.

Transitions record a history event and save through a store connection.
Saves are compare-and-write on lock_version, so when two callers race to
integrate the same request only the first save wins; the other gets
StaleRecordError and no job is started for it.
"""

import logging
from datetime import UTC, datetime
from typing import Any, Protocol

from reviewit.errors import ClientError
from reviewit.services import history
from reviewit.services.jobs import Job
from reviewit.services.store import (
    MergeRequest,
    MergeRequestStatus,
    Patch,
    StoreConnection,
    can_update,
    is_closed,
)

LOG = logging.getLogger("reviewit.services.lifecycle")

_NO_INTEGRATE = (MergeRequestStatus.ACCEPTED, MergeRequestStatus.INTEGRATING, MergeRequestStatus.ABANDONED)


class IntegrationLauncher(Protocol):
    def start_integration(self, mr_id: int, reviewer_id: int) -> Job: ...


def abandon(conn: StoreConnection, mr: MergeRequest, actor_id: int) -> MergeRequest:
    """Abandon mr (allowed from any state)."""
    history.record(mr, actor_id, "abandoned the merge request")
    mr.status = MergeRequestStatus.ABANDONED
    conn.save_merge_request(mr)
    LOG.info("MR #%s abandoned by user %s", mr.mr_id, actor_id)
    return mr


def integrate(
    conn: StoreConnection,
    mr: MergeRequest,
    actor_id: int,
    launcher: IntegrationLauncher,
) -> Job | None:
    """Accept mr and start integrating its current patch in the background.

    Does nothing (returns None, records nothing) if mr is accepted,
    integrating or abandoned. Otherwise saves mr as integrating with
    actor_id as reviewer before the job starts.

    Raises:
        ValidationFailure: actor_id is the author.
        StaleRecordError: mr was saved by someone else since it was loaded.
    """
    if mr.status in _NO_INTEGRATE:
        LOG.debug("MR #%s is %s, not integrating", mr.mr_id, mr.status.value)
        return None
    history.record(mr, actor_id, "accepted the merge request")
    mr.reviewer_id = actor_id
    mr.status = MergeRequestStatus.INTEGRATING
    conn.save_merge_request(mr)
    return launcher.start_integration(mr.mr_id, actor_id)


def change_target_branch(mr: MergeRequest, target_branch: str) -> None:
    """Set a new target branch, recording the change when there was an old one."""
    old = mr.target_branch
    if old and target_branch != old:
        history.record(mr, mr.author_id, f"changed the target branch from {old} to {target_branch}")
    mr.target_branch = target_branch


def add_patch(mr: MergeRequest, data: dict[str, Any], patch_id: int) -> Patch:
    """Append a new version built from data (commit_message, diff, linter_ok, description)."""
    patch = Patch(
        patch_id=patch_id,
        commit_message=data.get("commit_message") or "",
        diff=data.get("diff") or "",
        linter_ok=bool(data.get("linter_ok")),
        description=data.get("description") or "",
        created_at=datetime.now(UTC),
    )
    mr.patches.append(patch)
    history.record(mr, mr.author_id, "updated the merge request")
    return patch


def create(conn: StoreConnection, project_id: int, author_id: int, data: dict[str, Any]) -> MergeRequest:
    """Create a merge request with its first patch and save it."""
    mr = MergeRequest(
        mr_id=conn.allocate_id("merge_request"),
        project_id=project_id,
        target_branch=data.get("target_branch") or "",
        subject=data.get("subject") or "",
        author_id=author_id,
    )
    mr.validate_record()
    add_patch(mr, data, conn.allocate_id("patch"))
    conn.save_merge_request(mr)
    LOG.info("MR #%s created by user %s", mr.mr_id, author_id)
    return mr


def update(conn: StoreConnection, mr: MergeRequest, data: dict[str, Any]) -> MergeRequest:
    """Add a new version to mr, optionally with a new subject or target branch.

    Raises:
        ClientError: mr is integrating or accepted.
    """
    if not can_update(mr.status):
        raise ClientError(f"You can't update a merge request that is {mr.status.value}.")
    if data.get("subject"):
        mr.subject = data["subject"]
    if data.get("target_branch"):
        change_target_branch(mr, data["target_branch"])
    add_patch(mr, data, conn.allocate_id("patch"))
    conn.save_merge_request(mr)
    LOG.info("MR #%s updated, now %s versions", mr.mr_id, len(mr.patches))
    return mr


def pending(merge_requests: list[MergeRequest]) -> list[MergeRequest]:
    return [mr for mr in merge_requests if not is_closed(mr.status)]


def closed(merge_requests: list[MergeRequest]) -> list[MergeRequest]:
    return [mr for mr in merge_requests if is_closed(mr.status)]
