"""One version of the proposed change inside a merge request record."""

from datetime import datetime

from pydantic import BaseModel, Field


class Patch(BaseModel):
    """Commit message plus diff submitted to a merge request.

    Only integration_log and ci_reference_hash change after creation.
    """

    patch_id: int = Field(..., description="Patch ID, unique across the store")
    commit_message: str = Field(default="", description="Commit message of the submitted commit")
    diff: str = Field(default="", description="Raw unified diff, opaque to the server")
    description: str = Field(default="", description="Free text supplied with this version")
    linter_ok: bool = Field(default=False, description="Linter result reported by the submitter")
    created_at: datetime = Field(..., description="When this version was submitted (timezone-aware)")
    integration_log: str = Field(default="", description="Output of the last integration attempt")
    ci_reference_hash: str | None = Field(default=None, description="Commit pushed to the CI branch")

    model_config = {"extra": "forbid", "populate_by_name": True}
