"""Project record as stored in projects/{project_id}.yaml."""

from typing import List

from pydantic import BaseModel, Field


class Project(BaseModel):
    """Repository that merge requests are integrated into."""

    project_id: int = Field(..., description="Project ID")
    name: str = Field(..., min_length=1, description="Project name")
    repository: str = Field(..., description="Clone URL of the repository")
    ci_project_url: str | None = Field(default=None, description="CI project base URL")
    ci_token: str | None = Field(default=None, description="CI API token")
    user_ids: List[int] = Field(default_factory=list, description="Users with access to the project")

    model_config = {"extra": "forbid", "populate_by_name": True}

    @property
    def has_ci(self) -> bool:
        """True when both the CI token and CI project URL are set."""
        return bool((self.ci_token or "").strip()) and bool((self.ci_project_url or "").strip())
