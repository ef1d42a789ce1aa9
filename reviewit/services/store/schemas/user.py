"""User record as stored in users/{user_id}.yaml."""

from pydantic import BaseModel, Field


class User(BaseModel):
    """Someone who authors or reviews merge requests."""

    user_id: int = Field(..., description="User ID")
    name: str = Field(..., min_length=1, description="Display name, used in patch From: headers")
    email: str = Field(..., min_length=1, description="Email, used in patch From: headers")
    api_token: str | None = Field(default=None, description="Token the CLI authenticates with")

    model_config = {"extra": "forbid", "populate_by_name": True}
