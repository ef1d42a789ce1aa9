"""Single audit trail entry of a merge request."""

from datetime import datetime

from pydantic import BaseModel, Field


class HistoryEvent(BaseModel):
    """Who did what, and when. Never changed once recorded."""

    who: int = Field(..., description="User ID of the actor")
    what: str = Field(..., description="Description, e.g. 'accepted the merge request'")
    when: datetime = Field(..., description="When it happened (UTC)")

    model_config = {"extra": "forbid", "populate_by_name": True, "frozen": True}
