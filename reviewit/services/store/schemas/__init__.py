"""Schemas for store YAML files (merge requests, projects, users)."""

from reviewit.services.store.schemas.history_event import HistoryEvent
from reviewit.services.store.schemas.merge_request import (
    CLOSE_LIMIT,
    MergeRequest,
    MergeRequestStatus,
    can_update,
    is_closed,
)
from reviewit.services.store.schemas.patch import Patch
from reviewit.services.store.schemas.project import Project
from reviewit.services.store.schemas.user import User

__all__ = [
    "CLOSE_LIMIT",
    "HistoryEvent",
    "MergeRequest",
    "MergeRequestStatus",
    "Patch",
    "Project",
    "User",
    "can_update",
    "is_closed",
]
