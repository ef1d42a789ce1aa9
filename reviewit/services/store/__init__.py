"""Root storage logic for merge requests, projects and users (YAML files)."""

from reviewit.services.store.connection import Store, StoreConnection
from reviewit.services.store.merge_request_store import (
    delete_merge_request,
    list_merge_requests,
    load_merge_request,
    write_merge_request,
)
from reviewit.services.store.project_store import (
    find_user_by_token,
    load_project,
    load_user,
    save_project,
    save_user,
)
from reviewit.services.store.schemas import (
    CLOSE_LIMIT,
    HistoryEvent,
    MergeRequest,
    MergeRequestStatus,
    Patch,
    Project,
    User,
    can_update,
    is_closed,
)

__all__ = [
    "CLOSE_LIMIT",
    "HistoryEvent",
    "MergeRequest",
    "MergeRequestStatus",
    "Patch",
    "Project",
    "Store",
    "StoreConnection",
    "User",
    "can_update",
    "delete_merge_request",
    "find_user_by_token",
    "is_closed",
    "list_merge_requests",
    "load_merge_request",
    "load_project",
    "load_user",
    "save_project",
    "save_user",
    "write_merge_request",
]
