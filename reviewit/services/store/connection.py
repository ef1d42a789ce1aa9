"""Store handles.

Connections are not shared between threads: the API and every background
job open their own with Store.connect() and close it when done. All
connections of one Store share a write lock, so the version check and the
write of save_merge_request happen as one step.
"""

import logging
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable

import yaml

from reviewit.errors import NotFound, StaleRecordError, StoreClosedError
from reviewit.services.store.merge_request_store import (
    delete_merge_request,
    dump_yaml,
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
from reviewit.services.store.schemas import MergeRequest, Project, User

SEQUENCES_FILE = "sequences.yaml"

LOG = logging.getLogger("reviewit.services.store.connection")


class Store:
    """YAML store rooted at data_dir; hands out connections."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir)
        self._write_lock = threading.Lock()
        self._count_lock = threading.Lock()
        self._open = 0

    @property
    def open_connections(self) -> int:
        """Number of connections not closed yet."""
        with self._count_lock:
            return self._open

    def connect(self) -> "StoreConnection":
        with self._count_lock:
            self._open += 1
        return StoreConnection(self)

    def _released(self) -> None:
        with self._count_lock:
            self._open -= 1


class StoreConnection:
    """One handle on the store; use as a context manager or close() it."""

    def __init__(self, store: Store) -> None:
        self._store = store
        self._closed = False

    def __enter__(self) -> "StoreConnection":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._store._released()

    def _data_dir(self) -> Path:
        if self._closed:
            raise StoreClosedError("store connection is closed")
        return self._store.data_dir

    def allocate_id(self, kind: str) -> int:
        """Return the next id for kind (merge_request, patch, ...), starting at 1."""
        data_dir = self._data_dir()
        path = data_dir / SEQUENCES_FILE
        with self._store._write_lock:
            seqs = {}
            if path.is_file():
                seqs = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
            value = int(seqs.get(kind, 0)) + 1
            seqs[kind] = value
            dump_yaml(path, seqs)
        return value

    def get_merge_request(self, mr_id: int) -> MergeRequest:
        mr = load_merge_request(self._data_dir(), mr_id)
        if mr is None:
            raise NotFound(f"merge request {mr_id} not found")
        return mr

    def save_merge_request(self, mr: MergeRequest) -> MergeRequest:
        """Validate and write mr if nobody saved it since it was loaded.

        Bumps mr.lock_version and mr.updated_at on success.

        Raises:
            ValidationFailure: record invariants do not hold.
            StaleRecordError: the stored version differs from mr.lock_version.
        """
        data_dir = self._data_dir()
        mr.validate_record()
        with self._store._write_lock:
            current = load_merge_request(data_dir, mr.mr_id)
            if current is not None and current.lock_version != mr.lock_version:
                raise StaleRecordError(
                    f"merge request {mr.mr_id} was changed (version {current.lock_version}, "
                    f"have {mr.lock_version})"
                )
            _write_next_version(data_dir, mr)
        LOG.debug("Merge request #%s saved, version %s", mr.mr_id, mr.lock_version)
        return mr

    def update_merge_request(self, mr_id: int, change: Callable[[MergeRequest], None]) -> MergeRequest:
        """Apply change to the stored record and write it, as one step.

        For writers that hold a record for a long time (background jobs):
        change sees whatever was saved meanwhile and must only touch what the
        writer owns. change must not use this connection.

        Raises:
            NotFound: the merge request was deleted.
            ValidationFailure: record invariants do not hold after change.
        """
        data_dir = self._data_dir()
        with self._store._write_lock:
            mr = load_merge_request(data_dir, mr_id)
            if mr is None:
                raise NotFound(f"merge request {mr_id} not found")
            change(mr)
            mr.validate_record()
            _write_next_version(data_dir, mr)
        LOG.debug("Merge request #%s updated, version %s", mr.mr_id, mr.lock_version)
        return mr

    def delete_merge_request(self, mr_id: int) -> None:
        data_dir = self._data_dir()
        with self._store._write_lock:
            if not delete_merge_request(data_dir, mr_id):
                raise NotFound(f"merge request {mr_id} not found")

    def list_merge_requests(self, project_id: int | None = None) -> list[MergeRequest]:
        return list_merge_requests(self._data_dir(), project_id)

    def get_project(self, project_id: int) -> Project:
        project = load_project(self._data_dir(), project_id)
        if project is None:
            raise NotFound(f"project {project_id} not found")
        return project

    def save_project(self, project: Project) -> Project:
        data_dir = self._data_dir()
        with self._store._write_lock:
            save_project(data_dir, project)
        return project

    def get_user(self, user_id: int) -> User:
        user = load_user(self._data_dir(), user_id)
        if user is None:
            raise NotFound(f"user {user_id} not found")
        return user

    def save_user(self, user: User) -> User:
        data_dir = self._data_dir()
        with self._store._write_lock:
            save_user(data_dir, user)
        return user

    def find_user_by_token(self, api_token: str | None) -> User | None:
        return find_user_by_token(self._data_dir(), api_token)


def _write_next_version(data_dir: Path, mr: MergeRequest) -> None:
    """Bump lock_version and timestamps, then write. Caller holds the write lock."""
    now = datetime.now(UTC)
    mr.lock_version += 1
    mr.updated_at = now
    if mr.created_at is None:
        mr.created_at = now
    write_merge_request(data_dir, mr)
