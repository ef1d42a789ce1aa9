"""Project and user storage in {data_dir}/projects/ and {data_dir}/users/."""

import logging
from pathlib import Path

import yaml

from reviewit.services.store.merge_request_store import dump_yaml
from reviewit.services.store.schemas import Project, User

PROJECTS_DIR = "projects"
USERS_DIR = "users"

LOG = logging.getLogger("reviewit.services.store.project_store")


def _record_path(data_dir: Path, kind: str, record_id: int) -> Path:
    return Path(data_dir) / kind / f"{record_id}.yaml"


def _load(path: Path) -> dict | None:
    if not path.is_file():
        return None
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        LOG.warning("Failed to read %s: %s", path, e)
        return None
    return data if isinstance(data, dict) else None


def load_project(data_dir: Path, project_id: int) -> Project | None:
    """Load project from projects/{project_id}.yaml. Returns None if missing or invalid."""
    data = _load(_record_path(data_dir, PROJECTS_DIR, project_id))
    if data is None:
        return None
    try:
        return Project.model_validate(data)
    except ValueError as e:
        LOG.warning("Invalid project %s: %s", project_id, e)
        return None


def save_project(data_dir: Path, project: Project) -> Path:
    """Write project to projects/{project_id}.yaml."""
    path = _record_path(data_dir, PROJECTS_DIR, project.project_id)
    dump_yaml(path, project.model_dump(mode="json", exclude_none=True))
    LOG.debug("Saved project %s to %s", project.project_id, path)
    return path


def load_user(data_dir: Path, user_id: int) -> User | None:
    """Load user from users/{user_id}.yaml. Returns None if missing or invalid."""
    data = _load(_record_path(data_dir, USERS_DIR, user_id))
    if data is None:
        return None
    try:
        return User.model_validate(data)
    except ValueError as e:
        LOG.warning("Invalid user %s: %s", user_id, e)
        return None


def save_user(data_dir: Path, user: User) -> Path:
    """Write user to users/{user_id}.yaml."""
    path = _record_path(data_dir, USERS_DIR, user.user_id)
    dump_yaml(path, user.model_dump(mode="json", exclude_none=True))
    LOG.debug("Saved user %s to %s", user.user_id, path)
    return path


def find_user_by_token(data_dir: Path, api_token: str | None) -> User | None:
    """Return the user owning api_token, or None."""
    if not api_token:
        return None
    base = Path(data_dir) / USERS_DIR
    if not base.is_dir():
        return None
    for f in sorted(base.glob("*.yaml")):
        if not f.stem.isdigit():
            continue
        user = load_user(data_dir, int(f.stem))
        if user is not None and user.api_token == api_token:
            return user
    return None
