"""Merge request storage in {data_dir}/merge_requests/ as YAML files.

One file per merge request: {mr_id}.yaml with patches and history inline.
"""

import logging
from pathlib import Path

import yaml

from reviewit.services.store.schemas import MergeRequest

MERGE_REQUESTS_DIR = "merge_requests"

LOG = logging.getLogger("reviewit.services.store.merge_request_store")


def _merge_requests_dir(data_dir: Path) -> Path:
    return Path(data_dir) / MERGE_REQUESTS_DIR


def _merge_request_path(data_dir: Path, mr_id: int) -> Path:
    return _merge_requests_dir(data_dir) / f"{mr_id}.yaml"


def dump_yaml(path: Path, payload: dict) -> None:
    """Write payload next to path and move it in place, so readers never see half a file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    raw = yaml.dump(
        payload,
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
        width=1000,
    )
    tmp = path.with_suffix(".yaml.tmp")
    tmp.write_text(raw, encoding="utf-8")
    tmp.replace(path)


def load_merge_request(data_dir: Path, mr_id: int) -> MergeRequest | None:
    """Load merge request from merge_requests/{mr_id}.yaml.

    Returns None if missing or invalid.
    """
    path = _merge_request_path(data_dir, mr_id)
    if not path.is_file():
        return None
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            return None
        data.setdefault("mr_id", mr_id)
        return MergeRequest.model_validate(data)
    except (OSError, yaml.YAMLError, ValueError) as e:
        LOG.warning("Failed to load merge request %s: %s", path, e)
        return None


def write_merge_request(data_dir: Path, mr: MergeRequest) -> Path:
    """Write merge request to merge_requests/{mr_id}.yaml as is.

    No validation and no version check; see StoreConnection.save_merge_request.
    """
    path = _merge_request_path(data_dir, mr.mr_id)
    dump_yaml(path, mr.model_dump(mode="json", exclude_none=True))
    LOG.debug("Saved merge request #%s to %s", mr.mr_id, path)
    return path


def delete_merge_request(data_dir: Path, mr_id: int) -> bool:
    """Remove the record with its patches and history. Returns True if it existed."""
    path = _merge_request_path(data_dir, mr_id)
    if not path.is_file():
        return False
    path.unlink()
    LOG.info("Deleted merge request #%s", mr_id)
    return True


def list_merge_requests(data_dir: Path, project_id: int | None = None) -> list[MergeRequest]:
    """List merge requests ordered by id, optionally of one project only."""
    base = _merge_requests_dir(data_dir)
    if not base.is_dir():
        return []
    out = []
    for f in base.glob("*.yaml"):
        if not f.stem.isdigit():
            continue
        mr = load_merge_request(data_dir, int(f.stem))
        if mr is None:
            continue
        if project_id is not None and mr.project_id != project_id:
            continue
        out.append(mr)
    out.sort(key=lambda m: m.mr_id)
    return out
