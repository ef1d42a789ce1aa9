"""Per-attempt scratch directories for integration jobs."""

import logging
import secrets
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from reviewit.services.store.schemas import Patch

LOG = logging.getLogger("reviewit.services.workspace")


def workspace_name(patch: Patch) -> str:
    """Unique directory name: patch<id>_<32 hex chars>."""
    return f"patch{patch.patch_id}_{secrets.token_hex(16)}"


@contextmanager
def workspace(patch: Patch, base_dir: Path) -> Iterator[Path]:
    """Create a fresh, empty directory for patch under base_dir and yield it.

    The directory and everything in it is removed when the block exits,
    however it exits. Do not keep the path around afterwards.
    """
    base = Path(base_dir)
    path = base / workspace_name(patch)
    shutil.rmtree(path, ignore_errors=True)
    path.mkdir(parents=True)
    LOG.debug("Workspace %s created", path)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        LOG.debug("Workspace %s removed", path)
