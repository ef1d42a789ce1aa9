"""Apply formatted patch text with `git am`."""

import os
import tempfile
from pathlib import Path

from reviewit.services.git._run import CommandLog, GitRunner


def apply_patch(runner: GitRunner, log: CommandLog, workspace: Path, patch_text: str) -> bool:
    """Write patch_text to a temporary file and `git am` it inside workspace.

    The temporary file is removed afterwards. Returns True if git am succeeded.
    """
    fd, name = tempfile.mkstemp(prefix="patch", suffix=".mbox")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(patch_text)
        return runner.run(["git", "am", name], cwd=Path(workspace), log=log).succeeded
    finally:
        Path(name).unlink(missing_ok=True)
