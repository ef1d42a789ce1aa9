"""Fresh shallow checkout of a project's target branch."""

from pathlib import Path

from reviewit.services.git._run import CommandLog, GitRunner


def clone_and_reset(
    runner: GitRunner,
    log: CommandLog,
    base_dir: Path,
    repository: str,
    dir_name: str,
    branch: str,
) -> bool:
    """Clone repository (depth 1) into base_dir/dir_name and hard reset to origin/<branch>.

    Returns True if both commands succeeded.
    """
    cloned = runner.run(["git", "clone", "--depth", "1", repository, dir_name], cwd=Path(base_dir), log=log)
    if not cloned.succeeded:
        return False
    reset = runner.run(["git", "reset", "--hard", f"origin/{branch}"], cwd=Path(base_dir) / dir_name, log=log)
    return reset.succeeded
