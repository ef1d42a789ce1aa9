"""Push to origin and read back the resulting commit."""

from pathlib import Path

from reviewit.services.git._run import CommandLog, GitRunner


def push_branch(runner: GitRunner, log: CommandLog, workspace: Path, local_ref: str, remote_branch: str) -> bool:
    """Push local_ref to origin as remote_branch. Returns True on success."""
    return runner.run(["git", "push", "origin", f"{local_ref}:{remote_branch}"], cwd=Path(workspace), log=log).succeeded


def rev_parse_head(runner: GitRunner, log: CommandLog, workspace: Path) -> str | None:
    """Return the commit hash of HEAD in workspace, or None if git fails."""
    result = runner.run(["git", "rev-parse", "HEAD"], cwd=Path(workspace), log=log)
    if not result.succeeded or not result.output:
        return None
    return result.output.splitlines()[-1].strip()


def ci_branch_name(mr_id: int, patch_count: int) -> str:
    """Branch a merge request version is pushed to for CI: mr-<id>-version-<count>."""
    return f"mr-{mr_id}-version-{patch_count}"
