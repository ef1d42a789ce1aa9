"""Git operations run by integration jobs: clone, apply, push."""

from reviewit.services.git._run import CommandLog, CommandResult, GitRunner, GitRunnerError
from reviewit.services.git.apply import apply_patch
from reviewit.services.git.clone import clone_and_reset
from reviewit.services.git.push_pull import ci_branch_name, push_branch, rev_parse_head

__all__ = [
    "CommandLog",
    "CommandResult",
    "GitRunner",
    "GitRunnerError",
    "apply_patch",
    "ci_branch_name",
    "clone_and_reset",
    "push_branch",
    "rev_parse_head",
]
