"""`reviewit push`: create or update a merge request from the HEAD commit.

A commit that already belongs to a merge request carries the trailer
`Rme-MR-id: <id>`; pushing it again adds a new version to that request.
Otherwise a new request is created and the trailer is added to the commit
with `git commit --amend`.
"""

import logging
import re
from pathlib import Path

from reviewit.client.api_client import ApiClient
from reviewit.services.git._run import _run_git

MR_TRAILER_RE = re.compile(r"^Rme-MR-id: (?P<id>\d+)$", re.MULTILINE)

LOG = logging.getLogger("reviewit.client.push")


def mr_id_from_message(commit_message: str) -> int | None:
    """Merge request id from the Rme-MR-id trailer, or None."""
    m = MR_TRAILER_RE.search(commit_message)
    return int(m.group("id")) if m else None


def append_mr_trailer(commit_message: str, mr_id: int) -> str:
    return f"{commit_message}\n\nRme-MR-id: {mr_id}\n"


def read_head_commit(repo_dir: Path) -> tuple[str, str, str]:
    """Return (subject, full message, diff) of HEAD."""
    subject = _run_git(["show", "-s", "--format=%s"], cwd=repo_dir, log=LOG).strip()
    message = _run_git(["show", "-s", "--format=%B"], cwd=repo_dir, log=LOG).strip()
    diff = _run_git(["show", "--format="], cwd=repo_dir, log=LOG)
    return subject, message, diff


def run_push(
    client: ApiClient,
    target_branch: str,
    repo_dir: Path | None = None,
    message: str = "",
) -> int:
    """Push HEAD as a new merge request or a new version of its request. Returns the id."""
    cwd = Path(repo_dir) if repo_dir is not None else Path.cwd()
    subject, commit_message, diff = read_head_commit(cwd)
    mr_id = mr_id_from_message(commit_message)
    if mr_id is not None:
        client.update_merge_request(mr_id, subject, commit_message, diff, message)
        LOG.info("Merge request #%s updated", mr_id)
        return mr_id
    mr_id = client.create_merge_request(subject, commit_message, diff, target_branch)
    _run_git(["commit", "--amend", "-F", "-"], cwd=cwd, log=LOG, input=append_mr_trailer(commit_message, mr_id))
    LOG.info("Merge request #%s created", mr_id)
    return mr_id
