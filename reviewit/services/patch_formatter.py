"""Render the current patch of a merge request as `git am` input.

The output is consumed byte for byte by `git am`; keep whitespace as is.
"""

import io

from reviewit.services.store.schemas import MergeRequest, User

DATE_FORMAT = "%a, %d %b %Y %H:%M:%S %z"
SIGNATURE = "--\nreview it!\n"


def indent_comment(text: str) -> str:
    """Prefix every line (split on newlines only) with four spaces."""
    return "".join(f"    {line}" for line in io.StringIO(text))


def reviewer_stamp(mr: MergeRequest, reviewer: User | None) -> str:
    if reviewer is None:
        return ""
    return f"\nReviewed by {reviewer.name} on MR #{mr.mr_id}\n"


def format_patch(mr: MergeRequest, author: User, reviewer: User | None = None) -> str | None:
    """Build the mailbox text for mr's current patch.

    Returns None when mr has no patch.
    """
    patch = mr.patch
    if patch is None:
        return None
    return (
        f"From: {author.name} <{author.email}>\n"
        f"Date: {patch.created_at.strftime(DATE_FORMAT)}\n"
        "\n"
        f"{indent_comment(patch.commit_message)}\n"
        f"{indent_comment(reviewer_stamp(mr, reviewer))}\n"
        f"{patch.diff}\n"
        f"{SIGNATURE}"
    )
