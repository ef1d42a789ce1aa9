"""Errors surfaced to API callers.

Git command failures are not exceptions: they come back as CommandResult
values and end up as needs_rebase plus a log entry.
"""


class ReviewitError(Exception):
    """Base class for errors raised by the server."""

    pass


class ClientError(ReviewitError):
    """Request can not be served as asked (bad request)."""

    pass


class AuthenticationFailure(ReviewitError):
    """Bad or missing API token, or client version mismatch."""

    pass


class NotFound(ReviewitError):
    """Merge request, project or user reference could not be resolved."""

    pass


class ValidationFailure(ReviewitError):
    """A record failed validation before being saved."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field} {message}")
        self.field = field
        self.message = message


class StaleRecordError(ReviewitError):
    """Record was changed by someone else since it was loaded."""

    pass


class StoreClosedError(ReviewitError):
    """Store connection used after close()."""

    pass
