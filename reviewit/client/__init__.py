"""Command line client: push local commits as merge requests."""

from reviewit.client.api_client import ApiClient, ApiError
from reviewit.client.push import append_mr_trailer, mr_id_from_message, run_push

__all__ = ["ApiClient", "ApiError", "append_mr_trailer", "mr_id_from_message", "run_push"]
