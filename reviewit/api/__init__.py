"""JSON API consumed by the `reviewit push` client."""

from reviewit.api.handlers import ApiApp
from reviewit.api.server import run_api_server

__all__ = ["ApiApp", "run_api_server"]
