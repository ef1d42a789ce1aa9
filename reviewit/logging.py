"""Root logger setup for the server and the push command.

Only DEBUG, INFO, WARNING and ERROR are accepted; anything else means INFO.
Integration and CI push jobs run in threads named after the merge request
(integrate-mr-5, ci-push-mr-5), so the default format shows the thread.

Set via config.yaml (logging.level, logging.format) or LOGGING_LEVEL /
LOGGING_FORMAT.
"""

import logging

from reviewit.config import LoggingConfig

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

DEFAULT_FORMAT = "%(asctime)s - %(name)s - [%(threadName)s] %(levelname)s - %(message)s"

# HTTP client internals, only shown at DEBUG
QUIET_LOGGERS = ("urllib3", "requests")


def _resolve_level(level: str) -> int:
    return LEVELS.get(level.strip().upper(), logging.INFO)


class ReviewitLogging:
    """Applies a LoggingConfig to the root logger."""

    def __init__(self, config: LoggingConfig) -> None:
        self._level = _resolve_level(config.level)
        self._format = config.format or DEFAULT_FORMAT

    def setup(self) -> None:
        """Replace root handlers; quiet the HTTP client below DEBUG."""
        logging.basicConfig(level=self._level, format=self._format, force=True)
        quiet = logging.DEBUG if self._level == logging.DEBUG else max(self._level, logging.WARNING)
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(quiet)
