"""Audit trail of merge requests (append only)."""

import logging
from datetime import UTC, datetime

from reviewit.services.store.schemas import HistoryEvent, MergeRequest

LOG = logging.getLogger("reviewit.services.history")


def record(mr: MergeRequest, who: int, what: str, when: datetime | None = None) -> HistoryEvent:
    """Append an event to mr's history; the caller saves mr."""
    event = HistoryEvent(who=who, what=what, when=when or datetime.now(UTC))
    mr.history_events.append(event)
    LOG.debug("MR #%s: user %s %s", mr.mr_id, who, what)
    return event
