"""
Access events - one record per confirmed identity, appended to an event log.
"""

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessEvent:
    """A confirmed access grant."""
    timestamp: float          # seconds since epoch: pending_since + confirmation_window
    identity_id: int
    name: Optional[str] = None

    @property
    def occurred_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp)

    def to_dict(self) -> dict:
        return {
            'timestamp': self.occurred_at.isoformat(),
            'identity_id': self.identity_id,
            'name': self.name,
        }


class AccessEventLog:
    """Append-only, bounded in-memory log of access events (newest last)."""

    def __init__(self, max_events: int = 500):
        self._events = deque(maxlen=max_events)

    def __len__(self) -> int:
        return len(self._events)

    def append(self, event: AccessEvent) -> None:
        self._events.append(event)
        logger.debug(f"AccessEventLog: {event.name} (ID: {event.identity_id}) at {event.occurred_at}")

    def recent(self, limit: int = 50) -> List[AccessEvent]:
        """Most recent events first."""
        if limit <= 0:
            return []
        return list(reversed(self._events))[:limit]
