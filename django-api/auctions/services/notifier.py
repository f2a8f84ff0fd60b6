"""Broadcast publishing and the explicit subscriber registry.

The core calls ``publish`` while it still holds the critical section of the
event it changed, so each audience sees broadcasts in commit order.
Transports drain per-connection outboxes.
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from enum import Enum
from threading import RLock

from auctions.domain import EventId

logger = logging.getLogger(__name__)

OUTBOX_LIMIT = 1000


class BroadcastType(Enum):
    EVENTS_UPDATED = "eventsUpdated"
    ITEMS = "items"
    ITEM_UPDATED = "itemUpdated"
    EVENT_CONFIG_UPDATED = "eventConfigUpdated"


@dataclass(frozen=True)
class Broadcast:
    type: BroadcastType
    event_id: EventId | None
    payload: object


class Notifier(ABC):
    """Publish interface used by the core."""

    @abstractmethod
    def publish(self, event_id: EventId, event_type: BroadcastType, payload: object) -> None:
        """Deliver to every connection subscribed to ``event_id``."""
        ...

    @abstractmethod
    def publish_global(self, event_type: BroadcastType, payload: object) -> None:
        """Deliver to every open connection."""
        ...

    @abstractmethod
    def subscribe(self, connection_id: str, event_id: EventId) -> None:
        """Move a connection into an event's audience."""
        ...

    @abstractmethod
    def unsubscribe(self, connection_id: str) -> None:
        """Remove a connection from whatever audience it is in."""
        ...


class SubscriberRegistry(Notifier):
    """In-memory audiences with one bounded outbox per connection."""

    def __init__(self, outbox_limit: int = OUTBOX_LIMIT) -> None:
        self._lock = RLock()
        self._outbox_limit = outbox_limit
        self._outboxes: dict[str, deque[Broadcast]] = {}
        self._memberships: dict[str, EventId] = {}

    def connect(self, connection_id: str) -> None:
        with self._lock:
            self._outboxes.setdefault(connection_id, deque(maxlen=self._outbox_limit))

    def disconnect(self, connection_id: str) -> None:
        with self._lock:
            self._memberships.pop(connection_id, None)
            self._outboxes.pop(connection_id, None)

    def subscribe(self, connection_id: str, event_id: EventId) -> None:
        with self._lock:
            if connection_id in self._outboxes:
                self._memberships[connection_id] = event_id

    def unsubscribe(self, connection_id: str) -> None:
        with self._lock:
            self._memberships.pop(connection_id, None)

    def audience(self, event_id: EventId) -> set[str]:
        with self._lock:
            return {cid for cid, eid in self._memberships.items() if eid == event_id}

    def publish(self, event_id: EventId, event_type: BroadcastType, payload: object) -> None:
        message = Broadcast(type=event_type, event_id=event_id, payload=payload)
        with self._lock:
            recipients = [cid for cid, eid in self._memberships.items() if eid == event_id]
            for connection_id in recipients:
                self._outboxes[connection_id].append(message)
        logger.debug("Published %s to event %s (%d recipients)", event_type.value, event_id, len(recipients))

    def publish_global(self, event_type: BroadcastType, payload: object) -> None:
        message = Broadcast(type=event_type, event_id=None, payload=payload)
        with self._lock:
            for outbox in self._outboxes.values():
                outbox.append(message)
            count = len(self._outboxes)
        logger.debug("Published %s to all connections (%d)", event_type.value, count)

    def drain(self, connection_id: str) -> list[Broadcast]:
        with self._lock:
            outbox = self._outboxes.get(connection_id)
            if outbox is None:
                return []
            messages = list(outbox)
            outbox.clear()
            return messages
