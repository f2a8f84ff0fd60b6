"""In-memory implementation of the EventStore.

Every event has its own RLock. All reads that inform a mutation and the
mutation itself happen while that lock is held. When several events are
needed at once their locks are taken in ascending id order.
"""

from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from threading import RLock

from auctions.domain import Event, EventId, ItemId
from auctions.domain.errors import EventNotFoundError
from auctions.stores.interfaces import EventStore


class InMemoryEventStore(EventStore):
    """Process-local event store. Nothing survives a restart."""

    def __init__(self) -> None:
        self._registry_lock = RLock()
        self._events: dict[EventId, Event] = {}
        self._locks: dict[EventId, RLock] = {}
        self._next_event_id = 1
        self._next_item_id = 1

    def add_event(
        self,
        name: str,
        location: str,
        is_protected: bool,
        password: str,
        created_at: float,
    ) -> Event:
        with self._registry_lock:
            event = Event(
                id=EventId(self._next_event_id),
                name=name,
                location=location,
                is_protected=is_protected,
                password=password,
                created_at=created_at,
            )
            self._next_event_id += 1
            self._locks[event.id] = RLock()
            self._events[event.id] = event
            return event

    def next_item_id(self) -> ItemId:
        with self._registry_lock:
            item_id = ItemId(self._next_item_id)
            self._next_item_id += 1
            return item_id

    def event_ids(self) -> list[EventId]:
        with self._registry_lock:
            return list(self._events)

    def event_exists(self, event_id: EventId) -> bool:
        with self._registry_lock:
            return event_id in self._events

    @contextmanager
    def transaction(self, *event_ids: EventId) -> Iterator[list[Event]]:
        with self._registry_lock:
            for event_id in event_ids:
                if event_id not in self._events:
                    raise EventNotFoundError(event_id)
            events = [self._events[event_id] for event_id in event_ids]
            locks = [self._locks[event_id] for event_id in sorted(set(event_ids))]

        with ExitStack() as stack:
            for lock in locks:
                stack.enter_context(lock)
            yield events
