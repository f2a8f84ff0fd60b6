"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager

from auctions.domain import Event, EventId, ItemId


class EventStore(ABC):
    """Interface for the event aggregates and their critical sections."""

    @abstractmethod
    def add_event(
        self,
        name: str,
        location: str,
        is_protected: bool,
        password: str,
        created_at: float,
    ) -> Event:
        """Create an event under the next identifier and return it."""
        ...

    @abstractmethod
    def next_item_id(self) -> ItemId:
        """Reserve the next system-wide item identifier."""
        ...

    @abstractmethod
    def event_ids(self) -> list[EventId]:
        """Return all event identifiers in creation order."""
        ...

    @abstractmethod
    def event_exists(self, event_id: EventId) -> bool:
        """Check if an event exists."""
        ...

    @abstractmethod
    def transaction(self, *event_ids: EventId) -> AbstractContextManager[list[Event]]:
        """Hold the critical section of each event and yield the aggregates.

        Events are yielded in the order requested. Raises
        EventNotFoundError before locking if any id is unknown.
        """
        ...
