"""Event registry - creation, lookup and per-event configuration.

Services:
- Depend only on interfaces (stores, notifier)
- Validate inputs fully before touching the aggregate
- Publish after the mutation, inside the event's critical section
- Return domain models or raise domain errors
"""

import logging
import time
from collections.abc import Callable
from threading import RLock

from auctions.domain import EventConfig, EventId, EventSummary, Item, ItemId, Money
from auctions.domain.errors import ValidationError
from auctions.services.notifier import BroadcastType, Notifier
from auctions.stores.interfaces import EventStore

logger = logging.getLogger(__name__)


class EventRegistry:
    """Service for event catalog and configuration operations."""

    def __init__(
        self,
        store: EventStore,
        notifier: Notifier,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._clock = clock
        # Serializes creation with the global listing broadcast.
        self._listing_lock = RLock()

    def list_events(self) -> list[EventSummary]:
        """Return redacted summaries of all events in creation order."""
        summaries = []
        for event_id in self._store.event_ids():
            with self._store.transaction(event_id) as (event,):
                summaries.append(event.summary())
        return summaries

    def create_event(
        self,
        name: object,
        location: object = None,
        is_protected: bool = False,
        password: object = None,
    ) -> EventSummary:
        """Create an event and broadcast the new listing to everyone.

        Raises:
            ValidationError: If the name is blank, or protection is
                requested without a password.
        """
        clean_name = str(name or "").strip()
        clean_location = str(location or "").strip()
        secret = str(password or "") if is_protected else ""
        if not clean_name:
            raise ValidationError("Event name is required")
        if is_protected and not secret:
            raise ValidationError("Password required for protected event")

        with self._listing_lock:
            event = self._store.add_event(
                name=clean_name,
                location=clean_location,
                is_protected=bool(is_protected),
                password=secret,
                created_at=self._clock(),
            )
            self._notifier.publish_global(BroadcastType.EVENTS_UPDATED, self.list_events())

        logger.info("Created event %s (%r, protected=%s)", event.id, clean_name, event.is_protected)
        return event.summary()

    def event_config(self, event_id: EventId) -> EventConfig:
        with self._store.transaction(event_id) as (event,):
            return event.config()

    def set_min_increment(self, event_id: EventId, value: object) -> EventConfig:
        """Set the minimum bid increment; zero means strictly greater.

        Raises:
            EventNotFoundError: If the event does not exist.
            ValidationError: If the value is not a finite number >= 0.
        """
        try:
            increment = Money.parse(value)
        except ValueError:
            raise ValidationError("Value must be >= 0") from None

        with self._store.transaction(event_id) as (event,):
            event.min_increment = increment
            config = event.config()
            self._notifier.publish(event.id, BroadcastType.EVENT_CONFIG_UPDATED, config)

        logger.info("Event %s minimum increment set to %s", event_id, increment)
        return config

    def set_current_lot(self, event_id: EventId, item_id: ItemId | None) -> EventConfig:
        """Spotlight an item of the event, or clear the spotlight with None.

        Raises:
            EventNotFoundError: If the event does not exist.
            ItemNotFoundError: If the item does not belong to the event.
        """
        with self._store.transaction(event_id) as (event,):
            if item_id is not None:
                event.get_item(item_id)
            event.current_lot_id = item_id
            config = event.config()
            self._notifier.publish(event.id, BroadcastType.EVENT_CONFIG_UPDATED, config)
        return config

    def create_item(
        self,
        event_id: EventId,
        title: object,
        description: object = None,
        opening_bid: object = None,
        image_url: object = None,
    ) -> Item:
        """Add an open item to the event and broadcast the item list.

        Raises:
            EventNotFoundError: If the event does not exist.
            ValidationError: If the title is blank or the opening bid is
                not a finite number >= 0.
        """
        clean_title = str(title or "").strip()
        clean_description = str(description or "").strip()
        if not clean_title:
            raise ValidationError("Title is required")
        try:
            opening = Money.parse(opening_bid)
        except ValueError:
            raise ValidationError("Opening bid must be a number >= 0") from None

        with self._store.transaction(event_id) as (event,):
            item = Item.create(
                item_id=self._store.next_item_id(),
                event_id=event.id,
                title=clean_title,
                description=clean_description,
                opening_bid=opening,
                image_url=str(image_url) if image_url else None,
            )
            event.put_item(item)
            self._notifier.publish(event.id, BroadcastType.ITEMS, event.item_list())

        logger.info("Created item %s in event %s (%r, opening %s)", item.id, event_id, clean_title, opening)
        return item
