"""Item lifecycle operations: timers, sale, reopen and payment confirmation."""

import logging
import math
import time
from collections.abc import Callable

from auctions.domain import EventId, Item, ItemId, Session
from auctions.domain.errors import (
    AuthorizationError,
    PaymentWindowExpiredError,
    ValidationError,
)
from auctions.domain.value_objects import parse_decimal
from auctions.services.notifier import BroadcastType, Notifier
from auctions.stores.interfaces import EventStore

logger = logging.getLogger(__name__)

DEFAULT_TIMER_SECONDS = 60
PAYMENT_WINDOW_SECONDS = 120


def parse_duration(value: object, default: float = DEFAULT_TIMER_SECONDS) -> float:
    """Parse a timer duration in seconds. Missing values use ``default``."""
    if value is None or value == "":
        return float(default)
    try:
        seconds = float(parse_decimal(value))
    except ValueError:
        raise ValidationError("Bad duration") from None
    if not math.isfinite(seconds) or seconds <= 0:
        raise ValidationError("Bad duration")
    return seconds


class LotService:
    """Host and winner actions on a single item's state machine."""

    def __init__(
        self,
        store: EventStore,
        notifier: Notifier,
        clock: Callable[[], float] = time.time,
        payment_window_seconds: float = PAYMENT_WINDOW_SECONDS,
        default_timer_seconds: float = DEFAULT_TIMER_SECONDS,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._clock = clock
        self._payment_window_seconds = payment_window_seconds
        self._default_timer_seconds = default_timer_seconds

    def _apply(self, event_id: EventId, item_id: ItemId, transition: Callable[[Item], Item]) -> Item:
        with self._store.transaction(event_id) as (event,):
            updated = transition(event.get_item(item_id))
            event.put_item(updated)
            self._notifier.publish(event.id, BroadcastType.ITEM_UPDATED, updated)
        return updated

    def start_timer(self, event_id: EventId, item_id: ItemId, duration_seconds: object = None) -> Item:
        """Set the bidding deadline to now + duration.

        Raises:
            ValidationError: If the duration is not a finite positive number.
            StateConflictError: If the item is not open.
        """
        duration = parse_duration(duration_seconds, self._default_timer_seconds)
        item = self._apply(event_id, item_id, lambda it: it.start_timer(self._clock(), duration))
        logger.info("Timer started on item %s for %.1fs", item_id, duration)
        return item

    def stop_timer(self, event_id: EventId, item_id: ItemId) -> Item:
        return self._apply(event_id, item_id, lambda it: it.stop_timer())

    def mark_sold(self, event_id: EventId, item_id: ItemId) -> Item:
        """Sell an open item, opening the payment window when there is a winner.

        Raises:
            StateConflictError: If the item is closed or already sold.
        """
        item = self._apply(
            event_id,
            item_id,
            lambda it: it.mark_sold(self._clock(), self._payment_window_seconds),
        )
        logger.info(
            "Item %s sold to %r for %s (payment %s)",
            item_id,
            item.current_winner,
            item.current_bid,
            item.payment_status.value,
        )
        return item

    def reopen(self, event_id: EventId, item_id: ItemId) -> Item:
        item = self._apply(event_id, item_id, lambda it: it.reopen(self._clock()))
        logger.info("Item %s reopened", item_id)
        return item

    def confirm_payment(self, session: Session, event_id: EventId, item_id: ItemId) -> Item:
        """Confirm payment for a sold item on behalf of its winner.

        An overdue window is expired and broadcast before failing.

        Raises:
            AuthorizationError: If the caller is not bound to the event or
                is not the payment-window winner.
            StateConflictError: If no payment is pending.
            PaymentWindowExpiredError: If the deadline has passed.
        """
        with self._store.transaction(event_id) as (event,):
            if not session.is_bound_to(event.id):
                raise AuthorizationError("Join the event first")
            item = event.get_item(item_id)
            now = self._clock()
            if item.payment_overdue(now):
                expired = item.expire_payment()
                event.put_item(expired)
                self._notifier.publish(event.id, BroadcastType.ITEM_UPDATED, expired)
                logger.info("Payment window for item %s expired on confirmation", item_id)
                raise PaymentWindowExpiredError()
            confirmed = item.confirm_payment(session.display_name)
            event.put_item(confirmed)
            self._notifier.publish(event.id, BroadcastType.ITEM_UPDATED, confirmed)

        logger.info("Payment confirmed for item %s by %r", item_id, session.display_name)
        return confirmed
