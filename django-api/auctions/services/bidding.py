"""Bid arbitration.

The arbiter is the only code path that raises an item's current bid. Each
bid is evaluated inside the event's critical section, so concurrent bids
are ordered and each one sees the bid committed before it.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from auctions.domain import EventId, Item, ItemId, ItemStatus, Money, Role, Session
from auctions.domain.errors import (
    AuthorizationError,
    BidTooLowError,
    StateConflictError,
    ValidationError,
    WindowClosedError,
)
from auctions.services.notifier import BroadcastType, Notifier
from auctions.stores.interfaces import EventStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BidRequirement:
    """Lowest acceptable bid for an item under an event's increment rule."""

    minimum: Money
    increment: Money

    @property
    def strict(self) -> bool:
        """With no increment a bid only has to exceed the minimum."""
        return self.increment.is_zero()

    @property
    def threshold(self) -> Money:
        return self.minimum if self.strict else self.minimum.plus(self.increment)

    def accepts(self, amount: Money) -> bool:
        if self.strict:
            return amount > self.minimum
        return amount >= self.threshold

    def rejection(self) -> BidTooLowError:
        if self.strict:
            message = f"Bid must be greater than current bid (R{self.minimum})."
        else:
            message = f"Bid must be at least R{self.increment} higher (>= R{self.threshold})."
        return BidTooLowError(message, required=self.threshold.amount)


def requirement_for(item: Item, increment: Money) -> BidRequirement:
    return BidRequirement(minimum=max(item.opening_bid, item.current_bid), increment=increment)


def parse_bid_amount(value: object) -> Money:
    try:
        amount = Money.parse(value)
    except ValueError:
        raise ValidationError("Bid amount must be a positive number") from None
    if amount.is_zero():
        raise ValidationError("Bid amount must be a positive number")
    return amount


class BidArbiter:
    """Validates and commits bids against an item."""

    def __init__(
        self,
        store: EventStore,
        notifier: Notifier,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._clock = clock

    def place_bid(
        self,
        session: Session,
        event_id: EventId,
        item_id: ItemId,
        amount: object,
        caller_name: object = None,
    ) -> Item:
        """Commit a bid from the session's bound name.

        Checks run in order; the first failure wins:

        Raises:
            AuthorizationError: If the caller is not a bidder, is not bound
                to the event, or claims a name other than its bound one.
            EventNotFoundError / ItemNotFoundError: For unknown ids.
            StateConflictError: If the item is not open.
            WindowClosedError: If the deadline has passed. The item is
                closed and broadcast before this is raised.
            ValidationError: If the amount is not a finite number > 0.
            BidTooLowError: If the amount misses the required threshold.
        """
        if session.role is not Role.BIDDER:
            raise AuthorizationError("Only bidders can place bids")

        with self._store.transaction(event_id) as (event,):
            item = event.get_item(item_id)
            if not session.is_bound_to(event.id):
                raise AuthorizationError("Join the event first")
            name = session.display_name
            if caller_name is not None and str(caller_name) != name:
                raise AuthorizationError("Your name is locked for this event")
            if item.status is not ItemStatus.OPEN:
                raise StateConflictError(f"Bidding is closed ({item.status.value}).")

            now = self._clock()
            if item.deadline_passed(now):
                closed = item.close()
                event.put_item(closed)
                self._notifier.publish(event.id, BroadcastType.ITEM_UPDATED, closed)
                logger.info("Item %s closed on late bid from %r", item_id, name)
                raise WindowClosedError()

            bid = parse_bid_amount(amount)
            requirement = requirement_for(item, event.min_increment)
            if not requirement.accepts(bid):
                raise requirement.rejection()

            accepted = item.record_bid(name, bid, now)
            event.put_item(accepted)
            self._notifier.publish(event.id, BroadcastType.ITEM_UPDATED, accepted)

        logger.info("Bid of %s on item %s by %r accepted", bid, item_id, name)
        return accepted
