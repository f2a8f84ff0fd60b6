"""Domain models for events, items and connection sessions.

Items and sessions are frozen; every transition returns a new instance.
The Event aggregate owns its items and participant names and is only
mutated inside the store's per-event critical section.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Self

from auctions.domain.errors import (
    AuthorizationError,
    ItemNotFoundError,
    StateConflictError,
)
from auctions.domain.value_objects import EventId, ItemId, Money, PaymentProfile


class Role(Enum):
    HOST = "host"
    BIDDER = "bidder"
    GUEST = "guest"


class ItemStatus(Enum):
    OPEN = "open"
    CLOSED = "closed"
    SOLD = "sold"


class PaymentStatus(Enum):
    NONE = "none"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    EXPIRED = "expired"


@dataclass(frozen=True)
class BidEntry:
    """One accepted bid in an item's ledger."""

    name: str
    amount: Money
    placed_at: float


@dataclass(frozen=True)
class Item:
    """Domain representation of an auctioned Item (lot).

    Timestamps are epoch seconds.
    """

    id: ItemId
    event_id: EventId
    title: str
    description: str
    opening_bid: Money
    current_bid: Money
    current_winner: str | None = None
    bid_history: tuple[BidEntry, ...] = ()
    status: ItemStatus = ItemStatus.OPEN
    end_time: float | None = None
    image_url: str | None = None
    payment_status: PaymentStatus = PaymentStatus.NONE
    payment_due_at: float | None = None
    payment_winner: str | None = None

    @classmethod
    def create(
        cls,
        item_id: ItemId,
        event_id: EventId,
        title: str,
        description: str,
        opening_bid: Money,
        image_url: str | None = None,
    ) -> Self:
        return cls(
            id=item_id,
            event_id=event_id,
            title=title,
            description=description,
            opening_bid=opening_bid,
            current_bid=opening_bid,
            image_url=image_url,
        )

    def deadline_passed(self, now: float) -> bool:
        return self.end_time is not None and now >= self.end_time

    def payment_overdue(self, now: float) -> bool:
        return (
            self.payment_status is PaymentStatus.PENDING
            and self.payment_due_at is not None
            and now > self.payment_due_at
        )

    def _without_payment(self) -> "Item":
        return replace(
            self,
            payment_status=PaymentStatus.NONE,
            payment_due_at=None,
            payment_winner=None,
        )

    def start_timer(self, now: float, duration_seconds: float) -> "Item":
        if self.status is not ItemStatus.OPEN:
            raise StateConflictError("Item not open")
        return replace(self, end_time=now + duration_seconds)

    def stop_timer(self) -> "Item":
        return replace(self, end_time=None)

    def close(self) -> "Item":
        """open -> closed once the bidding window has run out."""
        if self.status is not ItemStatus.OPEN:
            raise StateConflictError("Item not open")
        return replace(self, status=ItemStatus.CLOSED, end_time=None)

    def mark_sold(self, now: float, payment_window_seconds: float) -> "Item":
        if self.status is ItemStatus.SOLD:
            raise StateConflictError("Item already sold")
        if self.status is ItemStatus.CLOSED:
            raise StateConflictError("Item is closed; reopen it before selling")
        sold = replace(self._without_payment(), status=ItemStatus.SOLD, end_time=None)
        if self.current_winner is None:
            return sold
        return replace(
            sold,
            payment_status=PaymentStatus.PENDING,
            payment_due_at=now + payment_window_seconds,
            payment_winner=self.current_winner,
        )

    def reopen(self, now: float) -> "Item":
        end_time = self.end_time
        if end_time is not None and now >= end_time:
            end_time = None
        return replace(self._without_payment(), status=ItemStatus.OPEN, end_time=end_time)

    def expire_payment(self) -> "Item":
        if self.payment_status is not PaymentStatus.PENDING:
            raise StateConflictError("No payment pending")
        return replace(self, payment_status=PaymentStatus.EXPIRED)

    def confirm_payment(self, name: str | None) -> "Item":
        """Confirm a pending payment. Overdue windows are expired by the caller first."""
        if self.status is not ItemStatus.SOLD or self.payment_status is not PaymentStatus.PENDING:
            raise StateConflictError("No payment pending for this item")
        if name is None or name != self.payment_winner:
            raise AuthorizationError("Only the winning bidder can confirm payment")
        return replace(self, payment_status=PaymentStatus.CONFIRMED)

    def record_bid(self, name: str, amount: Money, now: float) -> "Item":
        entry = BidEntry(name=name, amount=amount, placed_at=now)
        return replace(
            self._without_payment(),
            current_bid=amount,
            current_winner=name,
            bid_history=self.bid_history + (entry,),
        )


@dataclass(frozen=True)
class EventSummary:
    """Public listing entry. Never carries the password."""

    id: EventId
    name: str
    location: str
    is_protected: bool
    active: bool
    item_count: int


@dataclass(frozen=True)
class EventConfig:
    """Per-event settings sent to joined connections."""

    id: EventId
    name: str
    location: str
    is_protected: bool
    active: bool
    min_increment: Money
    current_lot_id: ItemId | None


@dataclass(eq=False)
class Event:
    """Event aggregate: configuration, owned items and bound participant names."""

    id: EventId
    name: str
    location: str
    is_protected: bool
    password: str = field(repr=False)
    created_at: float = 0.0
    min_increment: Money = field(default_factory=Money.zero)
    current_lot_id: ItemId | None = None
    active: bool = True
    items: dict[ItemId, Item] = field(default_factory=dict)
    # display name -> connection id
    participants: dict[str, str] = field(default_factory=dict)

    def password_matches(self, candidate: str) -> bool:
        return not self.is_protected or candidate == self.password

    def get_item(self, item_id: ItemId) -> Item:
        item = self.items.get(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    def has_item(self, item_id: ItemId) -> bool:
        return item_id in self.items

    def put_item(self, item: Item) -> None:
        self.items[item.id] = item

    def item_list(self) -> tuple[Item, ...]:
        return tuple(self.items.values())

    def holder_of(self, name: str) -> str | None:
        return self.participants.get(name)

    def bind(self, name: str, connection_id: str) -> None:
        self.participants[name] = connection_id

    def release(self, name: str, connection_id: str) -> bool:
        """Free ``name`` if ``connection_id`` still holds it."""
        if self.participants.get(name) != connection_id:
            return False
        del self.participants[name]
        return True

    def summary(self) -> EventSummary:
        return EventSummary(
            id=self.id,
            name=self.name,
            location=self.location,
            is_protected=self.is_protected,
            active=self.active,
            item_count=len(self.items),
        )

    def config(self) -> EventConfig:
        return EventConfig(
            id=self.id,
            name=self.name,
            location=self.location,
            is_protected=self.is_protected,
            active=self.active,
            min_increment=self.min_increment,
            current_lot_id=self.current_lot_id,
        )


@dataclass(frozen=True)
class Session:
    """Immutable context of one connection.

    Commands never mutate a session; they return a replacement.
    """

    connection_id: str
    role: Role = Role.GUEST
    event_id: EventId | None = None
    display_name: str | None = None
    name_locked: bool = False
    payment_profile: PaymentProfile | None = None

    def with_role(self, role: Role) -> "Session":
        return replace(self, role=role)

    def bound_to(self, event_id: EventId, name: str) -> "Session":
        return replace(self, event_id=event_id, display_name=name, name_locked=True)

    def released(self) -> "Session":
        return replace(self, event_id=None, display_name=None, name_locked=False)

    def with_payment_profile(self, profile: PaymentProfile) -> "Session":
        return replace(self, payment_profile=profile)

    def is_bound_to(self, event_id: EventId) -> bool:
        return self.event_id == event_id and self.name_locked and self.display_name is not None
