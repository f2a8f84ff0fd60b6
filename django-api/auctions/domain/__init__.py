from auctions.domain.models import (
    BidEntry,
    Event,
    EventConfig,
    EventSummary,
    Item,
    ItemStatus,
    PaymentStatus,
    Role,
    Session,
)
from auctions.domain.value_objects import EventId, ItemId, Money, PaymentProfile

__all__ = [
    "Event",
    "EventConfig",
    "EventSummary",
    "Item",
    "ItemStatus",
    "BidEntry",
    "PaymentStatus",
    "Role",
    "Session",
    "EventId",
    "ItemId",
    "Money",
    "PaymentProfile",
]
