"""Serializers for transforming domain models to API responses.

Wire keys are camelCase, timestamps are epoch milliseconds and amounts are
numbers.
"""

from decimal import Decimal
from enum import Enum

from rest_framework import serializers

from auctions.domain import (
    BidEntry,
    EventConfig,
    EventId,
    EventSummary,
    Item,
    ItemId,
    Money,
    PaymentProfile,
    Session,
)
from auctions.services import Ack, Broadcast


class IdentifierField(serializers.Field):
    def to_representation(self, value: EventId | ItemId) -> int:
        return value.value


class EnumValueField(serializers.Field):
    def to_representation(self, value: Enum) -> str:
        return value.value


class EpochMillisField(serializers.Field):
    def to_representation(self, value: float) -> int:
        return int(round(value * 1000))


class MoneyField(serializers.DecimalField):
    def __init__(self, **kwargs) -> None:
        super().__init__(max_digits=None, decimal_places=None, coerce_to_string=False, **kwargs)

    def to_representation(self, value: Money | Decimal) -> Decimal:
        if isinstance(value, Money):
            value = value.amount
        return super().to_representation(value)


class BidEntrySerializer(serializers.Serializer):
    name = serializers.CharField()
    amount = MoneyField()
    time = EpochMillisField(source="placed_at")


class ItemSerializer(serializers.Serializer):
    """Serializer for Item domain model."""

    id = IdentifierField()
    eventId = IdentifierField(source="event_id")
    title = serializers.CharField()
    description = serializers.CharField()
    openingBid = MoneyField(source="opening_bid")
    currentBid = MoneyField(source="current_bid")
    currentWinner = serializers.CharField(source="current_winner")
    bidHistory = BidEntrySerializer(source="bid_history", many=True)
    status = EnumValueField()
    endTime = EpochMillisField(source="end_time")
    imageUrl = serializers.CharField(source="image_url")
    paymentStatus = EnumValueField(source="payment_status")
    paymentDueAt = EpochMillisField(source="payment_due_at")
    paymentWinner = serializers.CharField(source="payment_winner")


class EventSummarySerializer(serializers.Serializer):
    """Public listing entry; the password is never part of it."""

    id = IdentifierField()
    name = serializers.CharField()
    location = serializers.CharField()
    isProtected = serializers.BooleanField(source="is_protected")
    active = serializers.BooleanField()
    itemCount = serializers.IntegerField(source="item_count")


class EventConfigSerializer(serializers.Serializer):
    id = IdentifierField()
    name = serializers.CharField()
    location = serializers.CharField()
    isProtected = serializers.BooleanField(source="is_protected")
    active = serializers.BooleanField()
    minIncrement = MoneyField(source="min_increment")
    currentLotId = IdentifierField(source="current_lot_id")


class PaymentProfileSerializer(serializers.Serializer):
    name = serializers.CharField()
    email = serializers.CharField()
    cardLast4 = serializers.CharField(source="card_last4")
    address = serializers.CharField()


class SessionSerializer(serializers.Serializer):
    connectionId = serializers.CharField(source="connection_id")
    role = EnumValueField()
    eventId = IdentifierField(source="event_id")
    displayName = serializers.CharField(source="display_name")
    nameLocked = serializers.BooleanField(source="name_locked")
    paymentProfile = PaymentProfileSerializer(source="payment_profile")


_SERIALIZERS: dict[type, type[serializers.Serializer]] = {
    Item: ItemSerializer,
    BidEntry: BidEntrySerializer,
    EventSummary: EventSummarySerializer,
    EventConfig: EventConfigSerializer,
    PaymentProfile: PaymentProfileSerializer,
    Session: SessionSerializer,
}


def render(value: object) -> object:
    """Convert domain values (and containers of them) to JSON-ready data."""
    if isinstance(value, (list, tuple)):
        return [render(element) for element in value]
    if isinstance(value, dict):
        return {key: render(element) for key, element in value.items()}
    serializer_class = _SERIALIZERS.get(type(value))
    if serializer_class is not None:
        return serializer_class(value).data
    if isinstance(value, Money):
        return MoneyField().to_representation(value)
    if isinstance(value, (EventId, ItemId)):
        return value.value
    if isinstance(value, Enum):
        return value.value
    return value


def render_ack(ack: Ack) -> dict[str, object]:
    if ack.ok:
        return {"ok": True, **render(ack.data)}
    body: dict[str, object] = {"ok": False, "error": ack.error}
    if ack.code is not None:
        body["code"] = ack.code.value
    body.update(render(ack.data))
    return body


def render_broadcast(message: Broadcast) -> dict[str, object]:
    return {
        "type": message.type.value,
        "eventId": render(message.event_id),
        "payload": render(message.payload),
    }
