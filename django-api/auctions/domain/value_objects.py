"""Domain primitives that enforce validity at creation time."""

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Self


def _parse_positive_int(value: object) -> int:
    if isinstance(value, bool):
        raise ValueError("Identifier must be an integer")
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValueError("Identifier must be an integer") from None
    if parsed <= 0:
        raise ValueError("Identifier must be positive")
    return parsed


@dataclass(frozen=True, order=True)
class EventId:
    """Unique, monotonically assigned identifier for an Event."""

    value: int

    @classmethod
    def parse(cls, value: object) -> Self:
        return cls(value=_parse_positive_int(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, order=True)
class ItemId:
    """Identifier for an Item, unique across all events."""

    value: int

    @classmethod
    def parse(cls, value: object) -> Self:
        return cls(value=_parse_positive_int(value))

    def __str__(self) -> str:
        return str(self.value)


def parse_decimal(value: object) -> Decimal:
    """Parse a client-supplied number into a finite Decimal.

    Floats go through ``str`` so that 100.01 stays 100.01.
    """
    if value is None or isinstance(value, bool):
        raise ValueError("Not a number")
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError("Not a number") from None
    if not parsed.is_finite() or not math.isfinite(float(parsed)):
        raise ValueError("Not a finite number")
    return parsed


CENT = Decimal("0.01")


@dataclass(frozen=True, order=True)
class Money:
    """Amount representation with validation."""

    amount: Decimal

    def __post_init__(self) -> None:
        if not self.amount.is_finite():
            raise ValueError("Money amount must be finite")
        if self.amount < 0:
            raise ValueError("Money amount cannot be negative")

    @classmethod
    def parse(cls, value: object) -> Self:
        """Parse a client amount, rounded half up to whole cents."""
        parsed = parse_decimal(value)
        if parsed < 0:
            raise ValueError("Money amount cannot be negative")
        try:
            cents = parsed.quantize(CENT, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            raise ValueError("Amount out of range") from None
        return cls(amount=cents)

    @classmethod
    def zero(cls) -> Self:
        return cls(amount=Decimal("0"))

    def plus(self, other: "Money") -> "Money":
        return Money(amount=self.amount + other.amount)

    def is_zero(self) -> bool:
        return self.amount == 0

    def __str__(self) -> str:
        return f"{self.amount:.2f}"


@dataclass(frozen=True)
class PaymentProfile:
    """Bidder payment details. Only the last four card digits are kept."""

    name: str
    email: str
    card_last4: str
    address: str

    def __post_init__(self) -> None:
        if len(self.card_last4) > 4 or not self.card_last4.isdigit():
            raise ValueError("Card suffix must be at most four digits")

    @classmethod
    def from_card_number(
        cls, name: str, email: str, card_number: str, address: str
    ) -> Self:
        digits = "".join(ch for ch in card_number if ch.isdigit())
        if len(digits) < 4:
            raise ValueError("Card number must contain at least four digits")
        return cls(name=name, email=email, card_last4=digits[-4:], address=address)
