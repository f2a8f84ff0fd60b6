"""Domain error codes for the auctions module."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    UNAUTHORIZED = "UNAUTHORIZED"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    ITEM_NOT_FOUND = "ITEM_NOT_FOUND"
    CONNECTION_NOT_FOUND = "CONNECTION_NOT_FOUND"
    UNKNOWN_COMMAND = "UNKNOWN_COMMAND"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    STATE_CONFLICT = "STATE_CONFLICT"
    NAME_CONFLICT = "NAME_CONFLICT"
    NAME_CHANGE_DENIED = "NAME_CHANGE_DENIED"
    WINDOW_CLOSED = "WINDOW_CLOSED"
    BID_TOO_LOW = "BID_TOO_LOW"
    PAYMENT_WINDOW_EXPIRED = "PAYMENT_WINDOW_EXPIRED"


@dataclass(eq=False)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class AuthorizationError(DomainError):
    """Raised when the caller's role does not permit the operation."""

    def __init__(self, message: str = "Not authorized") -> None:
        super().__init__(code=ErrorCode.UNAUTHORIZED, message=message)


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""


class EventNotFoundError(NotFoundError):
    """Raised when an event is not found."""

    def __init__(self, event_id: object) -> None:
        super().__init__(code=ErrorCode.EVENT_NOT_FOUND, message="Event not found")
        self.event_id = event_id


class ItemNotFoundError(NotFoundError):
    """Raised when an item is not found in an event."""

    def __init__(self, item_id: object) -> None:
        super().__init__(code=ErrorCode.ITEM_NOT_FOUND, message="Item not found")
        self.item_id = item_id


class ConnectionNotFoundError(NotFoundError):
    """Raised when a command names a connection that is not open."""

    def __init__(self, connection_id: str) -> None:
        super().__init__(
            code=ErrorCode.CONNECTION_NOT_FOUND,
            message="Unknown connection",
        )
        self.connection_id = connection_id


class UnknownCommandError(NotFoundError):
    def __init__(self, command: str) -> None:
        super().__init__(code=ErrorCode.UNKNOWN_COMMAND, message="Unknown command")
        self.command = command


class ValidationError(DomainError):
    """Raised for blank, non-finite or out-of-range input."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.VALIDATION_FAILED, message=message)


class StateConflictError(DomainError):
    """Raised when an action is invalid for the item's current status."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.STATE_CONFLICT, message=message)


class NameConflictError(DomainError):
    """Raised when a display name is already bound in the event."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.NAME_CONFLICT,
            message="That name is already taken in this event",
        )


class NameChangeDeniedError(DomainError):
    """Raised when a bound connection tries to rejoin under another name."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.NAME_CHANGE_DENIED,
            message="Name cannot be changed during an active event",
        )


class WindowClosedError(DomainError):
    """Raised when a bid arrives after the item's deadline."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.WINDOW_CLOSED,
            message="Time is up, bidding closed.",
        )


class BidTooLowError(DomainError):
    """Raised when a bid does not clear the required threshold."""

    def __init__(self, message: str, required: Decimal) -> None:
        super().__init__(code=ErrorCode.BID_TOO_LOW, message=message)
        self.required = required


class PaymentWindowExpiredError(DomainError):
    """Raised when payment is confirmed after the payment deadline."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.PAYMENT_WINDOW_EXPIRED,
            message="Payment window has expired",
        )
