"""Command gateway - role-gated dispatch with a uniform acknowledgment.

The gateway is the error boundary: domain errors become failed acks for
the calling connection only, and nothing else escapes to the transport.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Self

from auctions.domain import EventId, ItemId, PaymentProfile, Role, Session
from auctions.domain.errors import (
    AuthorizationError,
    BidTooLowError,
    DomainError,
    ErrorCode,
    UnknownCommandError,
    ValidationError,
)
from auctions.services.bidding import BidArbiter
from auctions.services.connections import ConnectionRegistry
from auctions.services.identity import IdentityLock
from auctions.services.lots import LotService
from auctions.services.notifier import Broadcast, SubscriberRegistry
from auctions.services.registry import EventRegistry
from auctions.services.uploads import secret_matches

logger = logging.getLogger(__name__)

Payload = Mapping[str, Any]

ANYONE = frozenset(Role)
HOSTS = frozenset({Role.HOST})
BIDDERS = frozenset({Role.BIDDER})
MEMBERS = frozenset({Role.HOST, Role.BIDDER})


@dataclass(frozen=True)
class Ack:
    """Result of one command: data on success, a single reason on failure."""

    ok: bool
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    code: ErrorCode | None = None

    @classmethod
    def success(cls, **data: Any) -> Self:
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, error: DomainError) -> Self:
        details = {}
        if isinstance(error, BidTooLowError):
            details["required"] = error.required
        return cls(ok=False, data=details, error=error.message, code=error.code)

    @classmethod
    def internal_error(cls) -> Self:
        return cls(ok=False, error="Internal error")


@dataclass(frozen=True)
class Command:
    roles: frozenset[Role]
    denial: str
    handler: Callable[[Session, Payload], dict[str, Any]]


def parse_event_id(payload: Payload) -> EventId:
    try:
        return EventId.parse(payload.get("eventId"))
    except ValueError:
        raise ValidationError("Invalid event id") from None


def parse_item_id(payload: Payload, allow_null: bool = False) -> ItemId | None:
    raw = payload.get("itemId")
    if allow_null and raw in (None, "", 0):
        return None
    try:
        return ItemId.parse(raw)
    except ValueError:
        raise ValidationError("Invalid item id") from None


class CommandGateway:
    """Authorizes each command against the connection's server-side role."""

    def __init__(
        self,
        connections: ConnectionRegistry,
        subscribers: SubscriberRegistry,
        identity: IdentityLock,
        registry: EventRegistry,
        lots: LotService,
        arbiter: BidArbiter,
        admin_token: str,
    ) -> None:
        self._connections = connections
        self._subscribers = subscribers
        self._identity = identity
        self._registry = registry
        self._lots = lots
        self._arbiter = arbiter
        self._admin_token = admin_token
        self._commands: dict[str, Command] = {
            "events:list": Command(ANYONE, "", self._list_events),
            "auth": Command(ANYONE, "", self._authenticate),
            "event:join": Command(MEMBERS, "Sign in to join an event", self._join_event),
            "event:leave": Command(MEMBERS, "Sign in to leave an event", self._leave_event),
            "profile:update": Command(BIDDERS, "Bidders only", self._update_payment_profile),
            "admin:createEvent": Command(HOSTS, "Admin only", self._create_event),
            "admin:setMinIncrement": Command(HOSTS, "Admin only", self._set_min_increment),
            "admin:createItem": Command(HOSTS, "Admin only", self._create_item),
            "admin:startTimer": Command(HOSTS, "Admin only", self._start_timer),
            "admin:stopTimer": Command(HOSTS, "Admin only", self._stop_timer),
            "admin:markSold": Command(HOSTS, "Admin only", self._mark_sold),
            "admin:reopen": Command(HOSTS, "Admin only", self._reopen),
            "admin:setCurrentLot": Command(HOSTS, "Admin only", self._set_current_lot),
            "placeBid": Command(BIDDERS, "Only bidders can place bids", self._place_bid),
            "payment:confirm": Command(BIDDERS, "Only bidders can confirm payment", self._confirm_payment),
        }

    @property
    def command_names(self) -> list[str]:
        return sorted(self._commands)

    # Connection lifecycle

    def connect(self) -> Session:
        session = self._connections.open()
        self._subscribers.connect(session.connection_id)
        return session

    def disconnect(self, connection_id: str) -> None:
        """Release the connection's name lock and forget it.

        Raises:
            ConnectionNotFoundError: If the connection is not open.
        """
        with self._connections.hold(connection_id) as session:
            self._identity.release(session)
            self._subscribers.disconnect(connection_id)
            self._connections.close(connection_id)

    def session(self, connection_id: str) -> Session:
        return self._connections.get(connection_id)

    def drain(self, connection_id: str) -> list[Broadcast]:
        self._connections.get(connection_id)
        return self._subscribers.drain(connection_id)

    # Dispatch

    def dispatch(self, connection_id: str, command: str, payload: Payload | None = None) -> Ack:
        try:
            with self._connections.hold(connection_id) as session:
                entry = self._commands.get(command)
                if entry is None:
                    raise UnknownCommandError(command)
                if session.role not in entry.roles:
                    raise AuthorizationError(entry.denial)
                data = entry.handler(session, payload or {})
        except DomainError as exc:
            logger.info("Command %s from %s rejected: %s", command, connection_id, exc)
            return Ack.failure(exc)
        except Exception:
            logger.exception("Command %s from %s failed", command, connection_id)
            return Ack.internal_error()
        return Ack.success(**data)

    # Handlers run while the connection is held

    def _list_events(self, session: Session, payload: Payload) -> dict[str, Any]:
        return {"events": self._registry.list_events()}

    def _authenticate(self, session: Session, payload: Payload) -> dict[str, Any]:
        role = str(payload.get("role") or "").strip().lower()
        if role in ("host", "admin"):
            secret = payload.get("password", payload.get("secret"))
            if not secret_matches(secret, self._admin_token):
                raise AuthorizationError("Invalid admin password")
            granted = Role.HOST
        elif role == "bidder":
            granted = Role.BIDDER
        elif role == "guest":
            granted = Role.GUEST
        else:
            raise ValidationError("Unknown role")
        if granted not in MEMBERS:
            session = self._identity.release(session)
        self._connections.replace(session.with_role(granted))
        logger.info("Connection %s authenticated as %s", session.connection_id, granted.value)
        return {"role": granted}

    def _join_event(self, session: Session, payload: Payload) -> dict[str, Any]:
        result = self._identity.join(
            session,
            parse_event_id(payload),
            payload.get("name"),
            payload.get("password"),
        )
        self._connections.replace(result.session)
        return {"event": result.config, "items": result.items}

    def _leave_event(self, session: Session, payload: Payload) -> dict[str, Any]:
        self._connections.replace(self._identity.release(session))
        return {}

    def _update_payment_profile(self, session: Session, payload: Payload) -> dict[str, Any]:
        name = str(payload.get("name") or "").strip()
        email = str(payload.get("email") or "").strip()
        address = str(payload.get("address") or "").strip()
        if not name or not email or not address:
            raise ValidationError("Name, email and address are required")
        try:
            profile = PaymentProfile.from_card_number(
                name=name,
                email=email,
                card_number=str(payload.get("cardNumber") or ""),
                address=address,
            )
        except ValueError as exc:
            raise ValidationError(str(exc)) from None
        self._connections.replace(session.with_payment_profile(profile))
        return {"profile": profile}

    def _create_event(self, session: Session, payload: Payload) -> dict[str, Any]:
        summary = self._registry.create_event(
            name=payload.get("name"),
            location=payload.get("location"),
            is_protected=bool(payload.get("isProtected")),
            password=payload.get("password"),
        )
        return {"event": summary}

    def _set_min_increment(self, session: Session, payload: Payload) -> dict[str, Any]:
        config = self._registry.set_min_increment(parse_event_id(payload), payload.get("value"))
        return {"minIncrement": config.min_increment}

    def _create_item(self, session: Session, payload: Payload) -> dict[str, Any]:
        item = self._registry.create_item(
            parse_event_id(payload),
            title=payload.get("title"),
            description=payload.get("description"),
            opening_bid=payload.get("openingBid"),
            image_url=payload.get("imageUrl"),
        )
        return {"item": item}

    def _start_timer(self, session: Session, payload: Payload) -> dict[str, Any]:
        item = self._lots.start_timer(
            parse_event_id(payload),
            parse_item_id(payload),
            payload.get("durationSeconds"),
        )
        return {"item": item}

    def _stop_timer(self, session: Session, payload: Payload) -> dict[str, Any]:
        return {"item": self._lots.stop_timer(parse_event_id(payload), parse_item_id(payload))}

    def _mark_sold(self, session: Session, payload: Payload) -> dict[str, Any]:
        return {"item": self._lots.mark_sold(parse_event_id(payload), parse_item_id(payload))}

    def _reopen(self, session: Session, payload: Payload) -> dict[str, Any]:
        return {"item": self._lots.reopen(parse_event_id(payload), parse_item_id(payload))}

    def _set_current_lot(self, session: Session, payload: Payload) -> dict[str, Any]:
        config = self._registry.set_current_lot(
            parse_event_id(payload),
            parse_item_id(payload, allow_null=True),
        )
        return {"currentLotId": config.current_lot_id}

    def _place_bid(self, session: Session, payload: Payload) -> dict[str, Any]:
        item = self._arbiter.place_bid(
            session,
            parse_event_id(payload),
            parse_item_id(payload),
            payload.get("amount"),
            payload.get("name"),
        )
        return {"item": item}

    def _confirm_payment(self, session: Session, payload: Payload) -> dict[str, Any]:
        item = self._lots.confirm_payment(session, parse_event_id(payload), parse_item_id(payload))
        return {"item": item}
