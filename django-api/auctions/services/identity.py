"""Identity lock: binds a connection to a unique display name per event."""

import logging
from dataclasses import dataclass

from auctions.domain import EventConfig, EventId, Item, Session
from auctions.domain.errors import (
    AuthorizationError,
    NameChangeDeniedError,
    NameConflictError,
    ValidationError,
)
from auctions.services.notifier import Notifier
from auctions.stores.interfaces import EventStore

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 40


@dataclass(frozen=True)
class JoinResult:
    session: Session
    config: EventConfig
    items: tuple[Item, ...]


class IdentityLock:
    """Check-then-set of participant names inside the event's critical section."""

    def __init__(
        self,
        store: EventStore,
        notifier: Notifier,
        max_name_length: int = MAX_NAME_LENGTH,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._max_name_length = max_name_length

    def join(
        self,
        session: Session,
        event_id: EventId,
        requested_name: object,
        password: object = None,
    ) -> JoinResult:
        """Bind ``session`` to ``requested_name`` in the event.

        Raises:
            EventNotFoundError: If the event does not exist.
            AuthorizationError: If the event password does not match.
            ValidationError: If the name is blank or too long.
            NameChangeDeniedError: If already bound here under another name.
            NameConflictError: If another connection holds the name.
        """
        name = str(requested_name or "").strip()
        candidate = "" if password is None else str(password)

        event_ids = [event_id]
        switching = session.event_id is not None and session.event_id != event_id
        if switching:
            event_ids.append(session.event_id)

        with self._store.transaction(*event_ids) as events:
            event = events[0]
            if not event.password_matches(candidate):
                raise AuthorizationError("Wrong event password")
            if not name:
                raise ValidationError("Please enter a name")
            if len(name) > self._max_name_length:
                raise ValidationError(f"Name must be at most {self._max_name_length} characters")
            if session.is_bound_to(event.id) and name != session.display_name:
                raise NameChangeDeniedError()
            holder = event.holder_of(name)
            if holder is not None and holder != session.connection_id:
                raise NameConflictError()

            if switching and session.display_name is not None:
                events[1].release(session.display_name, session.connection_id)
            event.bind(name, session.connection_id)
            self._notifier.subscribe(session.connection_id, event.id)
            result = JoinResult(
                session=session.bound_to(event.id, name),
                config=event.config(),
                items=event.item_list(),
            )

        logger.info("Connection %s joined event %s as %r", session.connection_id, event_id, name)
        return result

    def release(self, session: Session) -> Session:
        """Free the session's name in its event. Safe to call repeatedly."""
        if session.event_id is None or session.display_name is None:
            self._notifier.unsubscribe(session.connection_id)
            return session.released()

        with self._store.transaction(session.event_id) as (event,):
            freed = event.release(session.display_name, session.connection_id)
            self._notifier.unsubscribe(session.connection_id)

        if freed:
            logger.info(
                "Connection %s released %r in event %s",
                session.connection_id,
                session.display_name,
                session.event_id,
            )
        return session.released()
