"""Registry of open connections and their immutable session contexts."""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from threading import RLock
from uuid import uuid4

from auctions.domain import Session
from auctions.domain.errors import ConnectionNotFoundError

logger = logging.getLogger(__name__)


def _new_connection_id() -> str:
    return uuid4().hex


class ConnectionRegistry:
    """Maps connection ids to the current Session.

    Commands from one connection are serialized through that connection's
    lock so a replacement session is never computed from a stale one.
    """

    def __init__(self, id_factory: Callable[[], str] = _new_connection_id) -> None:
        self._lock = RLock()
        self._id_factory = id_factory
        self._sessions: dict[str, Session] = {}
        self._connection_locks: dict[str, RLock] = {}

    def open(self) -> Session:
        with self._lock:
            session = Session(connection_id=self._id_factory())
            self._sessions[session.connection_id] = session
            self._connection_locks[session.connection_id] = RLock()
        logger.info("Connection %s opened", session.connection_id)
        return session

    def get(self, connection_id: str) -> Session:
        with self._lock:
            session = self._sessions.get(connection_id)
        if session is None:
            raise ConnectionNotFoundError(connection_id)
        return session

    def is_open(self, connection_id: str) -> bool:
        with self._lock:
            return connection_id in self._sessions

    def replace(self, session: Session) -> None:
        with self._lock:
            if session.connection_id in self._sessions:
                self._sessions[session.connection_id] = session

    @contextmanager
    def hold(self, connection_id: str) -> Iterator[Session]:
        """Serialize work on one connection and yield its current session."""
        with self._lock:
            connection_lock = self._connection_locks.get(connection_id)
        if connection_lock is None:
            raise ConnectionNotFoundError(connection_id)
        with connection_lock:
            yield self.get(connection_id)

    def close(self, connection_id: str) -> None:
        with self._lock:
            self._sessions.pop(connection_id, None)
            self._connection_locks.pop(connection_id, None)
        logger.info("Connection %s closed", connection_id)
