"""Pytest configuration and shared fixtures."""

import itertools

import pytest
from rest_framework.test import APIClient

from auctions.container import reset_container
from auctions.domain import EventId, Role, Session
from auctions.services import (
    BidArbiter,
    CommandGateway,
    ConnectionRegistry,
    EventRegistry,
    ExpirySweeper,
    IdentityLock,
    LotService,
    SubscriberRegistry,
)
from auctions.stores import InMemoryEventStore

ADMIN_TOKEN = "s3cret"
PAYMENT_WINDOW = 120


class FakeClock:
    """Controllable stand-in for time.time."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def fresh_container():
    reset_container()
    yield
    reset_container()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryEventStore:
    return InMemoryEventStore()


@pytest.fixture
def subscribers() -> SubscriberRegistry:
    return SubscriberRegistry()


@pytest.fixture
def registry(store, subscribers, clock) -> EventRegistry:
    return EventRegistry(store, subscribers, clock=clock)


@pytest.fixture
def identity(store, subscribers) -> IdentityLock:
    return IdentityLock(store, subscribers)


@pytest.fixture
def lots(store, subscribers, clock) -> LotService:
    return LotService(store, subscribers, clock=clock, payment_window_seconds=PAYMENT_WINDOW)


@pytest.fixture
def arbiter(store, subscribers, clock) -> BidArbiter:
    return BidArbiter(store, subscribers, clock=clock)


@pytest.fixture
def sweeper(store, subscribers, clock):
    sweeper = ExpirySweeper(store, subscribers, clock=clock, interval_seconds=0.01)
    yield sweeper
    sweeper.stop(timeout=1)


@pytest.fixture
def gateway(store, subscribers, registry, identity, lots, arbiter) -> CommandGateway:
    counter = itertools.count(1)
    return CommandGateway(
        connections=ConnectionRegistry(id_factory=lambda: f"conn-{next(counter)}"),
        subscribers=subscribers,
        identity=identity,
        registry=registry,
        lots=lots,
        arbiter=arbiter,
        admin_token=ADMIN_TOKEN,
    )


@pytest.fixture
def event(registry) -> EventId:
    return registry.create_event(name="Spring Gala", location="Main hall").id


@pytest.fixture
def join_as(identity, subscribers):
    """Connect a bidder and bind it to an event under ``name``."""

    def _join(event_id: EventId, name: str, connection_id: str | None = None) -> Session:
        session = Session(connection_id=connection_id or f"{name}-conn", role=Role.BIDDER)
        subscribers.connect(session.connection_id)
        return identity.join(session, event_id, name).session

    return _join
