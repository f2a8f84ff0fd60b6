"""Process-wide wiring of the auction core from Django settings."""

import time
from dataclasses import dataclass
from functools import lru_cache

from django.conf import settings

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
from auctions.stores import EventStore, InMemoryEventStore


@dataclass(frozen=True)
class Container:
    store: EventStore
    subscribers: SubscriberRegistry
    registry: EventRegistry
    gateway: CommandGateway
    sweeper: ExpirySweeper
    admin_token: str


def build_container(config: dict, clock=time.time) -> Container:
    store = InMemoryEventStore()
    subscribers = SubscriberRegistry()
    registry = EventRegistry(store, subscribers, clock=clock)
    gateway = CommandGateway(
        connections=ConnectionRegistry(),
        subscribers=subscribers,
        identity=IdentityLock(store, subscribers, max_name_length=config["MAX_NAME_LENGTH"]),
        registry=registry,
        lots=LotService(
            store,
            subscribers,
            clock=clock,
            payment_window_seconds=config["PAYMENT_WINDOW_SECONDS"],
            default_timer_seconds=config["DEFAULT_TIMER_SECONDS"],
        ),
        arbiter=BidArbiter(store, subscribers, clock=clock),
        admin_token=config["ADMIN_TOKEN"],
    )
    sweeper = ExpirySweeper(
        store,
        subscribers,
        clock=clock,
        interval_seconds=config["SWEEP_INTERVAL_SECONDS"],
    )
    return Container(
        store=store,
        subscribers=subscribers,
        registry=registry,
        gateway=gateway,
        sweeper=sweeper,
        admin_token=config["ADMIN_TOKEN"],
    )


@lru_cache(maxsize=1)
def get_container() -> Container:
    return build_container(settings.AUCTION)


def reset_container() -> None:
    """Drop all in-memory state. Used by tests."""
    if get_container.cache_info().currsize:
        get_container().sweeper.stop(timeout=1)
    get_container.cache_clear()
