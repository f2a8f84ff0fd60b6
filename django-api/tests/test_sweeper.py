"""Tests for the periodic expiry sweep."""

import time
from contextlib import contextmanager

import pytest

from auctions.domain import EventId, ItemStatus, PaymentStatus
from auctions.services import BroadcastType, EventRegistry, ExpirySweeper, LotService
from auctions.stores import InMemoryEventStore


@pytest.fixture
def watcher(join_as, event):
    return join_as(event, "Watcher")


def items_of(store, event_id):
    with store.transaction(event_id) as (aggregate,):
        return {item.title: item for item in aggregate.item_list()}


class TestBiddingWindows:
    def test_expired_open_items_are_closed(self, registry, lots, sweeper, store, clock, event):
        expiring = registry.create_item(event, title="A", opening_bid=1)
        running = registry.create_item(event, title="B", opening_bid=1)
        lots.start_timer(event, expiring.id, 10)
        lots.start_timer(event, running.id, 60)
        clock.advance(10)

        assert sweeper.tick() == [event]

        items = items_of(store, event)
        assert items["A"].status is ItemStatus.CLOSED
        assert items["A"].end_time is None
        assert items["B"].status is ItemStatus.OPEN
        assert items["B"].end_time is not None

    def test_changes_are_broadcast_once_per_event_per_tick(
        self, registry, lots, sweeper, subscribers, clock, event, watcher
    ):
        for title in ("A", "B", "C"):
            item = registry.create_item(event, title=title, opening_bid=1)
            lots.start_timer(event, item.id, 5)
        subscribers.drain("Watcher-conn")
        clock.advance(5)

        sweeper.tick()

        (message,) = subscribers.drain("Watcher-conn")
        assert message.type is BroadcastType.ITEMS
        assert {item.status for item in message.payload} == {ItemStatus.CLOSED}

    def test_quiet_tick_broadcasts_nothing(self, registry, sweeper, subscribers, event, watcher):
        registry.create_item(event, title="A", opening_bid=1)
        subscribers.drain("Watcher-conn")

        assert sweeper.tick() == []
        assert subscribers.drain("Watcher-conn") == []

    def test_stopped_timer_is_not_closed(self, registry, lots, sweeper, store, clock, event):
        item = registry.create_item(event, title="A", opening_bid=1)
        lots.start_timer(event, item.id, 5)
        lots.stop_timer(event, item.id)
        clock.advance(10)

        sweeper.tick()

        assert items_of(store, event)["A"].status is ItemStatus.OPEN


class TestPaymentWindows:
    def test_overdue_payments_expire(self, registry, lots, arbiter, sweeper, store, clock, event, watcher):
        item = registry.create_item(event, title="A", opening_bid=1)
        arbiter.place_bid(watcher, event, item.id, 2)
        lots.mark_sold(event, item.id)

        clock.advance(120)
        sweeper.tick()
        assert items_of(store, event)["A"].payment_status is PaymentStatus.PENDING

        clock.advance(1)
        sweeper.tick()
        assert items_of(store, event)["A"].payment_status is PaymentStatus.EXPIRED

    def test_confirmed_payments_are_left_alone(self, registry, lots, arbiter, sweeper, store, clock, event, watcher):
        item = registry.create_item(event, title="A", opening_bid=1)
        arbiter.place_bid(watcher, event, item.id, 2)
        lots.mark_sold(event, item.id)
        lots.confirm_payment(watcher, event, item.id)
        clock.advance(500)

        assert sweeper.tick() == []
        assert items_of(store, event)["A"].payment_status is PaymentStatus.CONFIRMED


class BrokenEventStore(InMemoryEventStore):
    """Fails the critical section of one event."""

    def __init__(self, broken_id):
        super().__init__()
        self.broken_id = broken_id

    @contextmanager
    def transaction(self, *event_ids):
        if self.broken_id in event_ids:
            raise RuntimeError("boom")
        with super().transaction(*event_ids) as events:
            yield events


class TestRobustness:
    def test_failure_in_one_event_does_not_stop_the_sweep(self, subscribers, clock):
        store = BrokenEventStore(broken_id=EventId(1))
        registry = EventRegistry(store, subscribers, clock=clock)
        lots = LotService(store, subscribers, clock=clock)
        store.add_event("broken", "", False, "", clock.now)
        healthy = store.add_event("ok", "", False, "", clock.now).id
        item = registry.create_item(healthy, title="A", opening_bid=1)
        lots.start_timer(healthy, item.id, 1)
        clock.advance(1)

        changed = ExpirySweeper(store, subscribers, clock=clock).tick()

        assert changed == [healthy]

    def test_overlapping_ticks_are_skipped(self, sweeper):
        sweeper._tick_lock.acquire()
        try:
            assert sweeper.tick() == []
        finally:
            sweeper._tick_lock.release()

    def test_background_thread_sweeps_on_its_own(self, registry, lots, sweeper, store, clock, event):
        item = registry.create_item(event, title="A", opening_bid=1)
        lots.start_timer(event, item.id, 1)
        clock.advance(1)

        sweeper.start()
        deadline = time.monotonic() + 2
        while time.monotonic() < deadline:
            if items_of(store, event)["A"].status is ItemStatus.CLOSED:
                break
            time.sleep(0.01)
        sweeper.stop(timeout=1)

        assert items_of(store, event)["A"].status is ItemStatus.CLOSED
        assert not sweeper.running
