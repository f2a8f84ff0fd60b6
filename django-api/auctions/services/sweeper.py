"""Background expiry of bidding windows and unpaid payment windows."""

import logging
import time
from collections.abc import Callable
from threading import Event, Lock, Thread

from auctions.domain import EventId, ItemStatus
from auctions.services.notifier import BroadcastType, Notifier
from auctions.stores.interfaces import EventStore

logger = logging.getLogger(__name__)

SWEEP_INTERVAL_SECONDS = 1.0


class ExpirySweeper:
    """Periodically closes expired items and lapses overdue payments.

    Each event is swept inside its own critical section, the same one
    interactive commands use. Changed events get one ``items`` broadcast
    per tick.
    """

    def __init__(
        self,
        store: EventStore,
        notifier: Notifier,
        clock: Callable[[], float] = time.time,
        interval_seconds: float = SWEEP_INTERVAL_SECONDS,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._clock = clock
        self._interval_seconds = interval_seconds
        self._tick_lock = Lock()
        self._stop_event = Event()
        self._thread: Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = Thread(target=self._run, name="expiry-sweeper", daemon=True)
        self._thread.start()
        logger.info("Expiry sweeper started (every %.2fs)", self._interval_seconds)

    def stop(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Expiry sweeper stopped")

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval_seconds):
            self.tick()

    def tick(self) -> list[EventId]:
        """Run one sweep and return the ids of events that changed.

        A tick that starts while another is still running does nothing.
        """
        if not self._tick_lock.acquire(blocking=False):
            logger.debug("Sweep already in progress; skipping tick")
            return []
        try:
            now = self._clock()
            changed = []
            for event_id in self._store.event_ids():
                try:
                    if self._sweep_event(event_id, now):
                        changed.append(event_id)
                except Exception:
                    logger.exception("Sweep failed for event %s", event_id)
            return changed
        finally:
            self._tick_lock.release()

    def _sweep_event(self, event_id: EventId, now: float) -> bool:
        with self._store.transaction(event_id) as (event,):
            changed = False
            for item in event.item_list():
                if item.status is ItemStatus.OPEN and item.deadline_passed(now):
                    event.put_item(item.close())
                    logger.info("Bidding window closed for item %s", item.id)
                    changed = True
                elif item.status is ItemStatus.SOLD and item.payment_overdue(now):
                    event.put_item(item.expire_payment())
                    logger.info("Payment window expired for item %s", item.id)
                    changed = True
            if changed:
                self._notifier.publish(event.id, BroadcastType.ITEMS, event.item_list())
        return changed
