"""Read-only CSV snapshot of an event's items."""

import csv
import io
from dataclasses import dataclass

from auctions.domain import EventId
from auctions.stores.interfaces import EventStore

EXPORT_COLUMNS = (
    "eventId",
    "eventName",
    "id",
    "title",
    "description",
    "openingBid",
    "currentBid",
    "currentWinner",
    "status",
    "totalBids",
)


@dataclass(frozen=True)
class CsvExport:
    filename: str
    content: str


def export_event_csv(store: EventStore, event_id: EventId) -> CsvExport:
    """Render one row per item with its bid count.

    Raises:
        EventNotFoundError: If the event does not exist.
    """
    with store.transaction(event_id) as (event,):
        name = event.name
        items = event.item_list()

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for item in items:
        writer.writerow(
            [
                event_id.value,
                name,
                item.id.value,
                item.title,
                item.description,
                item.opening_bid.amount,
                item.current_bid.amount,
                item.current_winner or "",
                item.status.value,
                len(item.bid_history),
            ]
        )
    return CsvExport(filename=f"auction_event_{event_id.value}.csv", content=buffer.getvalue())
