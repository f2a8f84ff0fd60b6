from auctions.stores.interfaces import EventStore
from auctions.stores.memory_store import InMemoryEventStore

__all__ = ["EventStore", "InMemoryEventStore"]
