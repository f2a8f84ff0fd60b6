from auctions.services.bidding import BidArbiter
from auctions.services.connections import ConnectionRegistry
from auctions.services.gateway import Ack, CommandGateway
from auctions.services.identity import IdentityLock
from auctions.services.lots import LotService
from auctions.services.notifier import Broadcast, BroadcastType, Notifier, SubscriberRegistry
from auctions.services.registry import EventRegistry
from auctions.services.sweeper import ExpirySweeper

__all__ = [
    "Ack",
    "BidArbiter",
    "Broadcast",
    "BroadcastType",
    "CommandGateway",
    "ConnectionRegistry",
    "EventRegistry",
    "ExpirySweeper",
    "IdentityLock",
    "LotService",
    "Notifier",
    "SubscriberRegistry",
]
