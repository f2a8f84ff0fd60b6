from auctions.handlers.views import (
    CommandView,
    ConnectionDetailView,
    ConnectionListView,
    ConnectionMessagesView,
    EventListView,
    ExportView,
    HealthView,
    UploadView,
)

__all__ = [
    "CommandView",
    "ConnectionDetailView",
    "ConnectionListView",
    "ConnectionMessagesView",
    "EventListView",
    "ExportView",
    "HealthView",
    "UploadView",
]
