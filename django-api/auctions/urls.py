from django.urls import path

from auctions.handlers import (
    CommandView,
    ConnectionDetailView,
    ConnectionListView,
    ConnectionMessagesView,
    EventListView,
    ExportView,
    HealthView,
    UploadView,
)

api_urlpatterns = [
    path("events", EventListView.as_view(), name="event-list"),
    path("connections", ConnectionListView.as_view(), name="connection-list"),
    path(
        "connections/<str:connection_id>",
        ConnectionDetailView.as_view(),
        name="connection-detail",
    ),
    path(
        "connections/<str:connection_id>/messages",
        ConnectionMessagesView.as_view(),
        name="connection-messages",
    ),
    path("commands/<str:command>", CommandView.as_view(), name="command"),
    path("upload", UploadView.as_view(), name="upload"),
]

site_urlpatterns = [
    path("healthz", HealthView.as_view(), name="healthz"),
    path("export.csv", ExportView.as_view(), name="export-csv"),
]
