"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call the gateway or services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

from django.http import HttpResponse
from rest_framework import status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from auctions.container import get_container
from auctions.domain import EventId
from auctions.domain.errors import DomainError, ErrorCode
from auctions.handlers.serializers import render, render_ack, render_broadcast
from auctions.services import Ack
from auctions.services.export import export_event_csv
from auctions.services.uploads import store_upload

CONNECTION_HEADER = "X-Connection-Id"

_STATUS_BY_CODE = {
    ErrorCode.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorCode.EVENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ITEM_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.CONNECTION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.UNKNOWN_COMMAND: status.HTTP_404_NOT_FOUND,
    ErrorCode.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
}


def status_for(ack: Ack) -> int:
    if ack.ok:
        return status.HTTP_200_OK
    if ack.code is None:
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return _STATUS_BY_CODE.get(ack.code, status.HTTP_409_CONFLICT)


def error_response(error: DomainError) -> Response:
    ack = Ack.failure(error)
    return Response(render_ack(ack), status=status_for(ack))


class HealthView(APIView):
    """Handler for GET /healthz"""

    def get(self, request: Request) -> Response:
        return Response({"ok": True})


class EventListView(APIView):
    """Handler for GET /api/events"""

    def get(self, request: Request) -> Response:
        events = get_container().registry.list_events()
        return Response({"ok": True, "events": render(events)})


class ConnectionListView(APIView):
    """Handler for POST /api/connections"""

    def post(self, request: Request) -> Response:
        session = get_container().gateway.connect()
        return Response(
            {"ok": True, "connectionId": session.connection_id, "role": session.role.value},
            status=status.HTTP_201_CREATED,
        )


class ConnectionDetailView(APIView):
    """Handler for GET/DELETE /api/connections/{connection_id}"""

    def get(self, request: Request, connection_id: str) -> Response:
        try:
            session = get_container().gateway.session(connection_id)
        except DomainError as exc:
            return error_response(exc)
        return Response({"ok": True, "session": render(session)})

    def delete(self, request: Request, connection_id: str) -> Response:
        try:
            get_container().gateway.disconnect(connection_id)
        except DomainError as exc:
            return error_response(exc)
        return Response({"ok": True})


class ConnectionMessagesView(APIView):
    """Handler for GET /api/connections/{connection_id}/messages"""

    def get(self, request: Request, connection_id: str) -> Response:
        try:
            messages = get_container().gateway.drain(connection_id)
        except DomainError as exc:
            return error_response(exc)
        return Response({"ok": True, "messages": [render_broadcast(m) for m in messages]})


class CommandView(APIView):
    """Handler for POST /api/commands/{command}"""

    parser_classes = [JSONParser]

    def post(self, request: Request, command: str) -> Response:
        connection_id = request.headers.get(CONNECTION_HEADER, "")
        payload = request.data if isinstance(request.data, dict) else {}
        ack = get_container().gateway.dispatch(connection_id, command, payload)
        return Response(render_ack(ack), status=status_for(ack))


class ExportView(APIView):
    """Handler for GET /export.csv?eventId={event_id}"""

    def get(self, request: Request) -> HttpResponse:
        try:
            event_id = EventId.parse(request.query_params.get("eventId"))
        except ValueError:
            return HttpResponse("Event not found", status=status.HTTP_404_NOT_FOUND)
        try:
            export = export_event_csv(get_container().store, event_id)
        except DomainError:
            return HttpResponse("Event not found", status=status.HTTP_404_NOT_FOUND)
        response = HttpResponse(export.content, content_type="text/csv")
        response["Content-Disposition"] = f"attachment; filename={export.filename}"
        return response


class UploadView(APIView):
    """Handler for POST /api/upload"""

    parser_classes = [MultiPartParser, FormParser]

    def post(self, request: Request) -> Response:
        try:
            url = store_upload(
                request.FILES.get("photo"),
                request.data.get("adminToken"),
                get_container().admin_token,
            )
        except DomainError as exc:
            code = status.HTTP_401_UNAUTHORIZED if exc.code is ErrorCode.UNAUTHORIZED else status.HTTP_400_BAD_REQUEST
            return Response({"ok": False, "error": exc.message}, status=code)
        return Response({"ok": True, "url": url})
