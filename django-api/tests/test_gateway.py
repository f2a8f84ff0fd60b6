"""Tests for command dispatch, role gating and acknowledgments."""

from decimal import Decimal

import pytest

from auctions.domain import ItemStatus, PaymentStatus, Role
from auctions.domain.errors import ErrorCode

ADMIN_TOKEN = "s3cret"


@pytest.fixture
def host(gateway):
    connection_id = gateway.connect().connection_id
    assert gateway.dispatch(connection_id, "auth", {"role": "host", "password": ADMIN_TOKEN}).ok
    return connection_id


@pytest.fixture
def bidder(gateway):
    def _bidder(event_id, name):
        connection_id = gateway.connect().connection_id
        gateway.dispatch(connection_id, "auth", {"role": "bidder"})
        ack = gateway.dispatch(connection_id, "event:join", {"eventId": event_id.value, "name": name})
        assert ack.ok, ack.error
        return connection_id

    return _bidder


@pytest.fixture
def item_id(gateway, host, event):
    ack = gateway.dispatch(
        host, "admin:createItem", {"eventId": event.value, "title": "Quilt", "openingBid": 100}
    )
    return ack.data["item"].id.value


class TestRoleGating:
    def test_new_connections_are_guests(self, gateway):
        session = gateway.connect()

        assert session.role is Role.GUEST

    def test_guest_may_only_list_events(self, gateway, event):
        guest = gateway.connect().connection_id

        assert gateway.dispatch(guest, "events:list").ok
        for command in ("event:join", "admin:createEvent", "placeBid", "payment:confirm"):
            ack = gateway.dispatch(guest, command, {"eventId": event.value, "name": "Zed"})
            assert not ack.ok
            assert ack.code is ErrorCode.UNAUTHORIZED

    def test_bidder_cannot_run_admin_commands(self, gateway, event):
        connection_id = gateway.connect().connection_id
        gateway.dispatch(connection_id, "auth", {"role": "bidder"})

        ack = gateway.dispatch(connection_id, "admin:createItem", {"eventId": event.value, "title": "X"})

        assert not ack.ok
        assert ack.error == "Admin only"

    def test_host_cannot_bid(self, gateway, host, event, item_id):
        ack = gateway.dispatch(host, "placeBid", {"eventId": event.value, "itemId": item_id, "amount": 500})

        assert not ack.ok
        assert ack.error == "Only bidders can place bids"

    def test_client_supplied_role_is_ignored(self, gateway, event):
        guest = gateway.connect().connection_id

        ack = gateway.dispatch(guest, "admin:createEvent", {"name": "Sneaky", "role": "host"})

        assert not ack.ok
        assert [summary.name for summary in gateway.dispatch(guest, "events:list").data["events"]] == [
            "Spring Gala"
        ]


class TestAuthentication:
    def test_host_requires_the_admin_secret(self, gateway):
        connection_id = gateway.connect().connection_id

        denied = gateway.dispatch(connection_id, "auth", {"role": "host", "password": "guess"})
        granted = gateway.dispatch(connection_id, "auth", {"role": "host", "password": ADMIN_TOKEN})

        assert denied.code is ErrorCode.UNAUTHORIZED
        assert gateway.session(connection_id).role is Role.HOST
        assert granted.data == {"role": Role.HOST}

    def test_failed_host_auth_keeps_previous_role(self, gateway):
        connection_id = gateway.connect().connection_id
        gateway.dispatch(connection_id, "auth", {"role": "bidder"})

        gateway.dispatch(connection_id, "auth", {"role": "host"})

        assert gateway.session(connection_id).role is Role.BIDDER

    def test_admin_is_an_alias_for_host(self, gateway):
        connection_id = gateway.connect().connection_id

        assert gateway.dispatch(connection_id, "auth", {"role": "admin", "secret": ADMIN_TOKEN}).ok
        assert gateway.session(connection_id).role is Role.HOST

    def test_unknown_role_is_rejected(self, gateway):
        connection_id = gateway.connect().connection_id

        ack = gateway.dispatch(connection_id, "auth", {"role": "superuser"})

        assert ack.code is ErrorCode.VALIDATION_FAILED
        assert gateway.session(connection_id).role is Role.GUEST


class TestAuctionFlow:
    def test_create_join_bid_sell_confirm(self, gateway, host):
        created = gateway.dispatch(host, "admin:createEvent", {"name": "Charity Night", "location": "Hall"})
        event_id = created.data["event"].id
        item = gateway.dispatch(
            host, "admin:createItem", {"eventId": event_id.value, "title": "Vase", "openingBid": "10"}
        ).data["item"]
        alice = gateway.connect().connection_id
        gateway.dispatch(alice, "auth", {"role": "bidder"})

        joined = gateway.dispatch(alice, "event:join", {"eventId": event_id.value, "name": "Alice"})
        bid = gateway.dispatch(
            alice, "placeBid", {"eventId": event_id.value, "itemId": item.id.value, "amount": 15}
        )
        sold = gateway.dispatch(host, "admin:markSold", {"eventId": event_id.value, "itemId": item.id.value})
        confirmed = gateway.dispatch(
            alice, "payment:confirm", {"eventId": event_id.value, "itemId": item.id.value}
        )

        assert joined.data["event"].id == event_id
        assert [i.title for i in joined.data["items"]] == ["Vase"]
        assert bid.data["item"].current_winner == "Alice"
        assert sold.data["item"].status is ItemStatus.SOLD
        assert confirmed.data["item"].payment_status is PaymentStatus.CONFIRMED
        types = [m.type.value for m in gateway.drain(alice)]
        assert types == ["itemUpdated", "itemUpdated", "itemUpdated"]

    def test_too_low_bid_reports_required_amount(self, gateway, bidder, event, item_id):
        alice = bidder(event, "Alice")

        ack = gateway.dispatch(alice, "placeBid", {"eventId": event.value, "itemId": item_id, "amount": 50})

        assert not ack.ok
        assert ack.code is ErrorCode.BID_TOO_LOW
        assert ack.data == {"required": Decimal("100")}

    def test_admin_configuration_commands(self, gateway, host, event, item_id):
        increment = gateway.dispatch(host, "admin:setMinIncrement", {"eventId": event.value, "value": 5})
        lot = gateway.dispatch(host, "admin:setCurrentLot", {"eventId": event.value, "itemId": item_id})
        cleared = gateway.dispatch(host, "admin:setCurrentLot", {"eventId": event.value, "itemId": None})
        timer = gateway.dispatch(
            host, "admin:startTimer", {"eventId": event.value, "itemId": item_id, "durationSeconds": 30}
        )
        stopped = gateway.dispatch(host, "admin:stopTimer", {"eventId": event.value, "itemId": item_id})

        assert str(increment.data["minIncrement"]) == "5.00"
        assert lot.data["currentLotId"].value == item_id
        assert cleared.data["currentLotId"] is None
        assert timer.data["item"].end_time is not None
        assert stopped.data["item"].end_time is None

    def test_reopen_after_sale(self, gateway, host, event, item_id):
        gateway.dispatch(host, "admin:markSold", {"eventId": event.value, "itemId": item_id})

        ack = gateway.dispatch(host, "admin:reopen", {"eventId": event.value, "itemId": item_id})

        assert ack.data["item"].status is ItemStatus.OPEN

    @pytest.mark.parametrize("payload", [{}, {"eventId": "abc"}, {"eventId": -2}])
    def test_bad_event_ids_are_validation_errors(self, gateway, host, payload):
        ack = gateway.dispatch(host, "admin:setMinIncrement", {**payload, "value": 1})

        assert ack.code is ErrorCode.VALIDATION_FAILED


class TestSessions:
    def test_leave_frees_the_name(self, gateway, bidder, event):
        alice = bidder(event, "Alice")

        assert gateway.dispatch(alice, "event:leave").ok
        assert gateway.session(alice).event_id is None
        bidder(event, "Alice")

    def test_disconnect_releases_the_name(self, gateway, bidder, event):
        alice = bidder(event, "Alice")

        gateway.disconnect(alice)

        bidder(event, "Alice")
        assert not gateway.dispatch(alice, "events:list").ok

    def test_switching_to_guest_releases_the_name(self, gateway, subscribers, bidder, host, event, item_id):
        alice = bidder(event, "Alice")

        assert gateway.dispatch(alice, "auth", {"role": "guest"}).ok

        session = gateway.session(alice)
        assert session.role is Role.GUEST
        assert session.event_id is None
        assert session.display_name is None
        assert alice not in subscribers.audience(event)
        gateway.drain(alice)
        gateway.dispatch(host, "admin:startTimer", {"eventId": event.value, "itemId": item_id})
        assert gateway.drain(alice) == []
        bidder(event, "Alice")

    def test_switching_between_members_keeps_the_binding(self, gateway, bidder, event):
        alice = bidder(event, "Alice")

        gateway.dispatch(alice, "auth", {"role": "host", "password": ADMIN_TOKEN})

        assert gateway.session(alice).display_name == "Alice"

    def test_name_conflict_is_reported_to_the_caller_only(self, gateway, bidder, event):
        bidder(event, "Alice")
        impostor = gateway.connect().connection_id
        gateway.dispatch(impostor, "auth", {"role": "bidder"})

        ack = gateway.dispatch(impostor, "event:join", {"eventId": event.value, "name": "Alice"})

        assert ack.code is ErrorCode.NAME_CONFLICT
        assert ack.error == "That name is already taken in this event"
        assert gateway.drain(impostor) == []

    def test_payment_profile_keeps_only_last_four_digits(self, gateway, event):
        connection_id = gateway.connect().connection_id
        gateway.dispatch(connection_id, "auth", {"role": "bidder"})

        ack = gateway.dispatch(
            connection_id,
            "profile:update",
            {
                "name": "Alice",
                "email": "alice@example.com",
                "cardNumber": "4111 1111 1111 1234",
                "address": "1 Main St",
            },
        )

        assert ack.data["profile"].card_last4 == "1234"
        assert "4111" not in repr(gateway.session(connection_id))

    def test_incomplete_payment_profile_is_rejected(self, gateway):
        connection_id = gateway.connect().connection_id
        gateway.dispatch(connection_id, "auth", {"role": "bidder"})

        ack = gateway.dispatch(connection_id, "profile:update", {"name": "Alice", "cardNumber": "1234"})

        assert ack.code is ErrorCode.VALIDATION_FAILED
        assert gateway.session(connection_id).payment_profile is None


class TestErrorBoundary:
    def test_unknown_command(self, gateway):
        connection_id = gateway.connect().connection_id

        ack = gateway.dispatch(connection_id, "admin:dropEverything")

        assert ack.code is ErrorCode.UNKNOWN_COMMAND

    def test_unknown_connection(self, gateway):
        ack = gateway.dispatch("ghost", "events:list")

        assert ack.code is ErrorCode.CONNECTION_NOT_FOUND

    def test_unexpected_failure_becomes_internal_error(self, gateway, registry, monkeypatch):
        def explode():
            raise RuntimeError("database on fire")

        monkeypatch.setattr(registry, "list_events", explode)
        connection_id = gateway.connect().connection_id

        ack = gateway.dispatch(connection_id, "events:list")

        assert not ack.ok
        assert ack.error == "Internal error"
        assert ack.code is None
        assert gateway.dispatch(connection_id, "auth", {"role": "bidder"}).ok

    def test_command_names_are_listed(self, gateway):
        assert "placeBid" in gateway.command_names
        assert len(gateway.command_names) == 15
