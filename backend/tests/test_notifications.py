# Overview: Pytest coverage for in-shop notifications and their targeting.

import pytest

from shopdesk.services import notification_service
from shopdesk.services.permission_service import PermissionDeniedError
from shopdesk.services.session_service import build_context
from shopdesk.validation import NotFoundError, ValidationError


@pytest.fixture
def staff_ctx(staff_a):
    return build_context(staff_a)


def send(ctx, shop, **payload):
    payload.setdefault("title", "Heads up")
    payload.setdefault("message", "Count the dairy shelf before closing")
    return notification_service.send_notification(ctx, shop.id, payload)


class TestTargeting:

    def test_broadcast_reaches_everyone(self, manager_ctx, cashier_ctx, staff_ctx, shop_a):
        send(manager_ctx, shop_a, recipient_role="all")
        for ctx in (manager_ctx, cashier_ctx, staff_ctx):
            assert len(notification_service.list_for(ctx, shop_a.id)) == 1

    def test_role_target(self, manager_ctx, cashier_ctx, staff_ctx, shop_a):
        row = send(manager_ctx, shop_a, recipient_role="cashier")
        assert row.recipient_role == "cashier"
        assert len(notification_service.list_for(cashier_ctx, shop_a.id)) == 1
        assert notification_service.list_for(staff_ctx, shop_a.id) == []

    def test_direct_message_beats_role(self, manager_ctx, cashier_ctx, staff_ctx, shop_a, staff_a):
        send(manager_ctx, shop_a, recipient_id=staff_a.id, recipient_role="cashier")
        assert len(notification_service.list_for(staff_ctx, shop_a.id)) == 1
        assert notification_service.list_for(cashier_ctx, shop_a.id) == []

    def test_shop_owner_can_be_messaged(self, manager_ctx, shop_a, owner):
        row = send(manager_ctx, shop_a, recipient_id=owner.id)
        assert row.recipient_id == owner.id

    def test_recipient_from_another_shop(self, manager_ctx, shop_a, manager_b):
        with pytest.raises(NotFoundError):
            send(manager_ctx, shop_a, recipient_id=manager_b.id)

    def test_unknown_role(self, manager_ctx, shop_a):
        with pytest.raises(ValidationError, match="recipient_role"):
            send(manager_ctx, shop_a, recipient_role="intern")

    def test_title_required(self, manager_ctx, shop_a):
        with pytest.raises(ValidationError, match="title"):
            send(manager_ctx, shop_a, title="  ")

    def test_cashier_cannot_send(self, cashier_ctx, shop_a):
        with pytest.raises(PermissionDeniedError):
            send(cashier_ctx, shop_a)

    def test_notifications_stay_in_their_shop(self, manager_ctx, shop_a, shop_b, manager_b):
        send(manager_ctx, shop_a)
        assert notification_service.list_for(build_context(manager_b), shop_b.id) == []


class TestReadState:

    def test_unread_count_and_mark_read(self, manager_ctx, cashier_ctx, shop_a):
        first = send(manager_ctx, shop_a)
        send(manager_ctx, shop_a, recipient_role="cashier")
        assert notification_service.unread_count(cashier_ctx, shop_a.id) == 2

        notification_service.mark_read(cashier_ctx, shop_a.id, first.id)
        assert notification_service.unread_count(cashier_ctx, shop_a.id) == 1
        assert len(notification_service.list_for(cashier_ctx, shop_a.id, unread_only=True)) == 1

    def test_cannot_mark_invisible_notification(self, manager_ctx, staff_ctx, shop_a):
        row = send(manager_ctx, shop_a, recipient_role="cashier")
        with pytest.raises(NotFoundError):
            notification_service.mark_read(staff_ctx, shop_a.id, row.id)


class TestNotificationRoutes:

    def test_send_list_and_read(self, client, manager_headers, cashier_headers):
        sent = client.post(
            "/api/notifications",
            json={"title": "Restock", "message": "Soap is running low", "recipient_role": "cashier"},
            headers=manager_headers,
        )
        assert sent.status_code == 201
        notification_id = sent.get_json()["notification"]["id"]

        listing = client.get("/api/notifications", headers=cashier_headers).get_json()
        assert listing["count"] == 1
        assert listing["unread"] == 1

        read = client.post(f"/api/notifications/{notification_id}/read", headers=cashier_headers)
        assert read.status_code == 200
        assert read.get_json()["notification"]["is_read"] is True
        assert client.get("/api/notifications/unread-count", headers=cashier_headers).get_json() == {"unread": 0}

    def test_cashier_cannot_send(self, client, cashier_headers):
        resp = client.post("/api/notifications", json={"title": "x", "message": "y"}, headers=cashier_headers)
        assert resp.status_code == 403

    def test_missing_message(self, client, manager_headers):
        resp = client.post("/api/notifications", json={"title": "x"}, headers=manager_headers)
        assert resp.status_code == 400
