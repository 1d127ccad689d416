# Overview: Pytest coverage for damaged stock reports and inventory logs.

from decimal import Decimal

import pytest

from shopdesk.extensions import db
from shopdesk.services import checkout_service, inventory_service
from shopdesk.validation import NotFoundError, ValidationError


class TestDamagedInventory:

    def test_recording_damage_leaves_stock_alone(self, db_session, manager_ctx, shop_a, soap):
        row = inventory_service.record_damaged(manager_ctx, shop_a.id, soap.id, 2, "Crushed in transit")
        assert row.quantity == Decimal("2")
        assert row.reported_by == manager_ctx.profile.id

        db.session.refresh(soap)
        assert soap.stock == Decimal("10")

    def test_fractional_quantity_for_pieces(self, db_session, manager_ctx, shop_a, soap):
        with pytest.raises(ValidationError, match="whole units"):
            inventory_service.record_damaged(manager_ctx, shop_a.id, soap.id, "1.5")
        assert inventory_service.list_damaged(shop_a.id) == []

    def test_fractional_quantity_for_weighed_goods(self, db_session, manager_ctx, shop_a, rice):
        row = inventory_service.record_damaged(manager_ctx, shop_a.id, rice.id, "0.75", "Wet sack")
        assert row.quantity == Decimal("0.75")

    def test_quantity_must_be_positive(self, db_session, manager_ctx, shop_a, soap):
        with pytest.raises(ValidationError):
            inventory_service.record_damaged(manager_ctx, shop_a.id, soap.id, 0)

    def test_foreign_product(self, db_session, manager_ctx, shop_a, product_b):
        with pytest.raises(NotFoundError):
            inventory_service.record_damaged(manager_ctx, shop_a.id, product_b.id, 1)

    def test_list_carries_product_name(self, db_session, manager_ctx, shop_a, shop_b, soap, rice):
        inventory_service.record_damaged(manager_ctx, shop_a.id, soap.id, 1)
        inventory_service.record_damaged(manager_ctx, shop_a.id, rice.id, "0.5")

        rows = [r.to_dict() for r in inventory_service.list_damaged(shop_a.id)]
        assert sorted(r["product_name"] for r in rows) == ["Rice", "Soap"]
        assert inventory_service.list_damaged(shop_b.id) == []


class TestInventoryLogs:

    def test_sale_logs_are_filtered_by_action(self, db_session, cashier_ctx, shop_a, soap):
        checkout_service.checkout(cashier_ctx, shop_a.id, [{"product_id": soap.id, "quantity": 2}], {"method": "card"})

        sales = inventory_service.list_inventory_logs(shop_a.id, action="sale")
        assert [log.product_id for log in sales] == [soap.id]
        assert inventory_service.list_inventory_logs(shop_a.id, action="purchase") == []

    def test_unknown_action(self, db_session, shop_a):
        with pytest.raises(ValidationError):
            inventory_service.list_inventory_logs(shop_a.id, action="theft")


class TestInventoryRoutes:

    def test_manager_reports_and_lists_damage(self, client, manager_headers, soap):
        created = client.post(
            "/api/inventory/damaged",
            json={"product_id": soap.id, "quantity": 3, "reason": "Broken seal"},
            headers=manager_headers,
        )
        assert created.status_code == 201
        assert created.get_json()["damaged"]["product_name"] == "Soap"

        listing = client.get("/api/inventory/damaged", headers=manager_headers).get_json()
        assert listing["count"] == 1
        assert listing["damaged"][0]["quantity"] == 3

        product = client.get(f"/api/products/{soap.id}", headers=manager_headers).get_json()["product"]
        assert product["stock"] == 10

    def test_fractional_pieces_are_bad_request(self, client, manager_headers, soap):
        resp = client.post("/api/inventory/damaged", json={"product_id": soap.id, "quantity": 0.5}, headers=manager_headers)
        assert resp.status_code == 400

    def test_unknown_product_is_404(self, client, manager_headers, product_b):
        resp = client.post("/api/inventory/damaged", json={"product_id": product_b.id, "quantity": 1}, headers=manager_headers)
        assert resp.status_code == 404
