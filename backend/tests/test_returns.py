# Overview: Pytest coverage for customer returns against completed transactions.

from decimal import Decimal

import pytest

from shopdesk.extensions import db
from shopdesk.models import Product
from shopdesk.services import checkout_service, return_service
from shopdesk.services.return_service import ReturnError
from shopdesk.validation import NotFoundError


@pytest.fixture
def sale(db_session, cashier_ctx, shop_a, soap, rice):
    result = checkout_service.checkout(
        cashier_ctx, shop_a.id,
        [{"product_id": soap.id, "quantity": 3}, {"product_id": rice.id, "quantity": "1.5"}],
        {"method": "card"},
    )
    return result.transaction


class TestReturnService:

    def test_pending_return_leaves_stock_alone(self, cashier_ctx, shop_a, soap, sale):
        record = return_service.create_return(cashier_ctx, shop_a.id, sale, soap.id, 2, reason="Torn wrapper")

        assert record.status == "pending"
        assert record.resolved_at is None
        assert record.product_name == "Soap"
        assert record.transaction_code == sale.transaction_code

        db.session.expire_all()
        assert db.session.get(Product, soap.id).stock == Decimal("7")

    def test_terminal_status_on_create_is_resolved(self, cashier_ctx, shop_a, soap, sale):
        record = return_service.create_return(cashier_ctx, shop_a.id, sale, soap.id, 1, status="Damaged")
        assert record.resolved_at is not None

    def test_cumulative_quantity_is_capped(self, cashier_ctx, shop_a, soap, sale):
        return_service.create_return(cashier_ctx, shop_a.id, sale, soap.id, 2)
        with pytest.raises(ReturnError, match="exceeds") as exc:
            return_service.create_return(cashier_ctx, shop_a.id, sale, soap.id, 2)
        assert exc.value.details["already_returned"] == 2

    def test_fractional_return_below_one(self, cashier_ctx, shop_a, rice, sale):
        with pytest.raises(ReturnError, match="at least 1"):
            return_service.create_return(cashier_ctx, shop_a.id, sale, rice.id, "0.5")

    def test_product_not_on_transaction(self, db_session, cashier_ctx, shop_a, sale):
        with pytest.raises(ReturnError, match="not part of this transaction"):
            return_service.create_return(cashier_ctx, shop_a.id, sale, 9999, 1)

    def test_transaction_from_another_shop(self, cashier_ctx, shop_b, soap, sale):
        with pytest.raises(NotFoundError):
            return_service.create_return(cashier_ctx, shop_b.id, sale, soap.id, 1)

    def test_resolution_is_one_way(self, cashier_ctx, shop_a, soap, sale):
        record = return_service.create_return(cashier_ctx, shop_a.id, sale, soap.id, 1)
        resolved = return_service.set_return_status(shop_a.id, record.id, "Mistakenly")
        assert resolved.resolved_at is not None

        with pytest.raises(ReturnError, match="already Mistakenly"):
            return_service.set_return_status(shop_a.id, record.id, "Damaged")

    def test_list_filters(self, cashier_ctx, shop_a, soap, rice, sale):
        return_service.create_return(cashier_ctx, shop_a.id, sale, soap.id, 1)
        return_service.create_return(cashier_ctx, shop_a.id, sale, rice.id, 1, status="Damaged")

        assert len(return_service.list_returns(shop_a.id)) == 2
        assert [r.product_id for r in return_service.list_returns(shop_a.id, status="Damaged")] == [rice.id]
        by_code = return_service.list_returns(shop_a.id, transaction_code=sale.transaction_code.lower())
        assert len(by_code) == 2


class TestReturnRoutes:

    def test_create_and_resolve(self, client, cashier_headers, soap, sale):
        resp = client.post(
            "/api/returns",
            json={"transaction_id": sale.transaction_code, "product_id": soap.id, "quantity": 1, "reason": "Wrong size"},
            headers=cashier_headers,
        )
        assert resp.status_code == 201
        record = resp.get_json()["return"]
        assert record["transaction_id"] == sale.transaction_code
        assert record["returned_quantity"] == 1

        resolved = client.post(f"/api/returns/{record['id']}/status", json={"status": "Damaged"}, headers=cashier_headers)
        assert resolved.status_code == 200
        assert resolved.get_json()["return"]["status"] == "Damaged"

        detail = client.get(f"/api/transactions/{sale.transaction_code}", headers=cashier_headers).get_json()
        assert len(detail["transaction"]["returns"]) == 1

    def test_unknown_transaction(self, client, cashier_headers, soap, sale):
        resp = client.post(
            "/api/returns",
            json={"transaction_id": "TXN-19990101-0001", "product_id": soap.id, "quantity": 1},
            headers=cashier_headers,
        )
        assert resp.status_code == 404

    def test_invalid_status(self, client, cashier_headers, soap, sale):
        resp = client.post(
            "/api/returns",
            json={"transaction_id": sale.transaction_code, "product_id": soap.id, "quantity": 1, "status": "lost"},
            headers=cashier_headers,
        )
        assert resp.status_code == 400

    def test_staff_cannot_record_returns(self, client, staff_headers):
        assert client.get("/api/returns", headers=staff_headers).status_code == 403
