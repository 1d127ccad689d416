# Overview: Pytest coverage for checkout, billing endpoints and transaction lookups.

from decimal import Decimal

import pytest

from shopdesk.extensions import db
from shopdesk.models import InventoryLog, Product, Transaction
from shopdesk.services import checkout_service, stock_service
from shopdesk.services.checkout_service import CheckoutError


def reload(model, pk):
    db.session.expire_all()
    return db.session.get(model, pk)


# =============================================================================
# SERVICE
# =============================================================================


class TestCheckoutService:

    def test_cash_checkout_decrements_stock_and_logs(self, db_session, cashier_ctx, shop_a, soap, rice):
        result = checkout_service.checkout(
            cashier_ctx,
            shop_a.id,
            [{"product_id": soap.id, "quantity": 2}, {"product_id": rice.id, "quantity": "1.5"}],
            {"method": "cash", "amount_paid": 200},
        )

        txn = result.transaction
        assert not result.has_failures
        assert txn.amount == Decimal("170.00")
        assert txn.transaction_code.startswith("TXN-")
        assert txn.transaction_code.endswith("-0001")
        assert txn.payment_details == {"amount_paid": 200, "change_amount": 30}

        assert reload(Product, soap.id).stock == Decimal("8")
        assert reload(Product, rice.id).stock == Decimal("3.5")
        assert reload(Product, soap.id).sales_count == Decimal("2")

        logs = db_session.query(InventoryLog).filter_by(reference=txn.transaction_code).all()
        assert sorted(log.action for log in logs) == ["sale", "sale"]

    def test_prices_come_from_live_products(self, db_session, cashier_ctx, shop_a, soap):
        result = checkout_service.checkout(
            cashier_ctx, shop_a.id,
            [{"product_id": soap.id, "quantity": 1, "price": 1}],
            {"method": "card"},
        )
        assert result.transaction.amount == Decimal("40.00")
        assert result.transaction.payment_details["change_amount"] == 0

    def test_codes_are_numbered_per_day(self, db_session, cashier_ctx, shop_a, soap):
        first = checkout_service.checkout(cashier_ctx, shop_a.id, [{"product_id": soap.id, "quantity": 1}], {"method": "upi"})
        second = checkout_service.checkout(cashier_ctx, shop_a.id, [{"product_id": soap.id, "quantity": 1}], {"method": "upi"})
        assert first.transaction.transaction_code[:-4] == second.transaction.transaction_code[:-4]
        assert second.transaction.transaction_code.endswith("-0002")

    def test_short_cash_payment_writes_nothing(self, db_session, cashier_ctx, shop_a, soap):
        with pytest.raises(CheckoutError, match="less than the bill total"):
            checkout_service.checkout(
                cashier_ctx, shop_a.id, [{"product_id": soap.id, "quantity": 1}], {"method": "cash", "amount_paid": 10},
            )
        assert db_session.query(Transaction).count() == 0
        assert reload(Product, soap.id).stock == Decimal("10")

    def test_unknown_payment_method(self, db_session, cashier_ctx, shop_a, soap):
        with pytest.raises(CheckoutError, match="payment method"):
            checkout_service.checkout(cashier_ctx, shop_a.id, [{"product_id": soap.id, "quantity": 1}], {"method": "cheque"})

    def test_over_stock_line_is_rejected(self, db_session, cashier_ctx, shop_a, soap):
        with pytest.raises(CheckoutError, match="Not enough stock"):
            checkout_service.checkout(cashier_ctx, shop_a.id, [{"product_id": soap.id, "quantity": 11}], {"method": "card"})

    def test_product_from_another_shop_is_unknown(self, db_session, cashier_ctx, shop_a, product_b):
        with pytest.raises(CheckoutError, match="Product not found"):
            checkout_service.checkout(cashier_ctx, shop_a.id, [{"product_id": product_b.id, "quantity": 1}], {"method": "card"})

    def test_empty_bill(self, db_session, cashier_ctx, shop_a):
        with pytest.raises(CheckoutError, match="empty"):
            checkout_service.checkout(cashier_ctx, shop_a.id, [], {"method": "card"})

    def test_failed_line_keeps_transaction(self, db_session, cashier_ctx, shop_a, soap, rice, monkeypatch):
        original = stock_service.decrement_stock

        def flaky(product_id, amount):
            if product_id == rice.id:
                raise stock_service.StockError("Product not found", {"product_id": product_id})
            return original(product_id, amount)

        monkeypatch.setattr(stock_service, "decrement_stock", flaky)

        result = checkout_service.checkout(
            cashier_ctx, shop_a.id,
            [{"product_id": soap.id, "quantity": 1}, {"product_id": rice.id, "quantity": 1}],
            {"method": "card"},
        )

        assert result.has_failures
        assert result.failed_items[0]["product_id"] == rice.id
        assert db_session.query(Transaction).count() == 1
        assert reload(Product, soap.id).stock == Decimal("9")
        assert reload(Product, rice.id).stock == Decimal("5")

    def test_stock_floor_is_zero(self, db_session, shop_a, rice):
        stock_service.decrement_stock(rice.id, Decimal("7.5"))
        db_session.commit()
        assert reload(Product, rice.id).stock == Decimal("0")


# =============================================================================
# ROUTES
# =============================================================================


class TestBillingRoutes:

    def test_preview_prices_the_bill(self, client, cashier_headers, soap):
        resp = client.post("/api/billing/bill", json={"items": [{"product_id": soap.id, "quantity": 3}]}, headers=cashier_headers)
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["total"] == 120
        assert body["messages"] == []

    def test_add_by_barcode(self, client, cashier_headers, soap):
        resp = client.post("/api/billing/bill/add", json={"items": [], "barcode": "SOAP-1"}, headers=cashier_headers)
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["items"][0]["name"] == "Soap"
        assert body["messages"][0]["level"] == "success"

    def test_add_unknown_barcode(self, client, cashier_headers, soap):
        resp = client.post("/api/billing/bill/add", json={"items": [], "barcode": "NOPE"}, headers=cashier_headers)
        assert resp.status_code == 404

    def test_update_decrement_removes_last_unit(self, client, cashier_headers, soap):
        resp = client.post(
            "/api/billing/bill/update",
            json={"items": [{"product_id": soap.id, "quantity": 1}], "index": 0, "action": "decrement"},
            headers=cashier_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["items"] == []

    def test_update_set_without_quantity_is_rejected(self, client, cashier_headers, soap):
        resp = client.post(
            "/api/billing/bill/update",
            json={"items": [{"product_id": soap.id, "quantity": 2}], "index": 0, "action": "set"},
            headers=cashier_headers,
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "quantity is required"

    def test_update_bad_index(self, client, cashier_headers, soap):
        resp = client.post(
            "/api/billing/bill/update",
            json={"items": [{"product_id": soap.id, "quantity": 1}], "index": 3},
            headers=cashier_headers,
        )
        assert resp.status_code == 400

    def test_checkout_route(self, client, cashier_headers, soap):
        resp = client.post(
            "/api/billing/checkout",
            json={"items": [{"product_id": soap.id, "quantity": 2}], "payment": {"method": "cash", "amount_paid": 100}},
            headers=cashier_headers,
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["transaction"]["amount"] == 80
        assert body["failed_items"] == []
        assert "warning" not in body

        code = body["transaction"]["transaction_id"]
        detail = client.get(f"/api/transactions/{code.lower()}", headers=cashier_headers)
        assert detail.status_code == 200
        assert detail.get_json()["transaction"]["returns"] == []

        listing = client.get("/api/transactions?payment_method=cash", headers=cashier_headers)
        assert listing.get_json()["count"] == 1

    def test_checkout_route_rejects_short_payment(self, client, cashier_headers, soap):
        resp = client.post(
            "/api/billing/checkout",
            json={"items": [{"product_id": soap.id, "quantity": 2}], "method": "cash", "amount_paid": 5},
            headers=cashier_headers,
        )
        assert resp.status_code == 400
        assert resp.get_json()["details"]["total"] == 80

    def test_receipt_pdf(self, client, cashier_headers, soap):
        resp = client.post(
            "/api/billing/checkout",
            json={"items": [{"product_id": soap.id, "quantity": 1}], "method": "upi"},
            headers=cashier_headers,
        )
        code = resp.get_json()["transaction"]["transaction_id"]

        pdf = client.get(f"/api/transactions/{code}/receipt.pdf", headers=cashier_headers)
        assert pdf.status_code == 200
        assert pdf.mimetype == "application/pdf"
        assert pdf.data.startswith(b"%PDF")
        assert f"receipt-{code}.pdf" in pdf.headers["Content-Disposition"]

    def test_staff_cannot_sell(self, client, staff_headers, soap):
        resp = client.post("/api/billing/checkout", json={"items": [], "method": "card"}, headers=staff_headers)
        assert resp.status_code == 403
        assert resp.get_json()["required_permission"] == "CREATE_SALE"


class TestReports:

    def test_daily_stats_and_cashier_activity(self, client, db_session, cashier_ctx, shop_a, soap, manager_headers):
        checkout_service.checkout(cashier_ctx, shop_a.id, [{"product_id": soap.id, "quantity": 1}], {"method": "card"})
        checkout_service.checkout(cashier_ctx, shop_a.id, [{"product_id": soap.id, "quantity": 2}], {"method": "card"})

        daily = client.get("/api/reports/daily", headers=manager_headers).get_json()
        assert daily["transactions"] == 2
        assert daily["revenue"] == 120
        assert daily["average_sale"] == 60

        cashiers = client.get("/api/reports/cashiers", headers=manager_headers).get_json()["cashiers"]
        assert cashiers == [{"cashier_id": cashier_ctx.profile_id, "cashier": "Cashier A", "transactions": 2, "total": 120}]

    def test_yearly_sales_has_twelve_months(self, client, manager_headers):
        body = client.get("/api/reports/yearly?year=2025", headers=manager_headers).get_json()
        assert len(body["months"]) == 12
        assert body["months"][0] == {"month": "January", "transactions": 0, "revenue": 0}

    def test_cashier_cannot_view_reports(self, client, cashier_headers):
        assert client.get("/api/reports/daily", headers=cashier_headers).status_code == 403
