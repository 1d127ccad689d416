# Overview: Pytest coverage for supplier records, credit terms and payments.

from datetime import date
from decimal import Decimal

import pytest

from shopdesk.services import supplier_service
from shopdesk.services.supplier_service import SupplierError
from shopdesk.validation import NotFoundError, ValidationError


def test_due_date_defaults_to_thirty_days():
    assert supplier_service.compute_due_date(date(2026, 1, 20), None) == date(2026, 2, 19)
    assert supplier_service.compute_due_date(date(2026, 1, 20), 0) == date(2026, 1, 20)
    assert supplier_service.compute_due_date(None, 10) is None


class TestSupplierService:

    def test_create_sets_defaults(self, db_session, shop_a):
        supplier = supplier_service.create_supplier(shop_a.id, {"name": "Kirana Wholesale", "purchase_date": "2026-10-01"})
        assert supplier.credit_days == 30
        assert supplier.country == "India"
        assert supplier.payment_status == "Paid"
        assert supplier.due_date == date(2026, 10, 31)

    def test_name_is_required(self, db_session, shop_a):
        with pytest.raises(ValidationError, match="name"):
            supplier_service.create_supplier(shop_a.id, {"city": "Mysuru"})

    def test_payment_fields_are_not_writable(self, db_session, shop_a):
        with pytest.raises(ValidationError, match="paid_amount"):
            supplier_service.create_supplier(shop_a.id, {"name": "X", "paid_amount": 10})

    def test_negative_credit_days(self, db_session, shop_a, supplier_a):
        with pytest.raises(ValidationError, match="credit_days"):
            supplier_service.update_supplier(shop_a.id, supplier_a.id, {"credit_days": -1})

    def test_changing_credit_days_moves_due_date(self, db_session, shop_a, supplier_a):
        supplier_service.update_supplier(shop_a.id, supplier_a.id, {"purchase_date": "2026-10-01"})
        supplier = supplier_service.update_supplier(shop_a.id, supplier_a.id, {"credit_days": 45})
        assert supplier.due_date == date(2026, 11, 15)

    def test_partial_then_full_payment(self, db_session, shop_a, supplier_a):
        supplier_service.update_supplier(shop_a.id, supplier_a.id, {"outstanding_balance": 1000})

        supplier = supplier_service.record_payment(shop_a.id, supplier_a.id, 400, "UPI")
        assert supplier.outstanding_balance == Decimal("600")
        assert supplier.balance_amount == Decimal("600")
        assert supplier.paid_amount == Decimal("400")
        assert supplier.payment_status == "Partially Paid"
        assert supplier.payment_mode == "UPI"

        supplier = supplier_service.record_payment(shop_a.id, supplier_a.id, 900)
        assert supplier.outstanding_balance == Decimal("0")
        assert supplier.payment_status == "Paid"

    def test_nothing_outstanding(self, db_session, shop_a, supplier_a):
        with pytest.raises(SupplierError, match="Nothing is outstanding"):
            supplier_service.record_payment(shop_a.id, supplier_a.id, 100)

    def test_payment_must_be_positive(self, db_session, shop_a, supplier_a):
        with pytest.raises(ValidationError):
            supplier_service.record_payment(shop_a.id, supplier_a.id, 0)

    def test_deactivated_suppliers_are_hidden(self, db_session, shop_a, supplier_a):
        supplier_service.deactivate_supplier(shop_a.id, supplier_a.id)
        assert supplier_service.list_suppliers(shop_a.id) == []
        assert len(supplier_service.list_suppliers(shop_a.id, include_inactive=True)) == 1

    def test_other_shop_cannot_see_supplier(self, db_session, shop_b, supplier_a):
        with pytest.raises(NotFoundError):
            supplier_service.get_supplier(shop_b.id, supplier_a.id)


class TestSupplierRoutes:

    def test_create_search_and_pay(self, client, manager_headers, supplier_a):
        created = client.post(
            "/api/suppliers",
            json={"name": "Dairy Direct", "gst_number": "29DAIRY1234F1Z5", "credit_days": 7},
            headers=manager_headers,
        )
        assert created.status_code == 201
        assert created.get_json()["supplier"]["credit_days"] == 7

        found = client.get("/api/suppliers?search=dairy", headers=manager_headers).get_json()
        assert [s["name"] for s in found["suppliers"]] == ["Dairy Direct"]

        client.patch(f"/api/suppliers/{supplier_a.id}", json={"outstanding_balance": 500}, headers=manager_headers)
        paid = client.post(
            f"/api/suppliers/{supplier_a.id}/payments",
            json={"amount": 200, "payment_mode": "Bank"},
            headers=manager_headers,
        )
        assert paid.status_code == 200
        body = paid.get_json()["supplier"]
        assert body["outstanding_balance"] == 300
        assert body["payment_status"] == "Partially Paid"

    def test_shop_id_in_body_selects_the_tenant(self, client, manager_headers, shop_a):
        resp = client.post("/api/suppliers", json={"name": "Own Shop", "shop_id": shop_a.id}, headers=manager_headers)
        assert resp.status_code == 201
        assert resp.get_json()["supplier"]["shop_id"] == shop_a.id

    def test_payment_without_balance_is_bad_request(self, client, manager_headers, supplier_a):
        resp = client.post(f"/api/suppliers/{supplier_a.id}/payments", json={"amount": 10}, headers=manager_headers)
        assert resp.status_code == 400

    def test_export(self, client, manager_headers, supplier_a):
        resp = client.get("/api/suppliers/export", headers=manager_headers)
        assert resp.status_code == 200
        assert resp.headers["Content-Disposition"].startswith('attachment; filename="suppliers_')

    def test_cashier_cannot_manage_suppliers(self, client, cashier_headers):
        assert client.get("/api/suppliers", headers=cashier_headers).status_code == 403
