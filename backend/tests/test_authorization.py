"""
Authorization tests for ShopDesk.

Verifies:
- Unauthenticated requests return 401
- Cashier and staff roles are denied privileged operations (403)
- Managers and owners can perform them
- Session lifecycle: login, logout, shop-slug login
"""

import pytest

from conftest import PASSWORD, auth_headers, get_auth_token


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/products"),
            ("POST", "/api/products"),
            ("POST", "/api/billing/checkout"),
            ("GET", "/api/transactions"),
            ("GET", "/api/reports/daily"),
            ("GET", "/api/suppliers"),
            ("GET", "/api/purchases"),
            ("POST", "/api/returns"),
            ("GET", "/api/inventory/logs"),
            ("GET", "/api/notifications"),
            ("GET", "/api/invoices/templates"),
            ("GET", "/api/admin/profiles"),
            ("GET", "/api/admin/roles"),
            ("GET", "/api/auth/me"),
            ("POST", "/api/auth/logout"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/products", headers=auth_headers("not-a-token"))
        assert resp.status_code == 401

    def test_health_is_public(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["checks"]["database"]["status"] == "healthy"


# =============================================================================
# ROLE LIMITS (403)
# =============================================================================


class TestCashierDenied:
    """Cashier role cannot perform back-office operations."""

    def test_cannot_create_products(self, client, cashier_headers):
        resp = client.post("/api/products", json={"name": "X", "price": 1}, headers=cashier_headers)
        assert resp.status_code == 403
        assert resp.get_json()["required_permission"] == "MANAGE_PRODUCTS"

    def test_cannot_delete_products(self, client, cashier_headers, soap):
        resp = client.delete(f"/api/products/{soap.id}", headers=cashier_headers)
        assert resp.status_code == 403
        assert resp.get_json()["required_roles"] == ["manager"]

    def test_cannot_manage_users(self, client, cashier_headers):
        assert client.get("/api/admin/profiles", headers=cashier_headers).status_code == 403

    def test_cannot_adjust_inventory(self, client, cashier_headers, soap):
        resp = client.post("/api/inventory/damaged", json={"product_id": soap.id, "quantity": 1}, headers=cashier_headers)
        assert resp.status_code == 403

    def test_can_sell_and_browse(self, client, cashier_headers, soap):
        assert client.get("/api/products", headers=cashier_headers).status_code == 200
        assert client.get("/api/transactions", headers=cashier_headers).status_code == 200


class TestStaffDenied:

    def test_read_only_catalog(self, client, staff_headers, soap):
        assert client.get("/api/products", headers=staff_headers).status_code == 200
        assert client.get("/api/transactions", headers=staff_headers).status_code == 403
        assert client.get("/api/notifications", headers=staff_headers).status_code == 200


class TestManagerAllowed:

    def test_product_lifecycle(self, client, manager_headers):
        created = client.post(
            "/api/products",
            json={"name": "Ghee", "category": "Dairy", "price": 550, "stock": 4, "unit_type": "piece"},
            headers=manager_headers,
        )
        assert created.status_code == 201
        product_id = created.get_json()["product"]["id"]

        updated = client.patch(f"/api/products/{product_id}", json={"price": 560}, headers=manager_headers)
        assert updated.status_code == 200
        assert updated.get_json()["product"]["price"] == 560

        assert client.delete(f"/api/products/{product_id}", headers=manager_headers).status_code == 200
        assert client.get(f"/api/products/{product_id}", headers=manager_headers).status_code == 404

    def test_manager_adds_cashier_but_not_manager(self, client, manager_headers):
        cashier = client.post(
            "/api/admin/profiles",
            json={"email": "new.cashier@shop-a.test", "password": PASSWORD, "role": "cashier"},
            headers=manager_headers,
        )
        assert cashier.status_code == 201
        assert cashier.get_json()["profile"]["role"] == "cashier"

        manager = client.post(
            "/api/admin/profiles",
            json={"email": "new.manager@shop-a.test", "password": PASSWORD, "role": "manager"},
            headers=manager_headers,
        )
        assert manager.status_code == 403

    def test_weak_password_is_rejected(self, client, manager_headers):
        resp = client.post(
            "/api/admin/profiles",
            json={"email": "weak@shop-a.test", "password": "password", "role": "staff"},
            headers=manager_headers,
        )
        assert resp.status_code == 400

    def test_owner_adds_manager(self, client, owner_headers, shop_a):
        resp = client.post(
            "/api/admin/profiles",
            json={"email": "second.manager@shop-a.test", "password": PASSWORD, "role": "manager", "shop_id": shop_a.id},
            headers=owner_headers,
        )
        assert resp.status_code == 201
        assert resp.get_json()["profile"]["shop_id"] == shop_a.id


# =============================================================================
# SESSIONS
# =============================================================================


class TestSessions:

    def test_bad_password(self, client, cashier_a):
        resp = client.post("/api/auth/login", json={"email": cashier_a.email, "password": "Wrong123!"})
        assert resp.status_code == 401

    def test_missing_fields(self, client, db_session):
        assert client.post("/api/auth/login", json={"email": "x@y.test"}).status_code == 400

    def test_login_pins_store_scoped_profile(self, client, cashier_a, shop_a):
        body = client.post("/api/auth/login", json={"email": cashier_a.email, "password": PASSWORD}).get_json()
        assert body["shop_id"] == shop_a.id
        assert "CREATE_SALE" in body["permissions"]
        assert "MANAGE_USERS" not in body["permissions"]

    def test_logout_revokes_token(self, client, cashier_a):
        headers = auth_headers(get_auth_token(client, cashier_a.email))
        assert client.get("/api/auth/me", headers=headers).status_code == 200
        assert client.post("/api/auth/logout", headers=headers).status_code == 200
        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_me(self, client, manager_headers, manager_a, shop_a):
        body = client.get("/api/auth/me", headers=manager_headers).get_json()
        assert body["role"] == "manager"
        assert body["user"]["email"] == manager_a.email
        assert [s["id"] for s in body["shops"]] == [shop_a.id]

    @pytest.mark.parametrize("role,allowed", [("staff", True), ("cashier", True), ("manager", False), ("owner", False)])
    def test_check_role_ranks(self, client, cashier_headers, role, allowed):
        body = client.get(f"/api/auth/check-role?role={role}", headers=cashier_headers).get_json()
        assert body == {"role": role, "allowed": allowed}

    def test_check_role_unknown(self, client, cashier_headers):
        assert client.get("/api/auth/check-role?role=emperor", headers=cashier_headers).status_code == 400

    def test_shop_slug_login(self, client, cashier_a, shop_a, shop_b):
        own = client.post("/api/auth/shops/shop-a/login", json={"email": cashier_a.email, "password": PASSWORD})
        assert own.status_code == 200
        assert own.get_json()["shop_id"] == shop_a.id

        other = client.post("/api/auth/shops/shop-b/login", json={"email": cashier_a.email, "password": PASSWORD})
        assert other.status_code == 401

        missing = client.post("/api/auth/shops/nowhere/login", json={"email": cashier_a.email, "password": PASSWORD})
        assert missing.status_code == 404

    def test_deactivated_profile_loses_access(self, client, manager_headers, cashier_a, cashier_headers):
        resp = client.post(f"/api/admin/profiles/{cashier_a.id}/deactivate", headers=manager_headers)
        assert resp.status_code == 200
        assert client.get("/api/products", headers=cashier_headers).status_code == 401
