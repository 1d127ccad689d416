"""
Pytest fixtures for ShopDesk backend tests.

Provides the test app, a wiped database per test, two tenant shops with
one profile per role, a couple of products and bearer-token helpers.
"""

from decimal import Decimal

import pytest

from shopdesk import create_app
from shopdesk.config import TestConfig
from shopdesk.extensions import db
from shopdesk.models import Product, Supplier
from shopdesk.models.auth import ROLE_CASHIER, ROLE_MANAGER, ROLE_OWNER, ROLE_STAFF
from shopdesk.services import auth_service, shop_service
from shopdesk.services.session_service import build_context


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    # Clear all data but keep schema
    for table in reversed(db.metadata.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    db.session.rollback()
    db.session.remove()


def make_profile(email: str, role: str, shop_id=None, full_name=None):
    return auth_service.create_profile(
        email=email,
        password=PASSWORD,
        role=role,
        shop_id=shop_id,
        full_name=full_name,
    )


# =============================================================================
# TENANTS
# =============================================================================


@pytest.fixture(scope='function')
def owner(db_session):
    return make_profile("owner@shop-a.test", ROLE_OWNER, full_name="Owner A")


@pytest.fixture(scope='function')
def owner_b(db_session):
    return make_profile("owner@shop-b.test", ROLE_OWNER, full_name="Owner B")


@pytest.fixture(scope='function')
def shop_a(owner):
    return shop_service.create_shop_for(owner, {"name": "Shop A", "slug": "shop-a", "gst_number": "29ABCDE1234F1Z5"})


@pytest.fixture(scope='function')
def shop_b(owner_b):
    return shop_service.create_shop_for(owner_b, {"name": "Shop B", "slug": "shop-b"})


@pytest.fixture(scope='function')
def manager_a(shop_a):
    return make_profile("manager@shop-a.test", ROLE_MANAGER, shop_a.id, "Manager A")


@pytest.fixture(scope='function')
def cashier_a(shop_a):
    return make_profile("cashier@shop-a.test", ROLE_CASHIER, shop_a.id, "Cashier A")


@pytest.fixture(scope='function')
def staff_a(shop_a):
    return make_profile("staff@shop-a.test", ROLE_STAFF, shop_a.id, "Staff A")


@pytest.fixture(scope='function')
def manager_b(shop_b):
    return make_profile("manager@shop-b.test", ROLE_MANAGER, shop_b.id, "Manager B")


@pytest.fixture(scope='function')
def manager_ctx(manager_a):
    return build_context(manager_a)


@pytest.fixture(scope='function')
def cashier_ctx(cashier_a):
    return build_context(cashier_a)


# =============================================================================
# CATALOG
# =============================================================================


def make_product(shop, name, *, price, stock, unit_type="piece", category="General", sku=None, gst="0"):
    product = Product(
        shop_id=shop.id,
        name=name,
        category=category,
        unit_type=unit_type,
        price=Decimal(str(price)),
        mrp=Decimal(str(price)),
        stock_price=Decimal("0"),
        weight_rate=Decimal("0"),
        gst_percentage=Decimal(gst),
        stock=Decimal(str(stock)),
        sales_count=Decimal("0"),
        sku=sku,
    )
    db.session.add(product)
    db.session.commit()
    return product


@pytest.fixture(scope='function')
def soap(shop_a):
    """Discrete product in Shop A."""
    return make_product(shop_a, "Soap", price="40", stock="10", sku="SOAP-1", gst="18")


@pytest.fixture(scope='function')
def rice(shop_a):
    """Weighed product in Shop A."""
    return make_product(shop_a, "Rice", price="60", stock="5", unit_type="kg", category="Grocery", sku="RICE-1")


@pytest.fixture(scope='function')
def product_b(shop_b):
    return make_product(shop_b, "Shop B Tea", price="120", stock="20", sku="TEA-B")


@pytest.fixture(scope='function')
def supplier_a(shop_a):
    supplier = Supplier(
        shop_id=shop_a.id,
        name="Fresh Farms",
        gst_number="29FRESH1234F1Z5",
        state="Karnataka",
        country="India",
        credit_days=15,
        credit_limit=Decimal("0"),
        outstanding_balance=Decimal("0"),
        paid_amount=Decimal("0"),
        balance_amount=Decimal("0"),
        payment_mode="Cash",
        payment_status="Unpaid",
        is_active=True,
    )
    db.session.add(supplier)
    db.session.commit()
    return supplier


# =============================================================================
# AUTH HELPERS
# =============================================================================


def get_auth_token(client, email: str, password: str = PASSWORD, **extra) -> str:
    """Helper to get auth token for a profile."""
    response = client.post('/api/auth/login', json={'email': email, 'password': password, **extra})
    assert response.status_code == 200, response.get_json()
    return response.get_json()['token']


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def manager_headers(client, manager_a):
    return auth_headers(get_auth_token(client, manager_a.email))


@pytest.fixture(scope='function')
def cashier_headers(client, cashier_a):
    return auth_headers(get_auth_token(client, cashier_a.email))


@pytest.fixture(scope='function')
def staff_headers(client, staff_a):
    return auth_headers(get_auth_token(client, staff_a.email))


@pytest.fixture(scope='function')
def manager_b_headers(client, manager_b):
    return auth_headers(get_auth_token(client, manager_b.email))


@pytest.fixture(scope='function')
def owner_headers(client, owner, shop_a):
    return auth_headers(get_auth_token(client, owner.email, shop_id=shop_a.id))
