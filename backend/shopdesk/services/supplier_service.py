# Overview: Service-layer operations for suppliers; credit terms, balances and payments.

"""
Suppliers

outstanding_balance is what the shop still owes the supplier. It grows when
a purchase entry is saved with an unpaid balance and shrinks with
record_payment. paid_amount accumulates payments; balance_amount mirrors
the outstanding balance; payment_status is recomputed from both every time.

due_date = purchase_date + credit_days, recomputed whenever either changes.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal

from ..extensions import db
from ..models import Supplier
from ..money import quantize_money
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    positive,
    to_text,
    validate_payload,
)
from . import tax_service


logger = logging.getLogger(__name__)

SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "email", "phone", "gst_number", "address", "city", "state",
        "country", "pincode", "contact_person", "credit_days", "credit_limit",
        "outstanding_balance", "payment_mode", "purchase_date", "bill_date",
    },
    required_on_create={"name"},
)

DEFAULT_CREDIT_DAYS = 30


class SupplierError(Exception):
    """Raised when a supplier operation breaks a business rule."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def compute_due_date(purchase_date: date | None, credit_days: int | None) -> date | None:
    if purchase_date is None:
        return None
    return purchase_date + timedelta(days=credit_days if credit_days is not None else DEFAULT_CREDIT_DAYS)


def refresh_payment_fields(supplier: Supplier) -> None:
    outstanding = Decimal(supplier.outstanding_balance or 0)
    paid = Decimal(supplier.paid_amount or 0)
    supplier.balance_amount = outstanding
    supplier.payment_status = tax_service.payment_status(outstanding + paid, paid)


def _check_patch(patch: dict) -> None:
    if "credit_days" in patch and patch["credit_days"] is not None and patch["credit_days"] < 0:
        raise ValidationError("credit_days must be >= 0")
    for key in ("credit_limit", "outstanding_balance"):
        if patch.get(key) is not None and patch[key] < 0:
            raise ValidationError(f"{key} must be >= 0")


def _apply(supplier: Supplier, patch: dict) -> None:
    for k, v in patch.items():
        setattr(supplier, k, v)
    if "purchase_date" in patch or "credit_days" in patch:
        supplier.due_date = compute_due_date(supplier.purchase_date, supplier.credit_days)
    refresh_payment_fields(supplier)


def get_supplier(shop_id: int, supplier_id: int) -> Supplier:
    supplier = db.session.query(Supplier).filter_by(id=supplier_id, shop_id=shop_id).first()
    if not supplier:
        raise NotFoundError("Supplier not found")
    return supplier


def list_suppliers(shop_id: int, search: str | None = None, include_inactive: bool = False) -> list[Supplier]:
    q = db.session.query(Supplier).filter(Supplier.shop_id == shop_id)
    if not include_inactive:
        q = q.filter(Supplier.is_active.is_(True))
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(db.or_(Supplier.name.ilike(like), Supplier.gst_number.ilike(like)))
    return q.order_by(Supplier.name.asc()).all()


def create_supplier(shop_id: int, payload: dict) -> Supplier:
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=False)
    _check_patch(patch)

    supplier = Supplier(
        shop_id=shop_id,
        country="India",
        credit_days=DEFAULT_CREDIT_DAYS,
        credit_limit=Decimal("0"),
        outstanding_balance=Decimal("0"),
        paid_amount=Decimal("0"),
        balance_amount=Decimal("0"),
        payment_mode="Cash",
        is_active=True,
    )
    _apply(supplier, patch)

    db.session.add(supplier)
    db.session.commit()
    return supplier


def update_supplier(shop_id: int, supplier_id: int, payload: dict) -> Supplier:
    supplier = get_supplier(shop_id, supplier_id)
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=True)
    _check_patch(patch)
    _apply(supplier, patch)
    db.session.commit()
    return supplier


def record_payment(shop_id: int, supplier_id: int, amount: object, mode: str | None = None) -> Supplier:
    """Pay down the outstanding balance. Overpayment floors the balance at zero."""
    supplier = get_supplier(shop_id, supplier_id)
    value = quantize_money(positive(amount, "amount"))

    outstanding = Decimal(supplier.outstanding_balance or 0)
    if outstanding <= 0:
        raise SupplierError("Nothing is outstanding for this supplier", {"supplier_id": supplier.id})

    supplier.outstanding_balance = max(outstanding - value, Decimal("0"))
    supplier.paid_amount = Decimal(supplier.paid_amount or 0) + value
    if to_text(mode):
        supplier.payment_mode = to_text(mode)
    refresh_payment_fields(supplier)

    db.session.commit()
    logger.info("Recorded payment of %s to supplier %s (shop %s)", value, supplier.id, shop_id)
    return supplier


def add_purchase_balance(supplier: Supplier, balance: Decimal, purchase_date: date, bill_date: date | None) -> None:
    """Called by purchase entries; does not commit."""
    supplier.outstanding_balance = Decimal(supplier.outstanding_balance or 0) + max(balance, Decimal("0"))
    supplier.purchase_date = purchase_date
    supplier.bill_date = bill_date
    supplier.due_date = compute_due_date(purchase_date, supplier.credit_days)
    refresh_payment_fields(supplier)


def deactivate_supplier(shop_id: int, supplier_id: int) -> Supplier:
    supplier = get_supplier(shop_id, supplier_id)
    supplier.is_active = False
    db.session.commit()
    return supplier
