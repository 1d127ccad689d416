# Overview: Stock procedures used by checkout and purchase transfer.

"""
Server-side stock procedures.

decrement_stock and increment_sales are single UPDATE statements: they do
not read-then-write in Python and carry no version check. Two concurrent
checkouts against the same product both succeed; stock floors at zero
instead of going negative.

None of these functions commit. The caller decides the unit of work.
"""
from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import case, update

from ..extensions import db
from ..models import InventoryLog, Product


logger = logging.getLogger(__name__)


class StockError(Exception):
    """Raised when a stock procedure cannot be applied."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def decrement_stock(product_id: int, amount: Decimal) -> None:
    """stock = max(stock - amount, 0)"""
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(stock=case((Product.stock - amount < 0, 0), else_=Product.stock - amount))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise StockError("Product not found", {"product_id": product_id})


def increment_sales(product_id: int, amount: Decimal) -> None:
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(sales_count=Product.sales_count + amount)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise StockError("Product not found", {"product_id": product_id})


def add_stock(product: Product, amount: Decimal) -> None:
    product.stock = Decimal(product.stock or 0) + amount


def log_inventory_change(
    *,
    shop_id: int,
    product_id: int | None,
    product_name: str,
    quantity: Decimal,
    action: str,
    reference: str | None = None,
) -> InventoryLog:
    entry = InventoryLog(
        shop_id=shop_id,
        product_id=product_id,
        product_name=product_name,
        quantity=quantity,
        action=action,
        reference=reference,
    )
    db.session.add(entry)
    return entry
