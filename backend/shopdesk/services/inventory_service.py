# Overview: Service-layer operations for damaged stock reports and inventory movement logs.

"""
Damaged inventory is a report, not a stock movement: recording damage does
not change Product.stock. Inventory logs are written by checkout ("sale")
and purchase transfer ("purchase"); this module only reads them.
"""
from __future__ import annotations

import logging

from ..extensions import db
from ..models import DamagedInventory, InventoryLog
from ..validation import ValidationError, positive, to_text
from . import products_service, unit_service
from .session_service import SessionContext


logger = logging.getLogger(__name__)

LOG_ACTIONS = ("sale", "purchase")


def record_damaged(ctx: SessionContext, shop_id: int, product_id: int, quantity: object, reason: str | None = None) -> DamagedInventory:
    product = products_service.get_product(shop_id, product_id)
    qty = positive(quantity, "quantity")
    if not unit_service.is_valid_quantity(qty, product.unit_type):
        raise ValidationError(f"{product.name} is sold in whole units")

    row = DamagedInventory(
        shop_id=shop_id,
        product_id=product.id,
        quantity=qty,
        reason=to_text(reason),
        reported_by=ctx.profile.id,
    )
    db.session.add(row)
    db.session.commit()
    logger.info("Damaged stock reported for product %s in shop %s: %s", product.id, shop_id, qty)
    return row


def list_damaged(shop_id: int) -> list[DamagedInventory]:
    return (
        db.session.query(DamagedInventory)
        .options(db.joinedload(DamagedInventory.product))
        .filter(DamagedInventory.shop_id == shop_id)
        .order_by(DamagedInventory.created_at.desc(), DamagedInventory.id.desc())
        .all()
    )


def list_inventory_logs(
    shop_id: int,
    action: str | None = None,
    product_id: int | None = None,
    limit: int = 200,
) -> list[InventoryLog]:
    q = db.session.query(InventoryLog).filter(InventoryLog.shop_id == shop_id)
    if action:
        if action not in LOG_ACTIONS:
            raise ValidationError(f"action must be one of: {', '.join(LOG_ACTIONS)}")
        q = q.filter(InventoryLog.action == action)
    if product_id is not None:
        q = q.filter(InventoryLog.product_id == product_id)
    return q.order_by(InventoryLog.created_at.desc(), InventoryLog.id.desc()).limit(limit).all()
