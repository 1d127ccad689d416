# Overview: Service-layer operations for customer returns against past transactions.

"""
Return Processing Service

A return references one line of a completed transaction. The transaction
itself never changes: no stock is restored and no revenue is reversed when
a return is recorded.

LIFECYCLE:
1. Create return (pending, or directly Mistakenly/Damaged)
2. Resolve: pending -> Mistakenly | Damaged
3. Resolved returns are terminal
"""
from __future__ import annotations

import logging
from decimal import Decimal

from ..extensions import db
from ..models import ReturnRecord, Transaction
from ..models.sales import (
    RETURN_STATUS_DAMAGED,
    RETURN_STATUS_MISTAKEN,
    RETURN_STATUS_PENDING,
    RETURN_STATUSES,
)
from ..validation import NotFoundError, one_of, positive, to_text
from .session_service import SessionContext
from shopdesk.time_utils import utcnow


logger = logging.getLogger(__name__)

TERMINAL_STATUSES = {RETURN_STATUS_MISTAKEN, RETURN_STATUS_DAMAGED}


class ReturnError(Exception):
    """Raised for return operation errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


# =============================================================================
# RETURN CREATION
# =============================================================================

def _sold_line(transaction: Transaction, product_id: int) -> dict | None:
    for item in transaction.items or []:
        try:
            if int(item.get("product_id")) == product_id:
                return item
        except (TypeError, ValueError):
            continue
    return None


def returned_so_far(transaction_id: int, product_id: int) -> Decimal:
    total = (
        db.session.query(db.func.coalesce(db.func.sum(ReturnRecord.returned_quantity), 0))
        .filter(ReturnRecord.transaction_id == transaction_id, ReturnRecord.product_id == product_id)
        .scalar()
    )
    return Decimal(str(total or 0))


def create_return(
    ctx: SessionContext,
    shop_id: int,
    transaction: Transaction,
    product_id: int,
    quantity: object,
    reason: str | None = None,
    status: str = RETURN_STATUS_PENDING,
) -> ReturnRecord:
    """
    Record a return for one product on a transaction.

    Raises:
        ReturnError: product not on the transaction, or quantity out of range
    """
    if transaction.shop_id != shop_id:
        raise NotFoundError("Transaction not found")

    status = one_of(status or RETURN_STATUS_PENDING, "status", RETURN_STATUSES)
    qty = positive(quantity, "quantity")
    if qty < 1:
        raise ReturnError("Return quantity must be at least 1", {"quantity": float(qty)})

    line = _sold_line(transaction, product_id)
    if line is None:
        raise ReturnError(
            "Product is not part of this transaction",
            {"transaction_id": transaction.transaction_code, "product_id": product_id},
        )

    sold = Decimal(str(line.get("quantity") or 0))
    already = returned_so_far(transaction.id, product_id)
    if qty + already > sold:
        raise ReturnError(
            "Return quantity exceeds the quantity sold",
            {"sold": float(sold), "already_returned": float(already), "requested": float(qty)},
        )

    record = ReturnRecord(
        shop_id=shop_id,
        transaction_id=transaction.id,
        transaction_code=transaction.transaction_code,
        product_id=product_id,
        product_name=line.get("name") or f"Product {product_id}",
        returned_quantity=qty,
        return_reason=to_text(reason),
        status=status,
        created_by=ctx.profile.id,
        resolved_at=utcnow() if status in TERMINAL_STATUSES else None,
    )
    db.session.add(record)
    db.session.commit()

    logger.info(
        "Return %s recorded on %s: product=%s qty=%s status=%s",
        record.id, transaction.transaction_code, product_id, qty, status,
    )
    return record


# =============================================================================
# RETURN RESOLUTION
# =============================================================================

def get_return(shop_id: int, return_id: int) -> ReturnRecord:
    record = db.session.query(ReturnRecord).filter_by(id=return_id, shop_id=shop_id).first()
    if not record:
        raise NotFoundError("Return not found")
    return record


def set_return_status(shop_id: int, return_id: int, status: str) -> ReturnRecord:
    """pending -> Mistakenly | Damaged. Resolved returns cannot change."""
    record = get_return(shop_id, return_id)
    status = one_of(status, "status", TERMINAL_STATUSES)

    if record.status != RETURN_STATUS_PENDING:
        raise ReturnError(
            f"Return is already {record.status}",
            {"return_id": record.id, "status": record.status},
        )

    record.status = status
    record.resolved_at = utcnow()
    db.session.commit()
    return record


def list_returns(shop_id: int, status: str | None = None, transaction_code: str | None = None) -> list[ReturnRecord]:
    q = db.session.query(ReturnRecord).filter(ReturnRecord.shop_id == shop_id)
    if status:
        q = q.filter(ReturnRecord.status == status)
    if transaction_code:
        q = q.filter(ReturnRecord.transaction_code == transaction_code.strip().upper())
    return q.order_by(ReturnRecord.created_at.desc(), ReturnRecord.id.desc()).all()
