# Overview: Service-layer checkout; turns a posted bill into a Transaction and applies stock updates.

"""
Checkout

Order of work:
1. rebuild the bill against live products and validate the payment
2. insert the Transaction and commit it on its own
3. for each line, in order: decrement_stock, increment_sales, inventory log

Step 3 is not wrapped around step 2. A failing line is rolled back alone,
logged, reported in failed_items, and the loop moves on. The transaction
row is never rolled back once committed, so stock can lag behind sales when
a line fails. Stock is never checked again here: two concurrent checkouts
for the last unit both succeed and stock floors at zero.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..models import Transaction
from ..models.sales import PAYMENT_METHODS
from ..money import quantize_money, to_json_number
from ..validation import ValidationError, to_decimal, to_text
from . import stock_service
from .bill_service import Bill, BillError, CollectingNotifier, build_bill
from .session_service import SessionContext
from shopdesk.time_utils import utcnow


logger = logging.getLogger(__name__)

CODE_ATTEMPTS = 3


class CheckoutError(Exception):
    """Raised when a bill cannot be checked out. Nothing has been written."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass
class PaymentDetails:
    method: str
    amount_paid: Decimal
    change_amount: Decimal
    reference: str | None = None

    def to_dict(self) -> dict:
        data = {
            "amount_paid": to_json_number(self.amount_paid),
            "change_amount": to_json_number(self.change_amount),
        }
        if self.reference:
            data["reference"] = self.reference
        return data


@dataclass
class CheckoutResult:
    transaction: Transaction
    failed_items: list[dict] = field(default_factory=list)
    messages: list[dict] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed_items)


def validate_payment(total: Decimal, payment: dict | None) -> PaymentDetails:
    payment = payment or {}
    method = (to_text(payment.get("method") or payment.get("payment_method")) or "").lower()
    if method not in PAYMENT_METHODS:
        raise CheckoutError(
            f"payment method must be one of: {', '.join(PAYMENT_METHODS)}",
            {"method": method or None},
        )

    reference = to_text(payment.get("reference"))

    if method == "cash":
        try:
            amount_paid = to_decimal(payment.get("amount_paid"), "amount_paid")
        except ValidationError as e:
            raise CheckoutError(str(e))
        if amount_paid is None:
            raise CheckoutError("amount_paid is required for cash payments")
        amount_paid = quantize_money(amount_paid)
        if amount_paid < total:
            raise CheckoutError(
                "Amount paid is less than the bill total",
                {"total": to_json_number(total), "amount_paid": to_json_number(amount_paid)},
            )
        return PaymentDetails(method, amount_paid, amount_paid - total, reference)

    return PaymentDetails(method, total, Decimal("0.00"), reference)


def next_transaction_code(shop_id: int, now=None) -> str:
    """TXN-YYYYMMDD-NNNN, numbered per shop per day."""
    now = now or utcnow()
    prefix = f"TXN-{now:%Y%m%d}-"
    count = (
        db.session.query(Transaction)
        .filter(Transaction.shop_id == shop_id, Transaction.transaction_code.like(f"{prefix}%"))
        .count()
    )
    return f"{prefix}{count + 1:04d}"


def _insert_transaction(ctx: SessionContext, shop_id: int, bill: Bill, payment: PaymentDetails) -> Transaction:
    total = quantize_money(bill.total())
    for attempt in range(1, CODE_ATTEMPTS + 1):
        txn = Transaction(
            shop_id=shop_id,
            cashier_id=ctx.profile.id,
            transaction_code=next_transaction_code(shop_id),
            amount=total,
            items=bill.to_json(),
            payment_method=payment.method,
            payment_details=payment.to_dict(),
            created_at=utcnow(),
        )
        db.session.add(txn)
        try:
            db.session.commit()
            return txn
        except IntegrityError:
            # Another checkout took the same code
            db.session.rollback()
            logger.info("Transaction code collision for shop %s (attempt %d)", shop_id, attempt)
    raise CheckoutError("Could not allocate a transaction code, please retry")


def _apply_line(shop_id: int, txn: Transaction, line) -> None:
    stock_service.decrement_stock(line.product_id, line.quantity)
    stock_service.increment_sales(line.product_id, line.quantity)
    stock_service.log_inventory_change(
        shop_id=shop_id,
        product_id=line.product_id,
        product_name=line.name,
        quantity=line.quantity,
        action="sale",
        reference=txn.transaction_code,
    )


def checkout(ctx: SessionContext, shop_id: int, items: Any, payment: dict | None) -> CheckoutResult:
    notifier = CollectingNotifier()
    try:
        bill = build_bill(shop_id, items, notifier=notifier)
    except BillError as e:
        raise CheckoutError(str(e), e.details)

    if bill.is_empty():
        raise CheckoutError("Bill is empty")

    total = quantize_money(bill.total())
    payment_details = validate_payment(total, payment)

    txn = _insert_transaction(ctx, shop_id, bill, payment_details)
    logger.info(
        "Transaction %s created for shop %s by %s: %s via %s",
        txn.transaction_code, shop_id, ctx.profile.id, total, payment_details.method,
    )

    failed: list[dict] = []
    for line in bill.items:
        try:
            _apply_line(shop_id, txn, line)
            db.session.commit()
        except (stock_service.StockError, SQLAlchemyError) as e:
            db.session.rollback()
            logger.error(
                "Stock update failed for product %s on %s: %s",
                line.product_id, txn.transaction_code, e,
            )
            failed.append({"product_id": line.product_id, "name": line.name, "error": str(e)})

    return CheckoutResult(transaction=txn, failed_items=failed, messages=notifier.messages)
