# Overview: Read side of sales; transaction lookup and sales reporting.

"""
Transactions are immutable once written by checkout, so this module only
reads. Day boundaries are UTC midnights, matching how created_at is stored.
"""
from __future__ import annotations

from collections import OrderedDict
from datetime import date, datetime, timedelta
from decimal import Decimal

from ..extensions import db
from ..models import Profile, Transaction
from ..money import quantize_money, to_json_number
from ..validation import NotFoundError
from shopdesk.time_utils import start_of_day


MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def list_transactions(
    shop_id: int,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    cashier_id: int | None = None,
    payment_method: str | None = None,
    limit: int | None = None,
) -> list[Transaction]:
    q = db.session.query(Transaction).filter(Transaction.shop_id == shop_id)
    if start is not None:
        q = q.filter(Transaction.created_at >= start)
    if end is not None:
        q = q.filter(Transaction.created_at < end)
    if cashier_id is not None:
        q = q.filter(Transaction.cashier_id == cashier_id)
    if payment_method:
        q = q.filter(Transaction.payment_method == payment_method)
    q = q.order_by(Transaction.created_at.desc(), Transaction.id.desc())
    if limit:
        q = q.limit(limit)
    return q.all()


def get_transaction(shop_id: int, id_or_code: int | str) -> Transaction:
    """Find by numeric id or by transaction code (TXN-...)."""
    q = db.session.query(Transaction).filter(Transaction.shop_id == shop_id)
    text = str(id_or_code).strip()
    if text.isdigit():
        txn = q.filter(Transaction.id == int(text)).first()
    else:
        txn = q.filter(Transaction.transaction_code == text.upper()).first()
    if not txn:
        raise NotFoundError("Transaction not found")
    return txn


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    start = start_of_day(day)
    return start, start + timedelta(days=1)


def daily_stats(shop_id: int, day: date) -> dict:
    start, end = _day_bounds(day)
    count, revenue = (
        db.session.query(db.func.count(Transaction.id), db.func.coalesce(db.func.sum(Transaction.amount), 0))
        .filter(Transaction.shop_id == shop_id, Transaction.created_at >= start, Transaction.created_at < end)
        .one()
    )
    revenue = quantize_money(Decimal(str(revenue or 0)))
    return {
        "date": day.isoformat(),
        "transactions": int(count or 0),
        "revenue": to_json_number(revenue),
        "average_sale": to_json_number(quantize_money(revenue / count)) if count else 0,
    }


def cashier_activity(shop_id: int, day: date) -> list[dict]:
    start, end = _day_bounds(day)
    rows = (
        db.session.query(
            Transaction.cashier_id,
            db.func.count(Transaction.id),
            db.func.coalesce(db.func.sum(Transaction.amount), 0),
        )
        .filter(Transaction.shop_id == shop_id, Transaction.created_at >= start, Transaction.created_at < end)
        .group_by(Transaction.cashier_id)
        .all()
    )
    names = {
        p.id: (p.full_name or p.email)
        for p in db.session.query(Profile).filter(Profile.id.in_([r[0] for r in rows if r[0]])).all()
    }
    result = [
        {
            "cashier_id": cashier_id,
            "cashier": names.get(cashier_id, "Unknown"),
            "transactions": int(count),
            "total": to_json_number(quantize_money(Decimal(str(total or 0)))),
        }
        for cashier_id, count, total in rows
    ]
    result.sort(key=lambda r: (-r["transactions"], r["cashier"]))
    return result


def yearly_sales(shop_id: int, year: int) -> list[dict]:
    """One row per month (January..December), zero-filled."""
    start = datetime(year, 1, 1)
    end = datetime(year + 1, 1, 1)
    months: "OrderedDict[int, list]" = OrderedDict((m, [0, Decimal("0")]) for m in range(1, 13))

    rows = (
        db.session.query(Transaction.created_at, Transaction.amount)
        .filter(Transaction.shop_id == shop_id, Transaction.created_at >= start, Transaction.created_at < end)
        .all()
    )
    for created_at, amount in rows:
        bucket = months[created_at.month]
        bucket[0] += 1
        bucket[1] += Decimal(amount or 0)

    return [
        {
            "month": MONTH_NAMES[m - 1],
            "transactions": count,
            "revenue": quantize_money(revenue),
        }
        for m, (count, revenue) in months.items()
    ]
