from __future__ import annotations

from ..extensions import db
from shopdesk.money import to_json_number
from shopdesk.time_utils import to_utc_z


PAYMENT_METHODS = ("cash", "card", "upi")

RETURN_STATUS_PENDING = "pending"
RETURN_STATUS_MISTAKEN = "Mistakenly"
RETURN_STATUS_DAMAGED = "Damaged"
RETURN_STATUSES = (RETURN_STATUS_PENDING, RETURN_STATUS_MISTAKEN, RETURN_STATUS_DAMAGED)


class Transaction(db.Model):
    """
    Completed sale. Immutable once created: returns are separate records.

    items holds the bill lines exactly as sold (product_id, name, price,
    quantity, unit_type, barcode); payment_details holds amount_paid,
    change_amount and reference when given.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "transaction_code", name="uq_transactions_shop_code"),
        db.Index("ix_transactions_shop_created", "shop_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    cashier_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True, index=True)

    # Human-readable code (e.g., "TXN-20260101-0001")
    transaction_code = db.Column(db.String(32), nullable=False)

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    items = db.Column(db.JSON, nullable=False, default=list)

    payment_method = db.Column(db.String(8), nullable=False)
    payment_details = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    cashier = db.relationship("Profile")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "cashier_id": self.cashier_id,
            "transaction_id": self.transaction_code,
            "amount": to_json_number(self.amount),
            "items": self.items or [],
            "payment_method": self.payment_method,
            "payment_details": self.payment_details or {},
            "created_at": to_utc_z(self.created_at),
        }


class ReturnRecord(db.Model):
    """
    Customer return against one line of a transaction.

    status: pending -> Mistakenly | Damaged (terminal). Creating a return
    does not restore stock or reduce revenue.
    """
    __tablename__ = "returns"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=False, index=True)
    transaction_code = db.Column(db.String(32), nullable=False)

    product_id = db.Column(db.Integer, nullable=False)
    product_name = db.Column(db.String(255), nullable=False)

    returned_quantity = db.Column(db.Numeric(12, 3), nullable=False)
    return_reason = db.Column(db.String(255), nullable=True)
    status = db.Column(db.String(16), nullable=False, default=RETURN_STATUS_PENDING, index=True)

    created_by = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)

    transaction = db.relationship("Transaction", backref=db.backref("returns", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "transaction_id": self.transaction_code,
            "transaction_pk": self.transaction_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "returned_quantity": to_json_number(self.returned_quantity),
            "return_reason": self.return_reason,
            "status": self.status,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "resolved_at": to_utc_z(self.resolved_at) if self.resolved_at else None,
        }
