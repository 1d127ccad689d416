from __future__ import annotations

from ..extensions import db
from shopdesk.money import to_json_number
from shopdesk.time_utils import to_iso_date, to_utc_z


INVOICE_PURCHASE = "Purchase_Inventory"
INVOICE_TRANSFERRED = "Transferred_Inventory"

PAYMENT_UNPAID = "Unpaid"
PAYMENT_PARTIAL = "Partially Paid"
PAYMENT_PAID = "Paid"


class Supplier(db.Model):
    """
    Supplier of a shop, with credit terms and a running outstanding balance.

    The payment fields describe the latest bill/payment and are recomputed
    from scratch whenever paid amount or outstanding balance changes.
    """
    __tablename__ = "supplier"
    __table_args__ = (
        db.Index("ix_supplier_shop_name", "shop_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    gst_number = db.Column(db.String(32), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(120), nullable=True)
    state = db.Column(db.String(120), nullable=True)
    country = db.Column(db.String(120), nullable=False, default="India")
    pincode = db.Column(db.String(16), nullable=True)
    contact_person = db.Column(db.String(120), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    credit_days = db.Column(db.Integer, nullable=False, default=30)
    credit_limit = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    outstanding_balance = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    payment_status = db.Column(db.String(16), nullable=False, default=PAYMENT_UNPAID)
    payment_mode = db.Column(db.String(32), nullable=False, default="Cash")
    paid_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    balance_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    purchase_date = db.Column(db.Date, nullable=True)
    bill_date = db.Column(db.Date, nullable=True)
    due_date = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "gst_number": self.gst_number,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "country": self.country,
            "pincode": self.pincode,
            "contact_person": self.contact_person,
            "is_active": self.is_active,
            "credit_days": self.credit_days,
            "credit_limit": to_json_number(self.credit_limit),
            "outstanding_balance": to_json_number(self.outstanding_balance),
            "payment_status": self.payment_status,
            "payment_mode": self.payment_mode,
            "paid_amount": to_json_number(self.paid_amount),
            "balance_amount": to_json_number(self.balance_amount),
            "purchase_date": to_iso_date(self.purchase_date),
            "bill_date": to_iso_date(self.bill_date),
            "due_date": to_iso_date(self.due_date),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class PurchaseEntry(db.Model):
    """
    Supplier bill recorded against a shop.

    invoice_type: Purchase_Inventory -> Transferred_Inventory, one way, set by
    the transfer action once the lines have been pushed into products.
    """
    __tablename__ = "purchase_entry"
    __table_args__ = (
        db.Index("ix_purchase_entry_shop_created", "shop_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("supplier.id"), nullable=False, index=True)
    supplier_name = db.Column(db.String(255), nullable=False)

    state = db.Column(db.String(120), nullable=False)
    gst_no = db.Column(db.String(32), nullable=True)
    bill_no = db.Column(db.String(64), nullable=True)
    purchase_date = db.Column(db.Date, nullable=False)
    supplier_bill_date = db.Column(db.Date, nullable=False)

    invoice_type = db.Column(db.String(32), nullable=False, default=INVOICE_PURCHASE, index=True)

    gross_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(8, 2), nullable=False, default=0)
    add_charges = db.Column(db.Numeric(8, 2), nullable=False, default=0)
    discount_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    surcharge_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    total_gst = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    round_off_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    net_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    payment_mode = db.Column(db.String(32), nullable=False, default="Cash")
    paid_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    balance_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    payment_status = db.Column(db.String(16), nullable=False, default=PAYMENT_UNPAID)

    created_by = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    transferred_at = db.Column(db.DateTime(timezone=True), nullable=True)

    supplier = db.relationship("Supplier", backref=db.backref("purchase_entries", lazy=True))
    products = db.relationship(
        "PurchaseEntryProduct",
        backref="purchase_entry",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="PurchaseEntryProduct.id",
    )

    @property
    def is_transferred(self) -> bool:
        return self.invoice_type == INVOICE_TRANSFERRED

    def to_dict(self, include_products: bool = False) -> dict:
        data = {
            "id": self.id,
            "shop_id": self.shop_id,
            "supplier_id": self.supplier_id,
            "supplier": self.supplier_name,
            "state": self.state,
            "gst_no": self.gst_no,
            "bill_no": self.bill_no,
            "purchase_date": to_iso_date(self.purchase_date),
            "supplier_bill_date": to_iso_date(self.supplier_bill_date),
            "invoice_type": self.invoice_type,
            "gross_amount": to_json_number(self.gross_amount),
            "discount": to_json_number(self.discount),
            "add_charges": to_json_number(self.add_charges),
            "discount_amount": to_json_number(self.discount_amount),
            "surcharge_amount": to_json_number(self.surcharge_amount),
            "total_gst": to_json_number(self.total_gst),
            "round_off_amount": to_json_number(self.round_off_amount),
            "net_amount": to_json_number(self.net_amount),
            "payment_mode": self.payment_mode,
            "paid_amount": to_json_number(self.paid_amount),
            "balance_amount": to_json_number(self.balance_amount),
            "payment_status": self.payment_status,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "transferred_at": to_utc_z(self.transferred_at) if self.transferred_at else None,
        }
        if include_products:
            data["products"] = [p.to_dict() for p in self.products]
        return data


class PurchaseEntryProduct(db.Model):
    """One purchased product line, with its GST split already computed."""
    __tablename__ = "purchase_entry_products"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    purchase_entry_id = db.Column(db.Integer, db.ForeignKey("purchase_entry.id"), nullable=False, index=True)

    # Identity assigned while the line lived in a draft
    line_key = db.Column(db.String(64), nullable=True)

    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=False)
    sku = db.Column(db.String(64), nullable=True)
    barcode = db.Column(db.String(64), nullable=True)
    unit_type = db.Column(db.String(16), nullable=False, default="piece")

    stock = db.Column(db.Numeric(12, 3), nullable=False)
    mrp = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    stock_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    weight_rate = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    gst_percentage = db.Column(db.Numeric(6, 2), nullable=False, default=0)
    sgst = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    cgst = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.line_key or str(self.id),
            "purchase_entry_id": self.purchase_entry_id,
            "name": self.name,
            "category": self.category,
            "sku": self.sku,
            "barcode": self.barcode,
            "unit_type": self.unit_type,
            "stock": to_json_number(self.stock),
            "mrp": to_json_number(self.mrp),
            "stock_price": to_json_number(self.stock_price),
            "price": to_json_number(self.price),
            "weight_rate": to_json_number(self.weight_rate),
            "gst_percentage": to_json_number(self.gst_percentage),
            "sgst": to_json_number(self.sgst),
            "cgst": to_json_number(self.cgst),
            "total_amount": to_json_number(self.total_amount),
        }
