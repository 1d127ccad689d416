from __future__ import annotations

from ..extensions import db
from shopdesk.money import to_json_number
from shopdesk.time_utils import to_utc_z


def generate_barcode(product_id: int | None, sku: str | None) -> str:
    """Barcode used when none is stored: the SKU, else an id-derived code."""
    if sku:
        return sku
    return f"PROD-{str(product_id or 0).zfill(8)[-8:].upper()}"


class Product(db.Model):
    """
    Sellable product of a shop.

    SKU is unique within a shop when present. Stock is stored with three
    decimals so weight/volume products (kg, liter) can hold fractional stock;
    discrete units are kept integral by the unit policy, not by the column.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "sku", name="uq_products_shop_sku"),
        db.Index("ix_products_shop_name", "shop_id", "name"),
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=False)
    unit_type = db.Column(db.String(16), nullable=False, default="piece")

    # Selling price
    price = db.Column(db.Numeric(12, 2), nullable=False)
    mrp = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    stock_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    weight_rate = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    gst_percentage = db.Column(db.Numeric(6, 2), nullable=False, default=0)

    stock = db.Column(db.Numeric(12, 3), nullable=False, default=0)
    sales_count = db.Column(db.Numeric(12, 3), nullable=False, default=0)

    sku = db.Column(db.String(64), nullable=True)
    barcode = db.Column(db.String(64), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    shop = db.relationship("Shop", backref=db.backref("products", lazy=True))

    @property
    def effective_barcode(self) -> str:
        return self.barcode or generate_barcode(self.id, self.sku)

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} shop_id={self.shop_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "name": self.name,
            "category": self.category,
            "unit_type": self.unit_type,
            "price": to_json_number(self.price),
            "mrp": to_json_number(self.mrp),
            "stock_price": to_json_number(self.stock_price),
            "weight_rate": to_json_number(self.weight_rate),
            "gst_percentage": to_json_number(self.gst_percentage),
            "stock": to_json_number(self.stock),
            "sales_count": to_json_number(self.sales_count),
            "sku": self.sku,
            "barcode": self.effective_barcode,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class InventoryLog(db.Model):
    """Append-only record of stock movements (sales and purchase transfers)."""
    __tablename__ = "inventory_logs"
    __table_args__ = (
        db.Index("ix_inventory_logs_shop_created", "shop_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Numeric(12, 3), nullable=False)

    # sale | purchase
    action = db.Column(db.String(16), nullable=False)
    reference = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": to_json_number(self.quantity),
            "action": self.action,
            "reference": self.reference,
            "created_at": to_utc_z(self.created_at),
        }


class DamagedInventory(db.Model):
    """Damaged stock report. Recording one does not change Product.stock."""
    __tablename__ = "damaged_inventory"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Numeric(12, 3), nullable=False)
    reason = db.Column(db.String(255), nullable=True)
    reported_by = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": to_json_number(self.quantity),
            "reason": self.reason,
            "reported_by": self.reported_by,
            "created_at": to_utc_z(self.created_at),
        }
