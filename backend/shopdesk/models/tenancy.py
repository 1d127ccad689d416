from __future__ import annotations

from ..extensions import db
from shopdesk.time_utils import to_utc_z


class Shop(db.Model):
    """
    Tenant boundary: every product, transaction, supplier and profile below
    the owner level belongs to exactly one shop.

    The slug is globally unique and drives the public shop login path
    (``/api/auth/shops/<slug>/login``).
    """
    __tablename__ = "shops"
    __table_args__ = (
        db.Index("ix_shops_owner_id", "owner_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    slug = db.Column(db.String(64), nullable=False, unique=True, index=True)

    address = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    gst_number = db.Column(db.String(32), nullable=True)

    # Owner profiles are not attached to a single shop; ownership lives here.
    # Plain column (no FK) so shops and profiles don't form a create cycle.
    owner_id = db.Column(db.Integer, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Shop id={self.id} slug={self.slug!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "address": self.address,
            "phone": self.phone,
            "gst_number": self.gst_number,
            "owner_id": self.owner_id,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
