from __future__ import annotations

from ..extensions import db
from shopdesk.time_utils import to_utc_z


class Notification(db.Model):
    """
    Message from an owner/manager to the people of a shop.

    Targeting: recipient_id wins when set; otherwise recipient_role narrows
    the audience; both null means everyone in the shop.
    """
    __tablename__ = "notifications"
    __table_args__ = (
        db.Index("ix_notifications_shop_created", "shop_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    sender_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)

    recipient_role = db.Column(db.String(16), nullable=True)
    recipient_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True, index=True)

    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    is_read = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "sender_id": self.sender_id,
            "recipient_role": self.recipient_role,
            "recipient_id": self.recipient_id,
            "title": self.title,
            "message": self.message,
            "is_read": self.is_read,
            "created_at": to_utc_z(self.created_at),
        }
