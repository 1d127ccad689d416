# Overview: Service-layer operations for in-shop notifications.

from __future__ import annotations

import logging

from sqlalchemy import and_, or_

from ..extensions import db
from ..models import Notification, Profile, Shop
from ..models.auth import ROLE_MANAGER, ROLE_OWNER, ROLES
from ..validation import NotFoundError, ValidationError, require_text, to_int, to_text
from .permission_service import require_role
from .session_service import SessionContext


logger = logging.getLogger(__name__)


def _visible_filter(ctx: SessionContext):
    """recipient_id wins; else recipient_role narrows; both null is everyone."""
    return or_(
        Notification.recipient_id == ctx.profile_id,
        and_(
            Notification.recipient_id.is_(None),
            or_(Notification.recipient_role.is_(None), Notification.recipient_role == ctx.role),
        ),
    )


def send_notification(ctx: SessionContext, shop_id: int, payload: dict) -> Notification:
    require_role(ctx, ROLE_OWNER, ROLE_MANAGER)

    title = require_text(payload.get("title"), "title")
    message = require_text(payload.get("message"), "message")

    recipient_role = to_text(payload.get("recipient_role"))
    if recipient_role in ("all", "everyone"):
        recipient_role = None
    if recipient_role is not None and recipient_role not in ROLES:
        raise ValidationError(f"recipient_role must be one of: {', '.join(ROLES)}")

    recipient_id = to_int(payload.get("recipient_id"), "recipient_id")
    if recipient_id is not None:
        recipient = db.session.get(Profile, recipient_id)
        if recipient is None or (recipient.shop_id != shop_id and recipient.id not in _shop_owner_ids(shop_id)):
            raise NotFoundError("Recipient not found")

    row = Notification(
        shop_id=shop_id,
        sender_id=ctx.profile_id,
        recipient_role=recipient_role,
        recipient_id=recipient_id,
        title=title,
        message=message,
        is_read=False,
    )
    db.session.add(row)
    db.session.commit()
    logger.info("Notification %s sent in shop %s by %s", row.id, shop_id, ctx.profile_id)
    return row


def _shop_owner_ids(shop_id: int) -> set[int]:
    shop = db.session.get(Shop, shop_id)
    return {shop.owner_id} if shop and shop.owner_id else set()


def list_for(ctx: SessionContext, shop_id: int, unread_only: bool = False) -> list[Notification]:
    q = db.session.query(Notification).filter(Notification.shop_id == shop_id, _visible_filter(ctx))
    if unread_only:
        q = q.filter(Notification.is_read.is_(False))
    return q.order_by(Notification.created_at.desc(), Notification.id.desc()).all()


def unread_count(ctx: SessionContext, shop_id: int) -> int:
    return (
        db.session.query(db.func.count(Notification.id))
        .filter(Notification.shop_id == shop_id, Notification.is_read.is_(False), _visible_filter(ctx))
        .scalar()
        or 0
    )


def mark_read(ctx: SessionContext, shop_id: int, notification_id: int) -> Notification:
    row = (
        db.session.query(Notification)
        .filter(Notification.id == notification_id, Notification.shop_id == shop_id, _visible_filter(ctx))
        .first()
    )
    if row is None:
        raise NotFoundError("Notification not found")
    row.is_read = True
    db.session.commit()
    return row
