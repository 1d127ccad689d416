"""Shop creation and listing for owners."""
from __future__ import annotations

import re

from ..extensions import db
from ..models import Profile, Shop
from ..models.auth import ROLE_OWNER
from ..validation import ConflictError, ValidationError, require_text, to_text
from .permission_service import require_role
from .session_service import SessionContext


_SLUG_STRIP = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    slug = _SLUG_STRIP.sub("-", value.strip().lower()).strip("-")
    if not slug:
        raise ValidationError("slug must contain letters or digits")
    return slug[:64]


def create_shop_for(owner: Profile, payload: dict) -> Shop:
    if owner.role != ROLE_OWNER:
        raise ValidationError("Only owners can own shops")

    name = require_text(payload.get("name"), "name")
    slug = slugify(to_text(payload.get("slug")) or name)
    if db.session.query(Shop).filter_by(slug=slug).first():
        raise ConflictError(f"Shop slug already taken: {slug}")

    shop = Shop(
        name=name,
        slug=slug,
        address=to_text(payload.get("address")),
        phone=to_text(payload.get("phone")),
        gst_number=to_text(payload.get("gst_number")),
        owner_id=owner.id,
        is_active=True,
    )
    db.session.add(shop)
    db.session.commit()
    return shop


def create_shop(ctx: SessionContext, payload: dict) -> Shop:
    require_role(ctx, ROLE_OWNER)
    shop = create_shop_for(ctx.profile, payload)
    ctx.owned_shop_ids.add(shop.id)
    return shop


def list_shops(ctx: SessionContext) -> list[Shop]:
    if ctx.is_owner:
        return db.session.query(Shop).filter(Shop.owner_id == ctx.profile.id).order_by(Shop.name.asc()).all()
    if ctx.shop_id is None:
        return []
    shop = db.session.get(Shop, ctx.shop_id)
    return [shop] if shop else []
