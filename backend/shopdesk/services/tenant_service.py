"""
Tenant scoping helpers.

Every shop-owned row is read and written through a shop_id that came out of
resolve_shop_id. Store-scoped profiles (manager, cashier, staff) always act
on the shop pinned to their session; owners act on a shop they own, named
explicitly by the request or carried by the session.

Cross-tenant attempts are logged and answered as "Shop not found" so the
caller cannot tell whether another tenant's shop exists.
"""
from __future__ import annotations

import logging
from typing import Any

from ..extensions import db
from ..models import Shop
from ..validation import to_int
from .session_service import SessionContext


logger = logging.getLogger(__name__)


class TenantAccessError(Exception):
    """Raised when cross-tenant access is attempted."""

    def __init__(self, message: str = "Shop not found", details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _log_cross_tenant_attempt(ctx: SessionContext, requested: Any, reason: str) -> None:
    logger.warning(
        "Cross-tenant access denied: profile=%s role=%s requested_shop=%s reason=%s",
        ctx.profile.id, ctx.role, requested, reason,
    )


def resolve_shop_id(ctx: SessionContext, requested: Any = None) -> int:
    """
    Return the shop the caller is acting on.

    ``requested`` is the shop_id from the request (query string or body).
    """
    requested_id = to_int(requested, "shop_id")

    if not ctx.is_owner:
        if ctx.shop_id is None:
            _log_cross_tenant_attempt(ctx, requested_id, "session without shop")
            raise TenantAccessError()
        if requested_id is not None and requested_id != ctx.shop_id:
            _log_cross_tenant_attempt(ctx, requested_id, f"pinned to shop {ctx.shop_id}")
            raise TenantAccessError()
        return ctx.shop_id

    shop_id = requested_id if requested_id is not None else ctx.shop_id
    if shop_id is None:
        if len(ctx.owned_shop_ids) == 1:
            return next(iter(ctx.owned_shop_ids))
        raise TenantAccessError("shop_id required", {"owned_shop_ids": sorted(ctx.owned_shop_ids)})
    if shop_id not in ctx.owned_shop_ids:
        _log_cross_tenant_attempt(ctx, shop_id, "not an owned shop")
        raise TenantAccessError()
    return shop_id


def get_shop_by_slug(slug: str) -> Shop | None:
    return db.session.query(Shop).filter_by(slug=slug.strip().lower(), is_active=True).first()
