# Overview: Role ranking and permission checks against an explicit session context.

"""
Authorization checks.

Every check takes the SessionContext built by session_service for the
current request. Nothing here reads Flask globals, so role-gated logic can
be exercised without a request.

Role rank: owner > manager > cashier > staff. check_user_role(ctx, role)
is true for that role and every role above it.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..permissions import DEFAULT_ROLE_PERMISSIONS, validate_permission_code

if TYPE_CHECKING:
    from .session_service import SessionContext


logger = logging.getLogger(__name__)


ROLE_RANK = {
    "staff": 1,
    "cashier": 2,
    "manager": 3,
    "owner": 4,
}


class PermissionDeniedError(Exception):
    """Raised when the caller lacks a role or permission."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def check_user_role(ctx: "SessionContext", role: str) -> bool:
    if role not in ROLE_RANK:
        raise ValueError(f"Unknown role: {role}")
    return ROLE_RANK.get(ctx.role, 0) >= ROLE_RANK[role]


def require_role(ctx: "SessionContext", *roles: str) -> None:
    """Pass when the caller holds any of ``roles`` or outranks the lowest of them."""
    if any(check_user_role(ctx, r) for r in roles):
        return
    logger.warning(
        "Role check failed: profile=%s role=%s required=%s",
        ctx.profile.id, ctx.role, ",".join(roles),
    )
    raise PermissionDeniedError(
        "Permission denied",
        {"required_roles": list(roles), "role": ctx.role},
    )


def get_permissions(ctx: "SessionContext") -> set[str]:
    permissions = set(DEFAULT_ROLE_PERMISSIONS.get(ctx.role, set()))
    custom_role = ctx.profile.custom_role
    if custom_role is not None:
        permissions.update(p for p in (custom_role.permissions or []) if validate_permission_code(p))
    return permissions


def has_permission(ctx: "SessionContext", code: str) -> bool:
    return code in get_permissions(ctx)


def require_permission(ctx: "SessionContext", code: str, resource: str | None = None) -> None:
    if has_permission(ctx, code):
        return
    logger.warning(
        "Permission denied: profile=%s role=%s permission=%s resource=%s",
        ctx.profile.id, ctx.role, code, resource,
    )
    raise PermissionDeniedError(
        f"Missing permission: {code}",
        {"required_permission": code},
    )
