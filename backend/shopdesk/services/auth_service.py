# Overview: Service-layer operations for auth; passwords, login and profile administration.

"""
Authentication and profile administration.

Passwords are bcrypt hashed (cost 12) and must pass the strength check
before hashing. Emails are globally unique and compared lower-cased.

Who may create whom:
- owners create managers, cashiers and staff in any shop they own
- managers create cashiers and staff in their own shop
- nobody creates owners through the API (CLI only)
"""
from __future__ import annotations

import logging
import re

import bcrypt

from ..extensions import db
from ..models import CustomRole, Profile, Shop
from ..models.auth import ROLE_CASHIER, ROLE_MANAGER, ROLE_OWNER, ROLE_STAFF, ROLES
from ..permissions import validate_permission_code
from ..validation import ConflictError, NotFoundError, ValidationError, require_text, to_text
from .permission_service import PermissionDeniedError, require_role
from .session_service import SessionContext, revoke_all_profile_sessions
from .tenant_service import get_shop_by_slug, resolve_shop_id


logger = logging.getLogger(__name__)


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Minimum 8 characters with an uppercase letter, a lowercase letter,
    a digit and a special character.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    validate_password_strength(password)
    hashed = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=12))
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed stored hash
        return False


def normalize_email(email: str) -> str:
    return require_text(email, "email").lower()


def authenticate(email: str, password: str, shop_slug: str | None = None) -> tuple[Profile, Shop | None] | None:
    """
    Verify credentials. Returns (profile, shop) or None.

    With ``shop_slug`` the profile must belong to that shop, or own it.
    """
    if not email or not password:
        return None

    profile = db.session.query(Profile).filter_by(email=email.strip().lower()).first()
    if not profile or not profile.is_active:
        return None

    if not verify_password(password, profile.password_hash):
        return None

    shop = None
    if shop_slug:
        shop = get_shop_by_slug(shop_slug)
        if shop is None:
            return None
        if profile.role == ROLE_OWNER:
            if shop.owner_id != profile.id:
                return None
        elif profile.shop_id != shop.id:
            logger.warning("Login for profile %s refused at shop %s", profile.id, shop.slug)
            return None

    return profile, shop


def create_profile(
    *,
    email: str,
    password: str,
    role: str,
    shop_id: int | None,
    full_name: str | None = None,
    custom_role_id: int | None = None,
) -> Profile:
    """Low-level create, no caller checks. Used by the CLI and by add_profile."""
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
    if role != ROLE_OWNER and not shop_id:
        raise ValidationError("shop_id is required for non-owner profiles")

    email = normalize_email(email)
    if db.session.query(Profile).filter_by(email=email).first():
        raise ConflictError("Email already registered")

    profile = Profile(
        email=email,
        full_name=to_text(full_name),
        password_hash=hash_password(password),
        role=role,
        shop_id=None if role == ROLE_OWNER else shop_id,
        custom_role_id=custom_role_id,
        is_active=True,
    )
    db.session.add(profile)
    db.session.commit()
    return profile


def add_profile(ctx: SessionContext, payload: dict) -> Profile:
    """Create a shop member on behalf of an owner or manager."""
    require_role(ctx, ROLE_MANAGER)

    role = to_text(payload.get("role")) or ROLE_STAFF
    allowed = (ROLE_MANAGER, ROLE_CASHIER, ROLE_STAFF) if ctx.is_owner else (ROLE_CASHIER, ROLE_STAFF)
    if role not in allowed:
        raise PermissionDeniedError(
            f"Cannot create a profile with role {role}",
            {"allowed_roles": list(allowed)},
        )

    shop_id = resolve_shop_id(ctx, payload.get("shop_id"))

    custom_role_id = payload.get("custom_role_id")
    if custom_role_id is not None:
        custom_role = db.session.get(CustomRole, custom_role_id)
        if not custom_role or custom_role.shop_id != shop_id:
            raise NotFoundError("Custom role not found")
        if role != ROLE_STAFF:
            raise ValidationError("Custom roles apply to staff only")

    profile = create_profile(
        email=payload.get("email"),
        password=payload.get("password") or "",
        role=role,
        shop_id=shop_id,
        full_name=payload.get("full_name"),
        custom_role_id=custom_role_id,
    )
    logger.info("Profile %s (%s) created in shop %s by %s", profile.id, role, shop_id, ctx.profile.id)
    return profile


def list_profiles(ctx: SessionContext, shop_id: int) -> list[Profile]:
    require_role(ctx, ROLE_MANAGER)
    return (
        db.session.query(Profile)
        .filter(Profile.shop_id == shop_id)
        .order_by(Profile.role.asc(), Profile.email.asc())
        .all()
    )


def deactivate_profile(ctx: SessionContext, shop_id: int, profile_id: int) -> Profile:
    require_role(ctx, ROLE_MANAGER)
    profile = db.session.get(Profile, profile_id)
    if not profile or profile.shop_id != shop_id:
        raise NotFoundError("Profile not found")
    if profile.id == ctx.profile.id:
        raise ValidationError("You cannot deactivate yourself")
    if profile.role == ROLE_MANAGER and not ctx.is_owner:
        raise PermissionDeniedError("Only the owner can deactivate a manager")

    profile.is_active = False
    db.session.commit()
    revoke_all_profile_sessions(profile.id)
    return profile


def create_custom_role(ctx: SessionContext, shop_id: int, payload: dict) -> CustomRole:
    require_role(ctx, ROLE_MANAGER)
    name = require_text(payload.get("name"), "name")

    permissions = payload.get("permissions") or []
    if not isinstance(permissions, list):
        raise ValidationError("permissions must be a list")
    unknown = [p for p in permissions if not validate_permission_code(p)]
    if unknown:
        raise ValidationError(f"Unknown permissions: {', '.join(map(str, unknown))}")

    if db.session.query(CustomRole).filter_by(shop_id=shop_id, name=name).first():
        raise ConflictError("A role with this name already exists")

    role = CustomRole(
        shop_id=shop_id,
        name=name,
        description=to_text(payload.get("description")),
        permissions=sorted(set(permissions)),
    )
    db.session.add(role)
    db.session.commit()
    return role


def list_custom_roles(ctx: SessionContext, shop_id: int) -> list[CustomRole]:
    require_role(ctx, ROLE_MANAGER)
    return db.session.query(CustomRole).filter_by(shop_id=shop_id).order_by(CustomRole.name.asc()).all()
