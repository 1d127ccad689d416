# Overview: Service-layer operations for session tokens and the per-request session context.

"""
Session Token Management

Tokens are 32 random bytes sent to the client once; only their SHA-256 hash
is stored. Sessions expire after SESSION_ABSOLUTE_HOURS and are revoked
after SESSION_IDLE_HOURS without use.

The shop captured at login is fixed for the life of the session. Owners
may log in without a shop and then name one of their shops per request.
"""
from __future__ import annotations

import hashlib
import logging
import secrets
from dataclasses import dataclass, field
from datetime import timedelta

from flask import current_app, has_app_context

from ..extensions import db
from ..models import Profile, SessionToken, Shop
from ..models.auth import ROLE_OWNER
from shopdesk.time_utils import utcnow


logger = logging.getLogger(__name__)

SESSION_ABSOLUTE_HOURS = 24
SESSION_IDLE_HOURS = 2


class SessionError(Exception):
    """Raised when a session cannot be created."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass
class SessionContext:
    """
    Who is calling and which shops they may act on.

    Built once per request by require_auth and passed explicitly to every
    service that scopes by role or shop.
    """
    profile: Profile
    session: SessionToken | None
    shop_id: int | None
    owned_shop_ids: set[int] = field(default_factory=set)

    @property
    def role(self) -> str:
        return self.profile.role

    @property
    def profile_id(self) -> int:
        return self.profile.id

    @property
    def is_owner(self) -> bool:
        return self.profile.role == ROLE_OWNER


def _hours(key: str, default: int) -> timedelta:
    hours = current_app.config.get(key, default) if has_app_context() else default
    return timedelta(hours=hours)


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def owned_shop_ids(profile: Profile) -> set[int]:
    if profile.role != ROLE_OWNER:
        return set()
    rows = db.session.query(Shop.id).filter(Shop.owner_id == profile.id, Shop.is_active.is_(True)).all()
    return {r[0] for r in rows}


def build_context(profile: Profile, session: SessionToken | None = None, shop_id: int | None = None) -> SessionContext:
    """Context for a profile outside a request (CLI, tests)."""
    if shop_id is None and profile.role != ROLE_OWNER:
        shop_id = profile.shop_id
    return SessionContext(
        profile=profile,
        session=session,
        shop_id=shop_id,
        owned_shop_ids=owned_shop_ids(profile),
    )


def create_session(
    profile: Profile,
    shop_id: int | None = None,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create a session for ``profile``.

    Returns (session_record, plaintext_token). Store-scoped profiles always get
    their own shop; owners get ``shop_id`` when it is one of theirs.
    """
    if profile.role == ROLE_OWNER:
        if shop_id is not None and shop_id not in owned_shop_ids(profile):
            raise SessionError("Shop not found")
    else:
        if not profile.shop_id:
            raise SessionError("Profile is not attached to a shop")
        shop = db.session.get(Shop, profile.shop_id)
        if not shop or not shop.is_active:
            raise SessionError("Shop is not active")
        shop_id = profile.shop_id

    token = generate_token()
    now = utcnow()

    session = SessionToken(
        profile_id=profile.id,
        shop_id=shop_id,
        token_hash=hash_token(token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _hours("SESSION_ABSOLUTE_HOURS", SESSION_ABSOLUTE_HOURS),
        user_agent=user_agent,
        ip_address=ip_address,
    )
    db.session.add(session)
    profile.last_login_at = now
    db.session.commit()

    return session, token


def validate_session(token: str) -> SessionContext | None:
    """
    Return the SessionContext for ``token`` or None.

    Idle sessions, and sessions whose profile or shop was deactivated, are
    revoked on the way out.
    """
    now = utcnow()
    session = (
        db.session.query(SessionToken)
        .filter(SessionToken.token_hash == hash_token(token), SessionToken.revoked_at.is_(None))
        .first()
    )
    if not session:
        return None

    if session.expires_at < now:
        return None

    if now - session.last_used_at > _hours("SESSION_IDLE_HOURS", SESSION_IDLE_HOURS):
        session.revoked_at = now
        db.session.commit()
        return None

    profile = session.profile
    if not profile or not profile.is_active:
        session.revoked_at = now
        db.session.commit()
        return None

    if session.shop_id is not None:
        shop = db.session.get(Shop, session.shop_id)
        if not shop or not shop.is_active:
            session.revoked_at = now
            db.session.commit()
            return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(
        profile=profile,
        session=session,
        shop_id=session.shop_id,
        owned_shop_ids=owned_shop_ids(profile),
    )


def revoke_session(token: str) -> bool:
    session = (
        db.session.query(SessionToken)
        .filter(SessionToken.token_hash == hash_token(token), SessionToken.revoked_at.is_(None))
        .first()
    )
    if not session:
        return False
    session.revoked_at = utcnow()
    db.session.commit()
    return True


def revoke_all_profile_sessions(profile_id: int) -> int:
    now = utcnow()
    count = (
        db.session.query(SessionToken)
        .filter(SessionToken.profile_id == profile_id, SessionToken.revoked_at.is_(None))
        .update({SessionToken.revoked_at: now}, synchronize_session=False)
    )
    db.session.commit()
    logger.info("Revoked %d sessions for profile %s", count, profile_id)
    return count
