from __future__ import annotations

from ..extensions import db
from shopdesk.time_utils import to_utc_z


ROLE_OWNER = "owner"
ROLE_MANAGER = "manager"
ROLE_CASHIER = "cashier"
ROLE_STAFF = "staff"

ROLES = (ROLE_OWNER, ROLE_MANAGER, ROLE_CASHIER, ROLE_STAFF)


class Profile(db.Model):
    """
    Login account and role holder.

    Owners have no shop_id: the shops they own are found through
    Shop.owner_id. Every other role is pinned to exactly one shop.
    Staff profiles may carry a CustomRole with extra permission codes.
    """
    __tablename__ = "profiles"
    __table_args__ = (
        db.Index("ix_profiles_shop_role", "shop_id", "role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=True, index=True)

    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    full_name = db.Column(db.String(120), nullable=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(16), nullable=False, default=ROLE_STAFF)
    custom_role_id = db.Column(db.Integer, db.ForeignKey("custom_roles.id"), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    shop = db.relationship("Shop", foreign_keys=[shop_id], backref=db.backref("profiles", lazy=True))
    custom_role = db.relationship("CustomRole")

    def __repr__(self) -> str:
        return f"<Profile id={self.id} email={self.email!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "custom_role_id": self.custom_role_id,
            "custom_role": self.custom_role.name if self.custom_role else None,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class CustomRole(db.Model):
    """Shop-defined role for staff members, carrying a list of permission codes."""
    __tablename__ = "custom_roles"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "name", name="uq_custom_roles_shop_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    permissions = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "name": self.name,
            "description": self.description,
            "permissions": list(self.permissions or []),
            "created_at": to_utc_z(self.created_at),
        }


class SessionToken(db.Model):
    """
    Bearer session. Only the SHA-256 hash of the token is stored.

    shop_id is captured at login and stays fixed for the session lifetime.
    """
    __tablename__ = "session_tokens"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    profile_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=False, index=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=True)

    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)

    user_agent = db.Column(db.String(255), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    profile = db.relationship("Profile", backref=db.backref("sessions", lazy=True))
