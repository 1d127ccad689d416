# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- POST /api/auth/login: email + password, owners may name a shop_id
- POST /api/auth/shops/<slug>/login: the public per-shop login path
- POST /api/auth/logout: revoke the bearer token
- GET  /api/auth/me: profile, permissions and reachable shops
- GET  /api/auth/check-role?role=manager: role rank check for the caller

Self-registration does not exist: owners come from the CLI, everyone else
is created by an owner or manager.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import bearer_token, error_response, require_auth
from ..services import auth_service, permission_service, session_service, shop_service
from ..services.session_service import SessionError
from ..services.tenant_service import get_shop_by_slug
from ..validation import ValidationError, to_int
from shopdesk.time_utils import to_utc_z


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _login(shop_slug: str | None = None):
    data = request.get_json(silent=True) or {}
    email = data.get("email") or data.get("username")
    password = data.get("password")

    if not all([email, password]):
        return jsonify({"error": "email and password required"}), 400

    result = auth_service.authenticate(email, password, shop_slug=shop_slug)
    if not result:
        return jsonify({"error": "Invalid credentials"}), 401
    profile, shop = result

    shop_id = shop.id if shop is not None else to_int(data.get("shop_id"), "shop_id")
    session, token = session_service.create_session(
        profile,
        shop_id=shop_id,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    ctx = session_service.build_context(profile, session, session.shop_id)
    current_app.logger.info("Profile %s logged in (shop=%s)", profile.id, session.shop_id)

    return jsonify({
        "user": profile.to_dict(),
        "permissions": sorted(permission_service.get_permissions(ctx)),
        "token": token,
        "shop_id": session.shop_id,
        "expires_at": to_utc_z(session.expires_at),
        "message": "Login successful",
    }), 200


@auth_bp.post("/login")
def login_route():
    """Authenticate and create a session token."""
    try:
        return _login()
    except (ValidationError, SessionError) as e:
        return error_response(e, 400)
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/shops/<slug>/login")
def shop_login_route(slug: str):
    """Login through a shop's public path; the profile must belong to that shop."""
    try:
        if get_shop_by_slug(slug) is None:
            return jsonify({"error": "Shop not found"}), 404
        return _login(shop_slug=slug)
    except (ValidationError, SessionError) as e:
        return error_response(e, 400)
    except Exception:
        current_app.logger.exception("Failed to login user at shop %s", slug)
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    token = bearer_token()
    if not token:
        return jsonify({"error": "Authentication required"}), 401
    session_service.revoke_session(token)
    return jsonify({"message": "Logged out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    ctx = g.session_context
    return jsonify({
        "user": ctx.profile.to_dict(),
        "role": ctx.role,
        "permissions": sorted(permission_service.get_permissions(ctx)),
        "shop_id": ctx.shop_id,
        "shops": [s.to_dict() for s in shop_service.list_shops(ctx)],
    }), 200


@auth_bp.get("/check-role")
@require_auth
def check_role_route():
    role = (request.args.get("role") or "").strip().lower()
    try:
        allowed = permission_service.check_user_role(g.session_context, role)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"role": role, "allowed": allowed}), 200
