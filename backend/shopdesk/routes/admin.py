# Overview: Flask API routes for admin operations; parses input and returns JSON responses.

"""
Admin routes for shops, profiles and custom roles.

- Shops: owners create and list their shops
- Profiles: owners and managers create, list and deactivate shop members
- Custom roles: owners and managers define permission bundles for staff
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import error_response, require_auth, require_permission, require_role, require_shop
from ..models.auth import ROLE_OWNER
from ..permissions import PERMISSION_DEFINITIONS
from ..services import auth_service, shop_service
from ..services.auth_service import PasswordValidationError
from ..services.permission_service import PermissionDeniedError
from ..services.tenant_service import TenantAccessError
from ..validation import ConflictError, NotFoundError, ValidationError

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


# =============================================================================
# SHOPS
# =============================================================================

@admin_bp.get("/shops")
@require_auth
def list_shops():
    shops = shop_service.list_shops(g.session_context)
    return jsonify({"shops": [s.to_dict() for s in shops], "count": len(shops)})


@admin_bp.post("/shops")
@require_auth
@require_role(ROLE_OWNER)
def create_shop():
    data = request.get_json(silent=True) or {}
    try:
        shop = shop_service.create_shop(g.session_context, data)
        return jsonify({"shop": shop.to_dict()}), 201
    except ValidationError as e:
        return error_response(e, 400)
    except ConflictError as e:
        return error_response(e, 409)
    except Exception:
        current_app.logger.exception("Failed to create shop")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# PROFILES
# =============================================================================

@admin_bp.get("/profiles")
@require_auth
@require_shop
@require_permission("MANAGE_USERS")
def list_profiles():
    profiles = auth_service.list_profiles(g.session_context, g.shop_id)
    return jsonify({"profiles": [p.to_dict() for p in profiles], "count": len(profiles)})


@admin_bp.post("/profiles")
@require_auth
@require_permission("MANAGE_USERS")
def create_profile():
    """
    Create a shop member.

    Request body:
    {
        "email": "cashier@example.com",   // required
        "password": "...",                // required, strength checked
        "role": "cashier",                // manager | cashier | staff
        "full_name": "...",               // optional
        "custom_role_id": 3,              // optional, staff only
        "shop_id": 1                      // owners: which of their shops
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        profile = auth_service.add_profile(g.session_context, data)
        return jsonify({"profile": profile.to_dict()}), 201
    except (ValidationError, PasswordValidationError) as e:
        return error_response(e, 400)
    except PermissionDeniedError as e:
        return error_response(e, 403)
    except TenantAccessError as e:
        return error_response(e, 404)
    except NotFoundError as e:
        return error_response(e, 404)
    except ConflictError as e:
        return error_response(e, 409)
    except Exception:
        current_app.logger.exception("Failed to create profile")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/profiles/<int:profile_id>/deactivate")
@require_auth
@require_shop
@require_permission("MANAGE_USERS")
def deactivate_profile(profile_id: int):
    try:
        profile = auth_service.deactivate_profile(g.session_context, g.shop_id, profile_id)
        return jsonify({"profile": profile.to_dict()}), 200
    except ValidationError as e:
        return error_response(e, 400)
    except PermissionDeniedError as e:
        return error_response(e, 403)
    except NotFoundError as e:
        return error_response(e, 404)
    except Exception:
        current_app.logger.exception("Failed to deactivate profile %s", profile_id)
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# CUSTOM ROLES
# =============================================================================

@admin_bp.get("/permissions")
@require_auth
@require_permission("MANAGE_USERS")
def list_permissions():
    return jsonify({
        "permissions": [
            {"code": code, "name": name, "description": desc, "category": category}
            for code, name, desc, category in PERMISSION_DEFINITIONS
        ]
    })


@admin_bp.get("/roles")
@require_auth
@require_shop
@require_permission("MANAGE_USERS")
def list_custom_roles():
    roles = auth_service.list_custom_roles(g.session_context, g.shop_id)
    return jsonify({"roles": [r.to_dict() for r in roles], "count": len(roles)})


@admin_bp.post("/roles")
@require_auth
@require_shop
@require_permission("MANAGE_USERS")
def create_custom_role():
    data = request.get_json(silent=True) or {}
    try:
        role = auth_service.create_custom_role(g.session_context, g.shop_id, data)
        return jsonify({"role": role.to_dict()}), 201
    except ValidationError as e:
        return error_response(e, 400)
    except PermissionDeniedError as e:
        return error_response(e, 403)
    except ConflictError as e:
        return error_response(e, 409)
    except Exception:
        current_app.logger.exception("Failed to create custom role")
        return jsonify({"error": "Internal server error"}), 500
