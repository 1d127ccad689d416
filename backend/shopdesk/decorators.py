# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import g, jsonify, request

from .services import permission_service, session_service, tenant_service
from .services.permission_service import PermissionDeniedError
from .services.tenant_service import TenantAccessError
from .validation import ValidationError


def _is_authenticated() -> bool:
    return hasattr(g, "current_user") and hasattr(g, "session_context")


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def error_response(e: Exception, status: int = 400):
    """JSON body for a service error: {"error": message, "details": {...}}."""
    return jsonify({"error": str(e), "details": getattr(e, "details", {}) or {}}), status


def requested_shop_id():
    """shop_id from the query string, the JSON body or the X-Shop-Id header."""
    if request.args.get("shop_id"):
        return request.args.get("shop_id")
    if request.is_json:
        data = request.get_json(silent=True)
        if isinstance(data, dict) and data.get("shop_id") is not None:
            return data.get("shop_id")
    if request.form.get("shop_id"):
        return request.form.get("shop_id")
    return request.headers.get("X-Shop-Id")


def require_auth(f):
    """
    Require authentication and establish the caller's context.

    Sets the following Flask g attributes:
    - g.current_user: the authenticated Profile
    - g.session_context: the SessionContext passed to services
    - g.shop_id: the shop captured at login (None for owners who logged in
      without one)

    Returns 401 if the header is missing, or the token is unknown, expired,
    idle, or belongs to a deactivated profile or shop.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.profile
        g.session_context = context
        g.shop_id = context.shop_id

        return f(*args, **kwargs)

    return decorated_function


def require_shop(f):
    """
    Resolve the shop the request acts on into g.shop_id.

    Store-scoped users always act on their own shop; owners name one of
    theirs. Anything else is answered as if the shop did not exist.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return jsonify({"error": "Authentication required"}), 401
        try:
            g.shop_id = tenant_service.resolve_shop_id(g.session_context, requested_shop_id())
        except ValidationError as e:
            return error_response(e, 400)
        except TenantAccessError as e:
            return error_response(e, 400 if "owned_shop_ids" in e.details else 404)
        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require a permission code (see shopdesk.permissions)."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            try:
                permission_service.require_permission(g.session_context, permission_code, resource=request.path)
            except PermissionDeniedError as e:
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                    "message": str(e),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_role(*roles: str):
    """Require one of ``roles`` or a higher-ranked role."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            try:
                permission_service.require_role(g.session_context, *roles)
            except PermissionDeniedError as e:
                return jsonify({
                    "error": "Permission denied",
                    "required_roles": list(roles),
                    "message": str(e),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
