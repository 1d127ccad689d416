# Overview: Flask API routes for communications operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import error_response, require_auth, require_permission, require_shop
from ..services import notification_service
from ..services.permission_service import PermissionDeniedError
from ..validation import NotFoundError, ValidationError


notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.get("")
@require_auth
@require_shop
@require_permission("VIEW_NOTIFICATIONS")
def list_notifications():
    unread_only = request.args.get("unread", "false").lower() == "true"
    rows = notification_service.list_for(g.session_context, g.shop_id, unread_only=unread_only)
    return jsonify({
        "notifications": [n.to_dict() for n in rows],
        "count": len(rows),
        "unread": notification_service.unread_count(g.session_context, g.shop_id),
    })


@notifications_bp.get("/unread-count")
@require_auth
@require_shop
@require_permission("VIEW_NOTIFICATIONS")
def unread_count():
    return jsonify({"unread": notification_service.unread_count(g.session_context, g.shop_id)})


@notifications_bp.post("")
@require_auth
@require_shop
@require_permission("SEND_NOTIFICATIONS")
def send_notification():
    """
    Request body:
    {
        "title": "Stock count",
        "message": "Count the dairy shelf before closing",
        "recipient_role": "cashier",   // optional; omit for everyone
        "recipient_id": 7              // optional; a single profile
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        row = notification_service.send_notification(g.session_context, g.shop_id, data)
        return jsonify({"notification": row.to_dict()}), 201
    except ValidationError as e:
        return error_response(e, 400)
    except PermissionDeniedError as e:
        return error_response(e, 403)
    except NotFoundError as e:
        return error_response(e, 404)
    except Exception:
        current_app.logger.exception("Failed to send notification")
        return jsonify({"error": "Internal server error"}), 500


@notifications_bp.post("/<int:notification_id>/read")
@require_auth
@require_shop
@require_permission("VIEW_NOTIFICATIONS")
def mark_read(notification_id: int):
    try:
        row = notification_service.mark_read(g.session_context, g.shop_id, notification_id)
        return jsonify({"notification": row.to_dict()})
    except NotFoundError as e:
        return error_response(e, 404)
