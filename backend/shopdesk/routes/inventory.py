# Overview: Flask API routes for damaged stock reports and inventory movement logs.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import error_response, require_auth, require_permission, require_shop
from ..services import inventory_service
from ..validation import NotFoundError, ValidationError, require_int


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.post("/damaged")
@require_auth
@require_shop
@require_permission("MANAGE_INVENTORY")
def record_damaged_route():
    """
    Report damaged stock. Product.stock is not changed.

    Request body: {"product_id": 3, "quantity": 2, "reason": "Broken seal"}
    """
    data = request.get_json(silent=True) or {}
    try:
        row = inventory_service.record_damaged(
            g.session_context,
            g.shop_id,
            require_int(data.get("product_id"), "product_id"),
            data.get("quantity"),
            data.get("reason"),
        )
        return jsonify({"damaged": row.to_dict()}), 201
    except ValidationError as e:
        return error_response(e, 400)
    except NotFoundError as e:
        return error_response(e, 404)
    except Exception:
        current_app.logger.exception("Failed to record damaged stock")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/damaged")
@require_auth
@require_shop
@require_permission("MANAGE_INVENTORY")
def list_damaged_route():
    rows = inventory_service.list_damaged(g.shop_id)
    return jsonify({"damaged": [r.to_dict() for r in rows], "count": len(rows)})


@inventory_bp.get("/logs")
@require_auth
@require_shop
@require_permission("MANAGE_INVENTORY")
def list_logs_route():
    """Query params: action (sale | purchase), product_id, limit (max 1000)."""
    limit = max(1, min(request.args.get("limit", 200, type=int), 1000))
    try:
        logs = inventory_service.list_inventory_logs(
            g.shop_id,
            action=request.args.get("action"),
            product_id=request.args.get("product_id", type=int),
            limit=limit,
        )
    except ValidationError as e:
        return error_response(e, 400)
    return jsonify({"logs": [log.to_dict() for log in logs], "count": len(logs)})
