# Overview: Flask API routes for returns operations; parses input and returns JSON responses.

"""
Return Routes

SECURITY: All routes require MANAGE_RETURNS.

Returns do not restore stock or reduce the sale amount; they record what
came back and, once resolved, whether it was a mistaken sale or damaged.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import error_response, require_auth, require_permission, require_shop
from ..services import return_service, transaction_service
from ..services.return_service import ReturnError
from ..validation import NotFoundError, ValidationError, require_int


returns_bp = Blueprint("returns", __name__, url_prefix="/api/returns")


@returns_bp.post("")
@require_auth
@require_shop
@require_permission("MANAGE_RETURNS")
def create_return_route():
    """
    Record a return.

    Request body:
    {
        "transaction_id": "TXN-20260101-0001",  // code or numeric id
        "product_id": 12,
        "quantity": 1,
        "reason": "Wrong size",                 // optional
        "status": "pending"                     // optional: pending | Mistakenly | Damaged
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        transaction_ref = data.get("transaction_id") or data.get("transaction_code")
        if not transaction_ref:
            raise ValidationError("transaction_id is required")
        txn = transaction_service.get_transaction(g.shop_id, transaction_ref)
        record = return_service.create_return(
            g.session_context,
            g.shop_id,
            txn,
            require_int(data.get("product_id"), "product_id"),
            data.get("quantity", data.get("returned_quantity")),
            reason=data.get("reason") or data.get("return_reason"),
            status=data.get("status") or "pending",
        )
        return jsonify({"return": record.to_dict()}), 201
    except (ValidationError, ReturnError) as e:
        return error_response(e, 400)
    except NotFoundError as e:
        return error_response(e, 404)
    except Exception:
        current_app.logger.exception("Failed to create return")
        return jsonify({"error": "Internal server error"}), 500


@returns_bp.get("")
@require_auth
@require_shop
@require_permission("MANAGE_RETURNS")
def list_returns_route():
    returns = return_service.list_returns(
        g.shop_id,
        status=request.args.get("status"),
        transaction_code=request.args.get("transaction_id"),
    )
    return jsonify({"returns": [r.to_dict() for r in returns], "count": len(returns)})


@returns_bp.post("/<int:return_id>/status")
@require_auth
@require_shop
@require_permission("MANAGE_RETURNS")
def set_return_status_route(return_id: int):
    """Resolve a pending return: {"status": "Mistakenly" | "Damaged"}."""
    data = request.get_json(silent=True) or {}
    try:
        record = return_service.set_return_status(g.shop_id, return_id, data.get("status"))
        return jsonify({"return": record.to_dict()}), 200
    except (ValidationError, ReturnError) as e:
        return error_response(e, 400)
    except NotFoundError as e:
        return error_response(e, 404)
    except Exception:
        current_app.logger.exception("Failed to update return %s", return_id)
        return jsonify({"error": "Internal server error"}), 500
