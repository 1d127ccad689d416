# Overview: Flask API routes for the billing counter; bill editing and checkout.

"""
Billing routes.

The bill lives on the client. Every editing call posts the current lines
back, the server replays them against live products (prices and stock come
from the database, never from the client) and returns the edited bill with
the counter messages the edit produced.

Checkout returns 201 with the transaction even when some per-item stock
updates failed; in that case "warning" carries a single generic message and
"failed_items" lists the lines.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import error_response, require_auth, require_permission, require_shop
from ..services import bill_service, checkout_service, products_service
from ..services.bill_service import BillError, CollectingNotifier
from ..services.checkout_service import CheckoutError
from ..money import to_json_number
from ..validation import ValidationError, require_int, to_int

billing_bp = Blueprint("billing", __name__, url_prefix="/api/billing")

STOCK_WARNING = "Sale recorded, but stock could not be updated for some items. Please check inventory."


def _bill_response(bill, notifier: CollectingNotifier, changed: bool = True):
    return jsonify({
        "items": bill.to_json(),
        "total": to_json_number(bill.total()),
        "changed": changed,
        "messages": notifier.messages,
    })


def _load_bill(data: dict):
    notifier = CollectingNotifier()
    bill = bill_service.build_bill(g.shop_id, data.get("items") or [], notifier=notifier)
    # Replay messages ("Added X to bill") are not news to the client
    notifier.messages.clear()
    return bill, notifier


@billing_bp.post("/bill")
@require_auth
@require_shop
@require_permission("CREATE_SALE")
def preview_bill():
    """Validate posted lines against live products and return the priced bill."""
    data = request.get_json(silent=True) or {}
    try:
        bill, notifier = _load_bill(data)
        return _bill_response(bill, notifier)
    except (ValidationError, BillError) as e:
        return error_response(e, 400)


@billing_bp.post("/bill/add")
@require_auth
@require_shop
@require_permission("CREATE_SALE")
def add_to_bill():
    """
    Add a product by id or scanned barcode.

    Request body:
    {
        "items": [...],           // current bill lines
        "product_id": 12,         // or "barcode": "890..."
        "quantity": 1             // optional, default 1
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        bill, notifier = _load_bill(data)
        product = None
        if data.get("barcode"):
            product = products_service.lookup_by_barcode(g.shop_id, str(data["barcode"]))
        elif data.get("product_id") is not None:
            product = bill_service.shop_product_lookup(g.shop_id)(require_int(data.get("product_id"), "product_id"))
        if product is None:
            return jsonify({"error": "Product not found"}), 404
        changed = bill.add(product, data.get("quantity", 1))
        return _bill_response(bill, notifier, changed)
    except (ValidationError, BillError) as e:
        return error_response(e, 400)


@billing_bp.post("/bill/update")
@require_auth
@require_shop
@require_permission("CREATE_SALE")
def update_bill_line():
    """
    Change one line. "action" is one of set (default), increment, decrement,
    remove; set takes "quantity" and a quantity of 0 or less removes the line.
    """
    data = request.get_json(silent=True) or {}
    try:
        bill, notifier = _load_bill(data)
        index = to_int(data.get("index"), "index")
        if index is None:
            raise ValidationError("index is required")
        action = (data.get("action") or "set").lower()
        if action == "increment":
            changed = bill.increment(index)
        elif action == "decrement":
            changed = bill.decrement(index)
        elif action == "remove":
            bill.remove(index)
            changed = True
        elif action == "set":
            changed = bill.update_quantity(index, data.get("quantity"))
        else:
            raise ValidationError("action must be one of: decrement, increment, remove, set")
        return _bill_response(bill, notifier, changed)
    except (ValidationError, BillError) as e:
        return error_response(e, 400)


@billing_bp.post("/checkout")
@require_auth
@require_shop
@require_permission("CREATE_SALE")
def checkout_route():
    """
    Check out a bill.

    Request body:
    {
        "items": [{"product_id": 1, "quantity": 2}, ...],
        "payment": {"method": "cash", "amount_paid": 500}
    }
    """
    data = request.get_json(silent=True) or {}
    payment = data.get("payment") or {
        k: data.get(k) for k in ("method", "payment_method", "amount_paid", "reference") if k in data
    }
    try:
        result = checkout_service.checkout(g.session_context, g.shop_id, data.get("items"), payment)
    except (ValidationError, CheckoutError) as e:
        return error_response(e, 400)
    except Exception:
        current_app.logger.exception("Failed to check out bill")
        return jsonify({"error": "Internal server error"}), 500

    body = {
        "transaction": result.transaction.to_dict(),
        "failed_items": result.failed_items,
        "message": "Sale completed",
    }
    if result.has_failures:
        body["warning"] = STOCK_WARNING
    return jsonify(body), 201
