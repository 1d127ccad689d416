# Overview: Flask API routes for supplier operations; parses input and returns JSON responses.

"""
Supplier Routes

SECURITY: All routes require authentication and MANAGE_SUPPLIERS.

Suppliers are scoped to one shop. Payments go through /payments only:
paid_amount, balance_amount and payment_status are never writable directly.
"""

from flask import Blueprint, Response, current_app, g, jsonify, request

from ..decorators import error_response, require_auth, require_permission, require_shop
from ..services import export_service, supplier_service
from ..services.export_service import ExportError, XLSX_MIMETYPE
from ..services.supplier_service import SupplierError
from ..validation import NotFoundError, ValidationError


suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


def _payload() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    data = dict(data)
    data.pop("shop_id", None)
    return data


@suppliers_bp.get("")
@require_auth
@require_shop
@require_permission("MANAGE_SUPPLIERS")
def list_suppliers_route():
    """
    Query parameters:
    - search: name or GST number
    - include_inactive: include deactivated suppliers (default: false)
    """
    include_inactive = request.args.get("include_inactive", "false").lower() == "true"
    suppliers = supplier_service.list_suppliers(
        g.shop_id,
        search=request.args.get("search"),
        include_inactive=include_inactive,
    )
    return jsonify({"suppliers": [s.to_dict() for s in suppliers], "count": len(suppliers)})


@suppliers_bp.post("")
@require_auth
@require_shop
@require_permission("MANAGE_SUPPLIERS")
def create_supplier_route():
    try:
        supplier = supplier_service.create_supplier(g.shop_id, _payload())
        current_app.logger.info("Supplier %s created in shop %s", supplier.id, g.shop_id)
        return jsonify({"supplier": supplier.to_dict()}), 201
    except ValidationError as e:
        return error_response(e, 400)
    except Exception:
        current_app.logger.exception("Failed to create supplier")
        return jsonify({"error": "Internal server error"}), 500


@suppliers_bp.get("/<int:supplier_id>")
@require_auth
@require_shop
@require_permission("MANAGE_SUPPLIERS")
def get_supplier_route(supplier_id: int):
    try:
        supplier = supplier_service.get_supplier(g.shop_id, supplier_id)
    except NotFoundError as e:
        return error_response(e, 404)
    return jsonify({"supplier": supplier.to_dict()})


@suppliers_bp.route("/<int:supplier_id>", methods=["PUT", "PATCH"])
@require_auth
@require_shop
@require_permission("MANAGE_SUPPLIERS")
def update_supplier_route(supplier_id: int):
    try:
        supplier = supplier_service.update_supplier(g.shop_id, supplier_id, _payload())
        return jsonify({"supplier": supplier.to_dict()})
    except ValidationError as e:
        return error_response(e, 400)
    except NotFoundError as e:
        return error_response(e, 404)
    except Exception:
        current_app.logger.exception("Failed to update supplier %s", supplier_id)
        return jsonify({"error": "Internal server error"}), 500


@suppliers_bp.post("/<int:supplier_id>/payments")
@require_auth
@require_shop
@require_permission("MANAGE_SUPPLIERS")
def record_payment_route(supplier_id: int):
    """Request body: {"amount": 1500, "payment_mode": "UPI"}"""
    data = request.get_json(silent=True) or {}
    try:
        supplier = supplier_service.record_payment(
            g.shop_id, supplier_id, data.get("amount"), data.get("payment_mode")
        )
        return jsonify({"supplier": supplier.to_dict()})
    except (ValidationError, SupplierError) as e:
        return error_response(e, 400)
    except NotFoundError as e:
        return error_response(e, 404)
    except Exception:
        current_app.logger.exception("Failed to record payment for supplier %s", supplier_id)
        return jsonify({"error": "Internal server error"}), 500


@suppliers_bp.post("/<int:supplier_id>/deactivate")
@require_auth
@require_shop
@require_permission("MANAGE_SUPPLIERS")
def deactivate_supplier_route(supplier_id: int):
    try:
        supplier = supplier_service.deactivate_supplier(g.shop_id, supplier_id)
        return jsonify({"supplier": supplier.to_dict()})
    except NotFoundError as e:
        return error_response(e, 404)


@suppliers_bp.get("/export")
@require_auth
@require_shop
@require_permission("MANAGE_SUPPLIERS")
def export_suppliers_route():
    suppliers = supplier_service.list_suppliers(g.shop_id, include_inactive=True)
    try:
        payload, filename = export_service.export_to_excel(
            export_service.format_suppliers(suppliers), "suppliers", "Suppliers"
        )
    except ExportError as e:
        return error_response(e, 400)
    return Response(
        payload,
        mimetype=XLSX_MIMETYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
