# Overview: Flask API routes for purchase entries; spreadsheet import, save, transfer and invoices.

"""
Purchase Entry Routes

SECURITY: All routes require authentication and MANAGE_PURCHASES.

Import flow:
1. POST /import with a spreadsheet (and the current draft) returns the
   merged draft plus per-row errors
2. POST /totals previews the calculator for a draft
3. POST "" saves the purchase entry (status Purchase_Inventory)
4. POST /<id>/transfer pushes the lines into products (one way)
"""

import json

from flask import Blueprint, Response, current_app, g, jsonify, request

from ..decorators import error_response, require_auth, require_permission, require_shop
from ..services import export_service, import_service, invoice_service, purchase_service
from ..services.export_service import ExportError, XLSX_MIMETYPE
from ..services.import_service import ImportMapError, PurchaseDraft
from ..services.invoice_service import InvoiceError
from ..services.purchase_service import PurchaseError
from ..validation import NotFoundError, ValidationError, to_bool


purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


@purchases_bp.post("/import")
@require_auth
@require_shop
@require_permission("MANAGE_PURCHASES")
def import_purchase_sheet():
    """
    Map an uploaded .xlsx/.csv into purchase lines.

    Form fields:
    - file: the spreadsheet (required)
    - draft: JSON list of the current draft lines (optional)
    - apply_gst: "false" to import without GST (default true)
    """
    if "file" not in request.files:
        return jsonify({"error": "No file provided"}), 400

    file = request.files["file"]
    apply_gst = to_bool(request.form.get("apply_gst"))
    try:
        raw_draft = request.form.get("draft")
        draft = PurchaseDraft.from_payload(json.loads(raw_draft) if raw_draft else None, apply_gst=apply_gst)
        result = import_service.import_file(file.stream, file.filename, file.mimetype, apply_gst=apply_gst)
        draft.merge(result)
    except json.JSONDecodeError:
        return jsonify({"error": "draft must be valid JSON"}), 400
    except (ImportMapError, ValidationError) as e:
        return error_response(e, 400)
    except Exception:
        current_app.logger.exception("Failed to import purchase sheet")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info(
        "Purchase sheet %s imported for shop %s: %d accepted, %d rejected",
        file.filename, g.shop_id, result.accepted, result.rejected,
    )
    return jsonify({"import": result.to_dict(), "draft": draft.to_dict()}), 200


@purchases_bp.post("/totals")
@require_auth
@require_shop
@require_permission("MANAGE_PURCHASES")
def preview_purchase_totals():
    """Request body: {"lines": [...], "discount": 5, "add_charges": 2, "apply_gst": true}"""
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(purchase_service.preview_totals(data))
    except ValidationError as e:
        return error_response(e, 400)


@purchases_bp.get("")
@require_auth
@require_shop
@require_permission("MANAGE_PURCHASES")
def list_purchase_entries():
    entries = purchase_service.list_purchase_entries(
        g.shop_id,
        search=request.args.get("search"),
        invoice_type=request.args.get("invoice_type"),
    )
    return jsonify({"purchase_entries": [e.to_dict() for e in entries], "count": len(entries)})


@purchases_bp.post("")
@require_auth
@require_shop
@require_permission("MANAGE_PURCHASES")
def create_purchase_entry():
    """
    Save a purchase entry.

    Request body:
    {
        "supplier_id": 4,                  // required
        "state": "Karnataka",              // required
        "bill_no": "INV-881",
        "purchase_date": "2026-01-15",     // default today
        "supplier_bill_date": "2026-01-14",
        "discount": 5, "add_charges": 2,   // percentages
        "paid_amount": 1000,
        "payment_mode": "UPI",
        "apply_gst": true,
        "lines": [...]                     // at least one
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        entry = purchase_service.create_purchase_entry(g.session_context, g.shop_id, data)
        return jsonify({"purchase_entry": entry.to_dict(include_products=True)}), 201
    except (ValidationError, PurchaseError) as e:
        return error_response(e, 400)
    except NotFoundError as e:
        return error_response(e, 404)
    except Exception:
        current_app.logger.exception("Failed to create purchase entry")
        return jsonify({"error": "Internal server error"}), 500


@purchases_bp.get("/<int:entry_id>")
@require_auth
@require_shop
@require_permission("MANAGE_PURCHASES")
def get_purchase_entry(entry_id: int):
    try:
        entry = purchase_service.get_purchase_entry(g.shop_id, entry_id)
    except NotFoundError as e:
        return error_response(e, 404)
    return jsonify({"purchase_entry": entry.to_dict(include_products=True)})


@purchases_bp.post("/<int:entry_id>/transfer")
@require_auth
@require_shop
@require_permission("MANAGE_PURCHASES")
def transfer_purchase_entry(entry_id: int):
    try:
        entry, summary = purchase_service.transfer_to_inventory(g.session_context, g.shop_id, entry_id)
        return jsonify({"purchase_entry": entry.to_dict(), "products": summary}), 200
    except PurchaseError as e:
        return error_response(e, 409)
    except NotFoundError as e:
        return error_response(e, 404)
    except Exception:
        current_app.logger.exception("Failed to transfer purchase entry %s", entry_id)
        return jsonify({"error": "Internal server error"}), 500


@purchases_bp.get("/<int:entry_id>/invoice.pdf")
@require_auth
@require_shop
@require_permission("MANAGE_PURCHASES")
def purchase_invoice(entry_id: int):
    try:
        entry = purchase_service.get_purchase_entry(g.shop_id, entry_id)
        pdf = invoice_service.render_pdf(
            invoice_service.document_from_purchase(entry),
            request.args.get("template"),
        )
    except NotFoundError as e:
        return error_response(e, 404)
    except InvoiceError as e:
        return error_response(e, 400)
    return Response(
        pdf,
        mimetype="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{invoice_service.purchase_invoice_filename(entry)}"'},
    )


@purchases_bp.get("/export")
@require_auth
@require_shop
@require_permission("MANAGE_PURCHASES")
def export_purchase_entries():
    entries = purchase_service.list_purchase_entries(g.shop_id, search=request.args.get("search"))
    try:
        payload, filename = export_service.export_to_excel(
            export_service.format_purchase_entries(entries), "purchase_entries", "Purchases"
        )
    except ExportError as e:
        return error_response(e, 400)
    return Response(
        payload,
        mimetype=XLSX_MIMETYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
