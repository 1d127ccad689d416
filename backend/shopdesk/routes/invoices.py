# Overview: Flask API routes for invoice PDFs generated from an uploaded purchase sheet.

"""
Invoice Routes

POST /api/invoices/render takes a spreadsheet upload (one row per product,
supplier and totals on the first row) and returns the invoice PDF in the
chosen template. Invoices for saved purchase entries and sales receipts
live under /api/purchases and /api/transactions.
"""

from flask import Blueprint, Response, current_app, jsonify, request

from ..decorators import error_response, require_auth, require_permission
from ..services import import_service, invoice_service
from ..services.import_service import ImportMapError
from ..services.invoice_service import InvoiceError


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


@invoices_bp.get("/templates")
@require_auth
def list_templates():
    return jsonify({
        "templates": list(invoice_service.iter_templates()),
        "default": invoice_service.DEFAULT_TEMPLATE,
    })


@invoices_bp.post("/render")
@require_auth
@require_permission("MANAGE_PURCHASES")
def render_invoice():
    """Form fields: file (.xlsx or .csv), template (business | modern | minimal | classic)."""
    if "file" not in request.files:
        return jsonify({"error": "No file provided"}), 400

    file = request.files["file"]
    try:
        rows = import_service.read_rows(file.stream, file.filename, file.mimetype)
        pdf = invoice_service.render_pdf(
            invoice_service.document_from_rows(rows),
            request.form.get("template") or request.args.get("template"),
        )
    except (ImportMapError, InvoiceError) as e:
        return error_response(e, 400)
    except Exception:
        current_app.logger.exception("Failed to render invoice from %s", file.filename)
        return jsonify({"error": "Internal server error"}), 500

    return Response(
        pdf,
        mimetype="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{invoice_service.upload_invoice_filename(file.filename)}"'
        },
    )
