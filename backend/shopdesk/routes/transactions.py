# Overview: Flask API routes for completed transactions and their receipts.

from flask import Blueprint, Response, current_app, g, jsonify, request

from ..decorators import error_response, require_auth, require_permission, require_shop
from ..extensions import db
from ..models import Shop
from ..services import export_service, invoice_service, transaction_service
from ..services.export_service import ExportError, XLSX_MIMETYPE
from ..services.invoice_service import InvoiceError
from ..validation import NotFoundError, ValidationError, to_int
from shopdesk.time_utils import parse_iso_datetime


transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


def _filters() -> dict:
    try:
        start = parse_iso_datetime(request.args.get("start"))
        end = parse_iso_datetime(request.args.get("end"))
    except ValueError:
        raise ValidationError("start and end must be ISO-8601 datetimes")
    return {
        "start": start,
        "end": end,
        "cashier_id": to_int(request.args.get("cashier_id"), "cashier_id"),
        "payment_method": request.args.get("payment_method"),
    }


@transactions_bp.get("")
@require_auth
@require_shop
@require_permission("VIEW_TRANSACTIONS")
def list_transactions():
    """
    Query params:
    - start / end: ISO-8601 bounds on created_at (end exclusive)
    - cashier_id, payment_method: exact filters
    - limit: default 100, max 500
    """
    limit = max(1, min(request.args.get("limit", 100, type=int), 500))
    try:
        txns = transaction_service.list_transactions(g.shop_id, limit=limit, **_filters())
    except ValidationError as e:
        return error_response(e, 400)
    return jsonify({"transactions": [t.to_dict() for t in txns], "count": len(txns)})


@transactions_bp.get("/<id_or_code>")
@require_auth
@require_shop
@require_permission("VIEW_TRANSACTIONS")
def get_transaction(id_or_code: str):
    """Look up by numeric id or by code (TXN-YYYYMMDD-NNNN)."""
    try:
        txn = transaction_service.get_transaction(g.shop_id, id_or_code)
    except NotFoundError as e:
        return error_response(e, 404)
    body = txn.to_dict()
    body["returns"] = [r.to_dict() for r in txn.returns]
    return jsonify({"transaction": body})


@transactions_bp.get("/<id_or_code>/receipt.pdf")
@require_auth
@require_shop
@require_permission("VIEW_TRANSACTIONS")
def transaction_receipt(id_or_code: str):
    try:
        txn = transaction_service.get_transaction(g.shop_id, id_or_code)
        shop = db.session.get(Shop, g.shop_id)
        pdf = invoice_service.render_pdf(
            invoice_service.document_from_transaction(txn, shop),
            request.args.get("template"),
        )
    except NotFoundError as e:
        return error_response(e, 404)
    except (InvoiceError, ValidationError) as e:
        return error_response(e, 400)
    except Exception:
        current_app.logger.exception("Failed to render receipt for %s", id_or_code)
        return jsonify({"error": "Internal server error"}), 500

    return Response(
        pdf,
        mimetype="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{invoice_service.receipt_filename(txn)}"'},
    )


@transactions_bp.get("/export")
@require_auth
@require_shop
@require_permission("VIEW_REPORTS")
def export_transactions():
    try:
        txns = transaction_service.list_transactions(g.shop_id, **_filters())
        payload, filename = export_service.export_to_excel(
            export_service.format_transactions(txns), "transactions", "Transactions"
        )
    except (ValidationError, ExportError) as e:
        return error_response(e, 400)
    return Response(
        payload,
        mimetype=XLSX_MIMETYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
