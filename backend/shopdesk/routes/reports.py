# Overview: Flask API routes for sales reports; daily stats, cashier activity and yearly sales.

"""
Report Routes

SECURITY: All routes require VIEW_REPORTS.

Days are UTC calendar days; ?date=YYYY-MM-DD defaults to today.
"""

from flask import Blueprint, Response, g, jsonify, request

from ..decorators import error_response, require_auth, require_permission, require_shop
from ..money import to_json_number
from ..services import export_service, transaction_service
from ..services.export_service import ExportError, XLSX_MIMETYPE
from ..validation import ValidationError, to_date
from shopdesk.time_utils import utcnow


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _day():
    return to_date(request.args.get("date"), "date") or utcnow().date()


@reports_bp.get("/daily")
@require_auth
@require_shop
@require_permission("VIEW_REPORTS")
def daily_stats_route():
    try:
        return jsonify(transaction_service.daily_stats(g.shop_id, _day()))
    except ValidationError as e:
        return error_response(e, 400)


@reports_bp.get("/cashiers")
@require_auth
@require_shop
@require_permission("VIEW_REPORTS")
def cashier_activity_route():
    try:
        day = _day()
    except ValidationError as e:
        return error_response(e, 400)
    return jsonify({"date": day.isoformat(), "cashiers": transaction_service.cashier_activity(g.shop_id, day)})


@reports_bp.get("/yearly")
@require_auth
@require_shop
@require_permission("VIEW_REPORTS")
def yearly_sales_route():
    """?year=2026 (default current year); ?format=xlsx downloads the sheet."""
    year = request.args.get("year", utcnow().year, type=int)
    months = transaction_service.yearly_sales(g.shop_id, year)

    if request.args.get("format") == "xlsx":
        try:
            payload, filename = export_service.export_to_excel(
                export_service.format_yearly_sales(months), f"yearly_sales_{year}", f"Sales {year}"
            )
        except ExportError as e:
            return error_response(e, 400)
        return Response(
            payload,
            mimetype=XLSX_MIMETYPE,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return jsonify({
        "year": year,
        "months": [dict(m, revenue=to_json_number(m["revenue"])) for m in months],
    })
