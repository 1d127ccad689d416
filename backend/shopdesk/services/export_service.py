# Overview: Spreadsheet export; record formatters plus the openpyxl writer.

"""
Export/Report Formatter

format_* functions only select and rename fields (plus date and currency
formatting); they hold no business logic. export_to_excel turns the rows
into an .xlsx workbook with auto-sized columns and a dated file name.
"""
from __future__ import annotations

import io
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Sequence

from flask import current_app, has_app_context
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from ..money import quantize_money
from . import unit_service
from shopdesk.time_utils import utcnow


MIN_WIDTH = 8
MAX_WIDTH = 60

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class ExportError(Exception):
    """Raised when there is nothing to export."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _money(value: Any) -> float:
    return float(quantize_money(Decimal(value or 0)))


def _qty(value: Any) -> float | int:
    d = Decimal(value or 0)
    return int(d) if d == d.to_integral_value() else float(d)


def _date(value: Any) -> str:
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d %H:%M") if hasattr(value, "hour") else value.isoformat()


def format_products(products: Iterable[Any]) -> list[dict]:
    return [
        {
            "Name": p.name,
            "Category": p.category or "",
            "Price": _money(p.price),
            "Stock": _qty(p.stock),
            "Unit": p.unit_type or unit_service.DEFAULT_UNIT,
            "SKU": p.sku or "",
            "Barcode": p.effective_barcode,
        }
        for p in products
    ]


def format_barcodes(products: Iterable[Any]) -> list[dict]:
    return [
        {
            "Product Name": p.name,
            "SKU": p.sku or "",
            "Barcode": p.effective_barcode,
            "Category": p.category or "",
            "Price": _money(p.price),
        }
        for p in products
    ]


def format_transactions(transactions: Iterable[Any]) -> list[dict]:
    rows = []
    for t in transactions:
        items = t.items or []
        rows.append({
            "Transaction ID": t.transaction_code,
            "Date": _date(t.created_at),
            "Amount": _money(t.amount),
            "Payment Method": (t.payment_method or "").upper(),
            "Items": ", ".join(
                f"{i.get('name', '')} x {unit_service.format_quantity(i.get('quantity', 0), i.get('unit_type', 'piece'))}"
                for i in items
            ),
        })
    return rows


def format_yearly_sales(months: Iterable[dict]) -> list[dict]:
    return [
        {
            "Month": m["month"],
            "Transactions": m["transactions"],
            "Revenue": _money(m["revenue"]),
        }
        for m in months
    ]


def format_purchase_entries(entries: Iterable[Any]) -> list[dict]:
    return [
        {
            "Supplier": e.supplier_name,
            "Bill No": e.bill_no or "",
            "Purchase Date": _date(e.purchase_date),
            "Bill Date": _date(e.supplier_bill_date),
            "Gross Amount": _money(e.gross_amount),
            "Total GST": _money(e.total_gst),
            "Net Amount": _money(e.net_amount),
            "Round Off": _money(e.round_off_amount),
            "Paid": _money(e.paid_amount),
            "Balance": _money(e.balance_amount),
            "Payment Status": e.payment_status,
            "Status": e.invoice_type,
        }
        for e in entries
    ]


def format_suppliers(suppliers: Iterable[Any]) -> list[dict]:
    return [
        {
            "Name": s.name,
            "Contact Person": s.contact_person or "",
            "Phone": s.phone or "",
            "Email": s.email or "",
            "GST Number": s.gst_number or "",
            "City": s.city or "",
            "State": s.state or "",
            "Credit Days": s.credit_days,
            "Credit Limit": _money(s.credit_limit),
            "Outstanding": _money(s.outstanding_balance),
            "Payment Status": s.payment_status,
            "Due Date": _date(s.due_date),
        }
        for s in suppliers
    ]


def _column_width(header: str, values: Iterable[Any]) -> int:
    longest = max([len(str(header))] + [len(str(v)) for v in values if v is not None])
    return max(MIN_WIDTH, min(MAX_WIDTH, longest + 2))


def build_workbook(
    rows: Sequence[dict],
    sheet_name: str = "Sheet1",
    widths: dict[str, int] | None = None,
) -> Workbook:
    """Header row from the first row's keys; later rows may omit keys."""
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name[:31]

    headers = list(rows[0].keys())
    header_font = Font(bold=True)
    header_fill = PatternFill("solid", fgColor="DDEBF7")

    for col, title in enumerate(headers, start=1):
        cell = ws.cell(row=1, column=col, value=title)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center", vertical="center")

    for r, row in enumerate(rows, start=2):
        for col, key in enumerate(headers, start=1):
            ws.cell(row=r, column=col, value=row.get(key))

    for col, key in enumerate(headers, start=1):
        width = (widths or {}).get(key) or _column_width(key, (row.get(key) for row in rows))
        ws.column_dimensions[get_column_letter(col)].width = width

    return wb


def workbook_bytes(wb: Workbook) -> bytes:
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def export_filename(file_stem: str, day: date | None = None) -> str:
    fmt = current_app.config.get("EXPORT_DATE_FORMAT", "%Y-%m-%d") if has_app_context() else "%Y-%m-%d"
    day = day or utcnow().date()
    return f"{file_stem}_{day.strftime(fmt)}.xlsx"


def export_to_excel(
    rows: Sequence[dict],
    file_stem: str = "export",
    sheet_name: str = "Sheet1",
    day: date | None = None,
) -> tuple[bytes, str]:
    """Returns (xlsx bytes, "<stem>_<date>.xlsx"). Empty input generates nothing."""
    if not rows:
        raise ExportError("No data to export")
    wb = build_workbook(rows, sheet_name)
    return workbook_bytes(wb), export_filename(file_stem, day)
