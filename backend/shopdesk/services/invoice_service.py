# Overview: Invoice and receipt PDFs rendered with reportlab.

"""
Invoice PDF rendering.

An InvoiceDocument is built from one of three sources (an uploaded
purchase sheet, a saved purchase entry, or a sales transaction) and then
drawn in one of four templates. Pages have a fixed A4 height: line rows
flow onto a new page, with the table header repeated, whenever the next
row would cross the bottom margin.

Amounts are drawn as "Rs." because the standard PDF fonts have no rupee
glyph.
"""
from __future__ import annotations

import io
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from ..money import quantize_money
from ..validation import ValidationError, to_decimal
from . import unit_service


PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 36
ROW_HEIGHT = 16
FOOTER_SPACE = 40


class InvoiceError(Exception):
    """Raised when an invoice cannot be rendered from its source."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass(frozen=True)
class InvoiceTemplate:
    name: str
    font: str
    bold_font: str
    accent: Any
    header_fill: Any | None
    banner: bool = False
    zebra: bool = False


TEMPLATES = {
    "business": InvoiceTemplate(
        "business", "Helvetica", "Helvetica-Bold",
        accent=colors.HexColor("#1F2937"), header_fill=colors.HexColor("#F3F4F6"), zebra=True,
    ),
    "modern": InvoiceTemplate(
        "modern", "Helvetica", "Helvetica-Bold",
        accent=colors.HexColor("#4F46E5"), header_fill=colors.HexColor("#E0E7FF"), banner=True,
    ),
    "minimal": InvoiceTemplate(
        "minimal", "Helvetica", "Helvetica-Bold",
        accent=colors.black, header_fill=None,
    ),
    "classic": InvoiceTemplate(
        "classic", "Times-Roman", "Times-Bold",
        accent=colors.HexColor("#374151"), header_fill=colors.HexColor("#EDE9E3"),
    ),
}
DEFAULT_TEMPLATE = "business"


@dataclass
class InvoiceDocument:
    title: str
    party: list[str] = field(default_factory=list)
    meta: list[tuple[str, str]] = field(default_factory=list)
    columns: list[tuple[str, float, str]] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)
    totals: list[tuple[str, Decimal]] = field(default_factory=list)
    footer: str | None = None


def rupees(value: Any) -> str:
    amount = quantize_money(to_decimal(value, "amount", default=Decimal("0")) or Decimal("0"))
    return f"Rs. {amount:,.2f}"


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if hasattr(value, "strftime"):
        return value.strftime("%Y-%m-%d")
    return str(value).strip()


# Column layout: (title, width as a share of the printable width, alignment)
PURCHASE_COLUMNS = [
    ("Product", 0.24, "left"),
    ("Category", 0.14, "left"),
    ("Qty", 0.10, "right"),
    ("MRP", 0.12, "right"),
    ("Stock Price", 0.13, "right"),
    ("Selling Price", 0.13, "right"),
    ("Amount", 0.14, "right"),
]

RECEIPT_COLUMNS = [
    ("Item", 0.40, "left"),
    ("Qty", 0.16, "right"),
    ("Price", 0.22, "right"),
    ("Total", 0.22, "right"),
]


# =============================================================================
# SOURCES
# =============================================================================

def document_from_rows(rows: list[dict]) -> InvoiceDocument:
    """
    Invoice from an uploaded purchase sheet.

    Supplier, bill and total cells are read from the first row; every row
    contributes one product line (amount = Stock x Selling Price).
    """
    if not rows:
        raise InvoiceError("The spreadsheet is empty")
    first = rows[0]

    def get(key: str) -> str:
        return _cell(first.get(key))

    party = [p for p in (
        get("Supplier"),
        f"GST No: {get('GST No')}" if get("GST No") else "",
        get("Address"),
        ", ".join(x for x in (get("City"), get("State"), get("Pincode")) if x),
        " / ".join(x for x in (get("Contact Person"), get("Contact"), get("Email")) if x),
    ) if p]
    meta = [(label, get(key)) for label, key in (
        ("Bill No", "Bill No"),
        ("Purchase Date", "Purchase Date"),
        ("Due Date", "Due Date"),
        ("Credit Days", "Credit Days"),
        ("Payment Status", "Payment Status"),
    ) if get(key)]

    lines = []
    for index, row in enumerate(rows, start=1):
        try:
            stock = to_decimal(row.get("Stock"), "Stock", default=Decimal("0"))
            price = to_decimal(row.get("Selling Price"), "Selling Price", default=Decimal("0"))
            mrp = rupees(row.get("MRP"))
            stock_price = rupees(row.get("Stock Price"))
        except ValidationError as e:
            raise InvoiceError(f"Row {index}: {e}", {"row": index})
        unit = _cell(row.get("Unit Type")) or unit_service.DEFAULT_UNIT
        lines.append([
            _cell(row.get("Product Name")),
            _cell(row.get("Category")),
            f"{_cell(row.get('Stock'))} {unit}".strip(),
            mrp,
            stock_price,
            rupees(price),
            rupees(stock * price),
        ])

    totals = []
    for label, key in (
        ("Gross Amount", "Gross Amount"),
        ("Discount", "Discount"),
        ("Additional Charges", "Additional Charges"),
        ("Round Off", "Round Off"),
        ("Net Amount", "Net Amount"),
    ):
        try:
            totals.append((label, to_decimal(first.get(key), key, default=Decimal("0"))))
        except ValidationError as e:
            raise InvoiceError(str(e), {"field": key})

    return InvoiceDocument(
        title="PURCHASE INVOICE",
        party=party,
        meta=meta,
        columns=PURCHASE_COLUMNS,
        rows=lines,
        totals=totals,
    )


def document_from_purchase(entry: Any) -> InvoiceDocument:
    supplier = entry.supplier
    party = [entry.supplier_name]
    if entry.gst_no:
        party.append(f"GST No: {entry.gst_no}")
    if supplier is not None:
        if supplier.address:
            party.append(supplier.address)
        place = ", ".join(x for x in (supplier.city, supplier.state or entry.state, supplier.pincode) if x)
        if place:
            party.append(place)
    elif entry.state:
        party.append(entry.state)

    meta = [
        ("Bill No", entry.bill_no or f"PE-{entry.id}"),
        ("Purchase Date", _cell(entry.purchase_date)),
        ("Bill Date", _cell(entry.supplier_bill_date)),
        ("Payment Status", entry.payment_status or ""),
    ]
    if supplier is not None and supplier.due_date:
        meta.insert(3, ("Due Date", _cell(supplier.due_date)))

    rows = [
        [
            line.name,
            line.category or "",
            unit_service.format_quantity(line.stock, line.unit_type),
            rupees(line.mrp),
            rupees(line.stock_price),
            rupees(line.price),
            rupees(line.total_amount),
        ]
        for line in entry.products
    ]

    return InvoiceDocument(
        title="PURCHASE INVOICE",
        party=party,
        meta=meta,
        columns=PURCHASE_COLUMNS,
        rows=rows,
        totals=[
            ("Gross Amount", Decimal(entry.gross_amount or 0)),
            ("Total GST", Decimal(entry.total_gst or 0)),
            (f"Discount ({entry.discount or 0}%)", Decimal(entry.discount_amount or 0)),
            (f"Additional Charges ({entry.add_charges or 0}%)", Decimal(entry.surcharge_amount or 0)),
            ("Net Amount", Decimal(entry.net_amount or 0)),
            ("Round Off", Decimal(entry.round_off_amount or 0)),
            ("Paid", Decimal(entry.paid_amount or 0)),
            ("Balance", Decimal(entry.balance_amount or 0)),
        ],
    )


def document_from_transaction(txn: Any, shop: Any) -> InvoiceDocument:
    party = [shop.name]
    if shop.address:
        party.append(shop.address)
    if shop.phone:
        party.append(f"Phone: {shop.phone}")
    if shop.gst_number:
        party.append(f"GSTIN: {shop.gst_number}")

    details = txn.payment_details or {}
    meta = [
        ("Receipt No", txn.transaction_code),
        ("Date", txn.created_at.strftime("%Y-%m-%d %H:%M") if txn.created_at else ""),
        ("Payment", (txn.payment_method or "").upper()),
    ]
    if txn.cashier is not None:
        meta.append(("Cashier", txn.cashier.full_name or txn.cashier.email))

    rows = []
    for item in txn.items or []:
        qty = to_decimal(item.get("quantity"), "quantity", default=Decimal("0"))
        price = to_decimal(item.get("price"), "price", default=Decimal("0"))
        rows.append([
            item.get("name", ""),
            unit_service.format_quantity(qty, item.get("unit_type") or unit_service.DEFAULT_UNIT),
            rupees(price),
            rupees(qty * price),
        ])

    totals = [("Total", Decimal(txn.amount or 0))]
    if details.get("amount_paid") is not None:
        totals.append(("Amount Paid", to_decimal(details["amount_paid"], "amount_paid")))
    if details.get("change_amount") is not None:
        totals.append(("Change", to_decimal(details["change_amount"], "change_amount")))

    return InvoiceDocument(
        title="RECEIPT",
        party=party,
        meta=meta,
        columns=RECEIPT_COLUMNS,
        rows=rows,
        totals=totals,
        footer="Thank you for shopping with us!",
    )


# =============================================================================
# RENDERING
# =============================================================================

def get_template(name: str | None) -> InvoiceTemplate:
    key = (name or DEFAULT_TEMPLATE).strip().lower()
    if key not in TEMPLATES:
        raise InvoiceError(f"Unknown template: {name}", {"templates": sorted(TEMPLATES)})
    return TEMPLATES[key]


def _fit(c: canvas.Canvas, text: str, font: str, size: float, width: float) -> str:
    if c.stringWidth(text, font, size) <= width:
        return text
    while text and c.stringWidth(text + "...", font, size) > width:
        text = text[:-1]
    return text + "..."


class _Renderer:
    def __init__(self, doc: InvoiceDocument, template: InvoiceTemplate):
        self.doc = doc
        self.t = template
        self.buf = io.BytesIO()
        self.c = canvas.Canvas(self.buf, pagesize=A4)
        self.c.setTitle(doc.title.title())
        self.width = PAGE_WIDTH - 2 * MARGIN
        self.page = 1

    def _header(self) -> float:
        c, t = self.c, self.t
        y = PAGE_HEIGHT - MARGIN

        if t.banner:
            c.setFillColor(t.accent)
            c.rect(0, PAGE_HEIGHT - MARGIN - 40, PAGE_WIDTH, MARGIN + 40, stroke=0, fill=1)
            c.setFillColor(colors.white)
        else:
            c.setFillColor(t.accent)
        c.setFont(t.bold_font, 18)
        c.drawRightString(PAGE_WIDTH - MARGIN, y - 16, self.doc.title)

        c.setFont(t.bold_font, 13)
        c.drawString(MARGIN, y - 16, _fit(c, self.doc.party[0] if self.doc.party else "", t.bold_font, 13, self.width * 0.55))
        c.setFillColor(colors.black)
        y -= 56

        c.setFont(t.font, 9)
        left_y = y
        for line in self.doc.party[1:]:
            c.drawString(MARGIN, left_y, _fit(c, line, t.font, 9, self.width * 0.55))
            left_y -= 14
        right_y = y
        for label, value in self.doc.meta:
            c.setFont(t.bold_font, 9)
            c.drawRightString(PAGE_WIDTH - MARGIN - 110, right_y, f"{label}:")
            c.setFont(t.font, 9)
            c.drawRightString(PAGE_WIDTH - MARGIN, right_y, _fit(c, value, t.font, 9, 105))
            right_y -= 14

        y = min(left_y, right_y) - 10
        c.setStrokeColor(t.accent)
        c.line(MARGIN, y, PAGE_WIDTH - MARGIN, y)
        return y - 8

    def _table_header(self, y: float) -> float:
        c, t = self.c, self.t
        if t.header_fill is not None:
            c.setFillColor(t.header_fill)
            c.rect(MARGIN, y - ROW_HEIGHT + 4, self.width, ROW_HEIGHT, stroke=0, fill=1)
        c.setFillColor(t.accent)
        c.setFont(t.bold_font, 9)
        self._draw_row(y - 8, [title for title, _, _ in self.doc.columns], t.bold_font)
        c.setFillColor(colors.black)
        if t.header_fill is None:
            c.line(MARGIN, y - ROW_HEIGHT + 4, PAGE_WIDTH - MARGIN, y - ROW_HEIGHT + 4)
        return y - ROW_HEIGHT

    def _draw_row(self, y: float, cells: list[str], font: str) -> None:
        x = MARGIN
        for (title, share, align), value in zip(self.doc.columns, cells):
            col_width = self.width * share
            text = _fit(self.c, value, font, 9, col_width - 8)
            if align == "right":
                self.c.drawRightString(x + col_width - 4, y, text)
            else:
                self.c.drawString(x + 4, y, text)
            x += col_width

    def _page_footer(self) -> None:
        self.c.setFont(self.t.font, 8)
        self.c.setFillColor(colors.grey)
        self.c.drawCentredString(PAGE_WIDTH / 2, MARGIN / 2, f"Page {self.page}")
        self.c.setFillColor(colors.black)

    def _new_page(self) -> float:
        self._page_footer()
        self.c.showPage()
        self.page += 1
        y = PAGE_HEIGHT - MARGIN
        self.c.setFont(self.t.bold_font, 10)
        self.c.drawString(MARGIN, y - 10, f"{self.doc.title} (continued)")
        return self._table_header(y - 22)

    def render(self) -> bytes:
        c, t = self.c, self.t
        bottom = MARGIN + FOOTER_SPACE

        y = self._table_header(self._header())
        c.setFont(t.font, 9)
        for index, cells in enumerate(self.doc.rows):
            if y - ROW_HEIGHT < bottom:
                y = self._new_page()
                c.setFont(t.font, 9)
            if t.zebra and index % 2 == 1:
                c.setFillColor(colors.HexColor("#FAFAFA"))
                c.rect(MARGIN, y - ROW_HEIGHT + 4, self.width, ROW_HEIGHT, stroke=0, fill=1)
                c.setFillColor(colors.black)
            self._draw_row(y - 8, cells, t.font)
            y -= ROW_HEIGHT

        needed = (len(self.doc.totals) + 1) * 14 + (20 if self.doc.footer else 0)
        if y - needed < bottom:
            self._page_footer()
            c.showPage()
            self.page += 1
            y = PAGE_HEIGHT - MARGIN

        c.setStrokeColor(t.accent)
        c.line(PAGE_WIDTH / 2, y, PAGE_WIDTH - MARGIN, y)
        y -= 16
        for i, (label, amount) in enumerate(self.doc.totals):
            last = i == len(self.doc.totals) - 1
            c.setFont(t.bold_font if last else t.font, 10)
            c.drawRightString(PAGE_WIDTH - MARGIN - 120, y, f"{label}:")
            c.drawRightString(PAGE_WIDTH - MARGIN, y, rupees(amount))
            y -= 14

        if self.doc.footer:
            c.setFont(t.font, 9)
            c.drawCentredString(PAGE_WIDTH / 2, y - 12, self.doc.footer)

        self._page_footer()
        c.showPage()
        c.save()
        return self.buf.getvalue()


def render_pdf(doc: InvoiceDocument, template: str | None = None) -> bytes:
    return _Renderer(doc, get_template(template)).render()


# =============================================================================
# FILENAMES
# =============================================================================

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def _safe(text: str) -> str:
    return _UNSAFE.sub("-", text.strip()).strip("-") or "document"


def upload_invoice_filename(source_filename: str | None) -> str:
    stem = (source_filename or "").rsplit("/", 1)[-1].split(".")[0]
    return f"Invoice-{_safe(stem)}.pdf"


def purchase_invoice_filename(entry: Any) -> str:
    return f"Invoice-{_safe(entry.supplier_name or 'supplier')}-{_cell(entry.purchase_date) or 'undated'}.pdf"


def receipt_filename(txn: Any) -> str:
    return f"receipt-{txn.transaction_code}.pdf"


def iter_templates() -> Iterable[dict]:
    for name, t in TEMPLATES.items():
        yield {"id": name, "name": name.title(), "font": t.font}
