# Overview: Bulk import mapper; spreadsheet rows to purchase lines, and the purchase draft they merge into.

"""
Bulk Import Mapper

Reads an uploaded product sheet (.xlsx or .csv), maps each row to a typed
PurchaseLine and computes its GST split. Rows that fail the checks are
counted and reported with their 1-based row number instead of aborting the
upload.

Rejected when:
- Product Name or Category is blank
- Stock or Selling Price is missing or not a positive number
- an optional number column holds a negative or non-numeric value
- Unit Type is not a known unit

The draft is re-entrant: every upload is merged into the existing
PurchaseDraft keyed by the generated line id.
"""
from __future__ import annotations

import csv
import io
import uuid
import zipfile
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, BinaryIO, Iterable

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from ..money import to_json_number
from ..validation import ValidationError, non_negative, to_decimal, to_text
from . import export_service, tax_service, unit_service


XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLS_MIMETYPE = "application/vnd.ms-excel"
CSV_MIMETYPE = "text/csv"

ACCEPTED_MIME_TYPES = (XLSX_MIMETYPE, XLS_MIMETYPE, CSV_MIMETYPE)

# field -> accepted header spellings (compared case-insensitively)
COLUMNS: "OrderedDict[str, tuple[str, ...]]" = OrderedDict([
    ("name", ("Product Name",)),
    ("category", ("Category",)),
    ("sku", ("SKU",)),
    ("unit_type", ("Unit Type",)),
    ("stock", ("Stock",)),
    ("mrp", ("MRP", "MRP (₹)")),
    ("stock_price", ("Stock Price", "Stock Price (₹)")),
    ("price", ("Selling Price", "Selling Price (₹)")),
    ("weight_rate", ("Weight Rate", "Weight Rate (₹)")),
    ("gst_percentage", ("GST Percentage", "GST Percentage (%)", "GST %")),
])

TEMPLATE_HEADERS = [
    "Product Name", "Category", "SKU", "Unit Type", "Stock",
    "MRP (₹)", "Stock Price (₹)", "Selling Price (₹)", "Weight Rate", "GST Percentage",
]

TEMPLATE_ROWS = [
    ["Sample Product", "Clothing", "SKU123", "piece", 100, 150, 120, 130, 0, 18],
    ["Sample Vegetable", "Vegetables", "VEG001", "kg", 50, 80, 60, 70, 70, 5],
]

TEMPLATE_WIDTHS = [20, 15, 10, 10, 8, 10, 15, 15, 12, 15]


class ImportMapError(Exception):
    """Raised when an uploaded file cannot be read at all."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass(frozen=True)
class PurchaseLine:
    id: str
    name: str
    category: str
    sku: str
    unit_type: str
    stock: Decimal
    mrp: Decimal
    stock_price: Decimal
    price: Decimal
    weight_rate: Decimal
    gst_percentage: Decimal
    sgst: Decimal
    cgst: Decimal
    total_amount: Decimal
    barcode: str | None = None

    @property
    def breakdown(self) -> tax_service.GstBreakdown:
        return tax_service.GstBreakdown(
            base=self.price * self.stock, sgst=self.sgst, cgst=self.cgst, total=self.total_amount,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "sku": self.sku,
            "unit_type": self.unit_type,
            "stock": to_json_number(self.stock),
            "mrp": to_json_number(self.mrp),
            "stock_price": to_json_number(self.stock_price),
            "price": to_json_number(self.price),
            "weight_rate": to_json_number(self.weight_rate),
            "gst_percentage": to_json_number(self.gst_percentage),
            "sgst": to_json_number(self.sgst),
            "cgst": to_json_number(self.cgst),
            "total_amount": to_json_number(self.total_amount),
            "barcode": self.barcode,
        }


@dataclass
class ImportResult:
    lines: list[PurchaseLine] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)

    @property
    def accepted(self) -> int:
        return len(self.lines)

    @property
    def rejected(self) -> int:
        return len(self.errors)

    def to_dict(self) -> dict:
        return {
            "accepted": self.accepted,
            "rejected": self.rejected,
            "errors": self.errors,
            "lines": [line.to_dict() for line in self.lines],
        }


def build_line(
    *,
    name: Any,
    category: Any,
    stock: Any,
    price: Any,
    sku: Any = None,
    unit_type: Any = None,
    mrp: Any = None,
    stock_price: Any = None,
    weight_rate: Any = None,
    gst_percentage: Any = None,
    barcode: Any = None,
    line_id: str | None = None,
    apply_gst: bool = True,
) -> PurchaseLine:
    """
    Validate one purchase line and compute its GST split.

    Shared by the spreadsheet mapper and by manually entered lines so both
    paths apply the same checks. Raises ValidationError with the first problem.
    """
    name_text = to_text(name)
    if name_text is None:
        raise ValidationError("Product Name is required")
    category_text = to_text(category)
    if category_text is None:
        raise ValidationError("Category is required")

    stock_value = to_decimal(stock, "Stock")
    if stock_value is None or stock_value <= 0:
        raise ValidationError("Stock must be a positive number")
    price_value = to_decimal(price, "Selling Price")
    if price_value is None or price_value <= 0:
        raise ValidationError("Selling Price must be a positive number")

    unit = unit_service.parse_unit_type(unit_type, category=category_text)
    gst = non_negative(gst_percentage, "GST Percentage")

    amounts = tax_service.line_amounts(price_value, stock_value, gst, enabled=apply_gst).rounded()

    return PurchaseLine(
        id=line_id or uuid.uuid4().hex,
        name=name_text,
        category=category_text,
        sku=to_text(sku) or "",
        unit_type=unit,
        stock=stock_value,
        mrp=non_negative(mrp, "MRP"),
        stock_price=non_negative(stock_price, "Stock Price"),
        price=price_value,
        weight_rate=non_negative(weight_rate, "Weight Rate"),
        gst_percentage=gst,
        sgst=amounts.sgst,
        cgst=amounts.cgst,
        total_amount=amounts.total,
        barcode=to_text(barcode),
    )


def _header_index(headers: Iterable[Any]) -> dict[str, str]:
    """Map field name -> actual header text found in the sheet."""
    present = {str(h).strip().lower(): str(h) for h in headers if h is not None and str(h).strip()}
    found = {}
    for fld, spellings in COLUMNS.items():
        for spelling in spellings:
            if spelling.lower() in present:
                found[fld] = present[spelling.lower()]
                break
    return found


def map_rows(rows: list[dict], apply_gst: bool = True) -> ImportResult:
    """Map loosely typed sheet rows to purchase lines."""
    result = ImportResult()
    if not rows:
        return result

    headers: dict[str, None] = {}
    for row in rows:
        headers.update(dict.fromkeys(row.keys()))
    columns = _header_index(headers)

    for n, row in enumerate(rows, start=1):
        values = {fld: row.get(header) for fld, header in columns.items()}
        try:
            line = build_line(apply_gst=apply_gst, **values)
        except ValidationError as e:
            result.errors.append({"row": n, "error": str(e)})
            continue
        result.lines.append(line)

    return result


def _is_blank_row(row: Iterable[Any]) -> bool:
    return all(v is None or (isinstance(v, str) and not v.strip()) for v in row)


def _read_xlsx(stream: BinaryIO) -> list[dict]:
    try:
        wb = load_workbook(stream, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        raise ImportMapError("Could not read the spreadsheet", {"reason": str(e)})
    try:
        data = [row for row in wb.active.iter_rows(values_only=True) if not _is_blank_row(row)]
    finally:
        wb.close()
    if len(data) < 2:
        return []
    headers = [str(h).strip() if h is not None else "" for h in data[0]]
    return [
        {headers[i]: row[i] for i in range(min(len(headers), len(row))) if headers[i]}
        for row in data[1:]
    ]


def _read_csv(stream: BinaryIO) -> list[dict]:
    try:
        text = stream.read().decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ImportMapError("CSV files must be UTF-8 encoded")
    reader = csv.DictReader(io.StringIO(text))
    return [row for row in reader if not _is_blank_row(row.values())]


def read_rows(stream: BinaryIO, filename: str | None, mimetype: str | None = None) -> list[dict]:
    """
    Read an upload into a list of header->value dicts.

    The extension decides the reader; the MIME type is the fallback when the
    name carries none. Legacy .xls workbooks are recognised but not parsed.
    """
    ext = (filename or "").rsplit(".", 1)[-1].lower() if filename and "." in filename else ""
    mimetype = (mimetype or "").split(";")[0].strip().lower()

    if ext == "csv" or (not ext and mimetype == CSV_MIMETYPE):
        rows = _read_csv(stream)
    elif ext in {"xlsx", "xlsm"} or (not ext and mimetype == XLSX_MIMETYPE):
        rows = _read_xlsx(stream)
    elif ext == "xls" or (not ext and mimetype == XLS_MIMETYPE):
        raise ImportMapError("Legacy .xls workbooks are not supported, save the file as .xlsx")
    else:
        raise ImportMapError(
            "Unsupported file type",
            {"accepted": list(ACCEPTED_MIME_TYPES), "filename": filename, "mimetype": mimetype or None},
        )

    if not rows:
        raise ImportMapError("The spreadsheet is empty")
    return rows


def import_file(stream: BinaryIO, filename: str | None, mimetype: str | None = None, apply_gst: bool = True) -> ImportResult:
    return map_rows(read_rows(stream, filename, mimetype), apply_gst=apply_gst)


class PurchaseDraft:
    """
    In-progress purchase entry lines, keyed by line id.

    The server keeps no draft state between requests: clients post the
    current draft back with each upload and receive the merged draft.
    """

    def __init__(self, lines: Iterable[PurchaseLine] = ()):
        self._lines: "OrderedDict[str, PurchaseLine]" = OrderedDict()
        for line in lines:
            self._lines[line.id] = line

    @property
    def lines(self) -> list[PurchaseLine]:
        return list(self._lines.values())

    def __len__(self) -> int:
        return len(self._lines)

    def merge(self, result: ImportResult | Iterable[PurchaseLine]) -> "PurchaseDraft":
        """Add lines from an upload; a line whose id is already present replaces it."""
        lines = result.lines if isinstance(result, ImportResult) else result
        for line in lines:
            self._lines[line.id] = line
        return self

    def add(self, line: PurchaseLine) -> None:
        self._lines[line.id] = line

    def remove(self, line_id: str) -> bool:
        return self._lines.pop(line_id, None) is not None

    def reprice(self, apply_gst: bool) -> "PurchaseDraft":
        """Recompute every line's GST split with tax switched on or off."""
        for line_id, line in list(self._lines.items()):
            amounts = tax_service.line_amounts(line.price, line.stock, line.gst_percentage, enabled=apply_gst).rounded()
            self._lines[line_id] = replace(line, sgst=amounts.sgst, cgst=amounts.cgst, total_amount=amounts.total)
        return self

    def totals(self, discount_pct: Decimal = Decimal("0"), surcharge_pct: Decimal = Decimal("0")) -> tax_service.PurchaseTotals:
        return tax_service.purchase_totals((line.breakdown for line in self.lines), discount_pct, surcharge_pct)

    def to_dict(self) -> dict:
        return {"lines": [line.to_dict() for line in self.lines], "count": len(self)}

    @classmethod
    def from_payload(cls, raw: Any, apply_gst: bool = True) -> "PurchaseDraft":
        """
        Typed boundary for a draft posted back by the client.

        Lines are re-validated and their GST recomputed, so a tampered
        sgst/cgst value never reaches a purchase entry.
        """
        if raw is None:
            return cls()
        if isinstance(raw, dict):
            raw = raw.get("lines", [])
        if not isinstance(raw, list):
            raise ValidationError("draft lines must be a list")

        lines = []
        for n, item in enumerate(raw, start=1):
            if not isinstance(item, dict):
                raise ValidationError(f"lines[{n}] must be an object")
            try:
                lines.append(build_line(
                    line_id=to_text(item.get("id")),
                    name=item.get("name"),
                    category=item.get("category"),
                    sku=item.get("sku"),
                    unit_type=item.get("unit_type"),
                    stock=item.get("stock"),
                    mrp=item.get("mrp"),
                    stock_price=item.get("stock_price"),
                    price=item.get("price"),
                    weight_rate=item.get("weight_rate"),
                    gst_percentage=item.get("gst_percentage"),
                    barcode=item.get("barcode"),
                    apply_gst=apply_gst,
                ))
            except ValidationError as e:
                raise ValidationError(f"lines[{n}]: {e}")
        return cls(lines)


def product_template_workbook() -> bytes:
    """Downloadable product template with two sample rows."""
    rows = [dict(zip(TEMPLATE_HEADERS, values)) for values in TEMPLATE_ROWS]
    wb = export_service.build_workbook(
        rows,
        sheet_name="Products",
        widths=dict(zip(TEMPLATE_HEADERS, TEMPLATE_WIDTHS)),
    )
    return export_service.workbook_bytes(wb)
