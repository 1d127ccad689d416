# Overview: Pytest coverage for the bulk product sheet mapper and the purchase draft.

import io
from decimal import Decimal

import pytest
from openpyxl import Workbook, load_workbook

from shopdesk.services import import_service
from shopdesk.services.import_service import ImportMapError, PurchaseDraft
from shopdesk.validation import ValidationError


def xlsx_upload(rows):
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf


HEADERS = ["Product Name", "Category", "SKU", "Unit Type", "Stock", "MRP (₹)",
           "Stock Price (₹)", "Selling Price (₹)", "Weight Rate", "GST Percentage"]


class TestMapRows:

    def test_valid_rows_get_gst_split(self):
        result = import_service.map_rows([
            {"Product Name": "Shirt", "Category": "Clothing", "Stock": "10",
             "Selling Price": "500", "GST %": "12"},
        ])
        assert result.accepted == 1
        line = result.lines[0]
        assert line.unit_type == "s"
        assert line.sgst == line.cgst == Decimal("300.00")
        assert line.total_amount == Decimal("5600.00")

    def test_bad_rows_are_reported_with_one_based_numbers(self):
        result = import_service.map_rows([
            {"Product Name": "Good", "Category": "General", "Stock": 1, "Selling Price": 10},
            {"Product Name": "", "Category": "General", "Stock": 1, "Selling Price": 10},
            {"Product Name": "No price", "Category": "General", "Stock": 1, "Selling Price": 0},
            {"Product Name": "Bad unit", "Category": "General", "Stock": 1, "Selling Price": 5, "Unit Type": "bag"},
        ])
        assert result.accepted == 1
        assert [e["row"] for e in result.errors] == [2, 3, 4]
        assert result.errors[0]["error"] == "Product Name is required"
        assert result.errors[1]["error"] == "Selling Price must be a positive number"

    def test_gst_can_be_switched_off(self):
        result = import_service.map_rows(
            [{"Product Name": "Milk", "Category": "Milk", "Stock": 2, "Selling Price": 50, "GST Percentage": 5}],
            apply_gst=False,
        )
        line = result.lines[0]
        assert line.sgst == Decimal("0.00")
        assert line.total_amount == Decimal("100.00")

    def test_negative_optional_number_rejects_row(self):
        result = import_service.map_rows([
            {"Product Name": "Oil", "Category": "Oil", "Stock": 1, "Selling Price": 100, "MRP": -5},
        ])
        assert result.rejected == 1
        assert result.errors[0]["error"] == "MRP must be >= 0"


class TestReadRows:

    def test_reads_xlsx(self):
        upload = xlsx_upload([
            HEADERS,
            ["Tomato", "Vegetables", "VEG-1", "kg", 20, 40, 25, 30, 30, 0],
            [None] * len(HEADERS),
        ])
        result = import_service.import_file(upload, "stock.xlsx")
        assert result.accepted == 1
        assert result.lines[0].sku == "VEG-1"
        assert result.lines[0].price == Decimal("30")

    def test_reads_csv_with_bom(self):
        text = "\ufeffProduct Name,Category,Stock,Selling Price\nPen,Stationery,5,10\n"
        result = import_service.import_file(io.BytesIO(text.encode("utf-8")), "pens.csv")
        assert result.accepted == 1
        assert result.lines[0].name == "Pen"

    def test_mimetype_is_used_when_name_has_no_extension(self):
        text = "Product Name,Category,Stock,Selling Price\nPen,Stationery,5,10\n"
        rows = import_service.read_rows(io.BytesIO(text.encode("utf-8")), "upload", "text/csv")
        assert rows[0]["Product Name"] == "Pen"

    def test_legacy_xls_is_rejected(self):
        with pytest.raises(ImportMapError, match=".xls"):
            import_service.read_rows(io.BytesIO(b"\xd0\xcf\x11\xe0"), "old.xls")

    def test_unknown_type_is_rejected(self):
        with pytest.raises(ImportMapError) as exc:
            import_service.read_rows(io.BytesIO(b"{}"), "data.json", "application/json")
        assert exc.value.details["filename"] == "data.json"

    def test_corrupt_xlsx_is_reported(self):
        with pytest.raises(ImportMapError, match="Could not read"):
            import_service.read_rows(io.BytesIO(b"not a zip"), "broken.xlsx")

    def test_header_only_sheet_is_empty(self):
        with pytest.raises(ImportMapError, match="empty"):
            import_service.read_rows(xlsx_upload([HEADERS]), "empty.xlsx")


class TestPurchaseDraft:

    def line(self, line_id, name="Soap", stock=1, price=10):
        return import_service.build_line(
            line_id=line_id, name=name, category="General", stock=stock, price=price,
        )

    def test_merge_replaces_lines_with_same_id(self):
        draft = PurchaseDraft([self.line("a"), self.line("b")])
        draft.merge([self.line("b", name="Soap XL"), self.line("c")])
        assert [line.id for line in draft.lines] == ["a", "b", "c"]
        assert draft.lines[1].name == "Soap XL"

    def test_remove(self):
        draft = PurchaseDraft([self.line("a")])
        assert draft.remove("a")
        assert not draft.remove("a")
        assert len(draft) == 0

    def test_from_payload_recomputes_tampered_tax(self):
        draft = PurchaseDraft.from_payload({"lines": [{
            "id": "x1", "name": "Shirt", "category": "Clothing", "stock": 2, "price": 100,
            "gst_percentage": 10, "sgst": 999, "cgst": 999, "total_amount": 1,
        }]})
        line = draft.lines[0]
        assert line.sgst == Decimal("10.00")
        assert line.total_amount == Decimal("220.00")

    def test_from_payload_names_the_bad_line(self):
        with pytest.raises(ValidationError, match=r"lines\[1\]"):
            PurchaseDraft.from_payload([{"name": "", "category": "General", "stock": 1, "price": 1}])

    def test_reprice_toggles_gst(self):
        draft = PurchaseDraft([import_service.build_line(
            line_id="a", name="Shirt", category="Clothing", stock=1, price=100, gst_percentage=18,
        )])
        draft.reprice(apply_gst=False)
        assert draft.lines[0].total_amount == Decimal("100.00")
        assert draft.totals().round_off_amount == Decimal("100")


def test_product_template_has_headers_and_samples():
    wb = load_workbook(io.BytesIO(import_service.product_template_workbook()))
    rows = list(wb.active.iter_rows(values_only=True))
    assert list(rows[0]) == import_service.TEMPLATE_HEADERS
    assert len(rows) == 3
