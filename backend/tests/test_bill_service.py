# Overview: Pytest coverage for the in-memory bill engine.

from decimal import Decimal
from types import SimpleNamespace

import pytest

from shopdesk.services import bill_service
from shopdesk.services.bill_service import Bill, BillError
from shopdesk.validation import ValidationError


def product(pid, name="Item", price="10", stock="5", unit_type="piece"):
    return SimpleNamespace(
        id=pid,
        name=name,
        price=Decimal(price),
        stock=Decimal(stock),
        unit_type=unit_type,
        barcode=None,
    )


@pytest.fixture
def catalog():
    items = {
        1: product(1, "Soap", "40", "3"),
        2: product(2, "Rice", "60", "2", "kg"),
        3: product(3, "Empty Shelf", "15", "0"),
    }
    return items


@pytest.fixture
def bill(catalog):
    return Bill(lookup=catalog.get)


class TestAdd:

    def test_add_creates_line_and_notifies(self, bill, catalog):
        assert bill.add(catalog[1], 2)
        assert len(bill) == 1
        assert bill.items[0].quantity == Decimal("2")
        assert bill.notifier.messages[-1] == {"level": "success", "message": "Added Soap to bill"}

    def test_add_same_product_merges_lines(self, bill, catalog):
        bill.add(catalog[1], 1)
        bill.add(catalog[1], 1)
        assert len(bill) == 1
        assert bill.items[0].quantity == Decimal("2")

    def test_discrete_add_beyond_stock_is_rejected(self, bill, catalog):
        bill.add(catalog[1], 3)
        assert not bill.add(catalog[1], 1)
        assert bill.items[0].quantity == Decimal("3")
        assert bill.notifier.warnings[-1] == "Not enough stock available"

    def test_continuous_units_have_no_stock_ceiling(self, bill, catalog):
        assert bill.add(catalog[2], "3.5")
        assert bill.items[0].quantity == Decimal("3.5")

    def test_out_of_stock_product_is_rejected(self, bill, catalog):
        assert not bill.add(catalog[3], 1)
        assert bill.is_empty()
        assert bill.notifier.warnings == ["This product is out of stock"]

    def test_fractional_quantity_for_pieces_is_rejected(self, bill, catalog):
        assert not bill.add(catalog[1], "1.5")
        assert bill.is_empty()

    def test_price_is_snapshotted(self, bill, catalog):
        bill.add(catalog[1], 1)
        catalog[1].price = Decimal("99")
        assert bill.items[0].price == Decimal("40")


class TestUpdateQuantity:

    def test_zero_removes_line(self, bill, catalog):
        bill.add(catalog[1], 1)
        assert bill.update_quantity(0, 0)
        assert bill.is_empty()

    def test_negative_removes_line(self, bill, catalog):
        bill.add(catalog[1], 2)
        assert bill.update_quantity(0, -3)
        assert bill.is_empty()

    def test_missing_quantity_leaves_line_alone(self, bill, catalog):
        bill.add(catalog[1], 2)
        for missing in (None, "", "  "):
            with pytest.raises(ValidationError, match="quantity is required"):
                bill.update_quantity(0, missing)
        assert bill.items[0].quantity == Decimal("2")

    def test_over_stock_is_refused(self, bill, catalog):
        bill.add(catalog[1], 1)
        assert not bill.update_quantity(0, 4)
        assert bill.items[0].quantity == Decimal("1")
        assert bill.notifier.warnings[-1] == "Only 3 in stock"

    def test_increment_and_decrement_use_unit_step(self, bill, catalog):
        bill.add(catalog[2], 1)
        bill.increment(0)
        assert bill.items[0].quantity == Decimal("1.1")
        bill.decrement(0)
        bill.decrement(0)
        assert bill.items[0].quantity == Decimal("0.9")

    def test_decrement_to_zero_removes_line(self, bill, catalog):
        bill.add(catalog[1], 1)
        bill.decrement(0)
        assert bill.is_empty()

    def test_bad_index_raises(self, bill):
        with pytest.raises(BillError):
            bill.update_quantity(5, 1)


class TestTotalsAndClear:

    def test_total(self, bill, catalog):
        bill.add(catalog[1], 2)
        bill.add(catalog[2], "0.5")
        assert bill.total() == Decimal("110.0")

    def test_clear_needs_confirmation(self, bill, catalog):
        bill.add(catalog[1], 1)
        assert not bill.clear(lambda: False)
        assert len(bill) == 1
        assert bill.clear(lambda: True)
        assert bill.is_empty()

    def test_counter_session(self):
        rice = product(1, "Rice", "10", "20")
        dal = product(2, "Dal", "5", "20")
        bill = Bill(lookup={1: rice, 2: dal}.get)

        bill.add(rice, 2)
        bill.add(dal, 3)
        assert bill.total() == Decimal("35")

        bill.remove(bill.index_of(1))
        assert bill.total() == Decimal("15")

        assert bill.clear(lambda: True)
        assert bill.total() == Decimal("0")

    def test_clear_on_empty_bill_does_nothing(self, bill):
        assert not bill.clear(lambda: True)


class TestParseItems:

    def test_accepts_camel_case_keys(self):
        items = bill_service.parse_items([{"productId": 7, "price": "12.50", "quantity": 2, "unitType": "pack"}])
        assert items[0].product_id == 7
        assert items[0].unit_type == "pack"
        assert items[0].line_total == Decimal("25.00")

    def test_json_string_round_trips(self, bill, catalog):
        bill.add(catalog[1], 2)
        restored = Bill.from_json(bill.to_json())
        assert restored.total() == bill.total()

    def test_malformed_row_names_the_row(self):
        with pytest.raises(ValidationError, match=r"items\[2\]"):
            bill_service.parse_items([
                {"product_id": 1, "price": 10, "quantity": 1},
                {"product_id": 2, "price": 10, "quantity": 0},
            ])

    def test_non_list_is_rejected(self):
        with pytest.raises(ValidationError):
            bill_service.parse_items('{"product_id": 1}')
