# Overview: Pytest coverage for GST split, purchase totals and round-off.

from decimal import Decimal

import pytest

from shopdesk.services import tax_service


D = Decimal


class TestSplitGst:

    def test_halves_are_equal(self):
        b = tax_service.split_gst(D("1000"), D("18"))
        assert b.sgst == b.cgst == D("90")
        assert b.total == D("1180")
        assert b.gst == D("180")

    def test_disabled_tax_returns_base(self):
        b = tax_service.split_gst(D("1000"), D("18"), enabled=False)
        assert b.sgst == b.cgst == D("0")
        assert b.total == D("1000")

    def test_rounded_dict(self):
        b = tax_service.split_gst(D("99.99"), D("5"))
        assert b.to_dict() == {"base": 99.99, "sgst": 2.5, "cgst": 2.5, "gst": 5.0, "total": 104.99}


class TestRoundOff:

    @pytest.mark.parametrize(
        "net,expected",
        [
            ("12549", "12500"),
            ("12550", "12600"),
            ("12500", "12500"),
            ("49.99", "0"),
            ("50", "100"),
            ("150", "200"),
        ],
    )
    def test_nearest_hundred_half_up(self, net, expected):
        assert tax_service.round_off_to_hundred(D(net)) == D(expected)


class TestPurchaseTotals:

    def test_discount_is_reported_but_not_subtracted(self):
        lines = [
            tax_service.line_amounts(D("100"), D("10"), D("18")),
            tax_service.line_amounts(D("50"), D("4"), D("0")),
        ]
        totals = tax_service.purchase_totals(lines, discount_pct=D("10"), surcharge_pct=D("2"))

        assert totals.gross_amount == D("1380")
        assert totals.total_gst == D("180")
        assert totals.discount_amount == D("138")
        assert totals.surcharge_amount == D("27.6")
        assert totals.net_amount == D("1587.6")
        assert totals.round_off_amount == D("1600")

    def test_empty_purchase_is_zero(self):
        totals = tax_service.purchase_totals([])
        assert totals.net_amount == 0
        assert totals.round_off_amount == 0


class TestPaymentStatus:

    @pytest.mark.parametrize(
        "due,paid,status",
        [
            ("1000", "0", "Unpaid"),
            ("1000", "400", "Partially Paid"),
            ("1000", "1000", "Paid"),
            ("1000", "1200", "Paid"),
            ("0", "0", "Paid"),
        ],
    )
    def test_status_is_derived(self, due, paid, status):
        assert tax_service.payment_status(D(due), D(paid)) == status
