# Overview: Pytest coverage for the unit-quantity policy.

from decimal import Decimal

import pytest

from shopdesk.services import unit_service
from shopdesk.validation import ValidationError


class TestQuantityRules:

    @pytest.mark.parametrize("unit", ["piece", "pack", "s", "xl"])
    def test_discrete_units_reject_fractions(self, unit):
        assert unit_service.is_valid_quantity(Decimal("2"), unit)
        assert not unit_service.is_valid_quantity(Decimal("1.5"), unit)

    @pytest.mark.parametrize("unit", ["kg", "liter", "ml"])
    def test_continuous_units_accept_fractions(self, unit):
        assert unit_service.is_valid_quantity(Decimal("0.25"), unit)
        assert unit_service.step_for(unit) == Decimal("0.1")

    def test_zero_and_negative_are_never_valid(self):
        assert not unit_service.is_valid_quantity(Decimal("0"), "kg")
        assert not unit_service.is_valid_quantity(Decimal("-1"), "piece")

    def test_sized_units_step_by_one(self):
        assert unit_service.unit_class("xxl") == "sized"
        assert unit_service.step_for("xxl") == Decimal("1")


class TestParseUnitType:

    def test_aliases_are_normalised(self):
        assert unit_service.parse_unit_type("PCS") == "piece"
        assert unit_service.parse_unit_type(" Litre ") == "liter"

    def test_blank_falls_back_to_category_default(self):
        assert unit_service.parse_unit_type("", category="Fresh Vegetables") == "kg"
        assert unit_service.parse_unit_type(None, category="Milk Products") == "liter"
        assert unit_service.parse_unit_type(None, category="Stationery") == "piece"

    def test_unknown_unit_raises(self):
        with pytest.raises(ValidationError):
            unit_service.parse_unit_type("bushel")

    def test_bare_l_is_the_clothing_size(self):
        assert unit_service.parse_unit_type("L") == "l"
        assert unit_service.unit_class(unit_service.parse_unit_type("L")) == "sized"
        assert unit_service.parse_unit_type("ltr") == "liter"
        assert unit_service.format_quantity(Decimal("2"), "liter") == "2.00 L"
        with pytest.raises(ValidationError):
            unit_service.parse_unit_type("2.00 L")


class TestCategoryOptions:

    def test_clothing_offers_sizes(self):
        assert unit_service.category_unit_type("Clothing") == "s"
        assert unit_service.unit_options_for_category("Kids Apparel") == list(unit_service.SIZED_UNITS)

    def test_first_matching_rule_wins(self):
        # "Vegetable Pack" matches the vegetable rule before the pack rule
        assert unit_service.category_unit_type("Vegetable Pack") == "kg"


class TestFormatting:

    @pytest.mark.parametrize(
        "quantity,unit,expected",
        [
            (Decimal("1.5"), "kg", "1.50 kg"),
            (Decimal("2"), "liter", "2.00 L"),
            (Decimal("250.000"), "ml", "250 ml"),
            (Decimal("3"), "piece", "3 pcs"),
            (Decimal("1"), "pack", "1 pack"),
            (Decimal("1"), "xl", "XL"),
        ],
    )
    def test_format_quantity(self, quantity, unit, expected):
        assert unit_service.format_quantity(quantity, unit) == expected

    def test_decimal_display(self):
        assert unit_service.format_decimal_quantity(Decimal("1.2345"), "kg") == "1.235"
        assert unit_service.format_decimal_quantity(Decimal("4"), "piece") == "4"
