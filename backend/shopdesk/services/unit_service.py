# Overview: Unit-quantity policy shared by the bill engine and the quantity endpoints.

"""
Unit-Quantity Policy

Every place that steps, validates or displays a quantity asks this module,
so the bill engine and the quantity-step endpoint never disagree.

Unit classes:
- discrete:   piece, pack            (whole numbers, step 1)
- continuous: kg, liter, ml          (fractional allowed, step 0.1)
- sized:      s, m, l, xl, xxl, xxxl (clothing sizes, counted in whole items)
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from ..validation import ValidationError


DISCRETE_UNITS = ("piece", "pack")
CONTINUOUS_UNITS = ("kg", "liter", "ml")
SIZED_UNITS = ("s", "m", "l", "xl", "xxl", "xxxl")

UNIT_TYPES = DISCRETE_UNITS + CONTINUOUS_UNITS + SIZED_UNITS

DEFAULT_UNIT = "piece"

CONTINUOUS_STEP = Decimal("0.1")
DISCRETE_STEP = Decimal("1")

# Ordered: the first keyword group that matches wins
_CATEGORY_RULES: tuple[tuple[tuple[str, ...], str, tuple[str, ...]], ...] = (
    (("clothing", "apparel", "garment"), "s", SIZED_UNITS),
    (("vegetable", "fruit", "produce"), "kg", ("kg", "piece", "pack")),
    (("liquid", "milk", "oil"), "liter", ("liter", "ml")),
    (("beverage", "drink"), "ml", ("ml", "liter", "piece")),
    (("food", "meal"), "piece", ("piece", "pack")),
    (("pack", "bundle"), "pack", ("piece", "pack", "kg", "liter", "ml")),
)


def unit_class(unit_type: str) -> str:
    if unit_type in CONTINUOUS_UNITS:
        return "continuous"
    if unit_type in SIZED_UNITS:
        return "sized"
    return "discrete"


def allows_fraction(unit_type: str) -> bool:
    return unit_type in CONTINUOUS_UNITS


def step_for(unit_type: str) -> Decimal:
    return CONTINUOUS_STEP if allows_fraction(unit_type) else DISCRETE_STEP


def is_valid_quantity(quantity: Decimal, unit_type: str) -> bool:
    """Positive, and integral unless the unit is continuous."""
    if quantity <= 0:
        return False
    if allows_fraction(unit_type):
        return True
    return quantity == quantity.to_integral_value()


def parse_unit_type(value: Any, *, category: str | None = None) -> str:
    """
    Normalise a unit coming from a form, a JSON body or a spreadsheet cell.

    Blank values fall back to the category default. Unknown units raise
    ValidationError rather than being silently replaced.

    A bare "L" is the clothing size, the same label format_quantity prints
    for it. Litres are only recognised as "liter", "litre" or "ltr", so the
    "2.00 L" display form of a litre quantity is not a unit to parse back.
    """
    text = str(value).strip().lower() if value is not None else ""
    if not text:
        return category_unit_type(category)
    aliases = {"pcs": "piece", "pc": "piece", "pieces": "piece", "litre": "liter", "ltr": "liter"}
    text = aliases.get(text, text)
    if text not in UNIT_TYPES:
        raise ValidationError(f"unit_type must be one of: {', '.join(UNIT_TYPES)}")
    return text


def category_unit_type(category: str | None) -> str:
    if not category:
        return DEFAULT_UNIT
    lowered = category.lower()
    for keywords, unit, _options in _CATEGORY_RULES:
        if any(k in lowered for k in keywords):
            return unit
    return DEFAULT_UNIT


def unit_options_for_category(category: str | None) -> list[str]:
    if not category:
        return ["piece", "pack", "kg", "liter"]
    lowered = category.lower()
    for keywords, _unit, options in _CATEGORY_RULES:
        if any(k in lowered for k in keywords):
            return list(options)
    return ["piece", "pack", "kg", "liter", "ml"]


def _plain(value: Decimal) -> str:
    # 250.000 -> "250", 0.500 -> "0.5"
    return format(value.normalize(), "f")


def format_quantity(quantity: Decimal | int | float, unit_type: str) -> str:
    """
    Display form used on bills and receipts, e.g. "1.50 kg" or "3 pcs".

    Litres print as "L", which is also the label of the size l; the output
    is for people, parse_unit_type does not read it back.
    """
    q = Decimal(str(quantity))
    if unit_type == "kg":
        return f"{q.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)} kg"
    if unit_type == "liter":
        return f"{q.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)} L"
    if unit_type == "ml":
        return f"{_plain(q)} ml"
    if unit_type == "piece":
        return f"{q.quantize(Decimal('1'), rounding=ROUND_HALF_UP)} pcs"
    if unit_type == "pack":
        return f"{q.quantize(Decimal('1'), rounding=ROUND_HALF_UP)} pack"
    if unit_type in SIZED_UNITS:
        return unit_type.upper()
    return _plain(q)


def format_decimal_quantity(quantity: Decimal | int | float, unit_type: str) -> str:
    q = Decimal(str(quantity))
    if unit_type in ("kg", "liter"):
        return str(q.quantize(Decimal("0.001"), rounding=ROUND_HALF_UP))
    return str(q.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def describe(unit_type: str) -> dict:
    return {
        "unit_type": unit_type,
        "unit_class": unit_class(unit_type),
        "step": float(step_for(unit_type)),
        "allows_fraction": allows_fraction(unit_type),
    }
