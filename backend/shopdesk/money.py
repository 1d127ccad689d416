from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

TWO_PLACES = Decimal("0.01")


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def to_json_number(value: Optional[Decimal]) -> Optional[float | int]:
    """Render a stored Decimal for JSON; whole numbers stay ints."""
    if value is None:
        return None
    if value == value.to_integral_value():
        return int(value)
    return float(value)
