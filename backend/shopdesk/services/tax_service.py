# Overview: GST split, purchase totals, round-off and payment status arithmetic.

"""
Tax/Total Calculator

All arithmetic is Decimal. Values returned here are exact; callers quantize
to two places (money.quantize_money) only when they persist or display.

GST is charged as one percentage and split evenly into SGST and CGST.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from ..models.purchasing import PAYMENT_PAID, PAYMENT_PARTIAL, PAYMENT_UNPAID
from ..money import quantize_money


HUNDRED = Decimal("100")
ZERO = Decimal("0")


@dataclass(frozen=True)
class GstBreakdown:
    base: Decimal
    sgst: Decimal
    cgst: Decimal
    total: Decimal

    @property
    def gst(self) -> Decimal:
        return self.sgst + self.cgst

    def rounded(self) -> "GstBreakdown":
        return GstBreakdown(
            base=quantize_money(self.base),
            sgst=quantize_money(self.sgst),
            cgst=quantize_money(self.cgst),
            total=quantize_money(self.total),
        )

    def to_dict(self) -> dict:
        r = self.rounded()
        return {
            "base": float(r.base),
            "sgst": float(r.sgst),
            "cgst": float(r.cgst),
            "gst": float(r.sgst + r.cgst),
            "total": float(r.total),
        }


@dataclass(frozen=True)
class PurchaseTotals:
    gross_amount: Decimal
    total_gst: Decimal
    discount_amount: Decimal
    surcharge_amount: Decimal
    net_amount: Decimal
    round_off_amount: Decimal

    def to_dict(self) -> dict:
        return {
            "gross_amount": float(quantize_money(self.gross_amount)),
            "total_gst": float(quantize_money(self.total_gst)),
            "discount_amount": float(quantize_money(self.discount_amount)),
            "surcharge_amount": float(quantize_money(self.surcharge_amount)),
            "net_amount": float(quantize_money(self.net_amount)),
            "round_off_amount": float(quantize_money(self.round_off_amount)),
        }


def split_gst(base: Decimal, gst_percentage: Decimal, enabled: bool = True) -> GstBreakdown:
    """
    Split GST on ``base`` into equal SGST and CGST halves.

    With tax disabled the halves are zero and total == base.
    """
    if not enabled:
        return GstBreakdown(base=base, sgst=ZERO, cgst=ZERO, total=base)
    tax = base * gst_percentage / HUNDRED
    half = tax / 2
    return GstBreakdown(base=base, sgst=half, cgst=half, total=base + tax)


def line_amounts(
    price: Decimal,
    quantity: Decimal,
    gst_percentage: Decimal,
    enabled: bool = True,
) -> GstBreakdown:
    """Purchase line: base is the selling price times the purchased quantity."""
    return split_gst(price * quantity, gst_percentage, enabled)


def round_off_to_hundred(value: Decimal) -> Decimal:
    """Nearest multiple of 100, halves away from zero (12549 -> 12500, 12550 -> 12600)."""
    return (value / HUNDRED).quantize(Decimal("1"), rounding=ROUND_HALF_UP) * HUNDRED


def purchase_totals(
    lines: Iterable[GstBreakdown],
    discount_pct: Decimal = ZERO,
    surcharge_pct: Decimal = ZERO,
) -> PurchaseTotals:
    """
    Aggregate a purchase entry.

    net = gross + total_gst + surcharge. The discount amount is reported but
    is not subtracted from net; stored entries depend on this formula.
    """
    lines = list(lines)
    gross = sum((line.total for line in lines), ZERO)
    total_gst = sum((line.gst for line in lines), ZERO)
    discount_amount = gross * discount_pct / HUNDRED
    surcharge_amount = gross * surcharge_pct / HUNDRED
    net = gross + total_gst + surcharge_amount
    return PurchaseTotals(
        gross_amount=gross,
        total_gst=total_gst,
        discount_amount=discount_amount,
        surcharge_amount=surcharge_amount,
        net_amount=net,
        round_off_amount=round_off_to_hundred(net),
    )


def payment_status(amount_due: Decimal, paid: Decimal) -> str:
    """Derived from scratch on every change; never a stored transition."""
    balance = amount_due - paid
    if balance <= 0:
        return PAYMENT_PAID
    if paid > 0:
        return PAYMENT_PARTIAL
    return PAYMENT_UNPAID
