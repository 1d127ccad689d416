# Overview: In-memory bill (cart) engine used by the billing counter and checkout.

"""
Cart/Bill Engine

A Bill is an ordered list of BillItem lines keyed by product id. It is never
persisted: the posted cart is rebuilt through the same engine at checkout
(build_bill), and the lines are serialized into Transaction.items.

Stock guard:
- discrete/sized units: a line never exceeds the product's stock
- continuous units (kg, liter, ml): no ceiling, weight stock is approximate

User feedback goes to a Notifier (success/info/warning). Rejected operations
warn and leave the bill unchanged; they do not raise. A missing quantity
is a ValidationError, also with no change to the bill.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Optional, Protocol

from ..extensions import db
from ..models import Product
from ..money import to_json_number
from ..validation import ValidationError, require_decimal, to_decimal, to_int
from . import unit_service


logger = logging.getLogger(__name__)


class BillError(Exception):
    """Raised for programming errors against a bill (bad line index, unknown product)."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class Notifier(Protocol):
    def success(self, message: str) -> None: ...
    def info(self, message: str) -> None: ...
    def warning(self, message: str) -> None: ...


class CollectingNotifier:
    """Keeps messages so a route can return them alongside the bill."""

    def __init__(self):
        self.messages: list[dict] = []

    def _push(self, level: str, message: str) -> None:
        self.messages.append({"level": level, "message": message})

    def success(self, message: str) -> None:
        self._push("success", message)

    def info(self, message: str) -> None:
        self._push("info", message)

    def warning(self, message: str) -> None:
        self._push("warning", message)

    @property
    def warnings(self) -> list[str]:
        return [m["message"] for m in self.messages if m["level"] == "warning"]


@dataclass
class BillItem:
    product_id: int
    name: str
    price: Decimal
    quantity: Decimal
    unit_type: str = unit_service.DEFAULT_UNIT
    barcode: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price": to_json_number(self.price),
            "quantity": to_json_number(self.quantity),
            "unit_type": self.unit_type,
            "barcode": self.barcode,
        }


ProductLookup = Callable[[int], Optional[Any]]


class Bill:
    def __init__(self, lookup: ProductLookup | None = None, notifier: Notifier | None = None):
        self._items: list[BillItem] = []
        self._lookup = lookup
        self.notifier = notifier or CollectingNotifier()

    # ---- read side ----

    @property
    def items(self) -> list[BillItem]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def index_of(self, product_id: int) -> int:
        for i, item in enumerate(self._items):
            if item.product_id == product_id:
                return i
        return -1

    def total(self) -> Decimal:
        return sum((item.line_total for item in self._items), Decimal("0"))

    # ---- mutations ----

    def add(self, product: Any, quantity: Any = 1) -> bool:
        """
        Add ``quantity`` of ``product`` to the bill.

        ``product`` needs id, name, price, stock and unit_type; the price,
        unit and barcode are snapshotted onto a new line.
        """
        unit_type = product.unit_type or unit_service.DEFAULT_UNIT
        qty = to_decimal(quantity, "quantity")

        if qty is None or not unit_service.is_valid_quantity(qty, unit_type):
            self.notifier.warning(f"Invalid quantity for {product.name}")
            return False

        stock = Decimal(product.stock or 0)
        if stock <= 0:
            self.notifier.warning("This product is out of stock")
            return False

        index = self.index_of(product.id)
        if index >= 0:
            item = self._items[index]
            new_quantity = item.quantity + qty
            if not unit_service.allows_fraction(unit_type) and new_quantity > stock:
                self.notifier.warning("Not enough stock available")
                return False
            item.quantity = new_quantity
        else:
            if not unit_service.allows_fraction(unit_type) and qty > stock:
                self.notifier.warning("Not enough stock available")
                return False
            self._items.append(BillItem(
                product_id=product.id,
                name=product.name,
                price=Decimal(product.price),
                quantity=qty,
                unit_type=unit_type,
                barcode=getattr(product, "effective_barcode", None) or getattr(product, "barcode", None),
            ))

        self.notifier.success(f"Added {product.name} to bill")
        return True

    def update_quantity(self, index: int, quantity: Any) -> bool:
        item = self._item_at(index)
        qty = require_decimal(quantity, "quantity")

        if qty <= 0:
            self.remove(index)
            return True

        if not unit_service.allows_fraction(item.unit_type):
            if qty != qty.to_integral_value():
                self.notifier.warning(f"{item.name} is sold in whole units")
                return False
            product = self._lookup(item.product_id) if self._lookup else None
            if product is not None and qty > Decimal(product.stock or 0):
                self.notifier.warning(f"Only {unit_service.format_decimal_quantity(product.stock, item.unit_type)} in stock")
                return False

        item.quantity = qty
        return True

    def increment(self, index: int) -> bool:
        item = self._item_at(index)
        return self.update_quantity(index, item.quantity + unit_service.step_for(item.unit_type))

    def decrement(self, index: int) -> bool:
        item = self._item_at(index)
        new_quantity = max(item.quantity - unit_service.step_for(item.unit_type), Decimal("0"))
        return self.update_quantity(index, new_quantity)

    def remove(self, index: int) -> BillItem:
        self._item_at(index)
        return self._items.pop(index)

    def clear(self, confirm: Callable[[], bool]) -> bool:
        """Discard every line once ``confirm()`` agrees. Empty bills are left alone."""
        if not self._items:
            return False
        if not confirm():
            return False
        self._items.clear()
        self.notifier.info("Bill cleared")
        return True

    def _item_at(self, index: int) -> BillItem:
        if not isinstance(index, int) or index < 0 or index >= len(self._items):
            raise BillError("Bill line not found", {"index": index, "lines": len(self._items)})
        return self._items[index]

    # ---- serialization ----

    def to_json(self) -> list[dict]:
        return [item.to_dict() for item in self._items]

    @classmethod
    def from_json(
        cls,
        raw: Any,
        lookup: ProductLookup | None = None,
        notifier: Notifier | None = None,
    ) -> "Bill":
        """Restore a bill from stored lines without re-checking stock."""
        bill = cls(lookup=lookup, notifier=notifier)
        bill._items = parse_items(raw)
        return bill


def parse_items(raw: Any) -> list[BillItem]:
    """
    Typed boundary for bill lines coming from a request body or a stored
    Transaction.items column. Accepts camelCase ``productId`` as well as
    ``product_id``. Malformed rows raise ValidationError naming the row.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            raise ValidationError("items must be a JSON array")
    if not isinstance(raw, list):
        raise ValidationError("items must be a list")

    items: list[BillItem] = []
    for n, row in enumerate(raw, start=1):
        if not isinstance(row, dict):
            raise ValidationError(f"items[{n}] must be an object")
        try:
            product_id = to_int(row.get("product_id", row.get("productId")), "product_id")
            if product_id is None:
                raise ValidationError("product_id is required")
            # Posted carts may omit price; build_bill reprices from the product
            price = to_decimal(row.get("price"), "price", default=Decimal("0"))
            quantity = to_decimal(row.get("quantity"), "quantity")
            if quantity is None:
                raise ValidationError("quantity is required")
            if price < 0 or quantity <= 0:
                raise ValidationError("price must be >= 0 and quantity > 0")
            unit_type = unit_service.parse_unit_type(row.get("unit_type", row.get("unitType")))
        except ValidationError as e:
            raise ValidationError(f"items[{n}]: {e}")
        items.append(BillItem(
            product_id=product_id,
            name=str(row.get("name") or "").strip(),
            price=price,
            quantity=quantity,
            unit_type=unit_type,
            barcode=row.get("barcode"),
        ))
    return items


def shop_product_lookup(shop_id: int) -> ProductLookup:
    def lookup(product_id: int) -> Product | None:
        return db.session.query(Product).filter_by(id=product_id, shop_id=shop_id).first()
    return lookup


def build_bill(shop_id: int, raw_items: Any, notifier: Notifier | None = None) -> Bill:
    """
    Rebuild a posted cart against the shop's live products.

    Prices come from the live product, not from the client. Unknown products
    and lines the engine rejects raise BillError.
    """
    lookup = shop_product_lookup(shop_id)
    bill = Bill(lookup=lookup, notifier=notifier)

    for item in parse_items(raw_items):
        product = lookup(item.product_id)
        if product is None:
            raise BillError("Product not found", {"product_id": item.product_id})
        if not bill.add(product, item.quantity):
            warnings = getattr(bill.notifier, "warnings", [])
            reason = warnings[-1] if warnings else "Line rejected"
            raise BillError(reason, {"product_id": item.product_id, "name": product.name})

    logger.debug("Rebuilt bill for shop %s with %d lines", shop_id, len(bill))
    return bill
