# backend/shopdesk/services/products_service.py
"""
Products Service

All product operations are scoped to one shop. Callers resolve the shop
through tenant_service first and pass the shop_id in.

Patches arrive already validated by validation.validate_payload and
enforce_rules_product; this module adds the rules that need the database
(SKU uniqueness per shop) and the unit policy (unit defaults from category).
"""
from __future__ import annotations

import re
from decimal import Decimal

from ..extensions import db
from ..models import DamagedInventory, InventoryLog, Product
from ..validation import ConflictError, NotFoundError
from . import tax_service, unit_service

PRODUCT_MUTABLE_FIELDS = {
    "name", "category", "unit_type", "price", "mrp", "stock_price",
    "weight_rate", "gst_percentage", "stock", "sku", "barcode",
}

LOW_STOCK_THRESHOLD = Decimal("10")

_DERIVED_BARCODE = re.compile(r"^PROD-(\d{8})$")


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _normalize_codes(patch: dict) -> None:
    # Blank SKU/barcode are stored as NULL so the per-shop SKU constraint ignores them
    for key in ("sku", "barcode"):
        if key in patch and not patch[key]:
            patch[key] = None


def _ensure_sku_free(shop_id: int, sku: str | None, exclude_id: int | None = None) -> None:
    if not sku:
        return
    q = db.session.query(Product).filter(Product.shop_id == shop_id, Product.sku == sku)
    if exclude_id is not None:
        q = q.filter(Product.id != exclude_id)
    if q.first():
        raise ConflictError("SKU already exists for this shop.")


def get_product(shop_id: int, product_id: int) -> Product:
    p = db.session.query(Product).filter_by(id=product_id, shop_id=shop_id).first()
    if not p:
        raise NotFoundError("Product not found")
    return p


def list_products(
    shop_id: int,
    *,
    search: str | None = None,
    category: str | None = None,
    low_stock: bool = False,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Shop-scoped product listing with optional filters and pagination.

    search matches name, SKU or barcode (case-insensitive substring).
    low_stock keeps products at or below LOW_STOCK_THRESHOLD.
    """
    base_query = db.session.query(Product).filter(Product.shop_id == shop_id)

    if search:
        like = f"%{search.strip()}%"
        base_query = base_query.filter(
            db.or_(Product.name.ilike(like), Product.sku.ilike(like), Product.barcode.ilike(like))
        )
    if category:
        base_query = base_query.filter(Product.category == category)
    if low_stock:
        base_query = base_query.filter(Product.stock <= LOW_STOCK_THRESHOLD)

    base_query = base_query.order_by(Product.name.asc(), Product.id.asc())

    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = min(per_page or 20, 100)
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def shop_products(shop_id: int) -> list[Product]:
    return (
        db.session.query(Product)
        .filter(Product.shop_id == shop_id)
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )


def list_categories(shop_id: int) -> list[str]:
    rows = (
        db.session.query(Product.category)
        .filter(Product.shop_id == shop_id)
        .distinct()
        .order_by(Product.category.asc())
        .all()
    )
    return [r[0] for r in rows]


def create_product(*, patch: dict, shop_id: int) -> Product:
    """
    Create a product from a validated patch.

    unit_type defaults from the category when omitted.
    """
    _normalize_codes(patch)
    patch["unit_type"] = unit_service.parse_unit_type(patch.get("unit_type"), category=patch.get("category"))
    _ensure_sku_free(shop_id, patch.get("sku"))

    p = Product(shop_id=shop_id, stock=Decimal("0"), sales_count=Decimal("0"))
    apply_product_patch(p, patch)

    db.session.add(p)
    db.session.commit()
    return p


def update_product(*, shop_id: int, product_id: int, patch: dict) -> Product:
    p = get_product(shop_id, product_id)

    _normalize_codes(patch)
    if "unit_type" in patch:
        patch["unit_type"] = unit_service.parse_unit_type(
            patch["unit_type"], category=patch.get("category", p.category)
        )
    if "sku" in patch and patch["sku"] != p.sku:
        _ensure_sku_free(shop_id, patch["sku"], exclude_id=p.id)

    apply_product_patch(p, patch)
    db.session.commit()
    return p


def delete_product(*, shop_id: int, product_id: int) -> None:
    """
    Hard delete. Inventory logs keep their product name and lose the link;
    damaged-stock reports for the product go with it.
    """
    p = get_product(shop_id, product_id)

    db.session.query(InventoryLog).filter(InventoryLog.product_id == p.id).update(
        {InventoryLog.product_id: None}, synchronize_session=False
    )
    db.session.query(DamagedInventory).filter(DamagedInventory.product_id == p.id).delete(
        synchronize_session=False
    )
    db.session.delete(p)
    db.session.commit()


def lookup_by_barcode(shop_id: int, code: str) -> Product | None:
    """Scanner lookup: stored barcode, then SKU, then the derived PROD-xxxxxxxx code."""
    code = (code or "").strip()
    if not code:
        return None

    p = (
        db.session.query(Product)
        .filter(Product.shop_id == shop_id, db.or_(Product.barcode == code, Product.sku == code))
        .order_by(Product.id.asc())
        .first()
    )
    if p:
        return p

    m = _DERIVED_BARCODE.match(code.upper())
    if not m:
        return None
    p = db.session.query(Product).filter_by(shop_id=shop_id, id=int(m.group(1))).first()
    if p and p.effective_barcode == code.upper():
        return p
    return None


def tax_breakdown(product: Product, apply_gst: bool = True) -> tax_service.GstBreakdown:
    return tax_service.split_gst(
        Decimal(product.price),
        Decimal(product.gst_percentage or 0),
        enabled=apply_gst,
    )
