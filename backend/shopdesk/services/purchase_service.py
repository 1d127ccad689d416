# Overview: Service-layer operations for purchase entries and their transfer into live stock.

"""
Purchase Entries

Lifecycle (invoice_type):
    Purchase_Inventory  --transfer-->  Transferred_Inventory

Totals are always computed here from the submitted lines; client-side
totals are ignored. The amount payable to the supplier is the rounded-off
net amount.

Transfer pushes every line into the shop's products (matched by SKU, else
by name) in one commit. A second transfer is refused by checking the flag;
there is no lock, so two simultaneous transfers of the same entry can both
pass the check.
"""
from __future__ import annotations

import logging
from decimal import Decimal

from ..extensions import db
from ..models import Product, PurchaseEntry, PurchaseEntryProduct
from ..models.purchasing import INVOICE_PURCHASE, INVOICE_TRANSFERRED
from ..money import quantize_money
from ..validation import NotFoundError, non_negative, require_text, to_bool, to_date, to_int, to_text
from . import stock_service, supplier_service, tax_service
from .import_service import PurchaseDraft
from .session_service import SessionContext
from shopdesk.time_utils import utcnow


logger = logging.getLogger(__name__)


class PurchaseError(Exception):
    """Raised when a purchase entry cannot be created or transferred."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def get_purchase_entry(shop_id: int, entry_id: int) -> PurchaseEntry:
    entry = db.session.query(PurchaseEntry).filter_by(id=entry_id, shop_id=shop_id).first()
    if not entry:
        raise NotFoundError("Purchase entry not found")
    return entry


def list_purchase_entries(
    shop_id: int,
    search: str | None = None,
    invoice_type: str | None = None,
) -> list[PurchaseEntry]:
    q = db.session.query(PurchaseEntry).filter(PurchaseEntry.shop_id == shop_id)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(db.or_(PurchaseEntry.supplier_name.ilike(like), PurchaseEntry.gst_no.ilike(like)))
    if invoice_type:
        q = q.filter(PurchaseEntry.invoice_type == invoice_type)
    return q.order_by(PurchaseEntry.created_at.desc(), PurchaseEntry.id.desc()).all()


def preview_totals(payload: dict) -> dict:
    """Totals for a draft without saving anything."""
    apply_gst = to_bool(payload.get("apply_gst"))
    draft = PurchaseDraft.from_payload(payload.get("lines", payload.get("products")), apply_gst=apply_gst)
    totals = draft.totals(
        non_negative(payload.get("discount"), "discount"),
        non_negative(payload.get("add_charges"), "add_charges"),
    )
    return {"draft": draft.to_dict(), "totals": totals.to_dict()}


def create_purchase_entry(ctx: SessionContext, shop_id: int, payload: dict) -> PurchaseEntry:
    supplier_id = to_int(payload.get("supplier_id"), "supplier_id")
    if supplier_id is None:
        raise PurchaseError("supplier_id is required")
    supplier = supplier_service.get_supplier(shop_id, supplier_id)

    state = require_text(payload.get("state"), "state")
    purchase_date = to_date(payload.get("purchase_date"), "purchase_date") or utcnow().date()
    bill_date = to_date(payload.get("supplier_bill_date"), "supplier_bill_date") or purchase_date

    apply_gst = to_bool(payload.get("apply_gst"))
    draft = PurchaseDraft.from_payload(payload.get("lines", payload.get("products")), apply_gst=apply_gst)
    if not len(draft):
        raise PurchaseError("Add at least one product to the purchase entry")

    discount = non_negative(payload.get("discount"), "discount")
    add_charges = non_negative(payload.get("add_charges"), "add_charges")
    totals = draft.totals(discount, add_charges)

    amount_due = quantize_money(totals.round_off_amount)
    paid = quantize_money(non_negative(payload.get("paid_amount"), "paid_amount"))
    balance = max(amount_due - paid, Decimal("0"))

    entry = PurchaseEntry(
        shop_id=shop_id,
        supplier_id=supplier.id,
        supplier_name=supplier.name,
        state=state,
        gst_no=to_text(payload.get("gst_no")) or supplier.gst_number,
        bill_no=to_text(payload.get("bill_no")),
        purchase_date=purchase_date,
        supplier_bill_date=bill_date,
        invoice_type=INVOICE_PURCHASE,
        gross_amount=quantize_money(totals.gross_amount),
        discount=discount,
        add_charges=add_charges,
        discount_amount=quantize_money(totals.discount_amount),
        surcharge_amount=quantize_money(totals.surcharge_amount),
        total_gst=quantize_money(totals.total_gst),
        round_off_amount=amount_due,
        net_amount=quantize_money(totals.net_amount),
        payment_mode=to_text(payload.get("payment_mode")) or "Cash",
        paid_amount=paid,
        balance_amount=balance,
        payment_status=tax_service.payment_status(amount_due, paid),
        created_by=ctx.profile.id,
    )

    for line in draft.lines:
        entry.products.append(PurchaseEntryProduct(
            line_key=line.id,
            name=line.name,
            category=line.category,
            sku=line.sku or None,
            barcode=line.barcode,
            unit_type=line.unit_type,
            stock=line.stock,
            mrp=line.mrp,
            stock_price=line.stock_price,
            price=line.price,
            weight_rate=line.weight_rate,
            gst_percentage=line.gst_percentage,
            sgst=line.sgst,
            cgst=line.cgst,
            total_amount=line.total_amount,
        ))

    supplier_service.add_purchase_balance(supplier, balance, purchase_date, bill_date)

    db.session.add(entry)
    db.session.commit()
    logger.info(
        "Purchase entry %s saved for shop %s: supplier=%s net=%s payable=%s",
        entry.id, shop_id, supplier.id, entry.net_amount, amount_due,
    )
    return entry


def _match_product(shop_id: int, line: PurchaseEntryProduct) -> Product | None:
    q = db.session.query(Product).filter(Product.shop_id == shop_id)
    if line.sku:
        product = q.filter(Product.sku == line.sku).first()
        if product:
            return product
    return q.filter(db.func.lower(Product.name) == line.name.lower()).order_by(Product.id.asc()).first()


def transfer_to_inventory(ctx: SessionContext, shop_id: int, entry_id: int) -> tuple[PurchaseEntry, list[dict]]:
    """Push an entry's lines into live products. One way; refused the second time."""
    entry = get_purchase_entry(shop_id, entry_id)
    if entry.is_transferred:
        raise PurchaseError("Purchase entry already transferred", {"purchase_entry_id": entry.id})

    summary = []
    for line in entry.products:
        product = _match_product(shop_id, line)
        created = product is None
        if created:
            product = Product(
                shop_id=shop_id,
                name=line.name,
                category=line.category,
                unit_type=line.unit_type,
                sku=line.sku or None,
                barcode=line.barcode,
                stock=Decimal("0"),
                sales_count=Decimal("0"),
            )
            db.session.add(product)
        elif not product.barcode and line.barcode:
            product.barcode = line.barcode

        product.price = line.price
        product.mrp = line.mrp
        product.stock_price = line.stock_price
        product.weight_rate = line.weight_rate
        product.gst_percentage = line.gst_percentage
        stock_service.add_stock(product, Decimal(line.stock))
        db.session.flush()

        stock_service.log_inventory_change(
            shop_id=shop_id,
            product_id=product.id,
            product_name=product.name,
            quantity=Decimal(line.stock),
            action="purchase",
            reference=entry.bill_no or f"PE-{entry.id}",
        )
        summary.append({
            "product_id": product.id,
            "name": product.name,
            "quantity": float(line.stock),
            "created": created,
        })

    entry.invoice_type = INVOICE_TRANSFERRED
    entry.transferred_at = utcnow()
    db.session.commit()

    logger.info(
        "Purchase entry %s transferred to inventory for shop %s by %s (%d lines)",
        entry.id, shop_id, ctx.profile.id, len(summary),
    )
    return entry, summary
