# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product management routes.

All product operations are scoped to the shop resolved by @require_shop.

SECURITY: All routes require authentication.
- Read operations and the scanner lookup require VIEW_PRODUCTS
- Create, update and delete require MANAGE_PRODUCTS
- Exports require VIEW_REPORTS
"""
from flask import Blueprint, Response, current_app, g, jsonify, request

from ..decorators import error_response, require_auth, require_permission, require_role, require_shop
from ..models import Product
from ..models.auth import ROLE_MANAGER
from ..services import export_service, import_service, products_service, unit_service
from ..services.export_service import ExportError, XLSX_MIMETYPE
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=set(products_service.PRODUCT_MUTABLE_FIELDS),
    required_on_create={"name", "category", "price"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _payload() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    data = dict(data)
    data.pop("shop_id", None)
    return data


def _flag(name: str, default: str = "true") -> bool:
    return request.args.get(name, default).lower() in {"1", "true", "yes"}


def _xlsx(payload: bytes, filename: str) -> Response:
    return Response(
        payload,
        mimetype=XLSX_MIMETYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@products_bp.get("")
@require_auth
@require_shop
@require_permission("VIEW_PRODUCTS")
def list_products():
    """
    List the shop's products.

    Query params:
    - search: matches name, SKU or barcode
    - category: exact category
    - low_stock: true to keep only low-stock products
    - page / per_page: optional pagination (per_page max 100)
    """
    page = request.args.get("page", type=int)
    per_page = request.args.get("per_page", type=int)
    result = products_service.list_products(
        g.shop_id,
        search=request.args.get("search"),
        category=request.args.get("category"),
        low_stock=_flag("low_stock", "false"),
        page=page,
        per_page=per_page,
    )
    return jsonify(result)


@products_bp.get("/categories")
@require_auth
@require_shop
@require_permission("VIEW_PRODUCTS")
def list_categories():
    return jsonify({"categories": products_service.list_categories(g.shop_id)})


@products_bp.get("/units")
@require_auth
def list_units():
    """Unit types with their class and quantity step; ?category= narrows the options."""
    category = request.args.get("category")
    options = unit_service.unit_options_for_category(category) if category else list(unit_service.UNIT_TYPES)
    return jsonify({
        "units": [unit_service.describe(u) for u in options],
        "default": unit_service.category_unit_type(category),
    })


@products_bp.get("/barcode/<code>")
@require_auth
@require_shop
@require_permission("VIEW_PRODUCTS")
def lookup_barcode(code: str):
    product = products_service.lookup_by_barcode(g.shop_id, code)
    if product is None:
        return jsonify({"error": "Product not found", "code": code}), 404
    return jsonify({"product": product.to_dict(), "unit": unit_service.describe(product.unit_type)})


@products_bp.get("/<int:product_id>")
@require_auth
@require_shop
@require_permission("VIEW_PRODUCTS")
def get_product(product_id: int):
    try:
        product = products_service.get_product(g.shop_id, product_id)
    except NotFoundError as e:
        return error_response(e, 404)
    return jsonify({"product": product.to_dict()})


@products_bp.get("/<int:product_id>/tax")
@require_auth
@require_shop
@require_permission("VIEW_PRODUCTS")
def product_tax(product_id: int):
    """SGST/CGST breakdown of the selling price; ?apply_gst=false disables GST."""
    try:
        product = products_service.get_product(g.shop_id, product_id)
    except NotFoundError as e:
        return error_response(e, 404)
    breakdown = products_service.tax_breakdown(product, apply_gst=_flag("apply_gst"))
    return jsonify({"product_id": product.id, "tax": breakdown.rounded().to_dict()})


@products_bp.post("")
@require_auth
@require_shop
@require_permission("MANAGE_PRODUCTS")
def create_product():
    try:
        patch = validate_payload(model=Product, payload=_payload(), policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        product = products_service.create_product(patch=patch, shop_id=g.shop_id)
        current_app.logger.info("Product %s created in shop %s", product.id, g.shop_id)
        return jsonify({"product": product.to_dict()}), 201
    except ValidationError as e:
        return error_response(e, 400)
    except ConflictError as e:
        return error_response(e, 409)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.route("/<int:product_id>", methods=["PUT", "PATCH"])
@require_auth
@require_shop
@require_permission("MANAGE_PRODUCTS")
def update_product(product_id: int):
    try:
        patch = validate_payload(model=Product, payload=_payload(), policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        product = products_service.update_product(shop_id=g.shop_id, product_id=product_id, patch=patch)
        return jsonify({"product": product.to_dict()})
    except ValidationError as e:
        return error_response(e, 400)
    except NotFoundError as e:
        return error_response(e, 404)
    except ConflictError as e:
        return error_response(e, 409)
    except Exception:
        current_app.logger.exception("Failed to update product %s", product_id)
        return jsonify({"error": "Internal server error"}), 500


@products_bp.delete("/<int:product_id>")
@require_auth
@require_shop
@require_role(ROLE_MANAGER)
@require_permission("MANAGE_PRODUCTS")
def delete_product(product_id: int):
    try:
        products_service.delete_product(shop_id=g.shop_id, product_id=product_id)
        current_app.logger.info("Product %s deleted from shop %s", product_id, g.shop_id)
        return jsonify({"deleted": product_id})
    except NotFoundError as e:
        return error_response(e, 404)
    except Exception:
        current_app.logger.exception("Failed to delete product %s", product_id)
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/export")
@require_auth
@require_shop
@require_permission("VIEW_REPORTS")
def export_products():
    """?kind=barcodes exports the barcode sheet instead of the product list."""
    kind = request.args.get("kind", "products")
    rows_source = products_service.shop_products(g.shop_id)
    try:
        if kind == "barcodes":
            payload, filename = export_service.export_to_excel(
                export_service.format_barcodes(rows_source), "product_barcodes", "Barcodes"
            )
        else:
            payload, filename = export_service.export_to_excel(
                export_service.format_products(rows_source), "products", "Products"
            )
    except ExportError as e:
        return error_response(e, 400)
    return _xlsx(payload, filename)


@products_bp.get("/import-template")
@require_auth
@require_permission("VIEW_PRODUCTS")
def import_template():
    return _xlsx(import_service.product_template_workbook(), "product_import_template.xlsx")
