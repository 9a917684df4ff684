# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/cashier/routes/products.py
"""
Product management routes.

SECURITY: All routes require authentication.
- Reads: any role
- Create/update and stock adjustment: admin or manager
- Delete (soft): admin only
"""
from flask import Blueprint, current_app, request

from ..container import get_services
from ..decorators import require_auth, require_role
from ..errors import CashierError, ValidationError, error_response
from ..models import Product, ROLE_ADMIN, ROLE_MANAGER
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    coerce_int,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "price_cents", "stock", "category_id", "image"},
    required_on_create={"name", "price_cents", "category_id"},
)

# Stock only moves through PATCH /<id>/stock after creation
PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "price_cents", "category_id", "image"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/v1/products")


@products_bp.get("")
@require_auth
def list_products():
    """
    List active products with optional pagination.

    Query params:
    - category_id: int (optional) - filter by category
    - search: str (optional) - case-insensitive name match
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    return get_services().products.list(
        category_id=request.args.get("category_id", type=int),
        search=request.args.get("search"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )


@products_bp.get("/low-stock")
@require_auth
def low_stock():
    threshold = request.args.get("threshold", type=int)
    if threshold is None:
        threshold = current_app.config["LOW_STOCK_THRESHOLD"]
    items = get_services().products.low_stock(threshold)
    return {"items": items, "count": len(items), "threshold": threshold}


@products_bp.get("/category/<int:category_id>")
@require_auth
def list_by_category(category_id: int):
    try:
        return get_services().products.list_by_category(category_id)
    except CashierError as e:
        return error_response(e)


@products_bp.get("/<int:product_id>")
@require_auth
def get_product(product_id: int):
    try:
        return get_services().products.get(product_id)
    except CashierError as e:
        return error_response(e)


@products_bp.post("")
@require_auth
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def create_product_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)  # Handles price validation including max check
        return get_services().products.create(patch), 201
    except CashierError as e:
        return error_response(e)


@products_bp.put("/<int:product_id>")
@require_auth
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        if "stock" in payload:
            raise ValidationError("stock cannot be set directly; use PATCH /products/<id>/stock")
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
        enforce_rules_product(patch)
        return get_services().products.update(product_id, patch)
    except CashierError as e:
        return error_response(e)


@products_bp.patch("/<int:product_id>/stock")
@require_auth
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def adjust_stock_route(product_id: int):
    """Body: {"quantity": <signed delta>}. 409 if stock would go negative."""
    payload = request.get_json(silent=True) or {}
    try:
        if "quantity" not in payload:
            raise ValidationError("Missing required fields: quantity")
        delta = coerce_int("quantity", payload["quantity"])
        return get_services().products.adjust_stock(product_id, delta)
    except CashierError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to adjust stock for product %s", product_id)
        return {"error": "Internal server error"}, 500


@products_bp.delete("/<int:product_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_product_route(product_id: int):
    """Soft delete: the row stays for transaction history."""
    try:
        get_services().products.delete(product_id)
    except CashierError as e:
        return error_response(e)
    return {"ok": True}, 200
