# Overview: Flask API routes for categories.

from flask import Blueprint, request

from ..container import get_services
from ..decorators import require_auth, require_role
from ..errors import CashierError, error_response
from ..models import Category, ROLE_ADMIN, ROLE_MANAGER
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_category

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name"},
    required_on_create={"name"},
)

categories_bp = Blueprint("categories", __name__, url_prefix="/api/v1/categories")


@categories_bp.get("")
@require_auth
def list_categories():
    items = get_services().categories.list()
    return {"items": items, "count": len(items)}


@categories_bp.get("/<int:category_id>")
@require_auth
def get_category(category_id: int):
    try:
        return get_services().categories.get(category_id)
    except CashierError as e:
        return error_response(e)


@categories_bp.post("")
@require_auth
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def create_category():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
        enforce_rules_category(patch)
        return get_services().categories.create(patch["name"]), 201
    except CashierError as e:
        return error_response(e)


@categories_bp.put("/<int:category_id>")
@require_auth
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def update_category(category_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        # Only one writable field, so PUT requires it
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
        enforce_rules_category(patch)
        return get_services().categories.update(category_id, patch["name"])
    except CashierError as e:
        return error_response(e)


@categories_bp.delete("/<int:category_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_category(category_id: int):
    """409 while any product still references the category."""
    try:
        get_services().categories.delete(category_id)
    except CashierError as e:
        return error_response(e)
    return {"ok": True}, 200
