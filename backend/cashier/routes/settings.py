# Overview: Flask API routes for store settings.

from flask import Blueprint, request

from ..container import get_services
from ..decorators import require_auth, require_role
from ..errors import CashierError, error_response
from ..models import ROLE_ADMIN

settings_bp = Blueprint("settings", __name__, url_prefix="/api/v1/settings")


@settings_bp.get("")
@require_auth
def list_settings():
    items = get_services().settings.list()
    return {"items": items, "count": len(items)}


@settings_bp.get("/store")
@require_auth
def store_settings():
    return get_services().settings.store_settings()


@settings_bp.get("/payment")
@require_auth
def payment_settings():
    return get_services().settings.payment_settings()


@settings_bp.get("/<string:key>")
@require_auth
def get_setting(key: str):
    try:
        return get_services().settings.get(key)
    except CashierError as e:
        return error_response(e)


@settings_bp.put("")
@require_auth
@require_role(ROLE_ADMIN)
def upsert_setting():
    """Body: {"key": str, "value": str}. Creates the key if it does not exist."""
    payload = request.get_json(silent=True) or {}
    try:
        return get_services().settings.upsert(payload.get("key"), payload.get("value"))
    except CashierError as e:
        return error_response(e)


@settings_bp.put("/batch")
@require_auth
@require_role(ROLE_ADMIN)
def upsert_settings():
    """Body: [{"key", "value"}, ...], applied all-or-nothing."""
    payload = request.get_json(silent=True)
    try:
        items = get_services().settings.upsert_many(payload)
        return {"items": items, "count": len(items)}
    except CashierError as e:
        return error_response(e)
