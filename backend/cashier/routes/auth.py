# Overview: Flask API routes for login, registration and logout.

from flask import Blueprint, current_app, g, request

from ..container import get_services
from ..decorators import bearer_token, require_auth
from ..errors import CashierError, ValidationError, error_response
from ..models import ROLE_ADMIN, ROLE_CASHIER

auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


def _require_fields(payload: dict, *fields: str) -> None:
    missing = [f for f in fields if not isinstance(payload.get(f), str) or not payload.get(f).strip()]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


@auth_bp.post("/login")
def login():
    """
    Body: {"email": str, "password": str}

    Returns {"token", "user"}; 401 on bad credentials or inactive account.
    """
    payload = request.get_json(silent=True) or {}
    try:
        _require_fields(payload, "email", "password")
        result = get_services().auth.login(
            payload["email"],
            payload["password"],
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        return result, 200
    except CashierError as e:
        return error_response(e)


def _caller_is_admin() -> bool:
    token = bearer_token()
    if token is None:
        return False
    user = get_services().sessions.validate(token)
    return user is not None and user.role == ROLE_ADMIN


@auth_bp.post("/register")
def register():
    """
    Body: {"name", "email", "password", "role"?}. Role defaults to cashier.

    Open to anyone for cashier accounts; any other role needs an admin's
    bearer token (403 otherwise).
    """
    payload = request.get_json(silent=True) or {}
    role = payload.get("role")
    if role not in (None, "", ROLE_CASHIER) and not _caller_is_admin():
        return {"error": "Permission denied", "required_roles": [ROLE_ADMIN]}, 403
    try:
        _require_fields(payload, "name", "email", "password")
        if len(payload["name"].strip()) < 2:
            raise ValidationError("name must be at least 2 characters")
        if "@" not in payload["email"]:
            raise ValidationError("email must be a valid address")
        user = get_services().auth.register(
            payload["name"],
            payload["email"],
            payload["password"],
            role or None,
        )
        return {"user": user.to_dict()}, 201
    except CashierError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to register user")
        return {"error": "Internal server error"}, 500


@auth_bp.post("/logout")
@require_auth
def logout():
    get_services().auth.logout(g.session_token)
    return {"ok": True}, 200
