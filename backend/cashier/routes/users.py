# Overview: Flask API routes for the caller's profile and user administration.
"""
User routes.

- /users/profile and /users/profile/password: any authenticated user
- everything else: admin only
"""
from flask import Blueprint, g, request

from ..container import get_services
from ..decorators import require_auth, require_role
from ..errors import CashierError, ValidationError, error_response
from ..models import ROLE_ADMIN

users_bp = Blueprint("users", __name__, url_prefix="/api/v1/users")


@users_bp.get("/profile")
@require_auth
def profile():
    return {"user": g.current_user.to_dict()}


@users_bp.put("/profile/password")
@require_auth
def change_password():
    """Body: {"old_password", "new_password"}"""
    payload = request.get_json(silent=True) or {}
    try:
        old_password = payload.get("old_password")
        new_password = payload.get("new_password")
        if not isinstance(old_password, str) or not isinstance(new_password, str) \
                or not old_password or not new_password:
            raise ValidationError("old_password and new_password are required")
        get_services().auth.change_password(
            g.current_user.id, old_password, new_password
        )
    except CashierError as e:
        return error_response(e)
    return {"ok": True}, 200


@users_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def list_users():
    users = get_services().auth.list_users()
    return {"items": users, "count": len(users)}


@users_bp.get("/<int:user_id>")
@require_auth
@require_role(ROLE_ADMIN)
def get_user(user_id: int):
    try:
        return {"user": get_services().auth.get_user(user_id).to_dict()}
    except CashierError as e:
        return error_response(e)


@users_bp.put("/<int:user_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_user(user_id: int):
    """Body: any of {"name", "email", "role", "is_active"}"""
    payload = request.get_json(silent=True) or {}
    try:
        is_active = payload.get("is_active")
        if is_active is not None and not isinstance(is_active, bool):
            raise ValidationError("is_active must be a boolean")
        name = payload.get("name")
        if name is not None and (not isinstance(name, str) or len(name.strip()) < 2):
            raise ValidationError("name must be at least 2 characters")
        email = payload.get("email")
        if email is not None and (not isinstance(email, str) or "@" not in email):
            raise ValidationError("email must be a valid address")

        user = get_services().auth.update_user(
            user_id,
            name=name,
            email=email,
            role=payload.get("role"),
            is_active=is_active,
        )
        return {"user": user.to_dict()}
    except CashierError as e:
        return error_response(e)


@users_bp.delete("/<int:user_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_user(user_id: int):
    if user_id == g.current_user.id:
        return {"error": "cannot delete your own account"}, 409
    try:
        get_services().auth.delete_user(user_id)
    except CashierError as e:
        return error_response(e)
    return {"ok": True}, 200
