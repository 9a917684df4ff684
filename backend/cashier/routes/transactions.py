# Overview: Flask API routes for checkout, cancellation and transaction lookups.

from flask import Blueprint, current_app, g, request

from ..container import get_services
from ..decorators import require_auth, require_role
from ..errors import CashierError, ValidationError, error_response
from ..models import ROLE_ADMIN, ROLE_MANAGER
from ..time_utils import day_bounds, parse_date
from ..validation import parse_checkout_payload

transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/v1/transactions")


def _date_arg(name: str):
    try:
        return parse_date(request.args.get(name))
    except ValueError as exc:
        raise ValidationError(f"{name} must be YYYY-MM-DD") from exc


@transactions_bp.get("")
@require_auth
def list_transactions():
    """
    Query params:
    - start_date, end_date: YYYY-MM-DD (optional, inclusive)
    - payment_method: cash | card | qris (optional)
    - user_id: int (optional)
    - page, per_page: pagination (optional)
    """
    try:
        start_day = _date_arg("start_date")
        end_day = _date_arg("end_date")
        return get_services().transactions.list(
            start=day_bounds(start_day)[0] if start_day else None,
            end=day_bounds(end_day)[1] if end_day else None,
            payment_method=request.args.get("payment_method") or None,
            user_id=request.args.get("user_id", type=int),
            page=request.args.get("page", type=int),
            per_page=request.args.get("per_page", type=int),
        )
    except CashierError as e:
        return error_response(e)


@transactions_bp.get("/today")
@require_auth
def list_today():
    return get_services().transactions.list_today()


@transactions_bp.get("/<int:transaction_id>")
@require_auth
def get_transaction(transaction_id: int):
    try:
        return {"transaction": get_services().transactions.get(transaction_id).to_dict()}
    except CashierError as e:
        return error_response(e)


@transactions_bp.get("/code/<string:code>")
@require_auth
def get_transaction_by_code(code: str):
    try:
        return {"transaction": get_services().transactions.get_by_code(code).to_dict()}
    except CashierError as e:
        return error_response(e)


@transactions_bp.get("/user/<int:user_id>")
@require_auth
def list_by_user(user_id: int):
    return get_services().transactions.list_by_user(user_id)


@transactions_bp.post("")
@require_auth
def checkout():
    """
    Body: {"items": [{"product_id", "quantity"}, ...], "payment_method": "cash" | "card" | "qris"}

    The cashier is the authenticated user. Prices come from the catalog.
    """
    payload = request.get_json(silent=True)
    try:
        items, payment_method = parse_checkout_payload(payload)
        transaction = get_services().transactions.checkout(g.current_user.id, items, payment_method)
        return {"transaction": transaction.to_dict()}, 201
    except CashierError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create transaction")
        return {"error": "Internal server error"}, 500


@transactions_bp.post("/<int:transaction_id>/cancel")
@require_auth
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def cancel(transaction_id: int):
    try:
        transaction = get_services().transactions.cancel(transaction_id, g.current_user.id)
        return {"transaction": transaction.to_dict()}, 200
    except CashierError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to cancel transaction %s", transaction_id)
        return {"error": "Internal server error"}, 500
