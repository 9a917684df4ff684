# Overview: Flask API routes for reports; read-only rollups over the ledger.

from flask import Blueprint, request

from ..container import get_services
from ..decorators import require_auth, require_role
from ..errors import CashierError, error_response
from ..models import ROLE_ADMIN, ROLE_MANAGER
from ..services.report_service import DEFAULT_DAILY_DAYS, DEFAULT_TOP_LIMIT

reports_bp = Blueprint("reports", __name__, url_prefix="/api/v1/reports")


@reports_bp.get("/dashboard")
@require_auth
def dashboard():
    return get_services().reports.dashboard()


@reports_bp.get("/revenue/daily")
@require_auth
def daily_revenue():
    days = request.args.get("days", default=DEFAULT_DAILY_DAYS, type=int)
    try:
        rows = get_services().reports.daily_revenue(days)
        return {"items": rows, "count": len(rows)}
    except CashierError as e:
        return error_response(e)


@reports_bp.get("/revenue/range")
@require_auth
def revenue_by_range():
    try:
        return get_services().reports.revenue_by_range(
            request.args.get("start_date"), request.args.get("end_date")
        )
    except CashierError as e:
        return error_response(e)


@reports_bp.get("/payment-distribution")
@require_auth
def payment_distribution():
    return {"items": get_services().reports.payment_distribution()}


@reports_bp.get("/products/top")
@require_auth
def top_products():
    limit = request.args.get("limit", default=DEFAULT_TOP_LIMIT, type=int)
    try:
        rows = get_services().reports.top_products(limit)
        return {"items": rows, "count": len(rows)}
    except CashierError as e:
        return error_response(e)


@reports_bp.get("/summary/monthly")
@require_auth
def monthly_summary():
    return get_services().reports.monthly_summary()


@reports_bp.get("/export/transactions")
@require_auth
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def export_transactions():
    """start_date and end_date (YYYY-MM-DD) are required; every status is included."""
    try:
        rows = get_services().reports.export_transactions(
            request.args.get("start_date"), request.args.get("end_date")
        )
        return {"items": rows, "count": len(rows)}
    except CashierError as e:
        return error_response(e)
