# Overview: Read-only rollups over the transaction ledger.

"""
Reports

Revenue figures only count COMPLETED transactions. Transaction counts and the
export include every status, so cancelled sales stay visible in the ledger
without inflating revenue.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from ..errors import ValidationError
from ..models import PAYMENT_METHODS, STATUS_COMPLETED
from ..repositories import ProductRepository, TransactionItemRepository, TransactionRepository
from cashier.time_utils import day_bounds, parse_date, utcnow

DEFAULT_DAILY_DAYS = 7
MAX_DAILY_DAYS = 366
DEFAULT_TOP_LIMIT = 10


def _parse_range(start_date: str | None, end_date: str | None) -> tuple[datetime, datetime]:
    """YYYY-MM-DD pair to datetimes; end date is inclusive to the last microsecond of the day."""
    if not start_date or not end_date:
        raise ValidationError("start_date and end_date are required (YYYY-MM-DD)")
    try:
        start_day = parse_date(start_date)
        end_day = parse_date(end_date)
    except ValueError as exc:
        raise ValidationError("invalid date format, expected YYYY-MM-DD") from exc
    if end_day < start_day:
        raise ValidationError("end_date must not be before start_date")
    return day_bounds(start_day)[0], day_bounds(end_day)[1]


class ReportService:
    def __init__(
        self,
        transactions: TransactionRepository,
        items: TransactionItemRepository,
        products: ProductRepository,
        *,
        low_stock_threshold: int = 10,
    ):
        self.transactions = transactions
        self.items = items
        self.products = products
        self.low_stock_threshold = low_stock_threshold

    def dashboard(self, now: datetime | None = None) -> dict:
        start, end = day_bounds((now or utcnow()).date())
        return {
            "today_revenue_cents": self.transactions.total_revenue(start, end),
            "today_transactions": self.transactions.count(start, end),
            "total_products": self.products.count_active(),
            "low_stock_count": self.products.count_low_stock(self.low_stock_threshold),
        }

    def daily_revenue(self, days: int = DEFAULT_DAILY_DAYS, now: datetime | None = None) -> list[dict]:
        """One row per day for the last `days` days (today included), oldest first."""
        if days < 1 or days > MAX_DAILY_DAYS:
            raise ValidationError(f"days must be between 1 and {MAX_DAILY_DAYS}")

        today: date = (now or utcnow()).date()
        first = today - timedelta(days=days - 1)
        totals = self.transactions.daily_totals(day_bounds(first)[0], day_bounds(today)[1])

        rows = []
        for offset in range(days):
            day = (first + timedelta(days=offset)).isoformat()
            revenue_cents, count = totals.get(day, (0, 0))
            rows.append({"date": day, "revenue_cents": revenue_cents, "transaction_count": count})
        return rows

    def revenue_by_range(self, start_date: str | None, end_date: str | None) -> dict:
        start, end = _parse_range(start_date, end_date)
        return {
            "start_date": start.date().isoformat(),
            "end_date": end.date().isoformat(),
            "revenue_cents": self.transactions.total_revenue(start, end),
        }

    def payment_distribution(self) -> list[dict]:
        counts = {method: self.transactions.count_by_payment_method(method) for method in PAYMENT_METHODS}
        total = sum(counts.values())

        result = []
        for method in PAYMENT_METHODS:
            percentage = 0.0
            if total > 0:
                percentage = round(counts[method] / total * 100, 2)
            result.append({"payment_method": method, "count": counts[method], "percentage": percentage})
        return result

    def top_products(self, limit: int = DEFAULT_TOP_LIMIT) -> list[dict]:
        if limit < 1:
            raise ValidationError("limit must be >= 1")
        return [
            {
                "product_id": row.product_id,
                "product_name": row.product_name,
                "total_sold": int(row.total_quantity or 0),
                "total_revenue_cents": int(row.total_revenue_cents or 0),
            }
            for row in self.items.top_products(limit)
        ]

    def monthly_summary(self, now: datetime | None = None) -> dict:
        now = now or utcnow()
        first = now.date().replace(day=1)
        start = day_bounds(first)[0]
        end = day_bounds(now.date())[1]
        return {
            "month": first.strftime("%Y-%m"),
            "revenue_cents": self.transactions.total_revenue(start, end),
            "transaction_count": self.transactions.count(start, end, status=STATUS_COMPLETED),
        }

    def export_transactions(self, start_date: str | None, end_date: str | None) -> list[dict]:
        """Full transaction dicts, every status, in the inclusive date range."""
        start, end = _parse_range(start_date, end_date)
        return [t.to_dict() for t in self.transactions.list(start=start, end=end).all()]
