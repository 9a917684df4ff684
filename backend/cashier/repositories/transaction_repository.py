from __future__ import annotations

from datetime import datetime

from sqlalchemy import case, func
from sqlalchemy.orm import selectinload

from ..models import Transaction, TransactionItem, STATUS_COMPLETED
from ..services.concurrency import lock_for_update


class TransactionRepository:
    def __init__(self, session):
        self.session = session

    def _with_details(self):
        return self.session.query(Transaction).options(
            selectinload(Transaction.items),
            selectinload(Transaction.user),
        )

    def get(self, transaction_id: int, *, lock: bool = False) -> Transaction | None:
        query = self._with_details().filter(Transaction.id == transaction_id)
        if lock:
            query = lock_for_update(query)
        return query.first()

    def get_by_code(self, code: str) -> Transaction | None:
        return self._with_details().filter(Transaction.transaction_code == code).first()

    def list(
        self,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        payment_method: str | None = None,
        user_id: int | None = None,
        status: str | None = None,
    ):
        """Filtered query, newest first. Bounds are inclusive."""
        query = self._with_details()
        if start is not None:
            query = query.filter(Transaction.created_at >= start)
        if end is not None:
            query = query.filter(Transaction.created_at <= end)
        if payment_method:
            query = query.filter(Transaction.payment_method == payment_method)
        if user_id is not None:
            query = query.filter(Transaction.user_id == user_id)
        if status:
            query = query.filter(Transaction.status == status)
        return query.order_by(Transaction.created_at.desc(), Transaction.id.desc())

    def add(self, transaction: Transaction) -> Transaction:
        self.session.add(transaction)
        self.session.flush()
        return transaction

    def total_revenue(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        *,
        status: str | None = STATUS_COMPLETED,
    ) -> int:
        query = self.session.query(func.coalesce(func.sum(Transaction.total_cents), 0))
        if start is not None:
            query = query.filter(Transaction.created_at >= start)
        if end is not None:
            query = query.filter(Transaction.created_at <= end)
        if status:
            query = query.filter(Transaction.status == status)
        return int(query.scalar() or 0)

    def count(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        *,
        status: str | None = None,
    ) -> int:
        query = self.session.query(func.count(Transaction.id))
        if start is not None:
            query = query.filter(Transaction.created_at >= start)
        if end is not None:
            query = query.filter(Transaction.created_at <= end)
        if status:
            query = query.filter(Transaction.status == status)
        return int(query.scalar() or 0)

    def daily_totals(self, start: datetime, end: datetime) -> dict[str, tuple[int, int]]:
        """
        Per-day rollup between start and end (inclusive).

        Returns {"YYYY-MM-DD": (completed_revenue_cents, transaction_count)};
        days without transactions are absent. Counts include every status.
        """
        day = func.strftime("%Y-%m-%d", Transaction.created_at).label("day")
        revenue = func.coalesce(
            func.sum(case((Transaction.status == STATUS_COMPLETED, Transaction.total_cents), else_=0)),
            0,
        )
        rows = (
            self.session.query(day, revenue.label("revenue_cents"), func.count(Transaction.id).label("transaction_count"))
            .filter(Transaction.created_at >= start, Transaction.created_at <= end)
            .group_by(day)
            .all()
        )
        return {row.day: (int(row.revenue_cents or 0), int(row.transaction_count or 0)) for row in rows}

    def count_by_payment_method(self, method: str, *, status: str | None = STATUS_COMPLETED) -> int:
        query = self.session.query(func.count(Transaction.id)).filter(Transaction.payment_method == method)
        if status:
            query = query.filter(Transaction.status == status)
        return int(query.scalar() or 0)


class TransactionItemRepository:
    def __init__(self, session):
        self.session = session

    def for_transaction(self, transaction_id: int) -> list[TransactionItem]:
        return (
            self.session.query(TransactionItem)
            .filter_by(transaction_id=transaction_id)
            .order_by(TransactionItem.id.asc())
            .all()
        )

    def top_products(self, limit: int) -> list:
        """
        Quantity sold per product across all transactions, highest first.

        Ties keep whatever order the database aggregates them in.
        """
        total_quantity = func.sum(TransactionItem.quantity).label("total_quantity")
        return (
            self.session.query(
                TransactionItem.product_id.label("product_id"),
                func.max(TransactionItem.product_name).label("product_name"),
                total_quantity,
                func.coalesce(func.sum(TransactionItem.subtotal_cents), 0).label("total_revenue_cents"),
            )
            .group_by(TransactionItem.product_id)
            .order_by(total_quantity.desc())
            .limit(limit)
            .all()
        )
