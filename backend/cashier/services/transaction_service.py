"""
Transaction Service - checkout and cancellation

Checkout validates the cart against the catalog, prices every line from the
product record (never from the client), computes subtotal/tax/total in
integer cents, allocates a transaction code, writes the transaction with its
items and decrements stock. All of it happens in ONE database transaction:
either every row is written or none is.

Cancellation is the exact inverse of checkout's stock effect. The cancelled
transaction stays in the ledger; only "completed" transactions count toward
revenue.
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..errors import ConflictError, NotFoundError, InsufficientStockError, ValidationError
from ..models import (
    Transaction,
    TransactionItem,
    PAYMENT_METHODS,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
)
from ..repositories import (
    ProductRepository,
    SequenceRepository,
    TransactionRepository,
    UserRepository,
)
from cashier.time_utils import utcnow, day_bounds
from .concurrency import run_in_transaction
from .inventory_service import InventoryService

# 11% tax, in basis points
TAX_RATE_BPS = 1100

TRANSACTION_DOCUMENT_TYPE = "TRANSACTION"
TRANSACTION_CODE_PREFIX = "TRX"


def calculate_tax_cents(subtotal_cents: int, rate_bps: int = TAX_RATE_BPS) -> int:
    """tax = subtotal * rate, nearest-cent rounding (half-up)."""
    return (subtotal_cents * rate_bps + 5000) // 10000


def format_transaction_code(period: str, number: int, pad: int = 4) -> str:
    return f"{TRANSACTION_CODE_PREFIX}-{period}-{number:0{pad}d}"


class TransactionService:
    def __init__(
        self,
        session,
        transactions: TransactionRepository,
        products: ProductRepository,
        users: UserRepository,
        sequences: SequenceRepository,
        inventory: InventoryService,
    ):
        self.session = session
        self.transactions = transactions
        self.products = products
        self.users = users
        self.sequences = sequences
        self.inventory = inventory

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def checkout(self, cashier_id: int, items: list[tuple[int, int]], payment_method: str) -> Transaction:
        """
        Create a completed transaction from (product_id, quantity) pairs.

        Raises:
            ValidationError: empty cart, bad quantity or payment method
            NotFoundError: cashier or product does not exist
            InsufficientStockError: a product has less stock than requested
        """
        if not items:
            raise ValidationError("transaction must have at least one item")
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")
        for product_id, quantity in items:
            if quantity <= 0:
                raise ValidationError("quantity must be > 0", details={"product_id": product_id})

        def _work() -> Transaction:
            cashier = self.users.get(cashier_id)
            if cashier is None:
                raise NotFoundError("cashier not found", details={"user_id": cashier_id})

            requested: dict[int, int] = {}
            lines: list[TransactionItem] = []
            subtotal_cents = 0

            for product_id, quantity in items:
                product = self.products.get(product_id, lock=True)
                if product is None:
                    raise NotFoundError(f"product not found: {product_id}", details={"product_id": product_id})

                # The same product may appear on several lines
                requested[product_id] = requested.get(product_id, 0) + quantity
                if product.stock < requested[product_id]:
                    raise InsufficientStockError(
                        product.name,
                        product_id=product.id,
                        requested=requested[product_id],
                        available=product.stock,
                    )

                line_total = product.price_cents * quantity
                subtotal_cents += line_total
                lines.append(
                    TransactionItem(
                        product_id=product.id,
                        product_name=product.name,
                        price_cents=product.price_cents,
                        quantity=quantity,
                        subtotal_cents=line_total,
                    )
                )

            tax_cents = calculate_tax_cents(subtotal_cents)
            now = utcnow()

            transaction = Transaction(
                transaction_code=self._next_code(now),
                user_id=cashier.id,
                subtotal_cents=subtotal_cents,
                tax_rate_bps=TAX_RATE_BPS,
                tax_cents=tax_cents,
                total_cents=subtotal_cents + tax_cents,
                payment_method=payment_method,
                status=STATUS_COMPLETED,
                created_at=now,
                updated_at=now,
            )
            transaction.items = lines
            self.transactions.add(transaction)

            for product_id, quantity in requested.items():
                self.inventory.adjust_stock(product_id, -quantity, commit=False)

            return transaction

        transaction = run_in_transaction(self.session, _work)
        current_app.logger.info(
            "Checkout %s by user %s: %d line(s), total_cents=%d, payment=%s",
            transaction.transaction_code,
            cashier_id,
            len(items),
            transaction.total_cents,
            payment_method,
        )
        return transaction

    def _next_code(self, now: datetime) -> str:
        period = now.strftime("%Y%m%d")
        number = self.sequences.next_number(TRANSACTION_DOCUMENT_TYPE, period)
        return format_transaction_code(period, number)

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def cancel(self, transaction_id: int, actor_user_id: int | None = None) -> Transaction:
        """
        Cancel a completed transaction and put its items back in stock.

        Soft-deleted products get their stock back too. A product row that no
        longer exists at all is skipped with a warning; the cancellation still
        goes through.

        Raises:
            NotFoundError: no such transaction
            ConflictError: transaction already cancelled
        """
        def _work() -> Transaction:
            transaction = self.transactions.get(transaction_id, lock=True)
            if transaction is None:
                raise NotFoundError("transaction not found", details={"transaction_id": transaction_id})

            if transaction.status == STATUS_CANCELLED:
                raise ConflictError("transaction is already cancelled")

            for item in transaction.items:
                if self.products.get(item.product_id, include_inactive=True) is None:
                    current_app.logger.warning(
                        "Cancel %s: product %s no longer exists, %d unit(s) not restored",
                        transaction.transaction_code,
                        item.product_id,
                        item.quantity,
                    )
                    continue
                self.inventory.adjust_stock(
                    item.product_id,
                    item.quantity,
                    include_inactive=True,
                    commit=False,
                )

            now = utcnow()
            transaction.status = STATUS_CANCELLED
            transaction.cancelled_at = now
            transaction.cancelled_by_user_id = actor_user_id
            transaction.updated_at = now
            return transaction

        transaction = run_in_transaction(self.session, _work)
        current_app.logger.info(
            "Cancelled %s by user %s", transaction.transaction_code, actor_user_id
        )
        return transaction

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, transaction_id: int) -> Transaction:
        transaction = self.transactions.get(transaction_id)
        if transaction is None:
            raise NotFoundError("transaction not found")
        return transaction

    def get_by_code(self, code: str) -> Transaction:
        transaction = self.transactions.get_by_code(code)
        if transaction is None:
            raise NotFoundError("transaction not found")
        return transaction

    def list(
        self,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        payment_method: str | None = None,
        user_id: int | None = None,
        page: int | None = None,
        per_page: int | None = None,
    ) -> dict:
        """
        Filtered listing, newest first, with optional pagination.

        Returns:
            Dict with 'items', 'count', and pagination metadata if paginated.
        """
        if payment_method and payment_method not in PAYMENT_METHODS:
            raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")

        base_query = self.transactions.list(
            start=start,
            end=end,
            payment_method=payment_method,
            user_id=user_id,
        )

        if page is None:
            rows = base_query.all()
            return {
                "items": [t.to_dict(include_items=False) for t in rows],
                "count": len(rows),
            }

        per_page = min(per_page or 20, 100)  # Default 20, max 100
        page = max(page, 1)

        total = base_query.count()
        total_pages = (total + per_page - 1) // per_page if total > 0 else 1
        rows = base_query.offset((page - 1) * per_page).limit(per_page).all()

        return {
            "items": [t.to_dict(include_items=False) for t in rows],
            "count": len(rows),
            "pagination": {
                "page": page,
                "per_page": per_page,
                "total": total,
                "total_pages": total_pages,
                "has_next": page < total_pages,
                "has_prev": page > 1,
            },
        }

    def list_today(self, now: datetime | None = None) -> dict:
        start, end = day_bounds((now or utcnow()).date())
        return self.list(start=start, end=end)

    def list_by_user(self, user_id: int) -> dict:
        return self.list(user_id=user_id)
