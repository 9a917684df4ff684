from __future__ import annotations

from ..extensions import db
from cashier.time_utils import to_utc_z, utcnow

PAYMENT_CASH = "cash"
PAYMENT_CARD = "card"
PAYMENT_QRIS = "qris"
PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_CARD, PAYMENT_QRIS)

STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"


class Transaction(db.Model):
    """
    One checkout. Immutable after creation except for the
    completed -> cancelled status transition.

    Amounts are integer cents:
        subtotal_cents = SUM(items.subtotal_cents)
        tax_cents      = round_half_up(subtotal_cents * tax_rate_bps / 10000)
        total_cents    = subtotal_cents + tax_cents
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.UniqueConstraint("transaction_code", name="uq_transactions_code"),
        db.Index("ix_transactions_status_created", "status", "created_at"),
        db.Index("ix_transactions_payment_status", "payment_method", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable code (e.g., "TRX-20260105-0007")
    transaction_code = db.Column(db.String(50), nullable=False)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    subtotal_cents = db.Column(db.Integer, nullable=False)
    tax_rate_bps = db.Column(db.Integer, nullable=False, default=1100)
    tax_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    payment_method = db.Column(db.String(20), nullable=False)  # cash, card, qris
    status = db.Column(db.String(20), nullable=False, default=STATUS_COMPLETED, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Cancellation audit trail
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancelled_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    user = db.relationship("User", foreign_keys=[user_id])
    items = db.relationship(
        "TransactionItem",
        back_populates="transaction",
        order_by="TransactionItem.id",
        lazy=True,
    )
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} code={self.transaction_code!r} status={self.status}>"

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "transaction_code": self.transaction_code,
            "user_id": self.user_id,
            "cashier_name": self.user.name if self.user else "",
            "subtotal_cents": self.subtotal_cents,
            "tax_rate_bps": self.tax_rate_bps,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
            "payment_method": self.payment_method,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "cancelled_at": to_utc_z(self.cancelled_at) if self.cancelled_at else None,
            "cancelled_by_user_id": self.cancelled_by_user_id,
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        else:
            data["item_count"] = len(self.items)
        return data


class TransactionItem(db.Model):
    """Line item with product name and price snapshotted at sale time."""
    __tablename__ = "transaction_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_transaction_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    product_name = db.Column(db.String(150), nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    subtotal_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    transaction = db.relationship("Transaction", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "price_cents": self.price_cents,
            "quantity": self.quantity,
            "subtotal_cents": self.subtotal_cents,
        }


class DocumentSequence(db.Model):
    """
    Atomic per-day document sequences.

    WHY: Prevent race conditions when generating transaction codes.
    Counting today's rows and adding one hands out the same number to
    concurrent checkouts; an UPDATE ... SET next_number = next_number + 1
    on a single row serializes them.
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("document_type", "period", name="uq_doc_sequences_type_period"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    document_type = db.Column(db.String(32), nullable=False, index=True)
    # YYYYMMDD
    period = db.Column(db.String(8), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
