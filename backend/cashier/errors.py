# Overview: Error kinds raised by services and mapped to HTTP status codes by routes.

from __future__ import annotations


class CashierError(Exception):
    """Base class for expected, recoverable service errors."""

    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(CashierError):
    """400-level input problem."""

    status_code = 400


class AuthError(CashierError):
    """401-level credential problem (bad password, inactive account)."""

    status_code = 401


class NotFoundError(CashierError):
    """404-level missing product, category, user or transaction."""

    status_code = 404


class ConflictError(CashierError):
    """409-level business rule conflict (e.g., duplicate category name)."""

    status_code = 409


class InsufficientStockError(CashierError):
    """Requested quantity exceeds available stock."""

    status_code = 409

    def __init__(
        self,
        product_name: str,
        *,
        product_id: int | None = None,
        requested: int | None = None,
        available: int | None = None,
    ):
        super().__init__(
            f"insufficient stock for product: {product_name}",
            details={
                "product_id": product_id,
                "product_name": product_name,
                "requested_quantity": requested,
                "available": available,
            },
        )
        self.product_id = product_id
        self.product_name = product_name


def error_response(exc: CashierError):
    """(body, status) pair for a route to return."""
    return exc.to_dict(), exc.status_code
