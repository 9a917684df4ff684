# Overview: Service-layer operations for inventory; the single path by which product stock changes.

"""
Stock invariants (authoritative)

- Product.stock is set once when the product is created.
- After that, stock changes ONLY through InventoryService.adjust_stock().
- adjust_stock applies a signed delta with one conditional UPDATE
  (stock = stock + delta WHERE stock + delta >= 0), so the check and the
  write cannot be interleaved by another request.
- A product's stock is never negative after any adjustment.
"""

from __future__ import annotations

from ..errors import InsufficientStockError, NotFoundError, ValidationError
from ..models import Product
from ..repositories import ProductRepository
from .concurrency import run_in_transaction


class InventoryService:
    def __init__(self, session, products: ProductRepository):
        self.session = session
        self.products = products

    def adjust_stock(
        self,
        product_id: int,
        delta: int,
        *,
        include_inactive: bool = False,
        commit: bool = True,
    ) -> Product:
        """
        Apply a signed delta to a product's stock.

        commit=False joins the caller's open transaction (checkout, cancellation);
        commit=True runs as its own unit of work.

        Raises:
            ValidationError: delta is zero
            NotFoundError: product missing (or inactive, unless include_inactive)
            InsufficientStockError: resulting stock would be negative
        """
        if delta == 0:
            raise ValidationError("quantity must be non-zero")

        if not commit:
            return self._apply(product_id, delta, include_inactive=include_inactive)

        return run_in_transaction(
            self.session,
            lambda: self._apply(product_id, delta, include_inactive=include_inactive),
        )

    def _apply(self, product_id: int, delta: int, *, include_inactive: bool) -> Product:
        affected = self.products.apply_stock_delta(product_id, delta, include_inactive=include_inactive)

        product = self.products.get(product_id, include_inactive=True)
        if not affected:
            if product is None or (not product.is_active and not include_inactive):
                raise NotFoundError("product not found", details={"product_id": product_id})
            raise InsufficientStockError(
                product.name,
                product_id=product.id,
                requested=-delta,
                available=product.stock,
            )

        return product
