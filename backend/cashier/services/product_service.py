# backend/cashier/services/product_service.py
"""
Products Service

Catalog edits for products. Stock is deliberately NOT part of the mutable
field set: after creation it only moves through InventoryService, which is
what adjust_stock() delegates to.
"""
from __future__ import annotations

from ..errors import NotFoundError
from ..models import Product
from ..repositories import CategoryRepository, ProductRepository
from .concurrency import run_in_transaction
from .inventory_service import InventoryService

PRODUCT_MUTABLE_FIELDS = {"name", "price_cents", "category_id", "image"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


class ProductService:
    def __init__(
        self,
        session,
        products: ProductRepository,
        categories: CategoryRepository,
        inventory: InventoryService,
    ):
        self.session = session
        self.products = products
        self.categories = categories
        self.inventory = inventory

    def _require(self, product_id: int) -> Product:
        product = self.products.get(product_id)
        if product is None:
            raise NotFoundError("product not found")
        return product

    def _require_category(self, category_id: int) -> None:
        if self.categories.get(category_id) is None:
            raise NotFoundError("category not found", details={"category_id": category_id})

    def list(
        self,
        *,
        category_id: int | None = None,
        search: str | None = None,
        page: int | None = None,
        per_page: int | None = None,
    ) -> dict:
        """
        Active products with optional category filter, name search and pagination.

        Args:
            category_id: Only products in this category
            search: Case-insensitive substring match on name
            page: Page number (1-indexed). If None, returns all items.
            per_page: Items per page (default 20, max 100)

        Returns:
            Dict with 'items', 'count', and pagination metadata if paginated.
        """
        base_query = self.products.list(category_id=category_id, search=search)

        # If no pagination requested, return all items
        if page is None:
            products = base_query.all()
            return {
                "items": [p.to_dict() for p in products],
                "count": len(products),
            }

        per_page = min(per_page or 20, 100)  # Default 20, max 100
        page = max(page, 1)  # Ensure page >= 1

        total = base_query.count()
        total_pages = (total + per_page - 1) // per_page if total > 0 else 1

        products = base_query.offset((page - 1) * per_page).limit(per_page).all()

        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
            "pagination": {
                "page": page,
                "per_page": per_page,
                "total": total,
                "total_pages": total_pages,
                "has_next": page < total_pages,
                "has_prev": page > 1,
            },
        }

    def get(self, product_id: int) -> dict:
        return self._require(product_id).to_dict()

    def list_by_category(self, category_id: int) -> dict:
        self._require_category(category_id)
        return self.list(category_id=category_id)

    def low_stock(self, threshold: int) -> list[dict]:
        return [p.to_dict() for p in self.products.low_stock(threshold)]

    def create(self, patch: dict) -> dict:
        """
        Create product using a validated patch dict.

        Raises:
            NotFoundError: category_id does not reference an existing category
        """
        def _work():
            self._require_category(patch["category_id"])
            p = Product(stock=patch.get("stock") or 0)
            apply_product_patch(p, patch)
            return self.products.add(p)

        return run_in_transaction(self.session, _work).to_dict()

    def update(self, product_id: int, patch: dict) -> dict:
        def _work():
            p = self._require(product_id)
            if "category_id" in patch and patch["category_id"] != p.category_id:
                self._require_category(patch["category_id"])
            apply_product_patch(p, patch)
            return p

        return run_in_transaction(self.session, _work).to_dict()

    def delete(self, product_id: int) -> None:
        """
        Soft-delete a product.

        Soft-delete only: preserve IDs and historical references.
        """
        def _work():
            p = self._require(product_id)
            p.is_active = False

        run_in_transaction(self.session, _work)

    def adjust_stock(self, product_id: int, delta: int) -> dict:
        return self.inventory.adjust_stock(product_id, delta).to_dict()
