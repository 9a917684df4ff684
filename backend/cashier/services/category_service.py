# Overview: Service-layer operations for categories; name uniqueness and delete guard.

from __future__ import annotations

from ..errors import ConflictError, NotFoundError
from ..models import Category
from ..repositories import CategoryRepository
from .concurrency import run_in_transaction


class CategoryService:
    def __init__(self, session, categories: CategoryRepository):
        self.session = session
        self.categories = categories

    def list(self) -> list[dict]:
        return [c.to_dict() for c in self.categories.list()]

    def _require(self, category_id: int) -> Category:
        category = self.categories.get(category_id)
        if category is None:
            raise NotFoundError("category not found")
        return category

    def get(self, category_id: int) -> dict:
        return self._require(category_id).to_dict()

    def create(self, name: str) -> dict:
        """
        Raises:
            ConflictError: a category with the same name (case-insensitive) exists
        """
        def _work():
            if self.categories.find_by_name(name):
                raise ConflictError("category name already exists")
            return self.categories.add(Category(name=name))

        return run_in_transaction(self.session, _work).to_dict()

    def update(self, category_id: int, name: str) -> dict:
        def _work():
            category = self._require(category_id)
            if name != category.name and self.categories.find_by_name(name, exclude_id=category.id):
                raise ConflictError("category name already exists")
            category.name = name
            return category

        return run_in_transaction(self.session, _work).to_dict()

    def delete(self, category_id: int) -> None:
        """
        Hard-delete a category.

        Blocked while any product row (active or soft-deleted) still points at
        it, since transaction history keeps those products alive.
        """
        def _work():
            category = self._require(category_id)
            in_use = self.categories.count_products(category.id)
            if in_use:
                raise ConflictError(
                    "category is still used by products",
                    details={"category_id": category.id, "product_count": in_use},
                )
            self.categories.delete(category)

        run_in_transaction(self.session, _work)
