from __future__ import annotations

from sqlalchemy import func

from ..models import Category, Product


class CategoryRepository:
    def __init__(self, session):
        self.session = session

    def list(self) -> list[Category]:
        return self.session.query(Category).order_by(Category.name.asc(), Category.id.asc()).all()

    def get(self, category_id: int) -> Category | None:
        return self.session.get(Category, category_id)

    def find_by_name(self, name: str, *, exclude_id: int | None = None) -> Category | None:
        # Names compare case-insensitively so "Drinks" and "drinks" collide
        query = self.session.query(Category).filter(func.lower(Category.name) == name.lower())
        if exclude_id is not None:
            query = query.filter(Category.id != exclude_id)
        return query.first()

    def count_products(self, category_id: int) -> int:
        return self.session.query(Product).filter(Product.category_id == category_id).count()

    def add(self, category: Category) -> Category:
        self.session.add(category)
        self.session.flush()
        return category

    def delete(self, category: Category) -> None:
        self.session.delete(category)
        self.session.flush()
