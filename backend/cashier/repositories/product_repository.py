from __future__ import annotations

from sqlalchemy import update

from ..models import Product
from ..services.concurrency import lock_for_update


class ProductRepository:
    def __init__(self, session):
        self.session = session

    def _active(self):
        return self.session.query(Product).filter(Product.is_active.is_(True))

    def get(self, product_id: int, *, include_inactive: bool = False, lock: bool = False) -> Product | None:
        query = self.session.query(Product) if include_inactive else self._active()
        query = query.filter(Product.id == product_id)
        if lock:
            query = lock_for_update(query)
        return query.first()

    def list(self, *, category_id: int | None = None, search: str | None = None):
        """Base query for active products; callers paginate or .all() it."""
        query = self._active()
        if category_id is not None:
            query = query.filter(Product.category_id == category_id)
        if search:
            query = query.filter(Product.name.ilike(f"%{search.strip()}%"))
        return query.order_by(Product.name.asc(), Product.id.asc())

    def count_active(self) -> int:
        return self._active().count()

    def low_stock(self, threshold: int) -> list[Product]:
        return (
            self._active()
            .filter(Product.stock < threshold)
            .order_by(Product.stock.asc(), Product.name.asc())
            .all()
        )

    def count_low_stock(self, threshold: int) -> int:
        return self._active().filter(Product.stock < threshold).count()

    def add(self, product: Product) -> Product:
        self.session.add(product)
        self.session.flush()
        return product

    def apply_stock_delta(self, product_id: int, delta: int, *, include_inactive: bool = False) -> int:
        """
        Conditional UPDATE: stock = stock + delta only when the result stays >= 0.

        Returns the number of rows affected (0 or 1). The check and the write
        are one statement, so two concurrent decrements cannot both pass.
        """
        criteria = [Product.id == product_id, Product.stock + delta >= 0]
        if not include_inactive:
            criteria.append(Product.is_active.is_(True))

        stmt = (
            update(Product)
            .where(*criteria)
            .values(stock=Product.stock + delta, version_id=Product.version_id + 1)
            .execution_options(synchronize_session="fetch")
        )
        result = self.session.execute(stmt)
        return result.rowcount
