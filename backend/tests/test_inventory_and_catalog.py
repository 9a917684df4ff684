import pytest

from cashier.errors import ConflictError, InsufficientStockError, NotFoundError, ValidationError
from cashier.models import Category, Product


# ---------------------------------------------------------------------------
# Inventory adjuster
# ---------------------------------------------------------------------------

def test_adjust_stock_applies_signed_delta(services, product):
    assert services.inventory.adjust_stock(product.id, 7).stock == 12
    assert services.inventory.adjust_stock(product.id, -12).stock == 0


def test_adjust_stock_never_goes_negative(services, db_session, product):
    with pytest.raises(InsufficientStockError) as exc:
        services.inventory.adjust_stock(product.id, -6)

    assert exc.value.product_name == "Avo Coffee"
    assert db_session.get(Product, product.id).stock == 5


def test_adjust_stock_zero_delta_is_invalid(services, product):
    with pytest.raises(ValidationError):
        services.inventory.adjust_stock(product.id, 0)


def test_adjust_stock_unknown_or_inactive_product(services, product):
    with pytest.raises(NotFoundError):
        services.inventory.adjust_stock(999999, 1)

    services.products.delete(product.id)
    with pytest.raises(NotFoundError):
        services.inventory.adjust_stock(product.id, 1)

    # cancellation path reaches soft-deleted rows
    assert services.inventory.adjust_stock(product.id, 1, include_inactive=True).stock == 6


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

def test_category_crud(services):
    created = services.categories.create("Snack")
    assert services.categories.get(created["id"]) == {"id": created["id"], "name": "Snack"}

    updated = services.categories.update(created["id"], "Snacks")
    assert updated["name"] == "Snacks"

    services.categories.delete(created["id"])
    with pytest.raises(NotFoundError):
        services.categories.get(created["id"])


def test_category_names_are_unique_case_insensitively(services, category):
    with pytest.raises(ConflictError):
        services.categories.create("minuman")

    other = services.categories.create("Makanan")
    with pytest.raises(ConflictError):
        services.categories.update(other["id"], "MINUMAN")


def test_category_rename_to_itself_is_allowed(services, category):
    assert services.categories.update(category.id, "Minuman")["name"] == "Minuman"


def test_category_delete_blocked_while_products_reference_it(services, db_session, category, product):
    with pytest.raises(ConflictError) as exc:
        services.categories.delete(category.id)
    assert exc.value.details["product_count"] == 1

    # soft-deleted products still hold the reference
    services.products.delete(product.id)
    with pytest.raises(ConflictError):
        services.categories.delete(category.id)
    assert db_session.get(Category, category.id) is not None


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

def test_create_product_requires_existing_category(services):
    with pytest.raises(NotFoundError):
        services.products.create({"name": "Ghost", "price_cents": 100, "category_id": 999})


def test_create_and_update_product(services, category):
    created = services.products.create(
        {"name": "Chococa", "price_cents": 2000000, "stock": 100, "category_id": category.id}
    )
    assert created["stock"] == 100
    assert created["category"] == "Minuman"

    updated = services.products.update(created["id"], {"price_cents": 2100000, "stock": 1})
    assert updated["price_cents"] == 2100000
    # stock is not writable through update
    assert updated["stock"] == 100


def test_soft_delete_hides_product(services, db_session, product):
    services.products.delete(product.id)

    with pytest.raises(NotFoundError):
        services.products.get(product.id)
    assert services.products.list()["count"] == 0
    assert db_session.get(Product, product.id) is not None


def test_list_search_and_pagination(services, product, second_product):
    assert [p["name"] for p in services.products.list(search="tea")["items"]] == ["Green Tea"]

    page = services.products.list(page=1, per_page=1)
    assert page["count"] == 1
    assert page["pagination"]["total"] == 2
    assert page["pagination"]["has_next"] is True
    assert page["pagination"]["has_prev"] is False


def test_list_by_category(services, category, product):
    assert services.products.list_by_category(category.id)["count"] == 1
    with pytest.raises(NotFoundError):
        services.products.list_by_category(999)


def test_low_stock(services, product, second_product):
    low = services.products.low_stock(10)
    assert [p["name"] for p in low] == ["Avo Coffee"]
