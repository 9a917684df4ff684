import pytest

from cashier.errors import InsufficientStockError, NotFoundError, ValidationError
from cashier.models import Product, Transaction, TransactionItem, STATUS_COMPLETED
from cashier.services.transaction_service import calculate_tax_cents, format_transaction_code


def _stock(db_session, product_id):
    return db_session.get(Product, product_id).stock


def test_single_item_checkout_totals_and_stock(services, db_session, cashier_user, product):
    trx = services.transactions.checkout(cashier_user.id, [(product.id, 1)], "cash")

    assert trx.subtotal_cents == 10000
    assert trx.tax_cents == 1100
    assert trx.total_cents == 11100
    assert trx.status == STATUS_COMPLETED
    assert trx.payment_method == "cash"
    assert _stock(db_session, product.id) == 4

    data = trx.to_dict()
    assert data["cashier_name"] == "Cashier"
    assert data["items"] == [
        {
            "id": data["items"][0]["id"],
            "product_id": product.id,
            "product_name": "Avo Coffee",
            "price_cents": 10000,
            "quantity": 1,
            "subtotal_cents": 10000,
        }
    ]


def test_multi_line_totals_are_consistent(services, cashier_user, product, second_product):
    trx = services.transactions.checkout(
        cashier_user.id, [(product.id, 2), (second_product.id, 3)], "qris"
    )

    assert trx.subtotal_cents == sum(item.subtotal_cents for item in trx.items) == 27500
    assert trx.tax_cents == calculate_tax_cents(27500) == 3025
    assert trx.total_cents == trx.subtotal_cents + trx.tax_cents


def test_price_snapshot_survives_catalog_change(services, db_session, cashier_user, product):
    trx = services.transactions.checkout(cashier_user.id, [(product.id, 1)], "card")
    services.products.update(product.id, {"name": "Avo Coffee Large", "price_cents": 15000})

    reloaded = services.transactions.get(trx.id)
    assert reloaded.items[0].product_name == "Avo Coffee"
    assert reloaded.items[0].price_cents == 10000


def test_empty_cart_is_rejected_without_side_effects(services, db_session, cashier_user, product):
    with pytest.raises(ValidationError) as exc:
        services.transactions.checkout(cashier_user.id, [], "cash")

    assert exc.value.message == "transaction must have at least one item"
    assert db_session.query(Transaction).count() == 0
    assert _stock(db_session, product.id) == 5


def test_unknown_payment_method_is_rejected(services, cashier_user, product):
    with pytest.raises(ValidationError):
        services.transactions.checkout(cashier_user.id, [(product.id, 1)], "bitcoin")


def test_non_positive_quantity_is_rejected(services, cashier_user, product):
    with pytest.raises(ValidationError):
        services.transactions.checkout(cashier_user.id, [(product.id, 0)], "cash")


def test_missing_product_rolls_back_everything(services, db_session, cashier_user, product):
    with pytest.raises(NotFoundError):
        services.transactions.checkout(cashier_user.id, [(product.id, 2), (999999, 1)], "cash")

    assert _stock(db_session, product.id) == 5
    assert db_session.query(Transaction).count() == 0
    assert db_session.query(TransactionItem).count() == 0


def test_inactive_product_cannot_be_sold(services, cashier_user, product):
    services.products.delete(product.id)

    with pytest.raises(NotFoundError):
        services.transactions.checkout(cashier_user.id, [(product.id, 1)], "cash")


def test_insufficient_stock_names_the_product(services, db_session, cashier_user, product):
    with pytest.raises(InsufficientStockError) as exc:
        services.transactions.checkout(cashier_user.id, [(product.id, 6)], "cash")

    assert "Avo Coffee" in exc.value.message
    assert exc.value.details["requested_quantity"] == 6
    assert exc.value.details["available"] == 5
    assert _stock(db_session, product.id) == 5


def test_duplicate_lines_are_checked_cumulatively(services, db_session, cashier_user, product):
    with pytest.raises(InsufficientStockError):
        services.transactions.checkout(cashier_user.id, [(product.id, 3), (product.id, 3)], "cash")
    assert _stock(db_session, product.id) == 5

    trx = services.transactions.checkout(cashier_user.id, [(product.id, 2), (product.id, 3)], "cash")
    assert len(trx.items) == 2
    assert _stock(db_session, product.id) == 0


def test_unknown_cashier_is_rejected(services, product):
    with pytest.raises(NotFoundError):
        services.transactions.checkout(424242, [(product.id, 1)], "cash")


def test_transaction_codes_are_sequential_per_day(services, cashier_user, second_product):
    first = services.transactions.checkout(cashier_user.id, [(second_product.id, 1)], "cash")
    second = services.transactions.checkout(cashier_user.id, [(second_product.id, 1)], "cash")

    period = first.created_at.strftime("%Y%m%d")
    assert first.transaction_code == format_transaction_code(period, 1) == f"TRX-{period}-0001"
    assert second.transaction_code == f"TRX-{period}-0002"


def test_failed_checkout_does_not_consume_a_code(services, cashier_user, product):
    with pytest.raises(InsufficientStockError):
        services.transactions.checkout(cashier_user.id, [(product.id, 50)], "cash")

    trx = services.transactions.checkout(cashier_user.id, [(product.id, 1)], "cash")
    assert trx.transaction_code.endswith("-0001")


@pytest.mark.parametrize(
    "subtotal, expected",
    [(0, 0), (1, 0), (5, 1), (10000, 1100), (27500, 3025), (123, 14)],
)
def test_tax_rounds_half_up(subtotal, expected):
    assert calculate_tax_cents(subtotal) == expected


def test_code_padding_grows_past_four_digits():
    assert format_transaction_code("20260105", 7) == "TRX-20260105-0007"
    assert format_transaction_code("20260105", 12345) == "TRX-20260105-12345"


def test_items_repository_returns_lines_in_order(services, db_session, cashier_user, product, second_product):
    from cashier.repositories import TransactionItemRepository

    trx = services.transactions.checkout(cashier_user.id, [(second_product.id, 2), (product.id, 1)], "cash")
    lines = TransactionItemRepository(db_session).for_transaction(trx.id)
    assert [(line.product_name, line.quantity) for line in lines] == [("Green Tea", 2), ("Avo Coffee", 1)]
