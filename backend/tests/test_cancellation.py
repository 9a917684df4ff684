import pytest

from cashier.errors import ConflictError, NotFoundError
from cashier.models import Product, STATUS_CANCELLED


def _stock(db_session, product_id):
    return db_session.get(Product, product_id).stock


def test_checkout_then_cancel_restores_stock(services, db_session, cashier_user, manager_user, product):
    trx = services.transactions.checkout(cashier_user.id, [(product.id, 1)], "cash")
    assert _stock(db_session, product.id) == 4

    cancelled = services.transactions.cancel(trx.id, manager_user.id)

    assert cancelled.status == STATUS_CANCELLED
    assert cancelled.cancelled_at is not None
    assert cancelled.cancelled_by_user_id == manager_user.id
    assert _stock(db_session, product.id) == 5


def test_cancel_twice_conflicts_and_leaves_stock(services, db_session, cashier_user, product):
    trx = services.transactions.checkout(cashier_user.id, [(product.id, 2)], "cash")
    services.transactions.cancel(trx.id)
    assert _stock(db_session, product.id) == 5

    with pytest.raises(ConflictError):
        services.transactions.cancel(trx.id)
    assert _stock(db_session, product.id) == 5


def test_cancel_unknown_transaction(services):
    with pytest.raises(NotFoundError):
        services.transactions.cancel(123456)


def test_cancel_restores_soft_deleted_product(services, db_session, cashier_user, product):
    trx = services.transactions.checkout(cashier_user.id, [(product.id, 3)], "card")
    services.products.delete(product.id)

    services.transactions.cancel(trx.id)

    restored = db_session.get(Product, product.id)
    assert restored.is_active is False
    assert restored.stock == 5


def test_net_stock_after_mixed_sequence(services, db_session, cashier_user, product, second_product):
    a = services.transactions.checkout(cashier_user.id, [(product.id, 2), (second_product.id, 4)], "cash")
    services.transactions.checkout(cashier_user.id, [(product.id, 1)], "qris")
    services.transactions.cancel(a.id)
    services.transactions.checkout(cashier_user.id, [(second_product.id, 1)], "card")

    # sold 2+1 of product, 2 restored; sold 4+1 of second, 4 restored
    assert _stock(db_session, product.id) == 4
    assert _stock(db_session, second_product.id) == 9


def test_cancelled_transaction_stays_in_ledger(services, cashier_user, product):
    trx = services.transactions.checkout(cashier_user.id, [(product.id, 1)], "cash")
    services.transactions.cancel(trx.id)

    listing = services.transactions.list()
    assert listing["count"] == 1
    assert listing["items"][0]["status"] == STATUS_CANCELLED
