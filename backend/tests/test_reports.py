from datetime import timedelta

import pytest

from cashier.errors import ValidationError
from cashier.models import Transaction
from cashier.time_utils import utcnow


def _sell(services, user, product, qty=1, method="cash"):
    return services.transactions.checkout(user.id, [(product.id, qty)], method)


def test_dashboard_counts_revenue_only_for_completed(services, cashier_user, product, second_product):
    kept = _sell(services, cashier_user, product)                # 11100
    cancelled = _sell(services, cashier_user, second_product)    # 2775
    services.transactions.cancel(cancelled.id)

    dashboard = services.reports.dashboard()
    assert dashboard["today_revenue_cents"] == kept.total_cents == 11100
    assert dashboard["today_transactions"] == 2
    assert dashboard["total_products"] == 2
    # product stock 4, second_product back to 10
    assert dashboard["low_stock_count"] == 1


def test_export_includes_every_status(services, cashier_user, product, second_product):
    _sell(services, cashier_user, product)
    cancelled = _sell(services, cashier_user, second_product)
    services.transactions.cancel(cancelled.id)

    today = utcnow().date().isoformat()
    exported = services.reports.export_transactions(today, today)
    assert sorted(t["status"] for t in exported) == ["cancelled", "completed"]
    assert all("items" in t for t in exported)

    revenue = services.reports.revenue_by_range(today, today)
    assert revenue["revenue_cents"] == 11100


def test_range_rejects_bad_dates(services):
    with pytest.raises(ValidationError):
        services.reports.revenue_by_range("2026-13-01", "2026-13-02")
    with pytest.raises(ValidationError):
        services.reports.export_transactions(None, "2026-01-01")
    with pytest.raises(ValidationError):
        services.reports.revenue_by_range("2026-02-02", "2026-02-01")


def test_payment_distribution_with_no_transactions(services):
    rows = services.reports.payment_distribution()
    assert [r["payment_method"] for r in rows] == ["cash", "card", "qris"]
    assert all(r["count"] == 0 and r["percentage"] == 0 for r in rows)


def test_payment_distribution_percentages(services, cashier_user, second_product):
    _sell(services, cashier_user, second_product, method="cash")
    _sell(services, cashier_user, second_product, method="cash")
    _sell(services, cashier_user, second_product, method="qris")
    voided = _sell(services, cashier_user, second_product, method="card")
    services.transactions.cancel(voided.id)

    by_method = {r["payment_method"]: r for r in services.reports.payment_distribution()}
    assert by_method["cash"]["count"] == 2
    assert by_method["cash"]["percentage"] == 66.67
    assert by_method["qris"]["percentage"] == 33.33
    assert by_method["card"]["count"] == 0


def test_top_products_ordered_by_quantity(services, cashier_user, product, second_product):
    _sell(services, cashier_user, product, qty=1)
    _sell(services, cashier_user, second_product, qty=4)

    rows = services.reports.top_products(limit=10)
    assert [r["product_name"] for r in rows] == ["Green Tea", "Avo Coffee"]
    assert rows[0] == {
        "product_id": second_product.id,
        "product_name": "Green Tea",
        "total_sold": 4,
        "total_revenue_cents": 10000,
    }
    assert len(services.reports.top_products(limit=1)) == 1


def test_daily_revenue_buckets_oldest_first(services, db_session, cashier_user, product, second_product):
    today_sale = _sell(services, cashier_user, product)
    old_sale = _sell(services, cashier_user, second_product)
    cancelled_old = _sell(services, cashier_user, second_product)
    services.transactions.cancel(cancelled_old.id)

    two_days_ago = utcnow() - timedelta(days=2)
    for trx_id in (old_sale.id, cancelled_old.id):
        db_session.get(Transaction, trx_id).created_at = two_days_ago
    db_session.commit()

    rows = services.reports.daily_revenue(3)
    assert [r["date"] for r in rows] == [
        (utcnow().date() - timedelta(days=n)).isoformat() for n in (2, 1, 0)
    ]
    assert rows[0]["revenue_cents"] == old_sale.total_cents
    assert rows[0]["transaction_count"] == 2
    assert rows[1] == {"date": rows[1]["date"], "revenue_cents": 0, "transaction_count": 0}
    assert rows[2]["revenue_cents"] == today_sale.total_cents


def test_daily_revenue_rejects_bad_window(services):
    with pytest.raises(ValidationError):
        services.reports.daily_revenue(0)


def test_monthly_summary(services, cashier_user, product):
    trx = _sell(services, cashier_user, product, qty=2)
    summary = services.reports.monthly_summary()
    assert summary["month"] == utcnow().strftime("%Y-%m")
    assert summary["revenue_cents"] == trx.total_cents
    assert summary["transaction_count"] == 1
