"""
Concurrent checkouts against a file-backed SQLite database.

Each worker runs in its own thread with its own app context (and therefore
its own session/connection), the way concurrent requests do.
"""
import os
import tempfile
import threading
import unittest

from cashier import create_app
from cashier.container import get_services
from cashier.errors import InsufficientStockError
from cashier.extensions import db
from cashier.models import Category, Product, Transaction, User


class ConcurrencyTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "concurrency.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
        })

        with self.app.app_context():
            db.drop_all()
            db.create_all()

            user = User(
                name="Concurrent Cashier",
                email="concurrent@example.com",
                password_hash="dummy",
                role="cashier",
                is_active=True,
            )
            category = Category(name="Minuman")
            db.session.add_all([user, category])
            db.session.commit()
            self.user_id = user.id

            product = Product(name="Concurrent Coffee", price_cents=10000, stock=5, category_id=category.id)
            db.session.add(product)
            db.session.commit()
            self.product_id = product.id

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.session.remove()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def _run_checkouts(self, quantities):
        results = []
        lock = threading.Lock()
        barrier = threading.Barrier(len(quantities))

        def worker(qty):
            with self.app.app_context():
                try:
                    barrier.wait()
                    trx = get_services().transactions.checkout(self.user_id, [(self.product_id, qty)], "cash")
                    with lock:
                        results.append(("ok", trx.transaction_code))
                except InsufficientStockError as exc:
                    with lock:
                        results.append(("insufficient", exc))
                except Exception as exc:
                    with lock:
                        results.append(("error", exc))
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=worker, args=(qty,)) for qty in quantities]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return results

    def _stock(self):
        with self.app.app_context():
            try:
                return db.session.get(Product, self.product_id).stock
            finally:
                db.session.remove()

    def test_two_checkouts_cannot_oversell(self):
        results = self._run_checkouts([3, 3])

        outcomes = sorted(kind for kind, _ in results)
        self.assertEqual(outcomes, ["insufficient", "ok"], results)
        self.assertEqual(self._stock(), 2)

        with self.app.app_context():
            self.assertEqual(db.session.query(Transaction).count(), 1)
            db.session.remove()

    def test_many_checkouts_sell_exactly_the_stock(self):
        results = self._run_checkouts([1] * 8)

        ok = [code for kind, code in results if kind == "ok"]
        self.assertFalse([r for r in results if r[0] == "error"], results)
        self.assertEqual(len(ok), 5)
        self.assertEqual(len(ok), len(set(ok)))
        self.assertEqual(self._stock(), 0)


if __name__ == "__main__":
    unittest.main()
