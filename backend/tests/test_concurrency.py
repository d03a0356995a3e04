"""
Concurrent ledger writes against a file-backed database.

Verifies:
- Racing stock_out calls on the same product: exactly one wins, stock never goes negative
- Racing sales on the same customer never lose an update
- Both ledgers still replay to their stored values afterwards
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from backoffice import create_app
from backoffice.extensions import db
from backoffice.models import Customer, CustomerTransaction, InventoryTransaction, Product, User
from backoffice.services.customer_service import apply_customer_transaction
from backoffice.services.inventory_service import apply_inventory_transaction
from backoffice.services.ledger_service import verify_customer_ledger, verify_product_ledger
from backoffice.validation import InsufficientStockError


WORKERS = 4


@pytest.fixture
def file_app(tmp_path):
    """Separate app on a SQLite file so every thread gets its own connection."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'ledger.db'}",
        'SQLALCHEMY_ENGINE_OPTIONS': {'connect_args': {'timeout': 30}},
        'AUDIT_ASYNC': False,
    })
    with app.app_context():
        db.create_all()
        admin = User(email="admin@example.com", name="Ada Admin", role="admin", password_hash="unused")
        db.session.add(admin)
        db.session.commit()
        db.session.remove()

    yield app

    with app.app_context():
        db.session.remove()
        db.engine.dispose()


def _race(app, fn):
    """Run fn(app) on WORKERS threads released together; return their outcomes."""
    barrier = threading.Barrier(WORKERS)

    def _worker():
        with app.app_context():
            try:
                barrier.wait(timeout=10)
                return fn()
            finally:
                db.session.remove()

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        futures = [pool.submit(_worker) for _ in range(WORKERS)]
        return [f.result() for f in futures]


class TestConcurrentStockOut:

    def test_only_one_withdrawal_succeeds(self, file_app):
        with file_app.app_context():
            admin_id = User.query.one().id
            product = Product(code="PRDRACE01", name="Last Five", current_stock=0)
            db.session.add(product)
            db.session.commit()
            product_id = product.id
            apply_inventory_transaction(product_id, "stock_in", 5, actor_id=admin_id)
            db.session.remove()

        def _withdraw():
            try:
                apply_inventory_transaction(product_id, "stock_out", 5, actor_id=admin_id)
            except InsufficientStockError:
                return "insufficient"
            return "ok"

        outcomes = _race(file_app, _withdraw)

        assert outcomes.count("ok") == 1
        assert outcomes.count("insufficient") == WORKERS - 1

        with file_app.app_context():
            assert db.session.get(Product, product_id).current_stock == 0
            rows = InventoryTransaction.query.filter_by(product_id=product_id).all()
            assert sorted(t.transaction_type for t in rows) == ["stock_in", "stock_out"]
            assert verify_product_ledger(product_id).ok


class TestConcurrentSales:

    def test_no_lost_updates(self, file_app):
        with file_app.app_context():
            admin_id = User.query.one().id
            customer = Customer(code="CUSRACE01", name="Busy Buyer", current_balance_cents=0)
            db.session.add(customer)
            db.session.commit()
            customer_id = customer.id
            db.session.remove()

        amounts = iter([1_000, 2_000, 3_000, 4_000])
        amounts_lock = threading.Lock()

        def _sell():
            with amounts_lock:
                amount = next(amounts)
            actor = db.session.get(User, admin_id)
            try:
                apply_customer_transaction(customer_id, "sale", amount, actor=actor)
            except (OperationalError, StaleDataError):
                # Retries exhausted; must leave no trace
                return 0
            return amount

        committed = _race(file_app, _sell)

        assert any(committed)
        with file_app.app_context():
            customer = db.session.get(Customer, customer_id)
            rows = CustomerTransaction.query.filter_by(customer_id=customer_id).all()
            assert customer.current_balance_cents == sum(committed)
            assert sorted(t.amount_cents for t in rows) == sorted(a for a in committed if a)
            assert verify_customer_ledger(customer_id).ok
