"""
CLI command tests (ledger verification, user bootstrap) and the health endpoint.
"""

from backoffice.models import User
from backoffice.services.customer_service import apply_customer_transaction
from backoffice.services.inventory_service import apply_inventory_transaction


class TestLedgerVerify:

    def test_clean_ledgers_pass(self, app, db_session, manager, make_product, make_customer):
        product = make_product()
        customer = make_customer()
        apply_inventory_transaction(product.id, "stock_in", 12, actor_id=manager.id)
        apply_customer_transaction(customer.id, "sale", 900, actor=manager)

        result = app.test_cli_runner().invoke(args=["ledger", "verify"])
        assert result.exit_code == 0
        assert "PASS 2 ledgers verified" in result.output

    def test_drift_fails(self, app, db_session, manager, make_product):
        product = make_product()
        apply_inventory_transaction(product.id, "stock_in", 12, actor_id=manager.id)
        product.current_stock = 13
        db_session.commit()

        result = app.test_cli_runner().invoke(args=["ledger", "verify"])
        assert result.exit_code == 1
        assert f"FAIL product {product.id}: stored stock 13, replayed 12" in result.output


class TestUsersCommands:

    def test_create_and_list(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "users", "create",
            "--email", "boss@example.com", "--name", "Bo Boss",
            "--password", "Password123", "--role", "admin",
        ])
        assert result.exit_code == 0
        assert User.query.filter_by(email="boss@example.com").one().role == "admin"

        listing = runner.invoke(args=["users", "list", "--role", "admin"])
        assert "boss@example.com" in listing.output

    def test_weak_password_fails(self, app, db_session):
        result = app.test_cli_runner().invoke(args=[
            "users", "create",
            "--email", "weak@example.com", "--name", "Weak",
            "--password", "weak", "--role", "viewer",
        ])
        assert result.exit_code == 1
        assert "FAIL" in result.output
        assert User.query.filter_by(email="weak@example.com").first() is None


class TestHealth:

    def test_health_ok(self, client, db_session):
        res = client.get('/health')
        assert res.status_code == 200
        body = res.get_json()
        assert body['status'] == "healthy"
        assert body['checks']['database']['status'] == "healthy"
