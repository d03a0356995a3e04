"""
Stock ledger tests.

Verifies:
- Direction table (stock_in adds, stock_out subtracts, adjustment sets)
- Insufficient stock leaves stock and history untouched
- Invalid input is rejected before any state is read
- Inactive/missing products reject movements
- Stored stock always equals the replay of its history
- Transaction rows are append-only
"""

from datetime import timedelta

import pytest

from backoffice.models import AuditLogEntry, ImmutableRecordError, InventoryTransaction
from backoffice.services.inventory_service import apply_inventory_transaction
from backoffice.services.ledger_service import next_stock, replay_stock, verify_product_ledger
from backoffice.time_utils import utcnow
from backoffice.validation import (
    MAX_QUANTITY,
    InactiveEntityError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)


def _history(product_id):
    return (
        InventoryTransaction.query
        .filter_by(product_id=product_id)
        .order_by(InventoryTransaction.id)
        .all()
    )


# =============================================================================
# PURE ARITHMETIC
# =============================================================================


class TestNextStock:

    @pytest.mark.parametrize(
        "current,txn_type,qty,expected",
        [
            (0, "stock_in", 100, 100),
            (100, "stock_out", 30, 70),
            (70, "adjustment", 10, 10),
            (70, "stock_in", -5, 75),
            (70, "stock_out", -5, 65),
            (70, "adjustment", -12, 12),
            (5, "stock_out", 5, 0),
        ],
    )
    def test_directions(self, current, txn_type, qty, expected):
        assert next_stock(current, txn_type, qty) == expected

    def test_stock_out_below_zero_raises(self):
        with pytest.raises(InsufficientStockError) as exc:
            next_stock(5, "stock_out", 10)
        assert exc.value.available == 5
        assert exc.value.requested == 10

    def test_unknown_type_raises(self):
        with pytest.raises(ValidationError):
            next_stock(5, "shrinkage", 1)

    @pytest.mark.parametrize(
        "current,txn_type,qty",
        [
            (MAX_QUANTITY, "stock_in", 1),
            (0, "adjustment", MAX_QUANTITY + 1),
            (0, "stock_in", 10**20),
        ],
    )
    def test_ceiling_raises(self, current, txn_type, qty):
        with pytest.raises(ValidationError):
            next_stock(current, txn_type, qty)

    def test_ceiling_is_inclusive(self):
        assert next_stock(MAX_QUANTITY - 1, "stock_in", 1) == MAX_QUANTITY


# =============================================================================
# APPLY MOVEMENTS
# =============================================================================


class TestApplyInventoryTransaction:

    def test_sequence_from_zero(self, db_session, manager, make_product):
        product = make_product()

        r1 = apply_inventory_transaction(product.id, "stock_in", 100, actor_id=manager.id)
        r2 = apply_inventory_transaction(product.id, "stock_out", 30, actor_id=manager.id)
        r3 = apply_inventory_transaction(product.id, "adjustment", 10, actor_id=manager.id)

        assert [r1.new_value, r2.new_value, r3.new_value] == [100, 70, 10]
        db_session.refresh(product)
        assert product.current_stock == 10

        rows = _history(product.id)
        assert [(t.stock_before, t.stock_after) for t in rows] == [(0, 100), (100, 70), (70, 10)]
        assert all(t.created_by == manager.id for t in rows)

    def test_insufficient_stock_changes_nothing(self, db_session, manager, make_product):
        product = make_product()
        apply_inventory_transaction(product.id, "stock_in", 5, actor_id=manager.id)

        with pytest.raises(InsufficientStockError):
            apply_inventory_transaction(product.id, "stock_out", 10, actor_id=manager.id)

        db_session.refresh(product)
        assert product.current_stock == 5
        assert len(_history(product.id)) == 1

    def test_oversized_quantity_rejected(self, db_session, manager, make_product):
        product = make_product()
        with pytest.raises(ValidationError) as exc:
            apply_inventory_transaction(product.id, "stock_in", 10**20, actor_id=manager.id)
        assert "quantity" in exc.value.errors
        assert _history(product.id) == []

    def test_stock_above_ceiling_changes_nothing(self, db_session, manager, make_product):
        product = make_product()
        apply_inventory_transaction(product.id, "stock_in", MAX_QUANTITY, actor_id=manager.id)

        with pytest.raises(ValidationError):
            apply_inventory_transaction(product.id, "stock_in", 1, actor_id=manager.id)

        db_session.refresh(product)
        assert product.current_stock == MAX_QUANTITY
        assert len(_history(product.id)) == 1

    @pytest.mark.parametrize(
        "txn_type,qty",
        [
            ("stock_in", 0),
            ("stock_out", 0),
            ("adjustment", 0),
            ("stock_in", 1.5),
            ("stock_in", True),
            ("stock_in", "10"),
            ("transfer", 10),
            (None, 10),
        ],
    )
    def test_invalid_input_rejected_without_state_change(self, db_session, manager, make_product, txn_type, qty):
        product = make_product()
        apply_inventory_transaction(product.id, "stock_in", 20, actor_id=manager.id)

        with pytest.raises(ValidationError):
            apply_inventory_transaction(product.id, txn_type, qty, actor_id=manager.id)

        db_session.refresh(product)
        assert product.current_stock == 20
        assert len(_history(product.id)) == 1

    def test_validation_precedes_lookup(self, db_session, manager):
        # Bad input on a missing product is a validation error, not a 404
        with pytest.raises(ValidationError):
            apply_inventory_transaction(999999, "stock_in", 0, actor_id=manager.id)

    def test_missing_product(self, db_session, manager):
        with pytest.raises(NotFoundError):
            apply_inventory_transaction(999999, "stock_in", 5, actor_id=manager.id)

    def test_inactive_product_rejected(self, db_session, manager, make_product):
        product = make_product(status="inactive")
        with pytest.raises(InactiveEntityError):
            apply_inventory_transaction(product.id, "stock_in", 5, actor_id=manager.id)
        assert _history(product.id) == []

    def test_future_transaction_date_rejected(self, db_session, manager, make_product):
        product = make_product()
        with pytest.raises(ValidationError) as exc:
            apply_inventory_transaction(
                product.id, "stock_in", 5,
                actor_id=manager.id,
                transaction_date=utcnow() + timedelta(days=1),
            )
        assert "transaction_date" in exc.value.errors

    def test_backdated_transaction_keeps_date(self, db_session, manager, make_product):
        product = make_product()
        when = (utcnow() - timedelta(days=3)).replace(microsecond=0)
        result = apply_inventory_transaction(
            product.id, "stock_in", 5, actor_id=manager.id,
            reference_number="PO-1", notes="delivery", transaction_date=when,
        )
        tx = db_session.get(InventoryTransaction, result.transaction.id)
        assert tx.transaction_date == when
        assert tx.reference_number == "PO-1"

    def test_appends_one_audit_entry(self, db_session, manager, make_product):
        product = make_product()
        result = apply_inventory_transaction(
            product.id, "stock_in", 8, actor_id=manager.id, ip_address="10.0.0.1",
        )

        entries = AuditLogEntry.query.all()
        assert len(entries) == 1
        entry = entries[0]
        assert entry.action == "STOCK_ADJUSTMENT"
        assert entry.entity_type == "inventory_transaction"
        assert entry.entity_id == result.transaction.id
        assert entry.user_id == manager.id
        assert entry.ip_address == "10.0.0.1"
        assert entry.to_dict()["changes"]["data"]["stock_after"] == 8


# =============================================================================
# REPLAY / INTEGRITY
# =============================================================================


class TestReplay:

    def test_replay_matches_persisted_stock(self, db_session, manager, make_product):
        product = make_product()
        moves = [
            ("stock_in", 50), ("stock_out", 20), ("stock_in", 7),
            ("adjustment", 40), ("stock_out", 40), ("stock_in", 3),
        ]
        for txn_type, qty in moves:
            apply_inventory_transaction(product.id, txn_type, qty, actor_id=manager.id)

        db_session.refresh(product)
        assert replay_stock(_history(product.id)) == product.current_stock == 3

        check = verify_product_ledger(product.id)
        assert check.ok
        assert check.persisted == check.replayed == 3

    def test_verify_detects_tampered_stock(self, db_session, manager, make_product):
        product = make_product()
        apply_inventory_transaction(product.id, "stock_in", 10, actor_id=manager.id)

        product.current_stock = 11
        db_session.commit()

        check = verify_product_ledger(product.id)
        assert not check.ok
        assert (check.persisted, check.replayed) == (11, 10)

    def test_verify_missing_product(self, db_session):
        assert verify_product_ledger(424242) is None


class TestAppendOnly:

    def test_update_rejected(self, db_session, manager, make_product):
        product = make_product()
        result = apply_inventory_transaction(product.id, "stock_in", 10, actor_id=manager.id)
        tx = db_session.get(InventoryTransaction, result.transaction.id)

        tx.quantity = 999
        with pytest.raises(ImmutableRecordError):
            db_session.commit()
        db_session.rollback()

    def test_delete_rejected(self, db_session, manager, make_product):
        product = make_product()
        result = apply_inventory_transaction(product.id, "stock_in", 10, actor_id=manager.id)
        tx = db_session.get(InventoryTransaction, result.transaction.id)

        db_session.delete(tx)
        with pytest.raises(ImmutableRecordError):
            db_session.commit()
        db_session.rollback()
