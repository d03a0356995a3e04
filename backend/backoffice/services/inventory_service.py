# Overview: Stock ledger mutations: one locked, atomic read-compute-write per movement.

"""
Inventory Ledger

- Product.current_stock is only changed here, in the same DB transaction
  that inserts the InventoryTransaction explaining the change.
- stock_in adds |quantity|, stock_out subtracts |quantity| (never below zero),
  adjustment replaces the stock with |quantity| (a physical count).
- Invalid input is rejected before any entity state is read.
- Inactive products accept no movements.
- After commit, exactly one STOCK_ADJUSTMENT audit entry is appended.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from flask import current_app

from ..extensions import db
from ..models import InventoryTransaction, Product
from ..time_utils import utcnow
from ..validation import MAX_QUANTITY, InactiveEntityError, NotFoundError, ValidationError
from . import audit_service
from .concurrency import lock_for_update, run_with_retry
from .ledger_service import (
    INVENTORY_TRANSACTION_TYPES,
    STOCK_IN,
    LedgerResult,
    next_stock,
)


OPENING_REFERENCE = "OPENING"
FUTURE_TOLERANCE = timedelta(minutes=2)
RECENT_TRANSACTION_LIMIT = 10
MAX_PAGE_SIZE = 200


def _validate_movement(transaction_type, quantity, transaction_date) -> None:
    errors = {}
    if transaction_type not in INVENTORY_TRANSACTION_TYPES:
        errors["transaction_type"] = "Invalid transaction type"
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        errors["quantity"] = "Quantity must be an integer"
    elif quantity == 0:
        errors["quantity"] = "Quantity cannot be zero"
    elif abs(quantity) > MAX_QUANTITY:
        errors["quantity"] = f"Quantity cannot exceed {MAX_QUANTITY:,}"
    if transaction_date is not None:
        if not isinstance(transaction_date, datetime):
            errors["transaction_date"] = "transaction_date must be a datetime"
        elif transaction_date > utcnow() + FUTURE_TOLERANCE:
            errors["transaction_date"] = "transaction_date cannot be in the future"
    if errors:
        raise ValidationError("Validation failed", errors=errors)


def _get_product(product_id: int, *, lock: bool = False, require_active: bool = False) -> Product:
    query = db.session.query(Product).filter_by(id=product_id)
    if lock:
        query = lock_for_update(query)
    product = query.first()
    if product is None:
        raise NotFoundError("Product not found")
    if require_active and not product.is_active:
        raise InactiveEntityError("Product is inactive")
    return product


def apply_inventory_transaction(
    product_id: int,
    transaction_type: str,
    quantity: int,
    *,
    actor_id: int | None,
    reference_number: str | None = None,
    notes: str | None = None,
    transaction_date: datetime | None = None,
    ip_address: str | None = None,
) -> LedgerResult:
    """
    Apply one stock movement and return LedgerResult(transaction, new_stock).

    Raises ValidationError, NotFoundError, InactiveEntityError or
    InsufficientStockError; on any failure nothing is persisted.
    """
    _validate_movement(transaction_type, quantity, transaction_date)

    def _op():
        product = _get_product(product_id, lock=True, require_active=True)

        stock_before = product.current_stock
        stock_after = next_stock(stock_before, transaction_type, quantity)

        product.current_stock = stock_after
        tx = InventoryTransaction(
            product_id=product.id,
            transaction_type=transaction_type,
            quantity=quantity,
            stock_before=stock_before,
            stock_after=stock_after,
            transaction_date=transaction_date or utcnow(),
            reference_number=reference_number,
            notes=notes,
            created_by=actor_id,
        )
        db.session.add(tx)
        db.session.commit()
        return LedgerResult(transaction=tx, new_value=stock_after)

    try:
        result = run_with_retry(_op)
    except Exception:
        db.session.rollback()
        raise

    tx = result.transaction
    current_app.logger.info(
        "Stock %s on product_id=%s qty=%s: %s -> %s (tx_id=%s, user_id=%s)",
        transaction_type, product_id, quantity, tx.stock_before, tx.stock_after, tx.id, actor_id,
    )
    audit_service.record(
        actor_id,
        audit_service.ACTION_STOCK_ADJUSTMENT,
        "inventory_transaction",
        tx.id,
        audit_service.snapshot(new=tx.to_dict()),
        ip_address,
    )
    return result


def add_opening_stock(product: Product, quantity: int, *, actor_id: int | None) -> InventoryTransaction | None:
    """
    Record opening stock for a freshly added product inside the caller's transaction.

    The caller commits. Nothing is recorded for a zero opening quantity.
    """
    if not quantity:
        return None
    db.session.flush()  # assigns product.id
    stock_after = next_stock(0, STOCK_IN, quantity)
    product.current_stock = stock_after
    tx = InventoryTransaction(
        product_id=product.id,
        transaction_type=STOCK_IN,
        quantity=quantity,
        stock_before=0,
        stock_after=stock_after,
        transaction_date=utcnow(),
        reference_number=OPENING_REFERENCE,
        notes="Opening stock",
        created_by=actor_id,
    )
    db.session.add(tx)
    return tx


def recent_product_transactions(product_id: int, limit: int = RECENT_TRANSACTION_LIMIT) -> list[InventoryTransaction]:
    return (
        db.session.query(InventoryTransaction)
        .filter(InventoryTransaction.product_id == product_id)
        .order_by(InventoryTransaction.id.desc())
        .limit(limit)
        .all()
    )


def list_product_transactions(product_id: int, *, page: int = 1, limit: int = 50):
    """Newest-first movement history for one product. Returns a Pagination."""
    _get_product(product_id)
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    query = (
        InventoryTransaction.query
        .filter(InventoryTransaction.product_id == product_id)
        .order_by(InventoryTransaction.id.desc())
    )
    return query.paginate(page=page, per_page=limit, error_out=False)
