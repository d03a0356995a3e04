# Overview: Ledger engine core: direction tables, running-value arithmetic and replay checks.

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable

from ..extensions import db
from ..models import Customer, CustomerTransaction, InventoryTransaction, Product
from ..validation import MAX_QUANTITY, InsufficientStockError, ValidationError

"""
Ledger invariants (authoritative)

- Product.current_stock == replay_stock(its inventory transactions in id order).
- Customer.current_balance_cents == replay_balance(its customer transactions in id order).
- Transaction rows are append-only; the running value is only changed in the
  same DB transaction that inserts the row explaining the change.
- Stock never goes below zero. Customer balances have no floor.
"""


STOCK_IN = "stock_in"
STOCK_OUT = "stock_out"
ADJUSTMENT = "adjustment"

SALE = "sale"
PAYMENT = "payment"
CREDIT_NOTE = "credit_note"

# +1 adds |quantity|, -1 subtracts it, 0 replaces the stock with |quantity|.
STOCK_DIRECTIONS = MappingProxyType({
    STOCK_IN: 1,
    STOCK_OUT: -1,
    ADJUSTMENT: 0,
})

# Positive balance means the customer owes money.
BALANCE_DIRECTIONS = MappingProxyType({
    SALE: 1,
    PAYMENT: -1,
    CREDIT_NOTE: -1,
})

INVENTORY_TRANSACTION_TYPES = tuple(STOCK_DIRECTIONS)
CUSTOMER_TRANSACTION_TYPES = tuple(BALANCE_DIRECTIONS)


@dataclass(frozen=True)
class LedgerResult:
    """Outcome of a committed ledger mutation."""
    transaction: Any
    new_value: int


@dataclass(frozen=True)
class LedgerCheck:
    entity_id: int
    persisted: int
    replayed: int

    @property
    def ok(self) -> bool:
        return self.persisted == self.replayed

    def to_dict(self) -> dict:
        return {
            "entity_id": self.entity_id,
            "persisted": self.persisted,
            "replayed": self.replayed,
            "ok": self.ok,
        }


def next_stock(current: int, transaction_type: str, quantity: int, *, enforce_floor: bool = True) -> int:
    """
    Stock level after applying one movement.

    The sign of quantity is ignored. Raises InsufficientStockError when a
    stock_out would take stock below zero (unless enforce_floor is False) and
    ValidationError when the result would exceed MAX_QUANTITY.
    """
    if transaction_type not in STOCK_DIRECTIONS:
        raise ValidationError("Invalid transaction type", errors={"transaction_type": "Invalid transaction type"})
    magnitude = abs(quantity)
    direction = STOCK_DIRECTIONS[transaction_type]

    new_stock = magnitude if direction == 0 else current + direction * magnitude
    if enforce_floor and new_stock < 0:
        raise InsufficientStockError(available=current, requested=magnitude)
    if new_stock > MAX_QUANTITY:
        raise ValidationError(
            "Stock would exceed maximum",
            errors={"quantity": f"Resulting stock cannot exceed {MAX_QUANTITY:,}"},
        )
    return new_stock


def next_balance(current: int, transaction_type: str, amount_cents: int) -> int:
    """Balance (cents) after applying one customer transaction. No floor."""
    if transaction_type not in BALANCE_DIRECTIONS:
        raise ValidationError("Invalid transaction type", errors={"transaction_type": "Invalid transaction type"})
    return current + BALANCE_DIRECTIONS[transaction_type] * abs(amount_cents)


def replay_stock(transactions: Iterable) -> int:
    """Fold inventory transactions (oldest first) from zero."""
    stock = 0
    for txn in transactions:
        stock = next_stock(stock, txn.transaction_type, txn.quantity, enforce_floor=False)
    return stock


def replay_balance(transactions: Iterable) -> int:
    """Fold customer transactions (oldest first) from zero."""
    balance = 0
    for txn in transactions:
        balance = next_balance(balance, txn.transaction_type, txn.amount_cents)
    return balance


def verify_product_ledger(product_id: int) -> LedgerCheck | None:
    product = db.session.get(Product, product_id)
    if product is None:
        return None
    history = (
        db.session.query(InventoryTransaction)
        .filter(InventoryTransaction.product_id == product_id)
        .order_by(InventoryTransaction.id.asc())
        .all()
    )
    return LedgerCheck(entity_id=product.id, persisted=product.current_stock, replayed=replay_stock(history))


def verify_customer_ledger(customer_id: int) -> LedgerCheck | None:
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        return None
    history = (
        db.session.query(CustomerTransaction)
        .filter(CustomerTransaction.customer_id == customer_id)
        .order_by(CustomerTransaction.id.asc())
        .all()
    )
    return LedgerCheck(
        entity_id=customer.id,
        persisted=customer.current_balance_cents,
        replayed=replay_balance(history),
    )


def verify_all() -> dict[str, list[LedgerCheck]]:
    """Replay every product and customer ledger (inactive entities included)."""
    product_ids = [pid for (pid,) in db.session.query(Product.id).order_by(Product.id).all()]
    customer_ids = [cid for (cid,) in db.session.query(Customer.id).order_by(Customer.id).all()]
    return {
        "products": [verify_product_ledger(pid) for pid in product_ids],
        "customers": [verify_customer_ledger(cid) for cid in customer_ids],
    }
