# Overview: Read-only reports over the two ledgers; sales reps only ever see their own customers.

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import Customer, CustomerTransaction, InventoryTransaction, Product, User
from ..money import format_cents
from ..time_utils import end_of_day_exclusive, is_date_only, parse_iso_datetime
from ..validation import ValidationError
from .ledger_service import ADJUSTMENT, CREDIT_NOTE, PAYMENT, SALE, STOCK_IN, STOCK_OUT
from .permission_service import scope_customer_query


class ReportError(ValidationError):
    """Raised when report parameters are unusable."""
    pass


def _parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None, bool]:
    """
    Returns (start_dt, end_dt, end_exclusive).

    A bare date as end covers that whole day (exclusive bound at the next midnight).
    """
    try:
        start_dt = parse_iso_datetime(start) if start else None
        if end and is_date_only(end):
            end_dt, end_exclusive = end_of_day_exclusive(end), True
        else:
            end_dt, end_exclusive = (parse_iso_datetime(end) if end else None), False
    except ValueError:
        raise ReportError("start_date and end_date must be ISO-8601 dates")

    if start_dt and end_dt and start_dt > end_dt:
        raise ReportError("start_date must be before end_date")
    return start_dt, end_dt, end_exclusive


def _apply_range(query, column, start_dt, end_dt, end_exclusive):
    if start_dt:
        query = query.filter(column >= start_dt)
    if end_dt:
        query = query.filter(column < end_dt if end_exclusive else column <= end_dt)
    return query


def low_stock_products() -> list[dict]:
    """Active products at or below their critical level, largest deficit first."""
    deficit = (Product.critical_stock_level - Product.current_stock).label("stock_deficit")
    rows = (
        db.session.query(Product, deficit)
        .filter(
            Product.status == "active",
            Product.current_stock <= Product.critical_stock_level,
        )
        .order_by(deficit.desc(), Product.id.asc())
        .all()
    )
    return [{**p.to_dict(), "stock_deficit": int(d)} for p, d in rows]


def at_risk_customers(user: User) -> list[dict]:
    """Active customers whose balance reached their risk limit, most over-limit first."""
    over_limit = (Customer.current_balance_cents - Customer.balance_risk_limit_cents).label("over_limit")
    query = (
        db.session.query(Customer, over_limit)
        .filter(
            Customer.status == "active",
            Customer.current_balance_cents >= Customer.balance_risk_limit_cents,
        )
    )
    query = scope_customer_query(query, user)
    rows = query.order_by(over_limit.desc(), Customer.id.asc()).all()
    return [{**c.to_dict(), "over_limit_amount": format_cents(int(o))} for c, o in rows]


def inventory_report(*, start: str | None, end: str | None) -> dict:
    start_dt, end_dt, end_exclusive = _parse_range(start, end)

    query = db.session.query(InventoryTransaction, Product).join(
        Product, Product.id == InventoryTransaction.product_id
    )
    query = _apply_range(query, InventoryTransaction.transaction_date, start_dt, end_dt, end_exclusive)
    rows = query.order_by(InventoryTransaction.transaction_date.desc(), InventoryTransaction.id.desc()).all()

    total_in = total_out = adjustments = 0
    transactions = []
    for tx, product in rows:
        if tx.transaction_type == STOCK_IN:
            total_in += abs(tx.quantity)
        elif tx.transaction_type == STOCK_OUT:
            total_out += abs(tx.quantity)
        elif tx.transaction_type == ADJUSTMENT:
            adjustments += 1
        transactions.append({
            **tx.to_dict(),
            "product_code": product.code,
            "product_name": product.name,
            "category": product.category,
        })

    return {
        "transactions": transactions,
        "summary": {
            "totalTransactions": len(transactions),
            "totalStockIn": total_in,
            "totalStockOut": total_out,
            "adjustmentCount": adjustments,
            "netChange": total_in - total_out,
        },
    }


def customer_report(user: User, *, start: str | None, end: str | None) -> dict:
    start_dt, end_dt, end_exclusive = _parse_range(start, end)

    query = db.session.query(CustomerTransaction, Customer).join(
        Customer, Customer.id == CustomerTransaction.customer_id
    )
    query = scope_customer_query(query, user)
    query = _apply_range(query, CustomerTransaction.transaction_date, start_dt, end_dt, end_exclusive)
    rows = query.order_by(CustomerTransaction.transaction_date.desc(), CustomerTransaction.id.desc()).all()

    totals = {SALE: 0, PAYMENT: 0, CREDIT_NOTE: 0}
    transactions = []
    for tx, customer in rows:
        totals[tx.transaction_type] = totals.get(tx.transaction_type, 0) + tx.amount_cents
        transactions.append({
            **tx.to_dict(),
            "customer_code": customer.code,
            "customer_name": customer.name,
            "sales_rep_id": customer.sales_rep_id,
        })

    net_outstanding = totals[SALE] - totals[PAYMENT] - totals[CREDIT_NOTE]
    return {
        "transactions": transactions,
        "summary": {
            "totalTransactions": len(transactions),
            "totalSales": format_cents(totals[SALE]),
            "totalPayments": format_cents(totals[PAYMENT]),
            "totalCreditNotes": format_cents(totals[CREDIT_NOTE]),
            "netOutstanding": format_cents(net_outstanding),
        },
    }

