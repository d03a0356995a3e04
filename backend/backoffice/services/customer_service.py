# Overview: Customer master data and the receivables ledger, both row-scoped by owning sales rep.

"""
Customer Service

Receivables ledger:
- Customer.current_balance_cents is only changed by apply_customer_transaction,
  in the same DB transaction that inserts the CustomerTransaction row.
- sale adds the amount; payment and credit_note subtract it. No floor:
  overpayment leaves a negative (credit) balance.
- Row access (can_access_customer) is checked on the locked row before any
  mutation; a denial changes nothing.
- Inactive customers accept no transactions.

Master data:
- A sales_rep who creates a customer owns it and cannot assign it to someone else.
- Balance, code and status are never writable through update; only delete
  (DELETE_CUSTOMER) flips status.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Customer, CustomerTransaction, User
from ..permissions import SALES_REP
from ..time_utils import utcnow
from ..validation import (
    DuplicateCodeError,
    InactiveEntityError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_customer,
    validate_payload,
)
from . import audit_service
from .concurrency import lock_for_update, run_with_retry
from .identifier_service import CUSTOMER_CODE_PREFIX, code_exists, generate_unique_code, normalize_code
from .ledger_service import CUSTOMER_TRANSACTION_TYPES, LedgerResult, next_balance
from .permission_service import AccessDeniedError, ensure_customer_access, scope_customer_query


DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200
RECENT_TRANSACTION_LIMIT = 10
FUTURE_TOLERANCE = timedelta(minutes=2)

CUSTOMER_MONEY_FIELDS = {"balance_risk_limit": "balance_risk_limit_cents"}

_CONTACT_FIELDS = {
    "name", "contact_person", "email", "phone", "address", "city", "region", "country",
    "sales_rep_id", "payment_terms_days", "balance_risk_limit",
}

CREATE_POLICY = ModelValidationPolicy(
    writable_fields=_CONTACT_FIELDS | {"code"},
    required_on_create={"name"},
    money_fields=CUSTOMER_MONEY_FIELDS,
)

UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=_CONTACT_FIELDS,
    money_fields=CUSTOMER_MONEY_FIELDS,
)


def _get_customer(customer_id: int, *, lock: bool = False) -> Customer:
    query = db.session.query(Customer).filter_by(id=customer_id)
    if lock:
        query = lock_for_update(query)
    customer = query.first()
    if customer is None:
        raise NotFoundError("Customer not found")
    return customer


def get_accessible_customer(customer_id: int, user: User) -> Customer:
    """Load a customer the user may see: NotFoundError, then AccessDeniedError."""
    customer = _get_customer(customer_id)
    ensure_customer_access(user, customer)
    return customer


def _check_sales_rep_assignment(patch: dict, user: User) -> None:
    if "sales_rep_id" not in patch:
        return
    rep_id = patch["sales_rep_id"]
    if user.role == SALES_REP and rep_id != user.id:
        raise AccessDeniedError("Sales reps cannot assign customers to other users")
    if rep_id is not None and db.session.get(User, rep_id) is None:
        raise ValidationError("Validation failed", errors={"sales_rep_id": "Sales rep not found"})


# -- master data --

def list_customers(
    user: User,
    *,
    search: str | None = None,
    status: str | None = "active",
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
):
    """Customers visible to the user (sales reps see only their own). Returns a Pagination."""
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)

    query = scope_customer_query(Customer.query, user)
    if status and status != "all":
        query = query.filter(Customer.status == status)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(db.or_(
            Customer.name.ilike(like),
            Customer.code.ilike(like),
            Customer.email.ilike(like),
        ))

    query = query.order_by(Customer.created_at.desc(), Customer.id.desc())
    return query.paginate(page=page, per_page=limit, error_out=False)


def get_customer(customer_id: int, user: User) -> dict:
    customer = get_accessible_customer(customer_id, user)
    recent = (
        db.session.query(CustomerTransaction)
        .filter(CustomerTransaction.customer_id == customer.id)
        .order_by(CustomerTransaction.id.desc())
        .limit(RECENT_TRANSACTION_LIMIT)
        .all()
    )
    return {
        "customer": customer.to_dict(),
        "recentTransactions": [t.to_dict() for t in recent],
    }


def create_customer(payload: dict, *, user: User, ip_address: str | None = None) -> Customer:
    if isinstance(payload, dict) and not payload.get("code"):
        payload = {k: v for k, v in payload.items() if k != "code"}
    patch = validate_payload(model=Customer, payload=payload, policy=CREATE_POLICY, partial=False)
    enforce_rules_customer(patch)

    if user.role == SALES_REP:
        patch.setdefault("sales_rep_id", user.id)
    _check_sales_rep_assignment(patch, user)

    if patch.get("code"):
        patch["code"] = normalize_code(patch["code"])
        if code_exists(Customer, patch["code"]):
            raise DuplicateCodeError("Customer code already exists")
    else:
        patch["code"] = generate_unique_code(Customer, CUSTOMER_CODE_PREFIX)

    customer = Customer(status="active", current_balance_cents=0, created_by=user.id)
    for k, v in patch.items():
        setattr(customer, k, v)

    try:
        db.session.add(customer)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateCodeError("Customer code already exists")
    except Exception:
        db.session.rollback()
        raise

    audit_service.record(
        user.id, audit_service.ACTION_CREATE, "customer", customer.id,
        audit_service.snapshot(new=customer.to_dict()), ip_address,
    )
    return customer


def update_customer(customer_id: int, payload: dict, *, user: User, ip_address: str | None = None) -> Customer:
    customer = get_accessible_customer(customer_id, user)
    patch = validate_payload(model=Customer, payload=payload, policy=UPDATE_POLICY, partial=True)
    enforce_rules_customer(patch)
    _check_sales_rep_assignment(patch, user)

    before = customer.to_dict()
    for k, v in patch.items():
        setattr(customer, k, v)

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    audit_service.record(
        user.id, audit_service.ACTION_UPDATE, "customer", customer.id,
        audit_service.snapshot(old=before, new=customer.to_dict()), ip_address,
    )
    return customer


def delete_customer(customer_id: int, *, user: User, ip_address: str | None = None) -> Customer:
    """Soft delete: flip status to inactive. Balance and history are kept."""
    customer = get_accessible_customer(customer_id, user)
    before = customer.to_dict()
    customer.status = "inactive"

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    audit_service.record(
        user.id, audit_service.ACTION_DELETE, "customer", customer.id,
        audit_service.snapshot(old=before, new=customer.to_dict()), ip_address,
    )
    return customer


# -- receivables ledger --

def _validate_transaction(transaction_type, amount_cents, transaction_date) -> None:
    errors = {}
    if transaction_type not in CUSTOMER_TRANSACTION_TYPES:
        errors["transaction_type"] = "Invalid transaction type"
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
        errors["amount"] = "Amount must be a number"
    elif amount_cents == 0:
        errors["amount"] = "Amount cannot be zero"
    elif amount_cents < 0:
        errors["amount"] = "Amount must be positive"
    if transaction_date is not None:
        if not isinstance(transaction_date, datetime):
            errors["transaction_date"] = "transaction_date must be a datetime"
        elif transaction_date > utcnow() + FUTURE_TOLERANCE:
            errors["transaction_date"] = "transaction_date cannot be in the future"
    if errors:
        raise ValidationError("Validation failed", errors=errors)


def apply_customer_transaction(
    customer_id: int,
    transaction_type: str,
    amount_cents: int,
    *,
    actor: User,
    reference_number: str | None = None,
    notes: str | None = None,
    transaction_date: datetime | None = None,
    ip_address: str | None = None,
) -> LedgerResult:
    """
    Apply one sale/payment/credit_note and return LedgerResult(transaction, new_balance_cents).

    Raises ValidationError, NotFoundError, AccessDeniedError or
    InactiveEntityError; on any failure nothing is persisted.
    """
    _validate_transaction(transaction_type, amount_cents, transaction_date)

    def _op():
        customer = _get_customer(customer_id, lock=True)
        ensure_customer_access(actor, customer)
        if not customer.is_active:
            raise InactiveEntityError("Customer is inactive")

        balance_before = customer.current_balance_cents
        balance_after = next_balance(balance_before, transaction_type, amount_cents)

        customer.current_balance_cents = balance_after
        tx = CustomerTransaction(
            customer_id=customer.id,
            transaction_type=transaction_type,
            amount_cents=amount_cents,
            balance_before_cents=balance_before,
            balance_after_cents=balance_after,
            transaction_date=transaction_date or utcnow(),
            reference_number=reference_number,
            notes=notes,
            created_by=actor.id,
        )
        db.session.add(tx)
        db.session.commit()
        return LedgerResult(transaction=tx, new_value=balance_after)

    try:
        result = run_with_retry(_op)
    except Exception:
        db.session.rollback()
        raise

    tx = result.transaction
    current_app.logger.info(
        "Customer %s on customer_id=%s amount_cents=%s: %s -> %s (tx_id=%s, user_id=%s)",
        transaction_type, customer_id, amount_cents,
        tx.balance_before_cents, tx.balance_after_cents, tx.id, actor.id,
    )
    audit_service.record(
        actor.id,
        audit_service.ACTION_TRANSACTION,
        "customer_transaction",
        tx.id,
        audit_service.snapshot(new=tx.to_dict()),
        ip_address,
    )
    return result


def list_customer_transactions(customer_id: int, user: User, *, page: int = 1, limit: int = DEFAULT_PAGE_SIZE):
    """Newest-first transaction history for one customer the user may see."""
    get_accessible_customer(customer_id, user)
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    query = (
        CustomerTransaction.query
        .filter(CustomerTransaction.customer_id == customer_id)
        .order_by(CustomerTransaction.id.desc())
    )
    return query.paginate(page=page, per_page=limit, error_out=False)
