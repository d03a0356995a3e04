from __future__ import annotations
from datetime import datetime
import re

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from .money import MoneyFormatError, to_cents
from .time_utils import parse_iso_datetime


EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[\d\s\-\+\(\)]{10,}$")

MAX_TEXT_LENGTH = 1000

# Largest value an Integer column holds on every supported store (32-bit signed)
MAX_INTEGER = 2_147_483_647
# Ceiling for a single movement quantity and for the resulting stock level
MAX_QUANTITY = 1_000_000_000


class ValidationError(ValueError):
    """400-level input problem. `errors` maps field name to message."""

    def __init__(self, message: str, errors: dict[str, str] | None = None):
        super().__init__(message)
        self.errors = errors or {}


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate code)."""


class DuplicateCodeError(ConflictError):
    """Explicit product/customer code collides with an existing one."""


class InsufficientStockError(ConflictError):
    """stock_out would drive stock below zero."""

    def __init__(self, available: int, requested: int):
        super().__init__(f"Insufficient stock: available {available}, requested {requested}")
        self.available = available
        self.requested = requested


class InactiveEntityError(ConflictError):
    """Ledger mutation attempted against a soft-deleted entity."""


class NotFoundError(LookupError):
    """404-level: referenced entity does not exist."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - money_fields: wire name -> *_cents column for currency inputs
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    money_fields: dict[str, str] | None = None


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(value: Any, field: str) -> int:
    """Strict integer coercion: rejects floats, bools, decimals and scientific notation."""
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def sanitize_text(value: Any) -> str:
    """Trim, drop angle brackets and cap free text at MAX_TEXT_LENGTH."""
    if value is None:
        return ""
    return str(value).strip().replace("<", "").replace(">", "")[:MAX_TEXT_LENGTH]


def _coerce_value(col, key: str, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        coerced = coerce_int(value, key)
        if abs(coerced) > MAX_INTEGER:
            raise ValidationError(f"{key} is out of range")
        return coerced

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{key} must be a boolean")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{key} must be a datetime")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return sanitize_text(value)

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict keyed by column name.

    All field problems are collected and raised together as one
    ValidationError whose `errors` maps field -> message.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    errors: dict[str, str] = {}
    money_fields = policy.money_fields or {}

    required = policy.required_on_create or set()
    if not partial:
        for f in sorted(required):
            raw = payload.get(f)
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                errors[f] = f"{f} is required"

    cols = _columns_by_key(model)
    patch: dict = {}

    for k, raw in payload.items():
        if k in errors:
            continue
        if k not in policy.writable_fields:
            errors[k] = f"Field not allowed: {k}"
            continue

        column_key = money_fields.get(k, k)
        if column_key not in cols:
            errors[k] = f"Unknown field: {k}"
            continue
        col = cols[column_key]

        # NULL handling
        if raw is None:
            if not col.nullable:
                errors[k] = f"{k} cannot be null"
            else:
                patch[column_key] = None
            continue

        try:
            if k in money_fields:
                val = to_cents(raw, k)
            else:
                val = _coerce_value(col, k, raw)
        except (ValidationError, MoneyFormatError) as e:
            errors[k] = str(e)
            continue

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                errors[k] = f"{k} cannot be blank"
                continue

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                errors[k] = f"{k} exceeds max length {col.type.length}"
                continue

        patch[column_key] = val

    if errors:
        raise ValidationError("Validation failed", errors=errors)
    return patch


def _raise_if(errors: dict[str, str]) -> None:
    if errors:
        raise ValidationError("Validation failed", errors=errors)


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    errors: dict[str, str] = {}
    for column, field in (("unit_cost_cents", "unit_cost"), ("selling_price_cents", "selling_price")):
        if patch.get(column) is not None and patch[column] < 0:
            errors[field] = f"{field} must be >= 0"
    if patch.get("critical_stock_level") is not None and patch["critical_stock_level"] < 0:
        errors["critical_stock_level"] = "critical_stock_level must be >= 0"
    if patch.get("current_stock") is not None and patch["current_stock"] < 0:
        errors["current_stock"] = "current_stock must be >= 0"
    elif patch.get("current_stock") is not None and patch["current_stock"] > MAX_QUANTITY:
        errors["current_stock"] = f"current_stock cannot exceed {MAX_QUANTITY:,}"
    _raise_if(errors)


def enforce_rules_customer(patch: dict) -> None:
    errors: dict[str, str] = {}
    email = patch.get("email")
    if email and not EMAIL_RE.match(email):
        errors["email"] = "Invalid email format"
    phone = patch.get("phone")
    if phone and not PHONE_RE.match(phone):
        errors["phone"] = "Invalid phone number format"
    if patch.get("payment_terms_days") is not None and patch["payment_terms_days"] < 0:
        errors["payment_terms_days"] = "payment_terms_days must be >= 0"
    if patch.get("balance_risk_limit_cents") is not None and patch["balance_risk_limit_cents"] < 0:
        errors["balance_risk_limit"] = "balance_risk_limit must be >= 0"
    _raise_if(errors)


def _parse_transaction_meta(payload: dict, errors: dict[str, str]) -> dict:
    meta = {
        "reference_number": sanitize_text(payload.get("reference_number"))[:64] or None,
        "notes": sanitize_text(payload.get("notes")) or None,
        "transaction_date": None,
    }
    raw_date = payload.get("transaction_date")
    if raw_date not in (None, ""):
        try:
            meta["transaction_date"] = parse_iso_datetime(str(raw_date))
        except ValueError:
            errors["transaction_date"] = "transaction_date must be an ISO-8601 datetime"
    return meta


def parse_stock_movement(payload: dict, allowed_types) -> dict:
    """Validate a POST /products/<id>/stock body. Quantity sign is kept as submitted."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    errors: dict[str, str] = {}

    transaction_type = payload.get("transaction_type")
    if not transaction_type:
        errors["transaction_type"] = "Transaction type is required"
    elif transaction_type not in allowed_types:
        errors["transaction_type"] = "Invalid transaction type"

    quantity = None
    raw_quantity = payload.get("quantity")
    if raw_quantity is None or raw_quantity == "":
        errors["quantity"] = "Quantity is required"
    else:
        try:
            quantity = coerce_int(raw_quantity, "quantity")
        except ValidationError as e:
            errors["quantity"] = str(e)
        else:
            if quantity == 0:
                errors["quantity"] = "Quantity cannot be zero"
            elif abs(quantity) > MAX_QUANTITY:
                errors["quantity"] = f"Quantity cannot exceed {MAX_QUANTITY:,}"

    meta = _parse_transaction_meta(payload, errors)
    _raise_if(errors)
    return {"transaction_type": transaction_type, "quantity": quantity, **meta}


def parse_customer_transaction(payload: dict, allowed_types) -> dict:
    """Validate a POST /customers/<id>/transactions body; amount becomes cents."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    errors: dict[str, str] = {}

    transaction_type = payload.get("transaction_type")
    if not transaction_type:
        errors["transaction_type"] = "Transaction type is required"
    elif transaction_type not in allowed_types:
        errors["transaction_type"] = "Invalid transaction type"

    amount_cents = None
    raw_amount = payload.get("amount")
    if raw_amount is None or raw_amount == "":
        errors["amount"] = "Amount is required"
    else:
        try:
            amount_cents = to_cents(raw_amount, "amount")
        except MoneyFormatError as e:
            errors["amount"] = str(e)
        else:
            if amount_cents == 0:
                errors["amount"] = "Amount cannot be zero"
            elif amount_cents < 0:
                errors["amount"] = "Amount must be positive"

    meta = _parse_transaction_meta(payload, errors)
    _raise_if(errors)
    return {"transaction_type": transaction_type, "amount_cents": amount_cents, **meta}
