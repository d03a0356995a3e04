# Overview: Currency parsing and formatting; all money is stored as integer cents.

from __future__ import annotations

from decimal import Decimal, InvalidOperation


# Maximum amount: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical amounts
MAX_MONEY_CENTS = 999_999_999


class MoneyFormatError(ValueError):
    """Raised when a currency value cannot be converted to cents."""


def to_cents(value, field: str = "amount") -> int:
    """
    Convert a currency value ("12.50", 12.5, 12) to integer cents.

    Rejects booleans, blanks, scientific notation, non-finite values,
    more than two decimal places and magnitudes above MAX_MONEY_CENTS.
    """
    if value is None or isinstance(value, bool):
        raise MoneyFormatError(f"{field} must be a number")

    if isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise MoneyFormatError(f"{field} is required")
        if "e" in stripped.lower():
            raise MoneyFormatError(f"{field} must be a plain number (scientific notation not allowed)")
        try:
            amount = Decimal(stripped)
        except InvalidOperation:
            raise MoneyFormatError(f"{field} must be a number")
    else:
        raise MoneyFormatError(f"{field} must be a number")

    if not amount.is_finite():
        raise MoneyFormatError(f"{field} must be a finite number")
    if amount.as_tuple().exponent < -2:
        raise MoneyFormatError(f"{field} must have at most 2 decimal places")

    cents = int(amount * 100)
    if abs(cents) > MAX_MONEY_CENTS:
        raise MoneyFormatError(f"{field} cannot exceed {MAX_MONEY_CENTS / 100:,.2f}")
    return cents


def format_cents(cents: int | None) -> str | None:
    """Render cents as a fixed two-decimal string ("-370.00")."""
    if cents is None:
        return None
    sign = "-" if cents < 0 else ""
    whole, frac = divmod(abs(int(cents)), 100)
    return f"{sign}{whole}.{frac:02d}"
