# Overview: Human-readable business codes for products and customers.

"""
Codes look like PRD123456789: a prefix, the last six digits of the current
millisecond clock and three random digits. Explicit codes supplied by
clients are normalized (trimmed, upper-cased) and must be unique.
"""

import secrets
import time

from ..extensions import db


PRODUCT_CODE_PREFIX = "PRD"
CUSTOMER_CODE_PREFIX = "CUS"

GENERATE_ATTEMPTS = 5


def normalize_code(value: str) -> str:
    """Normalize to uppercase, no spaces."""
    return value.upper().strip().replace(" ", "")


def generate_code(prefix: str) -> str:
    stamp = str(int(time.time() * 1000))[-6:]
    suffix = f"{secrets.randbelow(1000):03d}"
    return f"{prefix}{stamp}{suffix}"


def code_exists(model, code: str) -> bool:
    return db.session.query(model.id).filter(model.code == code).first() is not None


def generate_unique_code(model, prefix: str) -> str:
    """Generate a code not yet used by `model`; raises RuntimeError if the space looks exhausted."""
    for _ in range(GENERATE_ATTEMPTS):
        code = generate_code(prefix)
        if not code_exists(model, code):
            return code
    raise RuntimeError(f"Could not generate a unique {prefix} code")
