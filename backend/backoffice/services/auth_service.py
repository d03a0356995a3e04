# Overview: Password hashing, user creation and credential checks.

"""
Authentication Service

Every action must be attributable to a named user. Passwords are hashed
with bcrypt (cost factor 12) and must meet the strength rules below.
Session tokens are managed separately (see session_service.py).
"""

import re

import bcrypt

from ..extensions import db
from ..models import User
from ..permissions import ROLES
from ..time_utils import utcnow
from ..validation import EMAIL_RE, ConflictError, ValidationError


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt (cost factor 12)."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns False (never raises) for malformed hashes.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(email: str, name: str, password: str, role: str = "viewer") -> User:
    """
    Create a user with a bcrypt password hash.

    Raises ValidationError for a bad email, role or weak password and
    ConflictError if the email is taken.
    """
    email = (email or "").strip().lower()
    if not EMAIL_RE.match(email):
        raise ValidationError("Invalid email format", errors={"email": "Invalid email format"})
    if role not in ROLES:
        raise ValidationError("Invalid role", errors={"role": f"role must be one of {', '.join(ROLES)}"})
    if not (name or "").strip():
        raise ValidationError("Name is required", errors={"name": "name is required"})

    existing = db.session.query(User).filter(User.email == email).first()
    if existing:
        raise ConflictError("A user with this email already exists")

    user = User(
        email=email,
        name=name.strip(),
        password_hash=hash_password(password),
        role=role,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Return the active user for these credentials, or None.

    Updates last_login_at on success.
    """
    email = (email or "").strip().lower()
    user = db.session.query(User).filter(
        User.email == email,
        User.is_active.is_(True),
    ).first()

    if user is None or not verify_password(password or "", user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user
