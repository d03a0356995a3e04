# Overview: Opaque bearer sessions: issue, validate (absolute + idle timeouts) and revoke.

"""
Session tokens

The client holds a random 64-hex-character token; the database keeps only
its SHA-256 digest, so a leaked table cannot be replayed as credentials.

A session dies when any of these hold:
- it is older than SESSION_ABSOLUTE_HOURS (default 24)
- it has been unused for SESSION_IDLE_MINUTES (default 120); revoked on sight
- its user was deactivated; revoked on sight
- it was revoked explicitly (logout)
"""

import hashlib
import secrets
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from ..time_utils import utcnow


DEFAULT_ABSOLUTE_TIMEOUT = timedelta(hours=24)
DEFAULT_IDLE_TIMEOUT = timedelta(hours=2)


def _absolute_timeout() -> timedelta:
    hours = current_app.config.get("SESSION_ABSOLUTE_HOURS")
    return timedelta(hours=hours) if hours else DEFAULT_ABSOLUTE_TIMEOUT


def _idle_timeout() -> timedelta:
    minutes = current_app.config.get("SESSION_IDLE_MINUTES")
    return timedelta(minutes=minutes) if minutes else DEFAULT_IDLE_TIMEOUT


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """SHA-256 hex digest; bcrypt is unnecessary for 256-bit random input."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _find_live(token: str) -> SessionToken | None:
    return db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Open a session for an existing user.

    Returns (session_row, plaintext_token). Raises ValueError for an unknown user.
    """
    if db.session.get(User, user_id) is None:
        raise ValueError("User not found")

    token = generate_token()
    issued_at = utcnow()
    session = SessionToken(
        user_id=user_id,
        token_hash=hash_token(token),
        created_at=issued_at,
        last_used_at=issued_at,
        expires_at=issued_at + _absolute_timeout(),
        user_agent=(user_agent or "")[:512] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()
    return session, token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> User | None:
    """Return the session's active user and touch last_used_at, or None."""
    session = _find_live(token)
    if session is None:
        return None

    now = utcnow()
    if session.expires_at < now:
        return None
    if now - session.last_used_at > _idle_timeout():
        _revoke(session, "Idle timeout")
        return None

    user = session.user
    if user is None or not user.is_active:
        _revoke(session, "User account deactivated")
        return None

    session.last_used_at = now
    db.session.commit()
    return user


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """Revoke a live session. False if the token is unknown or already revoked."""
    session = _find_live(token)
    if session is None:
        return False
    _revoke(session, reason)
    return True
