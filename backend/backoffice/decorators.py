# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import current_app, g, request

from .permissions import has_permission, validate_permission_code
from .responses import failure
from .services import session_service


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user')


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer session and set g.current_user.

    Returns 401 if the header is missing, the token is invalid or expired,
    or the user account is deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if token is None:
            return failure("Authentication required", 401)

        user = session_service.validate_session(token)
        if user is None:
            return failure("Invalid or expired token", 401)

        g.current_user = user
        g.session_token = token

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """
    Require a role permission. Must be stacked under @require_auth.

    Unknown codes fail at import time rather than silently denying every request.
    """
    if not validate_permission_code(permission_code):
        raise ValueError(f"Unknown permission code: {permission_code}")

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return failure("Authentication required", 401)

            user = g.current_user
            if not has_permission(user.role, permission_code):
                current_app.logger.warning(
                    "Permission denied: user_id=%s role=%s permission=%s path=%s",
                    user.id, user.role, permission_code, request.path,
                )
                return failure("Insufficient permissions", 403)

            return f(*args, **kwargs)

        return decorated_function
    return decorator
