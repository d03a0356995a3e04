# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..permissions import get_role_permissions
from ..responses import failure, success
from ..services import auth_service, session_service
from ..services.audit_service import client_ip


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _user_payload(user) -> dict:
    return {
        "user": user.to_dict(),
        "permissions": sorted(get_role_permissions(user.role)),
    }


@auth_bp.post("/login")
def login_route():
    """
    Authenticate by email and password and create a session token.

    The token must be sent as `Authorization: Bearer <token>` on protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not email or not password:
            return failure("Email and password are required", 400)

        user = auth_service.authenticate(email, password)
        if not user:
            current_app.logger.warning("Failed login for %r from %s", email, client_ip())
            return failure("Invalid credentials", 401)

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=client_ip(),
        )

        return success({
            **_user_payload(user),
            "token": token,
            "session": session.to_dict(),
        }, message="Login successful")

    except Exception:
        current_app.logger.exception("Failed to login user")
        return failure("Internal server error", 500)


@auth_bp.post("/logout")
@require_auth
def logout_route():
    try:
        session_service.revoke_session(g.session_token)
        return success(None, message="Logout successful")
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return failure("Internal server error", 500)


@auth_bp.get("/me")
@require_auth
def me_route():
    return success(_user_payload(g.current_user))
