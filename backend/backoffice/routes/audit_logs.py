# Overview: Flask API route for reading the audit trail.

from flask import Blueprint, current_app, request

from ..decorators import require_auth, require_permission
from ..responses import failure, page_payload, success
from ..services import audit_service


audit_logs_bp = Blueprint("audit_logs", __name__, url_prefix="/api/audit-logs")


@audit_logs_bp.get("")
@require_auth
@require_permission("VIEW_AUDIT_LOG")
def list_audit_logs():
    """
    Query params: entity_type, user_id, action, page, limit (default 50, max 200).
    """
    try:
        pagination = audit_service.list_audit_logs(
            entity_type=request.args.get("entity_type"),
            user_id=request.args.get("user_id", type=int),
            action=request.args.get("action"),
            page=request.args.get("page", 1, type=int),
            limit=request.args.get("limit", 50, type=int),
        )
        return success(page_payload(pagination))
    except Exception:
        current_app.logger.exception("Failed to list audit logs")
        return failure("Internal server error", 500)
