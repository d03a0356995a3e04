# Overview: Flask API routes for inventory and customer reports.

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth, require_permission
from ..responses import DOMAIN_ERRORS, error_response, failure, success
from ..services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/inventory")
@require_auth
@require_permission("VIEW_REPORTS")
def inventory_report():
    """
    Query params: start_date, end_date (ISO-8601; a bare end date covers the whole day).
    """
    try:
        data = reporting_service.inventory_report(
            start=request.args.get("start_date"),
            end=request.args.get("end_date"),
        )
        return success(data)
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to generate inventory report")
        return failure("Internal server error", 500)


@reports_bp.get("/customers")
@require_auth
@require_permission("VIEW_REPORTS")
def customer_report():
    try:
        data = reporting_service.customer_report(
            g.current_user,
            start=request.args.get("start_date"),
            end=request.args.get("end_date"),
        )
        return success(data)
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to generate customer report")
        return failure("Internal server error", 500)
