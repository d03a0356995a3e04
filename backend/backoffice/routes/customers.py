# Overview: Flask API routes for customers and receivable transactions; row access is enforced in the service.

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth, require_permission
from ..money import format_cents
from ..responses import DOMAIN_ERRORS, error_response, failure, page_payload, success
from ..services import customer_service, reporting_service
from ..services.audit_service import client_ip
from ..services.ledger_service import CUSTOMER_TRANSACTION_TYPES
from ..validation import parse_customer_transaction


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
@require_permission("VIEW_CUSTOMER")
def list_customers():
    """Sales reps only ever receive their own customers."""
    try:
        pagination = customer_service.list_customers(
            g.current_user,
            search=request.args.get("search"),
            status=request.args.get("status", "active"),
            page=request.args.get("page", 1, type=int),
            limit=request.args.get("limit", customer_service.DEFAULT_PAGE_SIZE, type=int),
        )
        return success(page_payload(pagination))
    except Exception:
        current_app.logger.exception("Failed to list customers")
        return failure("Internal server error", 500)


@customers_bp.post("")
@require_auth
@require_permission("CREATE_CUSTOMER")
def create_customer():
    try:
        customer = customer_service.create_customer(
            request.get_json(silent=True),
            user=g.current_user,
            ip_address=client_ip(),
        )
        return success(customer.to_dict(), 201, "Customer created successfully")
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create customer")
        return failure("Internal server error", 500)


@customers_bp.get("/at-risk")
@require_auth
@require_permission("VIEW_CUSTOMER")
def at_risk_customers():
    try:
        customers = reporting_service.at_risk_customers(g.current_user)
        return success({"customers": customers, "count": len(customers)})
    except Exception:
        current_app.logger.exception("Failed to fetch at-risk customers")
        return failure("Internal server error", 500)


@customers_bp.get("/<int:customer_id>")
@require_auth
@require_permission("VIEW_CUSTOMER")
def get_customer(customer_id: int):
    try:
        return success(customer_service.get_customer(customer_id, g.current_user))
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to fetch customer")
        return failure("Internal server error", 500)


@customers_bp.put("/<int:customer_id>")
@require_auth
@require_permission("UPDATE_CUSTOMER")
def update_customer(customer_id: int):
    try:
        customer = customer_service.update_customer(
            customer_id,
            request.get_json(silent=True),
            user=g.current_user,
            ip_address=client_ip(),
        )
        return success(customer.to_dict(), message="Customer updated successfully")
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update customer")
        return failure("Internal server error", 500)


@customers_bp.delete("/<int:customer_id>")
@require_auth
@require_permission("DELETE_CUSTOMER")
def delete_customer(customer_id: int):
    try:
        customer = customer_service.delete_customer(customer_id, user=g.current_user, ip_address=client_ip())
        return success(customer.to_dict(), message="Customer deleted successfully")
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete customer")
        return failure("Internal server error", 500)


@customers_bp.post("/<int:customer_id>/transactions")
@require_auth
@require_permission("RECORD_CUSTOMER_TRANSACTION")
def record_transaction(customer_id: int):
    """
    Body: transaction_type (sale | payment | credit_note), amount (decimal, > 0),
    optional reference_number, notes, transaction_date.
    """
    try:
        parsed = parse_customer_transaction(request.get_json(silent=True), CUSTOMER_TRANSACTION_TYPES)
        result = customer_service.apply_customer_transaction(
            customer_id,
            parsed["transaction_type"],
            parsed["amount_cents"],
            actor=g.current_user,
            reference_number=parsed["reference_number"],
            notes=parsed["notes"],
            transaction_date=parsed["transaction_date"],
            ip_address=client_ip(),
        )
        return success(
            {"transaction": result.transaction.to_dict(), "newBalance": format_cents(result.new_value)},
            201,
            "Transaction recorded successfully",
        )
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to record customer transaction")
        return failure("Internal server error", 500)


@customers_bp.get("/<int:customer_id>/transactions")
@require_auth
@require_permission("VIEW_CUSTOMER")
def customer_transactions(customer_id: int):
    try:
        pagination = customer_service.list_customer_transactions(
            customer_id,
            g.current_user,
            page=request.args.get("page", 1, type=int),
            limit=request.args.get("limit", customer_service.DEFAULT_PAGE_SIZE, type=int),
        )
        return success(page_payload(pagination))
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list customer transactions")
        return failure("Internal server error", 500)
