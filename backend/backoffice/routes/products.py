# Overview: Flask API routes for products and stock movements; parses input and returns JSON envelopes.

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth, require_permission
from ..responses import DOMAIN_ERRORS, error_response, failure, page_payload, success
from ..services import inventory_service, products_service, reporting_service
from ..services.audit_service import client_ip
from ..services.ledger_service import INVENTORY_TRANSACTION_TYPES
from ..validation import parse_stock_movement


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_permission("VIEW_PRODUCT")
def list_products():
    """
    Query params:
    - search: matches name or code
    - category
    - status: active (default), inactive or all
    - page, limit (default 50, max 200)
    """
    try:
        pagination = products_service.list_products(
            search=request.args.get("search"),
            category=request.args.get("category"),
            status=request.args.get("status", "active"),
            page=request.args.get("page", 1, type=int),
            limit=request.args.get("limit", products_service.DEFAULT_PAGE_SIZE, type=int),
        )
        return success(page_payload(pagination))
    except Exception:
        current_app.logger.exception("Failed to list products")
        return failure("Internal server error", 500)


@products_bp.post("")
@require_auth
@require_permission("CREATE_PRODUCT")
def create_product():
    try:
        product = products_service.create_product(
            request.get_json(silent=True),
            actor_id=g.current_user.id,
            ip_address=client_ip(),
        )
        return success(product.to_dict(), 201, "Product created successfully")
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return failure("Internal server error", 500)


@products_bp.get("/low-stock")
@require_auth
@require_permission("VIEW_PRODUCT")
def low_stock():
    try:
        products = reporting_service.low_stock_products()
        return success({"products": products, "count": len(products)})
    except Exception:
        current_app.logger.exception("Failed to fetch low stock products")
        return failure("Internal server error", 500)


@products_bp.get("/<int:product_id>")
@require_auth
@require_permission("VIEW_PRODUCT")
def get_product(product_id: int):
    try:
        return success(products_service.get_product(product_id))
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to fetch product")
        return failure("Internal server error", 500)


@products_bp.put("/<int:product_id>")
@require_auth
@require_permission("UPDATE_PRODUCT")
def update_product(product_id: int):
    try:
        product = products_service.update_product(
            product_id,
            request.get_json(silent=True),
            actor_id=g.current_user.id,
            ip_address=client_ip(),
        )
        return success(product.to_dict(), message="Product updated successfully")
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update product")
        return failure("Internal server error", 500)


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission("DELETE_PRODUCT")
def delete_product(product_id: int):
    try:
        product = products_service.delete_product(product_id, actor_id=g.current_user.id, ip_address=client_ip())
        return success(product.to_dict(), message="Product deleted successfully")
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return failure("Internal server error", 500)


@products_bp.post("/<int:product_id>/stock")
@require_auth
@require_permission("ADJUST_STOCK")
def adjust_stock(product_id: int):
    """
    Body: transaction_type (stock_in | stock_out | adjustment), quantity,
    optional reference_number, notes, transaction_date.
    """
    try:
        movement = parse_stock_movement(request.get_json(silent=True), INVENTORY_TRANSACTION_TYPES)
        result = inventory_service.apply_inventory_transaction(
            product_id,
            movement["transaction_type"],
            movement["quantity"],
            actor_id=g.current_user.id,
            reference_number=movement["reference_number"],
            notes=movement["notes"],
            transaction_date=movement["transaction_date"],
            ip_address=client_ip(),
        )
        return success(
            {"transaction": result.transaction.to_dict(), "newStock": result.new_value},
            201,
            "Stock updated successfully",
        )
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return failure("Internal server error", 500)


@products_bp.get("/<int:product_id>/transactions")
@require_auth
@require_permission("VIEW_PRODUCT")
def product_transactions(product_id: int):
    try:
        pagination = inventory_service.list_product_transactions(
            product_id,
            page=request.args.get("page", 1, type=int),
            limit=request.args.get("limit", 50, type=int),
        )
        return success(page_payload(pagination))
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list product transactions")
        return failure("Internal server error", 500)
