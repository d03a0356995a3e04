# backend/backoffice/services/products_service.py
"""
Products Service

- Codes are unique; a missing code is generated (PRD...).
- current_stock is writable only at creation, where it becomes an opening
  stock_in movement committed together with the product.
- Products are never physically deleted: delete flips status to inactive.
- Every create/update/delete appends an audit entry with a snapshot.
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product
from ..validation import (
    DuplicateCodeError,
    ModelValidationPolicy,
    NotFoundError,
    enforce_rules_product,
    validate_payload,
)
from . import audit_service
from .identifier_service import PRODUCT_CODE_PREFIX, code_exists, generate_unique_code, normalize_code
from .inventory_service import add_opening_stock, recent_product_transactions


DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200

PRODUCT_MONEY_FIELDS = {
    "unit_cost": "unit_cost_cents",
    "selling_price": "selling_price_cents",
}

CREATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "code", "name", "category", "brand", "unit",
        "unit_cost", "selling_price", "current_stock", "critical_stock_level",
    },
    required_on_create={"name"},
    money_fields=PRODUCT_MONEY_FIELDS,
)

UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "category", "brand", "unit",
        "unit_cost", "selling_price", "critical_stock_level",
    },
    money_fields=PRODUCT_MONEY_FIELDS,
)


def _get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


def list_products(
    *,
    search: str | None = None,
    category: str | None = None,
    status: str | None = "active",
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
):
    """
    Filtered product listing. status=None (or "all") lists every product.
    Returns a Flask-SQLAlchemy Pagination.
    """
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)

    query = Product.query
    if status and status != "all":
        query = query.filter(Product.status == status)
    if category:
        query = query.filter(Product.category == category)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(db.or_(Product.name.ilike(like), Product.code.ilike(like)))

    query = query.order_by(Product.created_at.desc(), Product.id.desc())
    return query.paginate(page=page, per_page=limit, error_out=False)


def get_product(product_id: int) -> dict:
    product = _get_product(product_id)
    return {
        "product": product.to_dict(),
        "recentTransactions": [t.to_dict() for t in recent_product_transactions(product.id)],
    }


def create_product(payload: dict, *, actor_id: int | None, ip_address: str | None = None) -> Product:
    """
    Create an active product from a client payload.

    Raises ValidationError on bad input and DuplicateCodeError if an explicit
    code is already taken.
    """
    if isinstance(payload, dict) and not payload.get("code"):
        payload = {k: v for k, v in payload.items() if k != "code"}
    patch = validate_payload(model=Product, payload=payload, policy=CREATE_POLICY, partial=False)
    enforce_rules_product(patch)

    opening_stock = patch.pop("current_stock", None) or 0

    if patch.get("code"):
        patch["code"] = normalize_code(patch["code"])
        if code_exists(Product, patch["code"]):
            raise DuplicateCodeError("Product code already exists")
    else:
        patch["code"] = generate_unique_code(Product, PRODUCT_CODE_PREFIX)

    product = Product(status="active", current_stock=0, created_by=actor_id)
    for k, v in patch.items():
        setattr(product, k, v)

    try:
        db.session.add(product)
        add_opening_stock(product, opening_stock, actor_id=actor_id)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateCodeError("Product code already exists")
    except Exception:
        db.session.rollback()
        raise

    audit_service.record(
        actor_id, audit_service.ACTION_CREATE, "product", product.id,
        audit_service.snapshot(new=product.to_dict()), ip_address,
    )
    return product


def update_product(product_id: int, payload: dict, *, actor_id: int | None, ip_address: str | None = None) -> Product:
    """Partial update. Stock, code and status are not writable here (status changes only via delete)."""
    product = _get_product(product_id)
    patch = validate_payload(model=Product, payload=payload, policy=UPDATE_POLICY, partial=True)
    enforce_rules_product(patch)

    before = product.to_dict()
    for k, v in patch.items():
        setattr(product, k, v)

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    audit_service.record(
        actor_id, audit_service.ACTION_UPDATE, "product", product.id,
        audit_service.snapshot(old=before, new=product.to_dict()), ip_address,
    )
    return product


def delete_product(product_id: int, *, actor_id: int | None, ip_address: str | None = None) -> Product:
    """Soft delete: flip status to inactive. History is kept."""
    product = _get_product(product_id)
    before = product.to_dict()
    product.status = "inactive"

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    audit_service.record(
        actor_id, audit_service.ACTION_DELETE, "product", product.id,
        audit_service.snapshot(old=before, new=product.to_dict()), ip_address,
    )
    return product
