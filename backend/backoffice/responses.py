# Overview: JSON envelope helpers and the domain-exception -> HTTP status mapping.

from __future__ import annotations

from flask import jsonify

from .services.permission_service import AccessDeniedError
from .validation import ConflictError, NotFoundError, ValidationError


DOMAIN_ERRORS = (ValidationError, ConflictError, NotFoundError, AccessDeniedError)


def success(data=None, status: int = 200, message: str | None = None):
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    return jsonify(body), status


def failure(error: str, status: int, errors: dict | None = None):
    body = {"success": False, "error": error}
    if errors:
        body["errors"] = errors
    return jsonify(body), status


def page_payload(pagination, serialize=None) -> dict:
    """Serialize a Flask-SQLAlchemy Pagination into {items, pagination}."""
    serialize = serialize or (lambda obj: obj.to_dict())
    return {
        "items": [serialize(obj) for obj in pagination.items],
        "pagination": {
            "page": pagination.page,
            "limit": pagination.per_page,
            "total": pagination.total,
            "totalPages": pagination.pages,
        },
    }


def error_response(exc: Exception):
    """Translate a domain exception into the error envelope."""
    if isinstance(exc, ValidationError):
        return failure(str(exc), 400, exc.errors)
    if isinstance(exc, AccessDeniedError):
        return failure(str(exc) or "Forbidden", 403)
    if isinstance(exc, NotFoundError):
        return failure(str(exc.args[0]) if exc.args else "Not found", 404)
    if isinstance(exc, ConflictError):
        return failure(str(exc), 409)
    raise exc
