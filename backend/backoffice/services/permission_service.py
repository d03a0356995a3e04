# Overview: Service-layer enforcement of role permissions and per-customer row access.

"""
Permission Enforcement

Two separate checks, always composed and never merged:
- has_permission(role, code): may this role perform the action at all?
  Enforced at the route by @require_permission.
- can_access_customer(role, user_id, customer): may this user touch this row?
  Enforced inside customer-scoped services on the loaded (locked) row,
  and pushed into WHERE clauses for list/report queries.

Fail closed: unknown roles have no permissions and see no customers.
"""

from flask import current_app
from sqlalchemy import false

from ..models import Customer
from ..permissions import (
    SALES_REP,
    can_access_customer,
)
from ..permissions.roles import UNSCOPED_CUSTOMER_ROLES


class AccessDeniedError(Exception):
    """Raised when a user lacks a permission or row-level access."""
    pass


def ensure_customer_access(user, customer: Customer) -> None:
    """Raise AccessDeniedError unless the user may act on this customer."""
    if not can_access_customer(user.role, user.id, customer):
        current_app.logger.warning(
            "Customer access denied: user_id=%s role=%s customer_id=%s",
            user.id, user.role, customer.id if customer is not None else None,
        )
        raise AccessDeniedError("You do not have access to this customer")


def scope_customer_query(query, user):
    """
    Restrict a query over Customer (or joined to it) to the rows the user may see.

    sales_rep: only customers assigned to them. Unknown roles: nothing.
    """
    if user.role in UNSCOPED_CUSTOMER_ROLES:
        return query
    if user.role == SALES_REP:
        return query.filter(Customer.sales_rep_id == user.id)
    return query.filter(false())
