# Overview: Utility functions for permission lookups and validation.

from .definitions import PERMISSION_DEFINITIONS


def get_all_permission_codes():
    """Get list of all permission codes."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def validate_permission_code(code):
    """Check if a permission code is valid."""
    return code in get_all_permission_codes()


def get_role_permissions(role):
    """Permission codes granted to a role (empty for unknown roles)."""
    from .roles import DEFAULT_ROLE_PERMISSIONS
    return DEFAULT_ROLE_PERMISSIONS.get(role, frozenset())


def has_permission(role, permission) -> bool:
    """Pure table lookup. Unknown role or permission is simply False."""
    return permission in get_role_permissions(role)


def can_access_customer(role, user_id, customer) -> bool:
    """
    Row-level check for a single customer.

    admin, manager and viewer see every customer; a sales_rep only the
    customers assigned to them. Anything else is refused.
    """
    from .roles import UNSCOPED_CUSTOMER_ROLES, SALES_REP
    if customer is None:
        return False
    if role in UNSCOPED_CUSTOMER_ROLES:
        return True
    if role == SALES_REP:
        return user_id is not None and customer.sales_rep_id == user_id
    return False
