# Overview: Static role -> permission table, frozen at import time.

from types import MappingProxyType

from .helpers import get_all_permission_codes


ADMIN = "admin"
MANAGER = "manager"
SALES_REP = "sales_rep"
VIEWER = "viewer"

ROLES = (ADMIN, MANAGER, SALES_REP, VIEWER)

# Roles that see every customer; sales_rep is limited to its own book.
UNSCOPED_CUSTOMER_ROLES = frozenset({ADMIN, MANAGER, VIEWER})


DEFAULT_ROLE_PERMISSIONS = MappingProxyType({
    ADMIN: frozenset(get_all_permission_codes()),

    MANAGER: frozenset({
        "CREATE_PRODUCT",
        "VIEW_PRODUCT",
        "UPDATE_PRODUCT",
        "ADJUST_STOCK",
        "CREATE_CUSTOMER",
        "VIEW_CUSTOMER",
        "UPDATE_CUSTOMER",
        "RECORD_CUSTOMER_TRANSACTION",
        "VIEW_REPORTS",
    }),

    SALES_REP: frozenset({
        "VIEW_PRODUCT",
        "CREATE_CUSTOMER",
        "VIEW_CUSTOMER",
        "UPDATE_CUSTOMER",
        "RECORD_CUSTOMER_TRANSACTION",
        "VIEW_REPORTS",
    }),

    VIEWER: frozenset({
        "VIEW_PRODUCT",
        "VIEW_CUSTOMER",
        "VIEW_REPORTS",
    }),
})
