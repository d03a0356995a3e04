# Overview: Permission system package.
# Re-exports all public APIs so callers import from one place.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    PRODUCT_PERMISSIONS,
    CUSTOMER_PERMISSIONS,
    REPORT_PERMISSIONS,
    SYSTEM_PERMISSIONS,
)
from .roles import (
    ADMIN,
    MANAGER,
    SALES_REP,
    VIEWER,
    ROLES,
    DEFAULT_ROLE_PERMISSIONS,
)
from .helpers import (
    get_all_permission_codes,
    validate_permission_code,
    get_role_permissions,
    has_permission,
    can_access_customer,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "PRODUCT_PERMISSIONS",
    "CUSTOMER_PERMISSIONS",
    "REPORT_PERMISSIONS",
    "SYSTEM_PERMISSIONS",
    "ADMIN",
    "MANAGER",
    "SALES_REP",
    "VIEWER",
    "ROLES",
    "DEFAULT_ROLE_PERMISSIONS",
    "get_all_permission_codes",
    "validate_permission_code",
    "get_role_permissions",
    "has_permission",
    "can_access_customer",
]
