# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- PRODUCTS --

PRODUCT_PERMISSIONS = [
    (
        "CREATE_PRODUCT",
        "Create Product",
        "Add products to the catalog, optionally with opening stock",
        PermissionCategory.PRODUCTS,
    ),
    (
        "VIEW_PRODUCT",
        "View Product",
        "View products, stock levels and stock movements",
        PermissionCategory.PRODUCTS,
    ),
    (
        "UPDATE_PRODUCT",
        "Update Product",
        "Edit product details (stock is changed only through movements)",
        PermissionCategory.PRODUCTS,
    ),
    (
        "DELETE_PRODUCT",
        "Delete Product",
        "Deactivate products",
        PermissionCategory.PRODUCTS,
    ),
    (
        "ADJUST_STOCK",
        "Adjust Stock",
        "Record stock_in, stock_out and adjustment movements",
        PermissionCategory.PRODUCTS,
    ),
]


# -- CUSTOMERS --

CUSTOMER_PERMISSIONS = [
    (
        "CREATE_CUSTOMER",
        "Create Customer",
        "Add customers",
        PermissionCategory.CUSTOMERS,
    ),
    (
        "VIEW_CUSTOMER",
        "View Customer",
        "View customers, balances and transaction history",
        PermissionCategory.CUSTOMERS,
    ),
    (
        "UPDATE_CUSTOMER",
        "Update Customer",
        "Edit customer details (balance is changed only through transactions)",
        PermissionCategory.CUSTOMERS,
    ),
    (
        "DELETE_CUSTOMER",
        "Delete Customer",
        "Deactivate customers",
        PermissionCategory.CUSTOMERS,
    ),
    (
        "RECORD_CUSTOMER_TRANSACTION",
        "Record Customer Transaction",
        "Record sales, payments and credit notes against a customer balance",
        PermissionCategory.CUSTOMERS,
    ),
]


# -- REPORTS --

REPORT_PERMISSIONS = [
    (
        "VIEW_REPORTS",
        "View Reports",
        "View inventory and customer reports",
        PermissionCategory.REPORTS,
    ),
]


# -- SYSTEM --

SYSTEM_PERMISSIONS = [
    (
        "VIEW_AUDIT_LOG",
        "View Audit Log",
        "View the audit trail of all changes",
        PermissionCategory.SYSTEM,
    ),
]


PERMISSION_DEFINITIONS = (
    PRODUCT_PERMISSIONS
    + CUSTOMER_PERMISSIONS
    + REPORT_PERMISSIONS
    + SYSTEM_PERMISSIONS
)
