# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    PRODUCTS = "PRODUCTS"
    CUSTOMERS = "CUSTOMERS"
    REPORTS = "REPORTS"
    SYSTEM = "SYSTEM"
