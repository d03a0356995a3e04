from .auth import User, SessionToken
from .inventory import Product, InventoryTransaction
from .customers import Customer, CustomerTransaction
from .audit import AuditLogEntry
from .immutability import ImmutableRecordError, IMMUTABLE_MODELS

__all__ = [
    'User', 'SessionToken',
    'Product', 'InventoryTransaction',
    'Customer', 'CustomerTransaction',
    'AuditLogEntry',
    'ImmutableRecordError', 'IMMUTABLE_MODELS',
]
