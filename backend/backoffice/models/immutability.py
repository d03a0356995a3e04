# Overview: Append-only enforcement for ledger and audit rows at flush time.

from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.orm import Session

from .audit import AuditLogEntry
from .customers import CustomerTransaction
from .inventory import InventoryTransaction


IMMUTABLE_MODELS = (InventoryTransaction, CustomerTransaction, AuditLogEntry)


class ImmutableRecordError(RuntimeError):
    """A flush tried to modify or delete an append-only row."""

    def __init__(self, entity_type: str, entity_id, operation: str):
        super().__init__(f"{entity_type} {entity_id} is append-only ({operation} rejected)")
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.operation = operation


@event.listens_for(Session, "before_flush")
def _reject_immutable_changes(session, flush_context, instances):
    for obj in session.deleted:
        if isinstance(obj, IMMUTABLE_MODELS):
            raise ImmutableRecordError(type(obj).__name__, obj.id, "DELETE")

    for obj in session.dirty:
        if isinstance(obj, IMMUTABLE_MODELS) and session.is_modified(obj, include_collections=False):
            raise ImmutableRecordError(type(obj).__name__, obj.id, "UPDATE")
