# Overview: Best-effort audit trail writer (sync or thread-pool) and audit log queries.

"""
Audit Recorder

Every business change appends one AuditLogEntry after the primary commit.
Audit writes are best-effort: a failure is logged and swallowed so it can
never undo or block the change it describes. Entries are never retried.

Dispatch:
- AUDIT_ASYNC = False: write inline in the caller's session (tests, CLI).
- AUDIT_ASYNC = True: submit to a process-wide ThreadPoolExecutor; each
  worker pushes its own app context (and therefore its own session).
  flush() waits for everything submitted so far.
"""

from __future__ import annotations

import json
import threading
from concurrent.futures import ThreadPoolExecutor, wait

from flask import current_app, has_request_context, request

from ..extensions import db
from ..models import AuditLogEntry


ACTION_CREATE = "CREATE"
ACTION_UPDATE = "UPDATE"
ACTION_DELETE = "DELETE"
ACTION_STOCK_ADJUSTMENT = "STOCK_ADJUSTMENT"
ACTION_TRANSACTION = "TRANSACTION"

MAX_AUDIT_PAGE_SIZE = 200

_executor: ThreadPoolExecutor | None = None
_executor_lock = threading.Lock()
_pending = []


def client_ip() -> str:
    """Best-effort client address: X-Forwarded-For, then X-Real-IP, then the socket peer."""
    if not has_request_context():
        return "unknown"
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return request.remote_addr or "unknown"


def snapshot(old=None, new=None) -> dict:
    """Build the changes payload: {"old", "new"} for updates, {"data"} otherwise."""
    if old is not None:
        return {"old": old, "new": new}
    return {"data": new}


def _get_executor(max_workers: int) -> ThreadPoolExecutor:
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="audit")
        return _executor


def _write_entry(
    *,
    actor_id: int | None,
    action: str,
    entity_type: str,
    entity_id: int | None,
    changes: dict | None,
    ip_address: str | None,
) -> AuditLogEntry:
    entry = AuditLogEntry(
        user_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        changes=json.dumps(changes, default=str) if changes is not None else None,
        ip_address=ip_address,
    )
    db.session.add(entry)
    db.session.commit()
    return entry


def _safe_write(entry: dict) -> None:
    try:
        _write_entry(**entry)
    except Exception:
        db.session.rollback()
        current_app.logger.exception(
            "Audit write failed for %s %s/%s",
            entry.get("action"), entry.get("entity_type"), entry.get("entity_id"),
        )


def _write_in_app(app, entry: dict) -> None:
    with app.app_context():
        _safe_write(entry)


def record(
    actor_id: int | None,
    action: str,
    entity_type: str,
    entity_id: int | None,
    changes: dict | None = None,
    ip_address: str | None = None,
) -> None:
    """
    Append one audit entry. Never raises.

    Call only after the change being described has been committed.
    """
    entry = {
        "actor_id": actor_id,
        "action": action,
        "entity_type": entity_type,
        "entity_id": entity_id,
        "changes": changes,
        "ip_address": ip_address,
    }

    if not current_app.config.get("AUDIT_ASYNC", True):
        _safe_write(entry)
        return

    app = current_app._get_current_object()
    try:
        executor = _get_executor(int(current_app.config.get("AUDIT_MAX_WORKERS", 2)))
        future = executor.submit(_write_in_app, app, entry)
    except RuntimeError:
        # Executor already shut down (interpreter exit); fall back to an inline write.
        _safe_write(entry)
        return

    with _executor_lock:
        _pending[:] = [f for f in _pending if not f.done()]
        _pending.append(future)


def flush(timeout: float | None = None) -> None:
    """Block until every audit write submitted so far has finished."""
    with _executor_lock:
        futures = list(_pending)
    if futures:
        wait(futures, timeout=timeout)


def shutdown() -> None:
    global _executor
    with _executor_lock:
        executor, _executor = _executor, None
        _pending.clear()
    if executor is not None:
        executor.shutdown(wait=True)


def list_audit_logs(
    *,
    entity_type: str | None = None,
    user_id: int | None = None,
    action: str | None = None,
    page: int = 1,
    limit: int = 50,
):
    """Newest-first audit entries with optional filters. Returns a Pagination."""
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_AUDIT_PAGE_SIZE)

    query = AuditLogEntry.query
    if entity_type:
        query = query.filter(AuditLogEntry.entity_type == entity_type)
    if user_id is not None:
        query = query.filter(AuditLogEntry.user_id == user_id)
    if action:
        query = query.filter(AuditLogEntry.action == action)

    query = query.order_by(AuditLogEntry.created_at.desc(), AuditLogEntry.id.desc())
    return query.paginate(page=page, per_page=limit, error_out=False)
