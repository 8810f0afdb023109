# Overview: Service-layer operations for the audit log; best-effort writer and feed reads.

"""
Audit Log Writer

WHY: The owner reviews who opened/closed the register, who moved cash and
who approved it. Entries are append-only.

INVARIANTS:
- Called after the triggering transaction has committed.
- With AUDIT_ASYNC on, the write runs on a single background worker so the
  request never waits on it. Entries are written in submission order.
- A failed write is logged and swallowed; it never reaches the caller and
  never rolls back the action it describes.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

from flask import Flask, current_app

from ..extensions import db
from ..models import ActionLog

_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="audit-writer")


def _write_entry(employee_id: int | None, employee_name: str, action_type: str, details: str) -> ActionLog:
    entry = ActionLog(
        employee_id=employee_id,
        employee_name=employee_name,
        action_type=action_type,
        details=details,
    )
    db.session.add(entry)
    db.session.commit()
    return entry


def _record(employee_id: int | None, employee_name: str, action_type: str, details: str) -> ActionLog | None:
    try:
        return _write_entry(employee_id, employee_name, action_type, details)
    except Exception:
        db.session.rollback()
        current_app.logger.exception(
            "AUDIT LOG FAILED: action_type=%s employee_id=%s", action_type, employee_id
        )
        return None


def _record_in_background(app: Flask, *args) -> None:
    # Own app context, so its own scoped session and connection
    with app.app_context():
        _record(*args)


def log_action(employee_id: int | None, employee_name: str, action_type: str, details: str) -> ActionLog | None:
    """
    Append an audit entry.

    Synchronous mode returns the entry, or None when the write failed.
    With AUDIT_ASYNC the write is queued and None is returned immediately.
    """
    if current_app.config.get("AUDIT_ASYNC"):
        app = current_app._get_current_object()
        _executor.submit(_record_in_background, app, employee_id, employee_name, action_type, details)
        return None
    return _record(employee_id, employee_name, action_type, details)


def wait_for_pending(timeout: float | None = None) -> None:
    """Block until every audit write queued so far has finished."""
    _executor.submit(lambda: None).result(timeout=timeout)


def list_actions(start: datetime | None = None, end: datetime | None = None) -> list[ActionLog]:
    """Audit entries, newest first, optionally within [start, end]."""
    query = db.session.query(ActionLog)
    if start is not None:
        query = query.filter(ActionLog.created_at >= start)
    if end is not None:
        query = query.filter(ActionLog.created_at <= end)
    return query.order_by(ActionLog.created_at.desc(), ActionLog.id.desc()).all()
