# backend/cajapos/routes/system.py
"""
System health and version endpoints.

Unauthenticated; used by the launcher script and uptime checks.
"""

import time

from flask import Blueprint, current_app
from sqlalchemy import text

from .. import __version__
from ..extensions import db
from ..models import CashSession, Employee
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """Round-trip the database and count the rows the register depends on."""
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        employee_count = db.session.query(Employee).count()
        active_sessions = db.session.query(CashSession).filter(CashSession.is_active.is_(True)).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "employees": employee_count,
                "active_cash_sessions": active_sessions,
            },
        }
    except Exception:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database unreachable
    """
    database_health = check_database_health()
    http_status = 200 if database_health["status"] == "healthy" else 503

    response = {
        "status": database_health["status"],
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database_health},
    }
    return response, http_status


@system_bp.get("/version")
def version():
    return {"name": "cajapos", "version": __version__}, 200
