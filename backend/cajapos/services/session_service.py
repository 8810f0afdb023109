# Overview: Service-layer operations for session tokens; issue, validate and revoke.

"""
Session Token Management Service

WHY: The frontend holds an opaque bearer token for the shift. Tokens are
cryptographically random, stored hashed, time-limited and revocable (logout
revokes immediately, deactivating an employee revokes all of theirs).

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Absolute timeout (SESSION_ABSOLUTE_TIMEOUT_HOURS, default one 8h shift)
- Idle timeout (SESSION_IDLE_TIMEOUT_MINUTES)
- Tracks client IP and user agent
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import Employee, SessionToken
from ..time_utils import utcnow


@dataclass
class SessionContext:
    """What validate_session hands to require_auth."""
    employee: Employee
    session: SessionToken


def _absolute_timeout() -> timedelta:
    return timedelta(hours=current_app.config["SESSION_ABSOLUTE_TIMEOUT_HOURS"])


def _idle_timeout() -> timedelta:
    return timedelta(minutes=current_app.config["SESSION_IDLE_TIMEOUT_MINUTES"])


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy). Never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    WHY SHA-256 not bcrypt: tokens are already high-entropy (unlike passwords).
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(
    employee_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create a session token for an employee.

    Returns (session_record, plaintext_token). The client receives the
    plaintext token, the database stores only the hash.
    """
    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        employee_id=employee_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _absolute_timeout(),
        user_agent=(user_agent or "")[:512] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason


def validate_session(token: str) -> SessionContext | None:
    """
    Return the SessionContext for a live token, else None.

    None when the token is unknown, revoked, past its absolute or idle
    timeout, or the employee has been deactivated. Idle and deactivated
    sessions are revoked on the way out. Touches last_used_at.
    """
    now = utcnow()
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    if now - session.last_used_at > _idle_timeout():
        _revoke(session, "Idle timeout")
        db.session.commit()
        return None

    employee = session.employee
    if not employee or not employee.is_active:
        _revoke(session, "Employee deactivated")
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(employee=employee, session=session)


def revoke_session(token: str, reason: str = "Logout") -> bool:
    """Revoke a single token. False when it was unknown or already revoked."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return False

    _revoke(session, reason)
    db.session.commit()
    return True


def revoke_all_employee_sessions(employee_id: int, reason: str) -> int:
    """
    Revoke every live token of an employee. Does not commit.

    Returns how many tokens were revoked.
    """
    sessions = db.session.query(SessionToken).filter_by(
        employee_id=employee_id,
        is_revoked=False,
    ).all()
    for session in sessions:
        _revoke(session, reason)
    return len(sessions)
