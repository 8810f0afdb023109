# Overview: Service-layer operations for the cash session; open/close, movements and cash-sale credits.

"""
Cash Session Manager

WHY: The register holds one drawer. A cash session tracks the money in it
from the opening count until close; cash sales and admin-approved
movements change its balance.

DESIGN PRINCIPLES:
- At most one active session system-wide (partial unique index + check)
- Balance changes are single conditional UPDATEs, so two writers cannot
  both act on a stale balance
- A withdrawal can never leave the balance negative
- Closing is idempotent: no active session is a successful no-op
- Every movement is persisted with its approver in the same transaction as
  the balance change; audit entries follow after commit
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from ..errors import (
    ActiveSessionExistsError,
    InsufficientFundsError,
    NoActiveSessionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from ..extensions import db
from ..models import CashMovement, CashSession, Employee
from ..time_utils import utcnow
from ..validation import parse_amount, parse_text
from . import audit_service, auth_service
from .concurrency import atomic, lock_for_update

MOVEMENT_ADD = "ADD"
MOVEMENT_REMOVE = "REMOVE"
MOVEMENT_TYPES = (MOVEMENT_ADD, MOVEMENT_REMOVE)


def get_active_session() -> CashSession | None:
    return db.session.query(CashSession).filter(CashSession.is_active.is_(True)).first()


def open_session(employee: Employee, start_amount) -> CashSession:
    """
    Open the register with a counted start amount.

    Raises ActiveSessionExistsError when a session is already active,
    including when a concurrent open wins the race at commit time.
    """
    amount = parse_amount(start_amount, "El monto inicial")

    try:
        with atomic():
            if get_active_session() is not None:
                raise ActiveSessionExistsError()

            session = CashSession(
                employee_id=employee.id,
                start_amount=amount,
                current_balance=amount,
                is_active=True,
                start_time=utcnow(),
            )
            db.session.add(session)
    except PersistenceError as exc:
        if isinstance(exc.__cause__, IntegrityError):
            raise ActiveSessionExistsError() from exc
        raise

    audit_service.log_action(
        employee.id, employee.full_name, "CASHBOX_OPEN", f"Inició caja con ${amount}."
    )
    return session


def close_session(employee: Employee) -> CashSession | None:
    """
    Close the active session. Returns None when there was nothing to close.

    The flip is conditional on is_active, so of two racing closes only one
    closes (and audits) the session.
    """
    with atomic():
        session = lock_for_update(
            db.session.query(CashSession).filter(CashSession.is_active.is_(True))
        ).first()
        if session is None:
            return None

        closed = db.session.query(CashSession).filter(
            CashSession.id == session.id,
            CashSession.is_active.is_(True),
        ).update(
            {CashSession.is_active: False, CashSession.end_time: utcnow()},
            synchronize_session=False,
        )
        if not closed:
            return None

    db.session.refresh(session)
    audit_service.log_action(
        employee.id,
        employee.full_name,
        "CASHBOX_CLOSE",
        f"Cerró caja con un saldo final de ${session.current_balance}.",
    )
    return session


def apply_movement(
    employee: Employee,
    movement_type,
    amount,
    reason,
    admin_rut,
    admin_password,
) -> CashSession:
    """
    Add cash to or remove cash from the active session, with admin approval.

    Raises ValidationError for missing or malformed fields,
    AdminAuthorizationError for a bad admin credential,
    NoActiveSessionError when the register is closed and
    InsufficientFundsError when a withdrawal exceeds the balance.
    Nothing changes on any failure.
    """
    if not movement_type or not amount or not reason or not admin_rut or not admin_password:
        raise ValidationError("Todos los campos son requeridos.")
    if movement_type not in MOVEMENT_TYPES:
        raise ValidationError("Tipo de movimiento no válido.")
    value = parse_amount(amount, "El monto", allow_zero=False)
    reason_text = parse_text(reason, "El motivo", max_length=255)

    with atomic():
        approval = auth_service.authorize_admin(admin_rut, admin_password, "APPROVE_CASH_MOVEMENT")

        session = lock_for_update(
            db.session.query(CashSession).filter(CashSession.is_active.is_(True))
        ).first()
        if session is None:
            raise NoActiveSessionError()

        query = db.session.query(CashSession).filter(
            CashSession.id == session.id,
            CashSession.is_active.is_(True),
        )
        if movement_type == MOVEMENT_ADD:
            updated = query.update(
                {CashSession.current_balance: CashSession.current_balance + value},
                synchronize_session=False,
            )
            if not updated:
                raise NoActiveSessionError()
        else:
            updated = query.filter(CashSession.current_balance >= value).update(
                {CashSession.current_balance: CashSession.current_balance - value},
                synchronize_session=False,
            )
            if not updated:
                raise InsufficientFundsError()

        db.session.add(CashMovement(
            cash_session_id=session.id,
            employee_id=employee.id,
            approved_by_employee_id=approval.employee_id,
            movement_type=movement_type,
            amount=value,
            reason=reason_text,
            created_at=utcnow(),
        ))

    db.session.refresh(session)

    verb = "Agregó" if movement_type == MOVEMENT_ADD else "Retiró"
    action_type = "CASH_ADD" if movement_type == MOVEMENT_ADD else "CASH_REMOVE"
    audit_service.log_action(
        employee.id,
        employee.full_name,
        action_type,
        f"{verb} ${value}. Motivo: {reason_text}. Aprobado por: {approval.name}.",
    )
    return session


def credit_cash_sale(amount: Decimal) -> None:
    """
    Add a cash sale's total to the active session.

    Single conditional UPDATE, no read-modify-write. Does not commit: runs
    inside the sale's transaction. Raises NoActiveSessionError when no
    session is active.
    """
    updated = db.session.query(CashSession).filter(
        CashSession.is_active.is_(True)
    ).update(
        {CashSession.current_balance: CashSession.current_balance + amount},
        synchronize_session=False,
    )
    if not updated:
        raise NoActiveSessionError("No se encontró una sesión de caja activa.")


def list_movements(session_id: int) -> list[CashMovement]:
    if db.session.get(CashSession, session_id) is None:
        raise NotFoundError("Sesión de caja no encontrada.")
    return db.session.query(CashMovement).filter(
        CashMovement.cash_session_id == session_id
    ).order_by(CashMovement.created_at, CashMovement.id).all()
