# Overview: Service-layer operations for auth; passwords, login, employee accounts and the admin gate.

"""
Authentication Service

WHY: Every sale, cash movement and audit entry is attributed to an
employee. Employees log in with their RUT and a bcrypt-hashed password.

Admin gate: some actions (cash added to / removed from the register,
special sales) need an admin to type their own RUT and password on the
cashier's screen. authorize_admin() checks that step-up credential.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost from BCRYPT_ROUNDS)
- Minimum 6 characters
- Unknown RUTs still pay for one bcrypt comparison, so response time does
  not reveal which RUTs exist
- The admin gate answers every failure with the same error
"""

from dataclasses import dataclass

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import (
    AdminAuthorizationError,
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..extensions import db
from ..models import Employee
from ..models.employees import ROLES
from ..permissions import role_has_capability
from . import session_service

MIN_PASSWORD_LENGTH = 6

_dummy_hashes: dict[int, bytes] = {}


@dataclass(frozen=True)
class AdminApproval:
    """The admin who approved a gated action."""
    employee_id: int
    name: str


def _rounds() -> int:
    return current_app.config["BCRYPT_ROUNDS"]


def _dummy_hash() -> bytes:
    rounds = _rounds()
    if rounds not in _dummy_hashes:
        _dummy_hashes[rounds] = bcrypt.hashpw(b"cajapos-dummy-password", bcrypt.gensalt(rounds=rounds))
    return _dummy_hashes[rounds]


def validate_password(password: str | None) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres.")


def hash_password(password: str) -> str:
    """Validate and bcrypt-hash a password; the hash is stored as str."""
    validate_password(password)
    salt = bcrypt.gensalt(rounds=_rounds())
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() compares in constant time.
    A malformed stored hash verifies as False.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def _burn_dummy_check(password: str) -> None:
    bcrypt.checkpw(password.encode("utf-8"), _dummy_hash())


def authenticate(rut: str | None, password: str | None) -> Employee:
    """
    Log an employee in by RUT and password.

    Raises AuthenticationError for a missing, unknown, inactive or
    mismatched credential; the message is the same in every case.
    """
    if not rut or not password:
        raise AuthenticationError()

    employee = db.session.query(Employee).filter(
        Employee.rut == rut,
        Employee.is_active.is_(True),
    ).first()

    if not employee:
        _burn_dummy_check(password)
        raise AuthenticationError()

    if not verify_password(password, employee.password_hash):
        raise AuthenticationError()

    return employee


def authorize_admin(
    rut: str | None,
    secret: str | None,
    capability: str = "APPROVE_CASH_MOVEMENT",
) -> AdminApproval:
    """
    Check a step-up admin credential.

    The employee must be active, hold `capability` and match
    the password. Does not commit: callers run it inside the transaction
    of the action it approves. The employee row is not locked, so a
    concurrent deactivation can still race the check.
    """
    if not rut or not secret:
        raise AdminAuthorizationError()

    admin = db.session.query(Employee).filter(
        Employee.rut == rut,
        Employee.is_active.is_(True),
    ).first()

    if admin is None or not role_has_capability(admin.role, capability):
        _burn_dummy_check(secret)
        raise AdminAuthorizationError()

    if not verify_password(secret, admin.password_hash):
        raise AdminAuthorizationError()

    return AdminApproval(employee_id=admin.id, name=admin.full_name)


def _validate_role(role: str | None) -> str:
    if role not in ROLES:
        raise ValidationError("Rol inválido.")
    return role


def _rut_taken(rut: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(Employee.id).filter(Employee.rut == rut)
    if exclude_id is not None:
        query = query.filter(Employee.id != exclude_id)
    return query.first() is not None


def create_employee(
    first_name: str,
    rut: str,
    role: str,
    password: str,
    last_name: str | None = None,
) -> Employee:
    """Create an employee. Raises ConflictError when the RUT is already registered."""
    _validate_role(role)
    password_hash = hash_password(password)

    if _rut_taken(rut):
        raise ConflictError("El RUT ingresado ya existe.")

    employee = Employee(
        first_name=first_name,
        last_name=last_name or "",
        rut=rut,
        role=role,
        password_hash=password_hash,
        is_active=True,
    )
    db.session.add(employee)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("El RUT ingresado ya existe.")
    return employee


def update_employee(
    employee_id: int,
    first_name: str,
    rut: str,
    role: str,
    is_active: bool,
    last_name: str | None = None,
    password: str | None = None,
) -> Employee:
    """
    Replace an employee's data; the password only changes when given.

    Deactivating an employee revokes their session tokens in the same commit.
    """
    _validate_role(role)

    employee = db.session.get(Employee, employee_id)
    if employee is None:
        raise NotFoundError("Empleado no encontrado")

    if _rut_taken(rut, exclude_id=employee_id):
        raise ConflictError("El RUT ingresado ya pertenece a otro usuario.")

    was_active = employee.is_active

    employee.first_name = first_name
    employee.last_name = last_name or ""
    employee.rut = rut
    employee.role = role
    employee.is_active = bool(is_active)
    if password:
        employee.password_hash = hash_password(password)

    if was_active and not employee.is_active:
        session_service.revoke_all_employee_sessions(employee.id, "Employee deactivated")

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("El RUT ingresado ya pertenece a otro usuario.")
    return employee


def list_employees() -> list[Employee]:
    return db.session.query(Employee).order_by(Employee.first_name, Employee.last_name).all()
