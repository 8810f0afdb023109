# Overview: Domain exceptions shared by services and routes.

"""
Every rejection a service can produce is a PosError subclass.

Routes translate them with `error_response()`: the message is safe to show
to the cashier as-is, the status code is the HTTP status to answer with.
Anything that is not a PosError is an unexpected failure and is answered
with a generic 500 after being logged.
"""

from flask import current_app, jsonify


GENERIC_SERVER_ERROR = "Error del servidor"


class PosError(Exception):
    """Base class for user-facing POS errors."""
    status_code = 400
    default_message = "Solicitud inválida."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PosError):
    """Malformed or missing input (InvalidInput)."""


class AuthenticationError(PosError):
    """Login credentials rejected."""
    default_message = "Credenciales inválidas"


class AdminAuthorizationError(PosError):
    """
    Step-up admin credential rejected.

    Unknown RUT and wrong password share this message on purpose.
    """
    default_message = "Credenciales de administrador inválidas."


class ActiveSessionExistsError(PosError):
    status_code = 409
    default_message = "Ya existe una sesión de caja activa."


class NoActiveSessionError(PosError):
    default_message = "No hay una sesión de caja activa."


class InsufficientFundsError(PosError):
    default_message = "El retiro no puede dejar la caja con saldo negativo."


class InsufficientStockError(PosError):
    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Stock insuficiente para el producto ID {product_id}.")


class NotFoundError(PosError):
    status_code = 404
    default_message = "Recurso no encontrado."


class ConflictError(PosError):
    status_code = 409
    default_message = "El registro entra en conflicto con uno existente."


class PersistenceError(PosError):
    status_code = 500
    default_message = GENERIC_SERVER_ERROR


def error_response(exc: PosError):
    if exc.status_code >= 500:
        current_app.logger.error("Persistence failure: %s", exc.__cause__ or exc, exc_info=exc)
    return jsonify({"message": exc.message}), exc.status_code
