# Overview: Request and capability decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request

from .permissions import role_has_capability
from .services import session_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def require_auth(f):
    """
    Require a valid session token.

    Sets on Flask g:
    - g.current_user: the authenticated Employee
    - g.session_token: the plaintext bearer token (logout revokes it)

    Returns 401 when the header is missing, the token is unknown, expired
    or revoked, or the employee has been deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if token is None:
            return jsonify({"message": "Autenticación requerida."}), 401

        context = session_service.validate_session(token)
        if context is None:
            return jsonify({"message": "Sesión inválida o expirada."}), 401

        g.current_user = context.employee
        g.session_token = token

        return f(*args, **kwargs)

    return decorated_function


def require_capability(capability: str):
    """
    Require the current employee's role to hold a capability.

    Must be stacked below @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = getattr(g, "current_user", None)
            if user is None:
                return jsonify({"message": "Autenticación requerida."}), 401

            if not role_has_capability(user.role, capability):
                current_app.logger.warning(
                    "Capability denied: employee_id=%s role=%s capability=%s path=%s",
                    user.id, user.role, capability, request.path,
                )
                return jsonify({"message": "Acceso denegado."}), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
