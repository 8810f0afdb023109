# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/cajapos/routes/auth.py
"""
Authentication API routes

- POST /api/login (and /api/auth/login): RUT + password -> bearer token
- POST /api/auth/logout: closes the register, then revokes the token
- GET  /api/auth/me: the employee behind the token

Logging out ends the shift: an open cash session is closed first (a
no-op when none is open), so the drawer is never left open behind a
logged-out cashier.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import GENERIC_SERVER_ERROR, PosError, error_response
from ..permissions import capabilities_for_role
from ..services import auth_service, cash_session_service, session_service
from ..validation import require_json_object

auth_bp = Blueprint("auth", __name__, url_prefix="/api")


@auth_bp.post("/login")
@auth_bp.post("/auth/login")
def login_route():
    """
    Request body: {"rut": "11111111-1", "password": "..."}

    200 {"token", "user": {"id", "name", "role"}}; 400 on any bad credential.
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        employee = auth_service.authenticate(data.get("rut"), data.get("password"))

        _, token = session_service.create_session(
            employee.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        current_app.logger.info("Login: employee_id=%s", employee.id)

        return jsonify({"token": token, "user": employee.to_session_user()}), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Login failed")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@auth_bp.post("/auth/logout")
@require_auth
def logout_route():
    try:
        closed = cash_session_service.close_session(g.current_user)
        session_service.revoke_session(g.session_token, reason="Logout")

        return jsonify({
            "message": "Sesión cerrada",
            "cash_session": closed.to_dict() if closed else None,
        }), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Logout failed")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@auth_bp.get("/auth/me")
@require_auth
def me_route():
    user = g.current_user
    payload = user.to_session_user()
    payload["capabilities"] = capabilities_for_role(user.role)
    return jsonify({"user": payload}), 200
