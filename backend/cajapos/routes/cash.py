# Overview: Flask API routes for the cash session and cash movements; parses input and returns JSON responses.

# backend/cajapos/routes/cash.py
"""
Cash Session API Routes

DESIGN:
- One register, one drawer: at most one active session at a time
- Open/close by any employee operating the cashbox
- Movements (cash added or removed) need an admin's RUT and password
  typed on the cashier's screen, checked on every request

ENDPOINTS:
- GET  /api/cash-sessions/active
- POST /api/cash-sessions/start
- POST /api/cash-sessions/close
- POST /api/cash-movements
- GET  /api/cash-sessions/<id>/movements (admin)
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_capability
from ..errors import GENERIC_SERVER_ERROR, PosError, error_response
from ..services import cash_session_service
from ..validation import require_json_object

cash_bp = Blueprint("cash", __name__, url_prefix="/api")

NO_SESSION_TO_CLOSE = "No hay una sesión de caja activa para cerrar."


@cash_bp.get("/cash-sessions/active")
@require_auth
@require_capability("OPERATE_CASHBOX")
def active_session_route():
    """The active session, or null."""
    try:
        session = cash_session_service.get_active_session()
        return jsonify(session.to_dict() if session else None), 200
    except Exception:
        current_app.logger.exception("Failed to read active cash session")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@cash_bp.post("/cash-sessions/start")
@require_auth
@require_capability("OPERATE_CASHBOX")
def start_session_route():
    """
    Request body: {"start_amount": 50000}

    201 with the new session; 409 when a session is already active.
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        session = cash_session_service.open_session(g.current_user, data.get("start_amount"))
        return jsonify(session.to_dict()), 201

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to open cash session")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@cash_bp.post("/cash-sessions/close")
@require_auth
@require_capability("OPERATE_CASHBOX")
def close_session_route():
    """Always 200: the closed session, or a message when nothing was open."""
    try:
        session = cash_session_service.close_session(g.current_user)
        if session is None:
            return jsonify({"message": NO_SESSION_TO_CLOSE}), 200
        return jsonify(session.to_dict()), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to close cash session")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@cash_bp.post("/cash-movements")
@require_auth
@require_capability("OPERATE_CASHBOX")
def cash_movement_route():
    """
    Request body:
    {
        "type": "ADD" | "REMOVE",
        "amount": 10000,
        "reason": "Cambio",
        "adminRut": "...",
        "adminPassword": "..."
    }

    200 with the updated session.
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        session = cash_session_service.apply_movement(
            g.current_user,
            movement_type=data.get("type"),
            amount=data.get("amount"),
            reason=data.get("reason"),
            admin_rut=data.get("adminRut"),
            admin_password=data.get("adminPassword"),
        )
        return jsonify(session.to_dict()), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to apply cash movement")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@cash_bp.get("/cash-sessions/<int:session_id>/movements")
@require_auth
@require_capability("VIEW_CASH_MOVEMENTS")
def list_movements_route(session_id: int):
    try:
        movements = cash_session_service.list_movements(session_id)
        return jsonify([m.to_dict() for m in movements]), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list cash movements")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500
