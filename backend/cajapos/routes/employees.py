# Overview: Flask API routes for employee accounts (admin only).

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_capability
from ..errors import GENERIC_SERVER_ERROR, PosError, ValidationError, error_response
from ..services import audit_service, auth_service
from ..validation import parse_text, require_json_object

employees_bp = Blueprint("employees", __name__, url_prefix="/api/employees")


def _parse_bool(value, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if value in ("true", "false"):
        return value == "true"
    raise ValidationError(f"{field} debe ser verdadero o falso.")


@employees_bp.get("")
@employees_bp.get("/")
@require_auth
@require_capability("MANAGE_EMPLOYEES")
def list_employees_route():
    try:
        employees = auth_service.list_employees()
        return jsonify([e.to_dict() for e in employees]), 200
    except Exception:
        current_app.logger.exception("Failed to list employees")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@employees_bp.post("")
@employees_bp.post("/")
@require_auth
@require_capability("MANAGE_EMPLOYEES")
def create_employee_route():
    """
    Request body: {first_name, last_name?, rut, role, password}
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        if not data.get("first_name") or not data.get("rut") or not data.get("role") or not data.get("password"):
            raise ValidationError("Nombre, RUT, rol y contraseña son requeridos.")

        employee = auth_service.create_employee(
            first_name=parse_text(data.get("first_name"), "El nombre", max_length=64),
            last_name=parse_text(data.get("last_name"), "El apellido", required=False, max_length=64),
            rut=parse_text(data.get("rut"), "El RUT", max_length=16),
            role=data.get("role"),
            password=data.get("password"),
        )

        actor = g.current_user
        audit_service.log_action(
            actor.id, actor.full_name, "EMPLOYEE_CREATE",
            f"Creó al usuario '{employee.full_name}' con RUT {employee.rut}.",
        )
        return jsonify(employee.to_dict()), 201

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create employee")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@employees_bp.put("/<int:employee_id>")
@require_auth
@require_capability("MANAGE_EMPLOYEES")
def update_employee_route(employee_id: int):
    """
    Request body: {first_name, last_name?, rut, role, is_active, password?}

    The password is only changed when a non-empty one is sent.
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        if not data.get("first_name") or not data.get("rut") or not data.get("role") or data.get("is_active") is None:
            raise ValidationError("Nombre, RUT, rol y estado son requeridos.")

        employee = auth_service.update_employee(
            employee_id,
            first_name=parse_text(data.get("first_name"), "El nombre", max_length=64),
            last_name=parse_text(data.get("last_name"), "El apellido", required=False, max_length=64),
            rut=parse_text(data.get("rut"), "El RUT", max_length=16),
            role=data.get("role"),
            is_active=_parse_bool(data.get("is_active"), "El estado"),
            password=data.get("password") or None,
        )

        actor = g.current_user
        audit_service.log_action(
            actor.id, actor.full_name, "EMPLOYEE_UPDATE",
            f"Actualizó datos del usuario con RUT {employee.rut}.",
        )
        return jsonify(employee.to_dict()), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update employee")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500
