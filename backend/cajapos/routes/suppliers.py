# Overview: Flask API routes for suppliers; reads for every employee, writes for admins.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_capability
from ..errors import GENERIC_SERVER_ERROR, PosError, error_response
from ..services import supplier_service

suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@suppliers_bp.get("/")
@require_auth
@require_capability("VIEW_SUPPLIERS")
def list_suppliers_route():
    try:
        suppliers = supplier_service.list_suppliers()
        return jsonify([s.to_dict() for s in suppliers]), 200
    except Exception:
        current_app.logger.exception("Failed to list suppliers")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@suppliers_bp.post("")
@suppliers_bp.post("/")
@require_auth
@require_capability("MANAGE_SUPPLIERS")
def create_supplier_route():
    """Request body: {name, rut?, contact_person?, phone?, email?, address?}"""
    try:
        supplier = supplier_service.create_supplier(g.current_user, request.get_json(silent=True))
        return jsonify(supplier.to_dict()), 201

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create supplier")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@suppliers_bp.put("/<int:supplier_id>")
@require_auth
@require_capability("MANAGE_SUPPLIERS")
def update_supplier_route(supplier_id: int):
    try:
        supplier = supplier_service.update_supplier(g.current_user, supplier_id, request.get_json(silent=True))
        return jsonify(supplier.to_dict()), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update supplier")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@suppliers_bp.delete("/<int:supplier_id>")
@require_auth
@require_capability("MANAGE_SUPPLIERS")
def delete_supplier_route(supplier_id: int):
    """204 on success; 409 while products or purchase orders reference it."""
    try:
        supplier_service.delete_supplier(g.current_user, supplier_id)
        return "", 204

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete supplier")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500
