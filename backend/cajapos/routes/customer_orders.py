# Overview: Flask API routes for customer orders; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_capability
from ..errors import GENERIC_SERVER_ERROR, PosError, error_response
from ..services import customer_order_service
from ..validation import require_json_object

customer_orders_bp = Blueprint("customer_orders", __name__, url_prefix="/api/customer-orders")


@customer_orders_bp.get("")
@customer_orders_bp.get("/")
@require_auth
@require_capability("MANAGE_CUSTOMER_ORDERS")
def list_customer_orders_route():
    """Orders with their items, soonest delivery first."""
    try:
        orders = customer_order_service.list_customer_orders()
        return jsonify([o.to_dict() for o in orders]), 200
    except Exception:
        current_app.logger.exception("Failed to list customer orders")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@customer_orders_bp.post("")
@customer_orders_bp.post("/")
@require_auth
@require_capability("MANAGE_CUSTOMER_ORDERS")
def create_customer_order_route():
    """
    Request body:
    {
        "customer_name": "...",
        "customer_phone": "...",
        "delivery_date": "2025-01-31",
        "total_amount": 25000,
        "down_payment": 10000,
        "notes": "...",
        "items": [{"description": "Torta 20 personas", "quantity": 1, "unit_price": 25000}]
    }
    """
    try:
        order = customer_order_service.create_customer_order(g.current_user, request.get_json(silent=True))
        return jsonify(order.to_dict()), 201

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create customer order")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@customer_orders_bp.put("/<int:order_id>/status")
@require_auth
@require_capability("MANAGE_CUSTOMER_ORDERS")
def update_customer_order_status_route(order_id: int):
    """Request body: {"status": "en_preparacion"}"""
    try:
        data = require_json_object(request.get_json(silent=True))
        order = customer_order_service.update_status(g.current_user, order_id, data.get("status"))
        return jsonify(order.to_dict()), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update customer order status")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500
