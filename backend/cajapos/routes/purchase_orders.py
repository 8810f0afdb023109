# Overview: Flask API routes for purchase orders; parses input and returns JSON responses.

# backend/cajapos/routes/purchase_orders.py
"""
Purchase Order API Routes

LIFECYCLE: ordenado -> recibido_parcial -> recibido_completo, or
ordenado -> cancelado. Receiving adds the units to product stock.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_capability
from ..errors import GENERIC_SERVER_ERROR, PosError, error_response
from ..services import purchase_order_service

purchase_orders_bp = Blueprint("purchase_orders", __name__, url_prefix="/api/purchase-orders")


@purchase_orders_bp.get("")
@purchase_orders_bp.get("/")
@require_auth
@require_capability("MANAGE_PURCHASE_ORDERS")
def list_purchase_orders_route():
    try:
        orders = purchase_order_service.list_purchase_orders()
        return jsonify([o.to_dict() for o in orders]), 200
    except Exception:
        current_app.logger.exception("Failed to list purchase orders")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@purchase_orders_bp.post("")
@purchase_orders_bp.post("/")
@require_auth
@require_capability("MANAGE_PURCHASE_ORDERS")
def create_purchase_order_route():
    """
    Request body:
    {
        "supplier_id": 1,
        "expected_delivery_date": "2025-01-31",
        "notes": "...",
        "items": [{"product_id": 1, "quantity": 10, "cost_price": 800}],
        "total_cost": 8000
    }
    """
    try:
        order = purchase_order_service.create_purchase_order(g.current_user, request.get_json(silent=True))
        return jsonify(order.to_dict()), 201

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create purchase order")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@purchase_orders_bp.put("/<int:order_id>/receive")
@require_auth
@require_capability("MANAGE_PURCHASE_ORDERS")
def receive_purchase_order_route(order_id: int):
    """Request body: {"items_received": [{"item_id": 1, "quantity_received": 5}]}"""
    try:
        order = purchase_order_service.receive_items(g.current_user, order_id, request.get_json(silent=True))
        return jsonify(order.to_dict()), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to receive purchase order")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@purchase_orders_bp.put("/<int:order_id>/cancel")
@require_auth
@require_capability("MANAGE_PURCHASE_ORDERS")
def cancel_purchase_order_route(order_id: int):
    try:
        order = purchase_order_service.cancel_purchase_order(g.current_user, order_id)
        return jsonify(order.to_dict()), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to cancel purchase order")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500
