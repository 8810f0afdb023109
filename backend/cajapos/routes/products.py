# Overview: Flask API routes for products operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_capability
from ..errors import GENERIC_SERVER_ERROR, PosError, error_response
from ..services import products_service
from ..time_utils import to_iso_date

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@products_bp.get("/")
@require_auth
@require_capability("MANAGE_INVENTORY")
def list_products_route():
    """Active products by name; ?include_inactive=true lists all of them."""
    try:
        include_inactive = request.args.get("include_inactive") == "true"
        products = products_service.list_products(include_inactive=include_inactive)
        return jsonify([p.to_dict() for p in products]), 200
    except Exception:
        current_app.logger.exception("Failed to list products")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@products_bp.get("/low-stock")
@require_auth
@require_capability("MANAGE_INVENTORY")
def low_stock_route():
    try:
        products = products_service.low_stock_products()
        return jsonify([{"id": p.id, "name": p.name, "stock": p.stock} for p in products]), 200
    except Exception:
        current_app.logger.exception("Failed to list low stock products")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@products_bp.get("/expiring-soon")
@require_auth
@require_capability("MANAGE_INVENTORY")
def expiring_soon_route():
    try:
        products = products_service.expiring_soon_products()
        return jsonify([
            {
                "id": p.id,
                "name": p.name,
                "stock": p.stock,
                "expiration_date": to_iso_date(p.expiration_date),
            }
            for p in products
        ]), 200
    except Exception:
        current_app.logger.exception("Failed to list expiring products")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@products_bp.post("")
@products_bp.post("/")
@require_auth
@require_capability("MANAGE_INVENTORY")
def create_product_route():
    """
    Request body:
    {
        "name": "Pan amasado",
        "code": "PA-01",            (optional, unique)
        "category": "Panadería",
        "cost_price": 1000,
        "stock": 20,
        "supplier_id": 1,           (optional)
        "expiration_date": "2025-12-31"  (optional)
    }

    The selling price is derived from cost_price.
    """
    try:
        product = products_service.create_product(g.current_user, request.get_json(silent=True))
        return jsonify(product.to_dict()), 201

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@products_bp.put("/<int:product_id>")
@require_auth
@require_capability("MANAGE_INVENTORY")
def update_product_route(product_id: int):
    """Same body as create, plus "recalculate_price": true to reprice from cost."""
    try:
        product = products_service.update_product(g.current_user, product_id, request.get_json(silent=True))
        return jsonify(product.to_dict()), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@products_bp.patch("/<int:product_id>/toggle-status")
@require_auth
@require_capability("MANAGE_INVENTORY")
def toggle_status_route(product_id: int):
    try:
        product = products_service.toggle_status(g.current_user, product_id)
        return jsonify(product.to_dict()), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to toggle product status")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500
