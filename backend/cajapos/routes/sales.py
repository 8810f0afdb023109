# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/cajapos/routes/sales.py
"""
Sales API Routes

- POST /api/sales: record a sale (cash, card or special)
- GET  /api/sales?startDate&endDate: sales and audit entries, newest first
- POST /api/print-receipt: best-effort receipt print, never affects the sale
"""

from datetime import timedelta

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_capability
from ..errors import GENERIC_SERVER_ERROR, PosError, ValidationError, error_response
from ..money import money_to_json
from ..services import receipt_service, sales_service
from ..services.sales_service import SALE_PROCESSED_MESSAGE
from ..time_utils import parse_iso_datetime
from ..validation import require_json_object

sales_bp = Blueprint("sales", __name__, url_prefix="/api")


def _parse_range_arg(name: str, *, end_of_day: bool = False):
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        value = parse_iso_datetime(raw)
    except ValueError:
        raise ValidationError(f"{name} debe ser una fecha ISO-8601.")
    # A bare date as the upper bound covers that whole day
    if end_of_day and len(raw.strip()) == 10:
        value = value + timedelta(days=1) - timedelta(microseconds=1)
    return value


@sales_bp.post("/sales")
@require_auth
@require_capability("PROCESS_SALE")
def create_sale_route():
    """
    Request body:
    {
        "items": [{"product_id": 1, "quantity": 2, "price_at_sale": 1500}],
        "total_amount": 3000,
        "payment_method": "efectivo" | "tarjeta" | "venta especial",
        "adminRut": "...",        (venta especial only)
        "adminPassword": "..."    (venta especial only)
    }
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        sale = sales_service.process_sale(
            g.current_user,
            items=data.get("items"),
            total_amount=data.get("total_amount"),
            payment_method=data.get("payment_method"),
            admin_rut=data.get("adminRut"),
            admin_password=data.get("adminPassword"),
        )
        return jsonify({
            "message": SALE_PROCESSED_MESSAGE,
            "sale_id": sale.id,
            "total_amount": money_to_json(sale.total_amount),
        }), 201

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to process sale")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@sales_bp.get("/sales")
@require_auth
@require_capability("VIEW_ACTIVITY")
def activity_feed_route():
    try:
        start = _parse_range_arg("startDate")
        end = _parse_range_arg("endDate", end_of_day=True)
        return jsonify(sales_service.get_activity_feed(start, end)), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to build activity feed")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500


@sales_bp.post("/print-receipt")
@require_auth
@require_capability("PROCESS_SALE")
def print_receipt_route():
    """200 when the printer took the receipt, 202 when it could not print."""
    try:
        printed = receipt_service.print_receipt(request.get_json(silent=True))
        if printed:
            return jsonify({"message": "Recibo enviado a la impresora."}), 200
        return jsonify({
            "message": "Venta guardada, pero no se pudo conectar con la impresora para imprimir el recibo."
        }), 202

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to print receipt")
        return jsonify({"message": GENERIC_SERVER_ERROR}), 500
