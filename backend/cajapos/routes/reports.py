# Overview: Flask API routes for reports; the admin's daily summary.

from flask import Blueprint, current_app, jsonify

from ..decorators import require_auth, require_capability
from ..services import reporting_service

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/summary")
@require_auth
@require_capability("VIEW_REPORTS")
def summary_route():
    try:
        return jsonify(reporting_service.daily_summary()), 200
    except Exception:
        current_app.logger.exception("Failed to build summary report")
        return jsonify({"message": "Error al obtener el resumen de reportes"}), 500
