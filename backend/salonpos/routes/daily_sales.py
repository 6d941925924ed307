# Overview: Flask API routes for per-staff daily sales rollups.

from flask import Blueprint, request, jsonify, g, current_app

from ..services import sales_rollup_service
from ..decorators import require_tenant
from salonpos.time_utils import parse_iso_date


daily_sales_bp = Blueprint("daily_sales", __name__, url_prefix="/api/daily-sales")


@daily_sales_bp.get("")
@require_tenant
def get_daily_sales_route():
    """
    Daily sales for one staff member (or every staff member) on a day.

    Query params:
    - date: YYYY-MM-DD (required)
    - staff_id: optional; omit to list the whole day
    """
    date_raw = request.args.get("date")
    staff_raw = request.args.get("staff_id")

    try:
        day = parse_iso_date(date_raw)
    except ValueError:
        day = None
    if day is None:
        return jsonify({"error": "date must be YYYY-MM-DD", "details": {"field": "date"}}), 400

    staff_id = None
    if staff_raw:
        if not staff_raw.isdigit():
            return jsonify({"error": "staff_id must be an integer", "details": {"field": "staff_id"}}), 400
        staff_id = int(staff_raw)

    try:
        if staff_id is None:
            rows = sales_rollup_service.list_daily_sales(g.org_id, day)
            return jsonify({"daily_sales": [r.to_dict() for r in rows]}), 200

        row = sales_rollup_service.get_daily_sales(g.org_id, staff_id, day)
        if row is None:
            return jsonify({"error": "No sales recorded", "details": {"staff_id": staff_id, "date": day.isoformat()}}), 404
        return jsonify({"daily_sale": row.to_dict()}), 200

    except Exception:
        current_app.logger.exception("Failed to load daily sales")
        return jsonify({"error": "Internal server error"}), 500
