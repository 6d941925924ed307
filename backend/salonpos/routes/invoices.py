# Overview: Flask API routes for invoices; reads invoices and submits corrections.

"""Invoice API routes"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import BillingError
from ..services import audit_service, correction_service, invoice_service
from ..decorators import require_tenant


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


@invoices_bp.get("/<int:invoice_id>")
@require_tenant
def get_invoice_route(invoice_id: int):
    """Invoice with customer, billing staff and line staff names."""
    try:
        invoice = invoice_service.get_invoice(g.org_id, invoice_id)
        return jsonify({"invoice": invoice_service.invoice_view(invoice)}), 200

    except BillingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load invoice")
        return jsonify({"error": "Internal server error"}), 500


@invoices_bp.put("/<int:invoice_id>")
@require_tenant
def correct_invoice_route(invoice_id: int):
    """
    Correct a finalized invoice.

    Body is the full replacement invoice (items, totals, payments, gift card
    and package redemptions, manual stock adjustments). All-or-nothing:
    - 400: malformed payload or payments not matching grand total
    - 404: invoice, customer, staff, card, package or product not found
    - 409: concurrent update, safe to retry
    - 422: a ledger refused the change
    """
    try:
        data = request.get_json(silent=True)
        result = correction_service.correct_invoice(
            g.org_id,
            invoice_id,
            data,
            actor_user_id=g.user_id,
        )
        return jsonify(result), 200

    except BillingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to correct invoice")
        return jsonify({"error": "Internal server error"}), 500


@invoices_bp.get("/<int:invoice_id>/corrections")
@require_tenant
def list_corrections_route(invoice_id: int):
    """Correction history for an invoice, newest first."""
    try:
        invoice_service.get_invoice(g.org_id, invoice_id)
        events = audit_service.list_correction_events(g.org_id, invoice_id)
        return jsonify({"corrections": [e.to_dict() for e in events]}), 200

    except BillingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list invoice corrections")
        return jsonify({"error": "Internal server error"}), 500
