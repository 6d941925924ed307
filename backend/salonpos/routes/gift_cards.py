# Overview: Flask API routes for gift cards.

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import BillingError
from ..extensions import db
from ..services import gift_card_service
from ..decorators import require_tenant


gift_cards_bp = Blueprint("gift_cards", __name__, url_prefix="/api/gift-cards")


@gift_cards_bp.post("/validate")
@require_tenant
def validate_gift_card_route():
    """
    Check a gift card code before applying it to a bill.

    Body: {"code": "ABCDE12345"} (case-insensitive)
    Returns card id, balance, expiry and status when the card is usable.
    An active card found past expiry is marked expired.
    """
    try:
        data = request.get_json(silent=True) or {}
        card = gift_card_service.find_card_by_code(g.org_id, data.get("code"))
        if gift_card_service.expire_if_lapsed(card):
            # Persist the expiry flip even though the card is rejected below
            db.session.commit()
        gift_card_service.ensure_redeemable(card)

        return jsonify({
            "id": card.id,
            "code": card.code,
            "current_balance": card.current_balance_paise,
            "expiry_date": card.expiry_date.isoformat() if card.expiry_date else None,
            "status": card.status,
        }), 200

    except BillingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to validate gift card")
        return jsonify({"error": "Internal server error"}), 500
