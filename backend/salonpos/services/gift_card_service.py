# Overview: Gift card ledger; redemptions, issues, and their reversal when an invoice is corrected.

from __future__ import annotations

import secrets
import string
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta

from ..extensions import db
from ..errors import InvariantViolation, NotFoundError, ValidationError
from ..models import GiftCard, GiftCardLog, GiftCardTemplate, Invoice
from ..models.billing import LINE_GIFT_CARD
from ..models.gift_cards import GIFT_CARD_ACTIVE, GIFT_CARD_EXPIRED, GIFT_CARD_REDEEMED
from ..validation import PAISE_EPSILON
from salonpos.time_utils import utcnow
from .concurrency import lock_for_update


CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 10
MAX_CODE_ATTEMPTS = 20


@dataclass(frozen=True)
class PriorCard:
    """A card removed by reversal whose identity can be handed out again."""
    code: str
    issue_date: date
    expiry_date: date | None


def generate_unique_code(org_id: int) -> str:
    for _ in range(MAX_CODE_ATTEMPTS):
        code = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))
        exists = db.session.query(GiftCard.id).filter_by(org_id=org_id, code=code).first()
        if not exists:
            return code
    raise InvariantViolation("Could not generate a unique gift card code", {"attempts": MAX_CODE_ATTEMPTS})


def find_card_by_code(org_id: int, code: str) -> GiftCard:
    normalized = (code or "").strip().upper()
    if not normalized:
        raise ValidationError("Gift card number is required.", {"field": "code"})
    card = db.session.query(GiftCard).filter_by(org_id=org_id, code=normalized).first()
    if not card:
        raise NotFoundError("Gift card not found", {"code": normalized})
    return card


def ensure_redeemable(card: GiftCard, today: date | None = None, *, allow_expired: bool = False) -> None:
    today = today or utcnow().date()
    if card.status != GIFT_CARD_ACTIVE and not (allow_expired and card.status == GIFT_CARD_EXPIRED):
        raise InvariantViolation(
            f"Gift card #{card.code} is already {card.status}",
            {"card_id": card.id, "status": card.status},
        )
    if card.expiry_date and card.expiry_date < today and not allow_expired:
        raise InvariantViolation(
            f"Gift card #{card.code} has expired",
            {"card_id": card.id, "expiry_date": card.expiry_date.isoformat()},
        )
    if card.current_balance_paise <= 0:
        raise InvariantViolation(f"Gift card #{card.code} has no balance", {"card_id": card.id})


def expire_if_lapsed(card: GiftCard, today: date | None = None) -> bool:
    """Mark an active card past its expiry date as expired. Flushes, does NOT commit."""
    today = today or utcnow().date()
    if card.status == GIFT_CARD_ACTIVE and card.expiry_date and card.expiry_date < today:
        card.status = GIFT_CARD_EXPIRED
        db.session.flush()
        return True
    return False


def validate_card_for_redemption(org_id: int, code: str) -> GiftCard:
    """
    Check a code before billing. An active card found past its expiry date
    is marked expired (flushed, not committed) and rejected.
    """
    card = find_card_by_code(org_id, code)
    today = utcnow().date()
    expire_if_lapsed(card, today)
    ensure_redeemable(card, today)
    return card


def reverse_invoice_effects(invoice: Invoice) -> dict[int | None, list[PriorCard]]:
    """
    Undo everything this invoice did to gift cards.

    1. Credit back every redemption logged against the invoice and delete
       the logs.
    2. Delete the cards the invoice issued, provided each is untouched
       (balance == initial, no redemption log anywhere). Codes are
       returned grouped by template for reissue.

    Does NOT commit.
    """
    logs = (
        db.session.query(GiftCardLog)
        .filter_by(org_id=invoice.org_id, invoice_id=invoice.id)
        .order_by(GiftCardLog.id)
        .all()
    )
    for log in logs:
        card = lock_for_update(db.session.query(GiftCard).filter_by(id=log.gift_card_id)).first()
        if card is not None:
            card.current_balance_paise += log.amount_paise
            if card.current_balance_paise > card.initial_balance_paise:
                raise InvariantViolation(
                    f"Gift card #{card.code} balance would exceed its initial value",
                    {"card_id": card.id, "balance": card.current_balance_paise},
                )
            if card.status == GIFT_CARD_REDEEMED:
                card.status = GIFT_CARD_ACTIVE
        db.session.delete(log)
    db.session.flush()

    prior: dict[int | None, list[PriorCard]] = defaultdict(list)
    issued = (
        lock_for_update(
            db.session.query(GiftCard).filter_by(org_id=invoice.org_id, purchase_invoice_id=invoice.id)
        )
        .order_by(GiftCard.id)
        .all()
    )
    for card in issued:
        used = db.session.query(GiftCardLog.id).filter_by(gift_card_id=card.id).first()
        if used or card.current_balance_paise != card.initial_balance_paise:
            raise InvariantViolation(
                f"Gift card #{card.code} already used",
                {"card_id": card.id, "code": card.code},
            )
        prior[card.template_id].append(PriorCard(card.code, card.issue_date, card.expiry_date))
        db.session.delete(card)

    # Free the unique codes before anything is reissued
    db.session.flush()
    return dict(prior)


def _redeem(invoice: Invoice, card_id: int, amount: int, customer_id: int | None) -> GiftCard:
    card = lock_for_update(
        db.session.query(GiftCard).filter_by(id=card_id, org_id=invoice.org_id)
    ).first()
    if not card:
        raise NotFoundError("Applied gift card not found for this salon.", {"card_id": card_id})

    # A card this invoice already redeemed stays usable on it after expiry
    ensure_redeemable(card, utcnow().date(), allow_expired=card.id == invoice.gift_card_id)
    if card.current_balance_paise < amount:
        raise InvariantViolation(
            f"Insufficient balance on gift card #{card.code}",
            {"card_id": card.id, "available": card.current_balance_paise, "requested": amount},
        )

    before = card.current_balance_paise
    card.current_balance_paise = before - amount
    if card.current_balance_paise < PAISE_EPSILON:
        card.status = GIFT_CARD_REDEEMED

    db.session.add(GiftCardLog(
        org_id=invoice.org_id,
        gift_card_id=card.id,
        invoice_id=invoice.id,
        customer_id=customer_id,
        amount_paise=amount,
        balance_before_paise=before,
        balance_after_paise=card.current_balance_paise,
    ))
    return card


def _issue(invoice: Invoice, line, customer_id: int | None, prior: dict[int | None, list[PriorCard]]) -> GiftCard:
    template = db.session.query(GiftCardTemplate).filter_by(id=line.item_id, org_id=invoice.org_id).first()
    if not template:
        raise NotFoundError("Gift Card Template not found.", {"template_id": line.item_id})

    reusable = prior.get(template.id) or []
    if reusable:
        previous = reusable.pop(0)
        code, issue_date, expiry_date = previous.code, previous.issue_date, previous.expiry_date
    else:
        code = generate_unique_code(invoice.org_id)
        issue_date = utcnow().date()
        expiry_date = issue_date + timedelta(days=template.validity_in_days)

    card = GiftCard(
        org_id=invoice.org_id,
        code=code,
        template_id=template.id,
        customer_id=customer_id,
        initial_balance_paise=template.amount_paise,
        current_balance_paise=template.amount_paise,
        status=GIFT_CARD_ACTIVE,
        issue_date=issue_date,
        expiry_date=expiry_date,
        issued_by_staff_id=line.staff_id,
        purchase_invoice_id=invoice.id,
    )
    db.session.add(card)
    return card


def apply_invoice_effects(
    invoice: Invoice,
    payload,
    prior_cards: dict[int | None, list[PriorCard]] | None = None,
) -> list[GiftCard]:
    """
    Apply the revised invoice's gift card effects.

    Debits the declared redemption (logging it) and issues one card per
    gift_card line, reusing codes from prior_cards for the same template.
    Returns the newly issued cards.

    Does NOT commit.
    """
    prior = {k: list(v) for k, v in (prior_cards or {}).items()}

    if payload.gift_card_redemption:
        _redeem(invoice, payload.gift_card_redemption.card_id, payload.gift_card_redemption.amount, payload.customer_id)

    issued = [_issue(invoice, line, payload.customer_id, prior) for line in payload.items_of(LINE_GIFT_CARD)]
    db.session.flush()
    return issued


def check_card_invariants(cards) -> None:
    for card in cards:
        if card.current_balance_paise < 0 or card.current_balance_paise > card.initial_balance_paise:
            raise InvariantViolation(
                f"Gift card #{card.code} balance out of range",
                {"card_id": card.id, "balance": card.current_balance_paise, "initial": card.initial_balance_paise},
            )
