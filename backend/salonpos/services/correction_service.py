"""
Invoice correction - compensating rewrite of a finalized sale.

WHY: A finalized invoice has already moved gift card balances, package
entitlements, stock and loyalty points, and those rows may have been
touched since by other invoices. A correction reverses the invoice's own
effects, proves the reversal is safe, applies the revised effects and
rewrites the invoice as ONE transaction: it commits completely or not at
all.

ORDER (inside one session transaction, flush-only until commit):
1. lock + snapshot the invoice (the undo record)
2. resolve customer / billing staff / line staff in the tenant
3. gift cards: reverse, then apply
4. packages: reverse, then apply
5. inventory: one net delta per product
6. rewrite invoice + appointment
7. loyalty: adjust by the points difference
8. daily rollups: recompute for old and new staff on the sale day
9. append the correction event
10. invariant sweep, commit
"""

from __future__ import annotations

import sqlalchemy as sa
from flask import current_app

from ..extensions import db
from ..errors import BillingError, InvariantViolation, NotFoundError
from ..models import (
    Customer,
    CustomerPackage,
    CustomerPackageLog,
    GiftCard,
    GiftCardLog,
    Product,
    Staff,
    User,
)
from ..validation import PAISE_EPSILON, CorrectionPayload, parse_correction_payload
from . import (
    audit_service,
    gift_card_service,
    inventory_service,
    invoice_service,
    loyalty_service,
    package_service,
    sales_rollup_service,
    settings_service,
)
from .concurrency import run_with_retry
from .loyalty_service import LoyaltyBasis


def _resolve_references(org_id: int, payload: CorrectionPayload) -> Customer:
    customer = db.session.query(Customer).filter_by(id=payload.customer_id, org_id=org_id).first()
    if not customer:
        raise NotFoundError("Customer not found", {"customer_id": payload.customer_id})

    if payload.billing_staff_id is not None:
        user = db.session.query(User).filter_by(id=payload.billing_staff_id, org_id=org_id).first()
        if not user:
            raise NotFoundError("Billing staff not found", {"billing_staff_id": payload.billing_staff_id})

    staff_ids = set(payload.line_staff_ids)
    if payload.stylist_id is not None:
        staff_ids.add(payload.stylist_id)
    staff_ids.update(r.redeemed_by for r in payload.package_redemptions if r.redeemed_by is not None)
    if staff_ids:
        found = {
            s.id for s in db.session.query(Staff.id).filter(Staff.org_id == org_id, Staff.id.in_(staff_ids)).all()
        }
        missing = sorted(staff_ids - found)
        if missing:
            raise NotFoundError("Staff not found", {"staff_ids": missing})

    return customer


def _touched_instruments(invoice) -> tuple[set[int], set[int]]:
    """Gift card and package ids the invoice currently affects."""
    card_ids = {
        row[0] for row in db.session.query(GiftCardLog.gift_card_id).filter_by(invoice_id=invoice.id).all()
    }
    package_ids = {
        row[0]
        for row in db.session.query(CustomerPackageLog.customer_package_id).filter_by(invoice_id=invoice.id).all()
    }
    return card_ids, package_ids


def _invariant_sweep(org_id: int, invoice, card_ids: set[int], package_ids: set[int], product_ids) -> None:
    cards = db.session.query(GiftCard).filter(
        GiftCard.org_id == org_id,
        sa.or_(GiftCard.id.in_(card_ids), GiftCard.purchase_invoice_id == invoice.id),
    ).all()
    gift_card_service.check_card_invariants(cards)

    packages = db.session.query(CustomerPackage).filter(
        CustomerPackage.org_id == org_id,
        sa.or_(CustomerPackage.id.in_(package_ids), CustomerPackage.purchase_invoice_id == invoice.id),
    ).all()
    package_service.check_package_invariants(packages)

    if product_ids:
        products = db.session.query(Product).filter(
            Product.org_id == org_id, Product.id.in_(list(product_ids))
        ).all()
        inventory_service.check_stock_invariants(products)

    paid = sum(invoice.payment_details.values()) + invoice.gift_card_amount_paise
    if abs(paid - invoice.grand_total_paise) > PAISE_EPSILON:
        raise InvariantViolation(
            "Payment breakdown does not match grand total",
            {"grand_total": invoice.grand_total_paise, "paid_total": paid},
        )


def _correct(org_id, invoice_id, payload: CorrectionPayload, actor_user_id, rule_provider) -> dict:
    # 1. lock + undo record
    invoice = invoice_service.get_invoice(org_id, invoice_id, lock=True)
    before = invoice_service.snapshot_invoice(invoice)
    original_consumption = inventory_service.consumption_for_invoice(invoice)
    original_basis = LoyaltyBasis(invoice.customer_id, invoice.grand_total_paise)
    original_staff = {li.staff_id for li in invoice.line_items if li.staff_id is not None}
    sale_day = invoice_service.sale_date_for(invoice)
    card_ids, package_ids = _touched_instruments(invoice)

    # 2. references
    customer = _resolve_references(org_id, payload)

    # 3. gift cards
    prior_cards = gift_card_service.reverse_invoice_effects(invoice)
    issued_cards = gift_card_service.apply_invoice_effects(invoice, payload, prior_cards)
    if payload.gift_card_redemption:
        card_ids.add(payload.gift_card_redemption.card_id)

    # 4. packages
    package_service.reverse_invoice_effects(invoice)
    sold_packages = package_service.apply_invoice_effects(invoice, payload, sale_day=sale_day)
    package_ids.update(r.customer_package_id for r in payload.package_redemptions)

    # 5. inventory
    by_source = inventory_service.payload_consumption_by_source(org_id, payload, customer)
    revised_consumption = inventory_service.consumption_for_payload(org_id, payload, customer)
    stock_deltas = inventory_service.reconcile(
        org_id, invoice.id, original_consumption, revised_consumption, actor_user_id=actor_user_id
    )

    # 6. invoice + appointment
    invoice_service.rewrite_invoice(invoice, payload, by_source)

    # 7. loyalty
    rule = rule_provider(org_id)
    points_delta = loyalty_service.adjust_for_correction(
        org_id,
        original_basis,
        LoyaltyBasis(payload.customer_id, payload.grand_total),
        invoice,
        rule,
        user_id=actor_user_id,
    )

    # 8. rollups
    sales_rollup_service.recompute(org_id, original_staff | payload.line_staff_ids, sale_day)

    # 9. audit
    after = invoice_service.snapshot_invoice(invoice)
    event = audit_service.append_correction_event(
        org_id=org_id,
        invoice_id=invoice.id,
        before=before,
        after=after,
        actor_user_id=actor_user_id,
        note=payload.notes,
    )

    # 10. sweep + commit
    _invariant_sweep(
        org_id, invoice, card_ids, package_ids,
        set(original_consumption) | set(revised_consumption),
    )
    issued_ids = [c.id for c in issued_cards]
    sold_ids = [p.id for p in sold_packages]
    event_id = event.id

    db.session.commit()
    return {
        "invoice": invoice,
        "issued_ids": issued_ids,
        "sold_ids": sold_ids,
        "points_delta": points_delta,
        "stock_deltas": stock_deltas,
        "event_id": event_id,
    }


def _corrected_invoice_view(outcome: dict) -> dict:
    issued = (
        db.session.query(GiftCard).filter(GiftCard.id.in_(outcome["issued_ids"])).order_by(GiftCard.id).all()
        if outcome["issued_ids"] else []
    )
    sold = (
        db.session.query(CustomerPackage)
        .filter(CustomerPackage.id.in_(outcome["sold_ids"]))
        .order_by(CustomerPackage.id)
        .all()
        if outcome["sold_ids"] else []
    )
    return {
        "invoice": invoice_service.invoice_view(outcome["invoice"]),
        "issued_gift_cards": [c.to_dict() for c in issued],
        "sold_packages": [p.to_dict() for p in sold],
        "loyalty_points_delta": outcome["points_delta"],
        "inventory_deltas": [d.to_dict() for _, d in sorted(outcome["stock_deltas"].items())],
        "correction_id": outcome["event_id"],
    }


def correct_invoice(
    org_id: int,
    invoice_id: int,
    payload,
    actor_user_id: int | None = None,
    loyalty_rule_provider=None,
) -> dict:
    """
    Correct a finalized invoice atomically.

    payload may be a raw dict (validated here before any database work) or
    an already parsed CorrectionPayload. Raises ValidationError,
    NotFoundError, InvariantViolation or ConflictError; on any error the
    session is rolled back and nothing is written.

    Returns the corrected invoice view: the rewritten invoice with names
    resolved, newly issued gift cards, newly sold packages, the loyalty
    points delta and the per-product stock deltas.
    """
    if not isinstance(payload, CorrectionPayload):
        payload = parse_correction_payload(payload)

    rule_provider = loyalty_rule_provider or settings_service.get_loyalty_rule
    attempts = current_app.config.get("CORRECTION_RETRY_ATTEMPTS", 3)
    backoff = current_app.config.get("CORRECTION_RETRY_BACKOFF", 0.1)

    def _op():
        try:
            return _correct(org_id, invoice_id, payload, actor_user_id, rule_provider)
        except BillingError as exc:
            db.session.rollback()
            current_app.logger.warning(
                "Invoice %s correction rejected: %s %s", invoice_id, exc.message, exc.details
            )
            raise
        except Exception:
            db.session.rollback()
            raise

    outcome = run_with_retry(_op, attempts=attempts, backoff_base=backoff)
    current_app.logger.info(
        "Invoice %s corrected (org %s, actor %s, loyalty %+d, %d stock deltas)",
        invoice_id, org_id, actor_user_id, outcome["points_delta"], len(outcome["stock_deltas"]),
    )
    return _corrected_invoice_view(outcome)
