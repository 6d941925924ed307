# Overview: Loyalty points ledger; append-only adjustments against customer reward accounts.

from __future__ import annotations

from dataclasses import dataclass

from ..extensions import db
from ..errors import InvariantViolation
from ..models import CustomerRewardAccount, Invoice, LoyaltyTransaction
from ..models.customers import LOYALTY_CREDIT, LOYALTY_DEBIT
from .concurrency import lock_for_update
from .settings_service import LoyaltyRule

"""
Loyalty invariants (authoritative)

- points_balance never goes negative.
- History is never rewritten: every change is one new LoyaltyTransaction.
- A correction moves only the difference between the points earned by the
  original total and the points earned by the revised total.
"""

REASON_INVOICE_CORRECTION = "invoice_correction"


@dataclass(frozen=True)
class LoyaltyBasis:
    """Who earned on an invoice, and on what total (paise)."""
    customer_id: int | None
    total_paise: int


def points_for_total(total_paise: int, rule: LoyaltyRule | None) -> int:
    if rule is None or not rule.enabled or total_paise <= 0:
        return 0
    rupees = total_paise // 100
    return (rupees // rule.rupees_for_points) * rule.points_awarded


def get_or_create_account(org_id: int, customer_id: int) -> CustomerRewardAccount:
    account = lock_for_update(
        db.session.query(CustomerRewardAccount).filter_by(customer_id=customer_id)
    ).first()
    if account:
        return account
    account = CustomerRewardAccount(
        org_id=org_id,
        customer_id=customer_id,
        points_balance=0,
        lifetime_points_earned=0,
        lifetime_points_redeemed=0,
    )
    db.session.add(account)
    db.session.flush()
    return account


def adjust(
    org_id: int,
    customer_id: int,
    points_delta: int,
    invoice: Invoice | None,
    reason: str,
    *,
    description: str | None = None,
    user_id: int | None = None,
) -> LoyaltyTransaction | None:
    """
    Append one signed adjusting entry. Zero deltas write nothing.

    Does NOT commit.
    """
    if points_delta == 0:
        return None

    account = get_or_create_account(org_id, customer_id)
    new_balance = account.points_balance + points_delta
    if new_balance < 0:
        raise InvariantViolation(
            "Loyalty points balance cannot go negative",
            {"customer_id": customer_id, "balance": account.points_balance, "delta": points_delta},
        )

    account.points_balance = new_balance
    if points_delta > 0:
        account.lifetime_points_earned += points_delta
    else:
        account.lifetime_points_earned -= min(account.lifetime_points_earned, -points_delta)

    txn = LoyaltyTransaction(
        org_id=org_id,
        customer_id=customer_id,
        reward_account_id=account.id,
        direction=LOYALTY_CREDIT if points_delta > 0 else LOYALTY_DEBIT,
        points=abs(points_delta),
        invoice_id=invoice.id if invoice is not None else None,
        reason=reason,
        description=description,
        user_id=user_id,
    )
    db.session.add(txn)
    db.session.flush()
    return txn


def adjust_for_correction(
    org_id: int,
    original: LoyaltyBasis,
    revised: LoyaltyBasis,
    invoice: Invoice,
    rule: LoyaltyRule | None,
    *,
    user_id: int | None = None,
) -> int:
    """
    Move loyalty points for a corrected invoice. Returns the net points
    delta for the revised customer's view (new points - old points).

    Does NOT commit.
    """
    old_points = points_for_total(original.total_paise, rule)
    new_points = points_for_total(revised.total_paise, rule)
    label = f"Invoice {invoice.invoice_number} corrected"

    if original.customer_id == revised.customer_id:
        delta = new_points - old_points
        if revised.customer_id is not None:
            adjust(
                org_id, revised.customer_id, delta, invoice, REASON_INVOICE_CORRECTION,
                description=label, user_id=user_id,
            )
        return delta

    if original.customer_id is not None:
        adjust(
            org_id, original.customer_id, -old_points, invoice, REASON_INVOICE_CORRECTION,
            description=f"{label}: moved to another customer", user_id=user_id,
        )
    if revised.customer_id is not None:
        adjust(
            org_id, revised.customer_id, new_points, invoice, REASON_INVOICE_CORRECTION,
            description=f"{label}: moved from another customer", user_id=user_id,
        )
    return new_points - old_points


def get_balance(customer_id: int) -> int:
    account = db.session.query(CustomerRewardAccount).filter_by(customer_id=customer_id).first()
    return account.points_balance if account else 0
