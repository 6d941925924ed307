# Overview: Append-only correction event log written inside the correction transaction.

from __future__ import annotations

from ..extensions import db
from ..models import InvoiceCorrection


def append_correction_event(
    *,
    org_id: int,
    invoice_id: int,
    before: dict,
    after: dict,
    actor_user_id: int | None = None,
    note: str | None = None,
) -> InvoiceCorrection:
    """
    Record one correction.

    - No updates or deletes of existing events.
    - Written in the caller's transaction; only flushed here.
    """
    event = InvoiceCorrection(
        org_id=org_id,
        invoice_id=invoice_id,
        before=before,
        after=after,
        actor_user_id=actor_user_id,
        note=note,
    )
    db.session.add(event)
    db.session.flush()
    return event


def list_correction_events(org_id: int, invoice_id: int) -> list[InvoiceCorrection]:
    return (
        db.session.query(InvoiceCorrection)
        .filter_by(org_id=org_id, invoice_id=invoice_id)
        .order_by(InvoiceCorrection.created_at.desc(), InvoiceCorrection.id.desc())
        .all()
    )
