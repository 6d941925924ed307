"""
Daily sales rollup - per-staff aggregates feeding incentive calculations.

WHY: Staff incentives are computed from a per-day view of what each staff
member sold. The view is derived data: it is always rebuilt from the paid
invoices of the day, never patched with deltas, so recomputing is safe to
repeat and a correction can never leave it drifted.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date

import sqlalchemy as sa

from ..extensions import db
from ..models import Appointment, DailySale, Invoice
from ..models.billing import LINE_GIFT_CARD, LINE_PACKAGE, LINE_PRODUCT, LINE_SERVICE, PAYMENT_PAID
from salonpos.time_utils import day_bounds


_COLUMN_FOR_TYPE = {
    LINE_SERVICE: "service_sale_paise",
    LINE_PRODUCT: "product_sale_paise",
    LINE_PACKAGE: "package_sale_paise",
    LINE_GIFT_CARD: "gift_card_sale_paise",
}


def _paid_invoices_for_day(org_id: int, day: date) -> list[Invoice]:
    """Paid invoices booked on `day`: by appointment time, else by invoice time."""
    start, end = day_bounds(day)
    appointments_on_day = sa.select(Appointment.id).where(
        Appointment.org_id == org_id,
        Appointment.appointment_at >= start,
        Appointment.appointment_at <= end,
    )
    dated_appointments = sa.select(Appointment.id).where(
        Appointment.org_id == org_id,
        Appointment.appointment_at.isnot(None),
    )
    undated = sa.or_(
        Invoice.appointment_id.is_(None),
        Invoice.appointment_id.not_in(dated_appointments),
    )
    return (
        db.session.query(Invoice)
        .filter(
            Invoice.org_id == org_id,
            Invoice.payment_status == PAYMENT_PAID,
            sa.or_(
                Invoice.appointment_id.in_(appointments_on_day),
                sa.and_(undated, Invoice.created_at >= start, Invoice.created_at <= end),
            ),
        )
        .all()
    )


def aggregate(invoices) -> dict[int, dict]:
    """Per-staff totals and distinct customers over a set of invoices."""
    totals: dict[int, dict] = {}
    customers: dict[int, set] = defaultdict(set)
    for invoice in invoices:
        for item in invoice.line_items:
            if item.staff_id is None:
                continue
            row = totals.setdefault(item.staff_id, {col: 0 for col in _COLUMN_FOR_TYPE.values()})
            column = _COLUMN_FOR_TYPE.get(item.item_type)
            if column:
                row[column] += item.final_price_paise
            if invoice.customer_id is not None:
                customers[item.staff_id].add(invoice.customer_id)

    for staff_id, row in totals.items():
        row["customer_count"] = len(customers[staff_id])
    return totals


def recompute(org_id: int, staff_ids, day: date) -> list[DailySale]:
    """
    Rebuild DailySale rows for `day`.

    Rows are written for every requested staff member plus every staff
    member found on the day's paid invoices; requested staff without sales
    get zeroed rows. Does NOT commit.
    """
    totals = aggregate(_paid_invoices_for_day(org_id, day))
    involved = sorted(set(s for s in staff_ids if s is not None) | set(totals))

    zero = {col: 0 for col in _COLUMN_FOR_TYPE.values()}
    zero["customer_count"] = 0

    existing = {
        row.staff_id: row
        for row in db.session.query(DailySale)
        .filter(DailySale.org_id == org_id, DailySale.sale_date == day, DailySale.staff_id.in_(involved))
        .all()
    } if involved else {}

    rows = []
    for staff_id in involved:
        row = existing.get(staff_id)
        if row is None:
            row = DailySale(org_id=org_id, staff_id=staff_id, sale_date=day)
            db.session.add(row)
        for column, value in totals.get(staff_id, zero).items():
            setattr(row, column, value)
        rows.append(row)

    db.session.flush()
    return rows


def get_daily_sales(org_id: int, staff_id: int, day: date) -> DailySale | None:
    return (
        db.session.query(DailySale)
        .filter_by(org_id=org_id, staff_id=staff_id, sale_date=day)
        .first()
    )


def list_daily_sales(org_id: int, day: date) -> list[DailySale]:
    return (
        db.session.query(DailySale)
        .filter_by(org_id=org_id, sale_date=day)
        .order_by(DailySale.staff_id)
        .all()
    )
