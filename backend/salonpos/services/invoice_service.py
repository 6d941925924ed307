"""
Invoice store - load, snapshot and rewrite finalized invoices.

WHY: A correction replaces the whole content of an invoice. The snapshot
taken before the rewrite is the undo record every ledger reconciles
against, and the audit log keeps it as the true "before" state.
"""

from __future__ import annotations

from datetime import date

from ..extensions import db
from ..errors import NotFoundError, ValidationError
from ..models import Invoice, InvoiceLineItem, InvoiceStockConsumption
from ..models.billing import LINE_SERVICE, PAYMENT_PAID
from salonpos.time_utils import utcnow
from .concurrency import lock_for_update
from .inventory_service import SOURCE_CATALOG, SOURCE_MANUAL


def get_invoice(org_id: int, invoice_id: int, *, lock: bool = False) -> Invoice:
    query = db.session.query(Invoice).filter_by(id=invoice_id, org_id=org_id)
    if lock:
        query = lock_for_update(query)
    invoice = query.first()
    if not invoice:
        raise NotFoundError("Invoice not found", {"invoice_id": invoice_id})
    return invoice


def snapshot_invoice(invoice: Invoice) -> dict:
    """JSON-ready copy of the invoice, its line items and its stock consumption."""
    data = invoice.to_dict()
    data["stock_consumption"] = [row.to_dict() for row in invoice.stock_consumptions]
    return data


def sale_date_for(invoice: Invoice) -> date:
    """Sales are booked on the appointment's day, falling back to the invoice's."""
    if invoice.appointment is not None and invoice.appointment.appointment_at is not None:
        return invoice.appointment.appointment_at.date()
    if invoice.created_at is not None:
        return invoice.created_at.date()
    return utcnow().date()


def write_back_appointment(invoice: Invoice, payload) -> None:
    appointment = invoice.appointment
    if appointment is None:
        return

    appointment.customer_id = payload.customer_id
    if payload.stylist_id is not None:
        appointment.stylist_id = payload.stylist_id
    appointment.amount_paise = payload.subtotal
    appointment.final_amount_paise = payload.grand_total
    appointment.membership_discount_paise = payload.membership_discount
    appointment.payment_details = dict(payload.payment_details, gift_card=payload.gift_card_amount)
    appointment.billing_staff_id = payload.billing_staff_id
    appointment.invoice_id = invoice.id
    appointment.service_ids = [li.item_id for li in payload.items_of(LINE_SERVICE)]
    appointment.status = "Completed"


def rewrite_invoice(invoice: Invoice, payload, consumption_by_source: dict) -> Invoice:
    """
    Overwrite the invoice with the revised content.

    Line items and stock consumption rows are replaced wholesale; the
    invoice is (re)marked Paid and its appointment updated to match.

    Does NOT commit.
    """
    if payload.appointment_id is not None and payload.appointment_id != invoice.appointment_id:
        raise ValidationError(
            "appointment_id does not match the invoice",
            {"invoice_appointment_id": invoice.appointment_id, "appointment_id": payload.appointment_id},
        )

    invoice.customer_id = payload.customer_id
    invoice.billing_staff_id = payload.billing_staff_id
    if payload.stylist_id is not None:
        invoice.stylist_id = payload.stylist_id

    invoice.service_total_paise = payload.service_total
    invoice.product_total_paise = payload.product_total
    invoice.subtotal_paise = payload.subtotal
    invoice.membership_discount_paise = payload.membership_discount
    invoice.is_membership_applied = payload.membership_discount > 0

    invoice.manual_discount_type = payload.manual_discount.type
    invoice.manual_discount_value = payload.manual_discount.value
    invoice.manual_discount_applied_paise = payload.manual_discount.applied_amount

    redemption = payload.gift_card_redemption
    invoice.gift_card_id = redemption.card_id if redemption else None
    invoice.gift_card_amount_paise = redemption.amount if redemption else 0

    invoice.cash_paise = payload.payment_details["cash"]
    invoice.card_paise = payload.payment_details["card"]
    invoice.upi_paise = payload.payment_details["upi"]
    invoice.other_paise = payload.payment_details["other"]

    invoice.grand_total_paise = payload.grand_total
    invoice.payment_status = PAYMENT_PAID
    invoice.notes = payload.notes

    invoice.line_items = [
        InvoiceLineItem(
            position=position,
            item_type=li.item_type,
            item_id=li.item_id,
            name=li.name,
            quantity=li.quantity,
            unit_price_paise=li.unit_price,
            membership_rate_paise=li.membership_rate,
            membership_discount_paise=li.membership_discount,
            final_price_paise=li.final_price,
            staff_id=li.staff_id,
        )
        for position, li in enumerate(payload.items)
    ]

    rows = []
    for source in (SOURCE_CATALOG, SOURCE_MANUAL):
        for product_id, consumption in sorted(consumption_by_source.get(source, {}).items()):
            if consumption.is_zero:
                continue
            rows.append(InvoiceStockConsumption(
                org_id=invoice.org_id,
                product_id=product_id,
                count=consumption.count,
                measure=round(consumption.measure, 6),
                source=source,
            ))
    invoice.stock_consumptions = rows
    invoice.stock_recorded = True

    write_back_appointment(invoice, payload)
    db.session.flush()
    return invoice


def invoice_view(invoice: Invoice) -> dict:
    """Invoice with customer, billing staff and line staff names resolved."""
    data = invoice.to_dict()
    data["customer_name"] = invoice.customer.name if invoice.customer else None
    data["billing_staff_name"] = invoice.billing_staff.name if invoice.billing_staff else None
    data["stylist_name"] = invoice.stylist.name if invoice.stylist else None
    names = {li.id: (li.staff.name if li.staff else None) for li in invoice.line_items}
    for item in data["items"]:
        item["staff_name"] = names.get(item["id"])
    data["sale_date"] = sale_date_for(invoice).isoformat()
    return data
