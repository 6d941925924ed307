from __future__ import annotations

from ..extensions import db
from salonpos.time_utils import to_utc_z


PAYMENT_PAID = "Paid"
PAYMENT_PENDING = "Pending"
PAYMENT_REFUNDED = "Refunded"

LINE_SERVICE = "service"
LINE_PRODUCT = "product"
LINE_PACKAGE = "package"
LINE_GIFT_CARD = "gift_card"
LINE_FEE = "fee"
LINE_ITEM_TYPES = (LINE_SERVICE, LINE_PRODUCT, LINE_PACKAGE, LINE_GIFT_CARD, LINE_FEE)


class Appointment(db.Model):
    """
    Booked visit. appointment_at is the sale date used by daily rollups.

    Billing (and every correction) writes the invoice outcome back onto
    the appointment so front-desk screens stay in step with the invoice.
    """
    __tablename__ = "appointments"
    __table_args__ = (
        db.Index("ix_appointments_org_at", "org_id", "appointment_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    stylist_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=True, index=True)

    appointment_at = db.Column(db.DateTime(timezone=True), nullable=False)
    status = db.Column(db.String(32), nullable=False, default="Booked")  # Booked, Completed, Cancelled

    amount_paise = db.Column(db.Integer, nullable=False, default=0)
    final_amount_paise = db.Column(db.Integer, nullable=False, default=0)
    membership_discount_paise = db.Column(db.Integer, nullable=False, default=0)
    payment_details = db.Column(db.JSON, nullable=True)
    service_ids = db.Column(db.JSON, nullable=True)

    billing_staff_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    # Plain reference: invoices already point here through appointment_id
    invoice_id = db.Column(db.Integer, nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "customer_id": self.customer_id,
            "stylist_id": self.stylist_id,
            "appointment_at": to_utc_z(self.appointment_at),
            "status": self.status,
            "amount_paise": self.amount_paise,
            "final_amount_paise": self.final_amount_paise,
            "membership_discount_paise": self.membership_discount_paise,
            "payment_details": self.payment_details,
            "service_ids": self.service_ids,
            "billing_staff_id": self.billing_staff_id,
            "invoice_id": self.invoice_id,
        }


class Invoice(db.Model):
    """
    Finalized sale document.

    WHY: An invoice is the anchor for every side effect of a sale: gift card
    redemptions and issues, package redemptions and sales, stock consumption
    and loyalty earn. A correction rewrites the invoice in place and replaces
    its line items; the ledgers are reconciled against the prior snapshot.

    All amounts are integer paise.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.UniqueConstraint("org_id", "invoice_number", name="uq_invoices_org_number"),
        db.Index("ix_invoices_org_status", "org_id", "payment_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    invoice_number = db.Column(db.String(64), nullable=False)

    appointment_id = db.Column(db.Integer, db.ForeignKey("appointments.id"), nullable=True, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    stylist_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=True, index=True)
    billing_staff_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    service_total_paise = db.Column(db.Integer, nullable=False, default=0)
    product_total_paise = db.Column(db.Integer, nullable=False, default=0)
    subtotal_paise = db.Column(db.Integer, nullable=False, default=0)
    membership_discount_paise = db.Column(db.Integer, nullable=False, default=0)
    is_membership_applied = db.Column(db.Boolean, nullable=False, default=False)

    # Manual discount: type is "percentage" or "fixed"; applied is what came off
    manual_discount_type = db.Column(db.String(16), nullable=True)
    manual_discount_value = db.Column(db.Float, nullable=False, default=0)
    manual_discount_applied_paise = db.Column(db.Integer, nullable=False, default=0)

    # Redeemed card; no FK so a card issued and redeemed on the same bill can be reissued
    gift_card_id = db.Column(db.Integer, nullable=True, index=True)
    gift_card_amount_paise = db.Column(db.Integer, nullable=False, default=0)

    cash_paise = db.Column(db.Integer, nullable=False, default=0)
    card_paise = db.Column(db.Integer, nullable=False, default=0)
    upi_paise = db.Column(db.Integer, nullable=False, default=0)
    other_paise = db.Column(db.Integer, nullable=False, default=0)

    grand_total_paise = db.Column(db.Integer, nullable=False, default=0)
    payment_status = db.Column(db.String(16), nullable=False, default=PAYMENT_PAID, index=True)
    notes = db.Column(db.Text, nullable=True)

    # Set once a correction has written stock_consumptions; before that the
    # catalog is the only record of what the invoice took out of stock
    stock_recorded = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    appointment = db.relationship("Appointment", foreign_keys=[appointment_id])
    customer = db.relationship("Customer")
    stylist = db.relationship("Staff", foreign_keys=[stylist_id])
    billing_staff = db.relationship("User", foreign_keys=[billing_staff_id])
    line_items = db.relationship(
        "InvoiceLineItem",
        backref="invoice",
        order_by="InvoiceLineItem.position",
        cascade="all, delete-orphan",
        lazy=True,
    )
    stock_consumptions = db.relationship(
        "InvoiceStockConsumption",
        backref="invoice",
        cascade="all, delete-orphan",
        lazy=True,
    )
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def payment_details(self) -> dict:
        return {
            "cash": self.cash_paise,
            "card": self.card_paise,
            "upi": self.upi_paise,
            "other": self.other_paise,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "invoice_number": self.invoice_number,
            "appointment_id": self.appointment_id,
            "customer_id": self.customer_id,
            "stylist_id": self.stylist_id,
            "billing_staff_id": self.billing_staff_id,
            "service_total": self.service_total_paise,
            "product_total": self.product_total_paise,
            "subtotal": self.subtotal_paise,
            "membership_discount": self.membership_discount_paise,
            "is_membership_applied": self.is_membership_applied,
            "manual_discount": {
                "type": self.manual_discount_type,
                "value": self.manual_discount_value,
                "applied_amount": self.manual_discount_applied_paise,
            },
            "gift_card_redemption": (
                {"card_id": self.gift_card_id, "amount": self.gift_card_amount_paise}
                if self.gift_card_id else None
            ),
            "payment_details": self.payment_details,
            "grand_total": self.grand_total_paise,
            "payment_status": self.payment_status,
            "notes": self.notes,
            "stock_recorded": self.stock_recorded,
            "items": [li.to_dict() for li in self.line_items],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }


class InvoiceLineItem(db.Model):
    """Snapshot of one billed line. Replaced wholesale by a correction."""
    __tablename__ = "invoice_line_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    item_type = db.Column(db.String(16), nullable=False)  # service, product, package, gift_card, fee
    item_id = db.Column(db.Integer, nullable=True)
    name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    unit_price_paise = db.Column(db.Integer, nullable=False, default=0)
    membership_rate_paise = db.Column(db.Integer, nullable=True)
    membership_discount_paise = db.Column(db.Integer, nullable=False, default=0)
    final_price_paise = db.Column(db.Integer, nullable=False, default=0)

    staff_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=True, index=True)
    staff = db.relationship("Staff")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "position": self.position,
            "item_type": self.item_type,
            "item_id": self.item_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price": self.unit_price_paise,
            "membership_rate": self.membership_rate_paise,
            "membership_discount": self.membership_discount_paise,
            "final_price": self.final_price_paise,
            "staff_id": self.staff_id,
        }


class InvoiceStockConsumption(db.Model):
    """
    Stock an invoice took out of inventory, per product.

    source is "catalog" (product lines and service consumables) or "manual"
    (operator adjustments). A correction reads these rows as the "before"
    side of the stock reconciliation and replaces them.
    """
    __tablename__ = "invoice_stock_consumptions"
    __table_args__ = (
        db.Index("ix_invoice_stock_invoice_product", "invoice_id", "product_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    count = db.Column(db.Integer, nullable=False, default=0)
    measure = db.Column(db.Float, nullable=False, default=0)
    source = db.Column(db.String(16), nullable=False, default="catalog")  # catalog, manual

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "product_id": self.product_id,
            "count": self.count,
            "measure": self.measure,
            "source": self.source,
        }
