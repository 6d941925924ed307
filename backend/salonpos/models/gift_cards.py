from __future__ import annotations

from ..extensions import db
from salonpos.time_utils import to_utc_z


GIFT_CARD_ACTIVE = "active"
GIFT_CARD_REDEEMED = "redeemed"
GIFT_CARD_EXPIRED = "expired"


class GiftCard(db.Model):
    """
    Issued gift card instance.

    WHY: A card is sold on one invoice (purchase_invoice_id) and redeemed on
    any number of later invoices through GiftCardLog rows. current balance
    always equals initial balance minus the logged redemptions.

    DESIGN:
    - code is unique per organization (printed on the physical card)
    - balances are integer paise, 0 <= current <= initial
    - version_id catches concurrent redemptions at flush time
    """
    __tablename__ = "gift_cards"
    __table_args__ = (
        db.UniqueConstraint("org_id", "code", name="uq_gift_cards_org_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    code = db.Column(db.String(32), nullable=False)

    template_id = db.Column(db.Integer, db.ForeignKey("gift_card_templates.id"), nullable=True, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)

    initial_balance_paise = db.Column(db.Integer, nullable=False)
    current_balance_paise = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=GIFT_CARD_ACTIVE, index=True)

    issue_date = db.Column(db.Date, nullable=False)
    expiry_date = db.Column(db.Date, nullable=True)

    issued_by_staff_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=True)
    purchase_invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    template = db.relationship("GiftCardTemplate")
    issued_by = db.relationship("Staff")
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<GiftCard id={self.id} code={self.code!r} balance={self.current_balance_paise}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "code": self.code,
            "template_id": self.template_id,
            "customer_id": self.customer_id,
            "initial_balance": self.initial_balance_paise,
            "current_balance": self.current_balance_paise,
            "status": self.status,
            "issue_date": self.issue_date.isoformat() if self.issue_date else None,
            "expiry_date": self.expiry_date.isoformat() if self.expiry_date else None,
            "issued_by_staff_id": self.issued_by_staff_id,
            "issued_by_staff_name": self.issued_by.name if self.issued_by else None,
            "purchase_invoice_id": self.purchase_invoice_id,
            "created_at": to_utc_z(self.created_at),
            "version_id": self.version_id,
        }


class GiftCardLog(db.Model):
    """Append-only redemption record tying a card debit to an invoice."""
    __tablename__ = "gift_card_logs"
    __table_args__ = (
        db.Index("ix_gift_card_logs_invoice", "invoice_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    gift_card_id = db.Column(db.Integer, db.ForeignKey("gift_cards.id"), nullable=False, index=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True)

    amount_paise = db.Column(db.Integer, nullable=False)
    balance_before_paise = db.Column(db.Integer, nullable=False)
    balance_after_paise = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    gift_card = db.relationship("GiftCard", backref=db.backref("logs", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "gift_card_id": self.gift_card_id,
            "invoice_id": self.invoice_id,
            "customer_id": self.customer_id,
            "amount": self.amount_paise,
            "balance_before": self.balance_before_paise,
            "balance_after": self.balance_after_paise,
            "created_at": to_utc_z(self.created_at),
        }
