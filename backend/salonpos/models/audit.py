from __future__ import annotations

from ..extensions import db
from salonpos.time_utils import to_utc_z


class InvoiceCorrection(db.Model):
    """
    Append-only log of invoice corrections.

    before holds the invoice exactly as it was prior to the correction
    (header, line items, stock consumption); after holds the rewritten
    invoice. Rows are written in the same transaction as the correction,
    so a rolled-back correction leaves no event behind.
    """
    __tablename__ = "invoice_corrections"
    __table_args__ = (
        db.Index("ix_invoice_corrections_invoice_created", "invoice_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False)

    before = db.Column(db.JSON, nullable=False)
    after = db.Column(db.JSON, nullable=False)
    note = db.Column(db.String(255), nullable=True)

    actor_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "invoice_id": self.invoice_id,
            "before": self.before,
            "after": self.after,
            "note": self.note,
            "actor_user_id": self.actor_user_id,
            "created_at": to_utc_z(self.created_at),
        }
