from __future__ import annotations

from ..extensions import db
from salonpos.time_utils import to_utc_z


class DailySale(db.Model):
    """
    Per-staff daily sales aggregate feeding incentive calculations.

    DERIVED: Rows are always recomputed from the paid invoices of the day,
    never incremented. Recomputing twice yields the same row.
    """
    __tablename__ = "daily_sales"
    __table_args__ = (
        db.UniqueConstraint("org_id", "staff_id", "sale_date", name="uq_daily_sales_org_staff_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    staff_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=False, index=True)
    sale_date = db.Column(db.Date, nullable=False, index=True)

    service_sale_paise = db.Column(db.Integer, nullable=False, default=0)
    product_sale_paise = db.Column(db.Integer, nullable=False, default=0)
    package_sale_paise = db.Column(db.Integer, nullable=False, default=0)
    gift_card_sale_paise = db.Column(db.Integer, nullable=False, default=0)
    customer_count = db.Column(db.Integer, nullable=False, default=0)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    @property
    def total_sale_paise(self) -> int:
        return (
            self.service_sale_paise
            + self.product_sale_paise
            + self.package_sale_paise
            + self.gift_card_sale_paise
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "staff_id": self.staff_id,
            "sale_date": self.sale_date.isoformat(),
            "service_sale": self.service_sale_paise,
            "product_sale": self.product_sale_paise,
            "package_sale": self.package_sale_paise,
            "gift_card_sale": self.gift_card_sale_paise,
            "total_sale": self.total_sale_paise,
            "customer_count": self.customer_count,
            "updated_at": to_utc_z(self.updated_at),
        }
