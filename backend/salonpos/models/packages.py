from __future__ import annotations

from ..extensions import db
from salonpos.time_utils import to_utc_z


PACKAGE_ACTIVE = "active"
PACKAGE_COMPLETED = "completed"
PACKAGE_EXPIRED = "expired"


class CustomerPackage(db.Model):
    """
    Package sold to a customer.

    WHY: The template is snapshotted (name, price, entitlement quantities)
    at sale time. Entitlements are drawn down by later invoices through
    CustomerPackageLog rows. A package whose entitlements all reach zero is
    "completed"; restoring any quantity reopens it.
    """
    __tablename__ = "customer_packages"
    __table_args__ = (
        db.Index("ix_customer_packages_org_customer", "org_id", "customer_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False)
    package_template_id = db.Column(db.Integer, db.ForeignKey("package_templates.id"), nullable=True)

    name = db.Column(db.String(255), nullable=False)
    price_paise = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default=PACKAGE_ACTIVE, index=True)

    sold_by_staff_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=True)
    purchase_invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=True, index=True)
    purchase_date = db.Column(db.Date, nullable=False)
    expiry_date = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    items = db.relationship(
        "CustomerPackageItem",
        backref="customer_package",
        cascade="all, delete-orphan",
        lazy=True,
    )
    sold_by = db.relationship("Staff")
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "customer_id": self.customer_id,
            "package_template_id": self.package_template_id,
            "name": self.name,
            "price": self.price_paise,
            "status": self.status,
            "sold_by_staff_id": self.sold_by_staff_id,
            "purchase_invoice_id": self.purchase_invoice_id,
            "purchase_date": self.purchase_date.isoformat() if self.purchase_date else None,
            "expiry_date": self.expiry_date.isoformat() if self.expiry_date else None,
            "items": [i.to_dict() for i in self.items],
            "created_at": to_utc_z(self.created_at),
            "version_id": self.version_id,
        }


class CustomerPackageItem(db.Model):
    """Entitlement row: 0 <= remaining_quantity <= total_quantity."""
    __tablename__ = "customer_package_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    customer_package_id = db.Column(db.Integer, db.ForeignKey("customer_packages.id"), nullable=False, index=True)
    item_type = db.Column(db.String(16), nullable=False)
    item_id = db.Column(db.Integer, nullable=False)
    total_quantity = db.Column(db.Integer, nullable=False)
    remaining_quantity = db.Column(db.Integer, nullable=False)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_type": self.item_type,
            "item_id": self.item_id,
            "total_quantity": self.total_quantity,
            "remaining_quantity": self.remaining_quantity,
        }


class CustomerPackageLog(db.Model):
    __tablename__ = "customer_package_logs"
    __table_args__ = (
        db.Index("ix_customer_package_logs_invoice", "invoice_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    customer_package_id = db.Column(db.Integer, db.ForeignKey("customer_packages.id"), nullable=False, index=True)
    package_item_id = db.Column(db.Integer, db.ForeignKey("customer_package_items.id"), nullable=False)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    redeemed_by_staff_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_package_id": self.customer_package_id,
            "package_item_id": self.package_item_id,
            "invoice_id": self.invoice_id,
            "quantity": self.quantity,
            "redeemed_by_staff_id": self.redeemed_by_staff_id,
            "created_at": to_utc_z(self.created_at),
        }
