from __future__ import annotations

from ..extensions import db
from salonpos.time_utils import to_utc_z


class ServiceItem(db.Model):
    """
    Bookable service in the tenant catalog.

    A service may consume in-house products (shampoo, color) through its
    ServiceConsumable rows; billing a service deducts those quantities from
    fractional stock.
    """
    __tablename__ = "service_items"
    __table_args__ = (
        db.Index("ix_service_items_org_active", "org_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    price_paise = db.Column(db.Integer, nullable=False, default=0)
    membership_rate_paise = db.Column(db.Integer, nullable=True)
    duration_minutes = db.Column(db.Integer, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "name": self.name,
            "price_paise": self.price_paise,
            "membership_rate_paise": self.membership_rate_paise,
            "duration_minutes": self.duration_minutes,
            "is_active": self.is_active,
            "consumables": [c.to_dict() for c in self.consumables],
            "created_at": to_utc_z(self.created_at),
        }


class ServiceConsumable(db.Model):
    """
    Product quantity used by one performance of a service.

    quantity_default applies unless a gender-specific quantity is set for
    the customer's gender. Quantities are in the product unit (ml, g).
    """
    __tablename__ = "service_consumables"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    service_item_id = db.Column(db.Integer, db.ForeignKey("service_items.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity_default = db.Column(db.Float, nullable=False, default=0)
    quantity_male = db.Column(db.Float, nullable=True)
    quantity_female = db.Column(db.Float, nullable=True)
    unit = db.Column(db.String(16), nullable=True)

    service_item = db.relationship("ServiceItem", backref=db.backref("consumables", lazy=True))
    product = db.relationship("Product")

    def quantity_for(self, gender: str | None) -> float:
        if gender == "male" and self.quantity_male is not None:
            return self.quantity_male
        if gender == "female" and self.quantity_female is not None:
            return self.quantity_female
        return self.quantity_default or 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "service_item_id": self.service_item_id,
            "product_id": self.product_id,
            "quantity_default": self.quantity_default,
            "quantity_male": self.quantity_male,
            "quantity_female": self.quantity_female,
            "unit": self.unit,
        }


class GiftCardTemplate(db.Model):
    """Sellable gift card denomination; issued cards snapshot its amount."""
    __tablename__ = "gift_card_templates"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    amount_paise = db.Column(db.Integer, nullable=False)
    price_paise = db.Column(db.Integer, nullable=True)
    validity_in_days = db.Column(db.Integer, nullable=False, default=365)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "name": self.name,
            "amount_paise": self.amount_paise,
            "price_paise": self.price_paise,
            "validity_in_days": self.validity_in_days,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class PackageTemplate(db.Model):
    """
    Prepaid bundle definition (e.g. "5 haircuts + 2 spa").

    Selling a package snapshots the template's items into a CustomerPackage,
    so later template edits never change what a customer already bought.
    """
    __tablename__ = "package_templates"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    price_paise = db.Column(db.Integer, nullable=False, default=0)
    validity_in_days = db.Column(db.Integer, nullable=False, default=365)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "name": self.name,
            "price_paise": self.price_paise,
            "validity_in_days": self.validity_in_days,
            "is_active": self.is_active,
            "items": [i.to_dict() for i in self.items],
            "created_at": to_utc_z(self.created_at),
        }


class PackageTemplateItem(db.Model):
    __tablename__ = "package_template_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    package_template_id = db.Column(db.Integer, db.ForeignKey("package_templates.id"), nullable=False, index=True)
    item_type = db.Column(db.String(16), nullable=False)  # service, product
    item_id = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    package_template = db.relationship("PackageTemplate", backref=db.backref("items", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "package_template_id": self.package_template_id,
            "item_type": self.item_type,
            "item_id": self.item_id,
            "quantity": self.quantity,
        }
