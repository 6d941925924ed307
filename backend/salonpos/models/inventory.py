from __future__ import annotations

from ..extensions import db
from salonpos.time_utils import to_utc_z

class Product(db.Model):
    """
    Product master data and current stock.

    MULTI-TENANT: Products are scoped to organizations via org_id.

    STOCK DESIGN:
    A product carries two stock figures:
    - stock_count: countable units on the shelf (retail "piece" sales)
    - stock_measure: fractional quantity in `unit` (ml, g) consumed by services
    quantity_per_item links them: selling one piece also removes
    quantity_per_item from stock_measure.

    Neither figure may go negative. Every persisted change appends an
    InventoryTransaction row carrying the signed deltas.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("org_id", "sku", name="uq_products_org_sku"),
        db.Index("ix_products_org_name", "org_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)

    sku = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    unit = db.Column(db.String(16), nullable=False, default="piece")

    # Authoritative storage in paise (frontend may only format for display)
    price_paise = db.Column(db.Integer, nullable=True)

    stock_count = db.Column(db.Integer, nullable=False, default=0)
    stock_measure = db.Column(db.Float, nullable=False, default=0)
    quantity_per_item = db.Column(db.Float, nullable=True)
    low_stock_threshold = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    organization = db.relationship("Organization", backref=db.backref("products", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} org_id={self.org_id}>"

    @property
    def is_low_stock(self) -> bool:
        return 0 < self.stock_count <= self.low_stock_threshold

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "sku": self.sku,
            "name": self.name,
            "unit": self.unit,
            "price_paise": self.price_paise,
            "stock_count": self.stock_count,
            "stock_measure": self.stock_measure,
            "quantity_per_item": self.quantity_per_item,
            "low_stock_threshold": self.low_stock_threshold,
            "is_active": self.is_active,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

class InventoryTransaction(db.Model):
    __tablename__ = "inventory_transactions"

    id = db.Column(db.Integer, primary_key=True)

    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    type = db.Column(db.String(32), nullable=False, index=True)  # SALE, INVOICE_CORRECTION, ADJUST

    count_delta = db.Column(db.Integer, nullable=False, default=0)
    measure_delta = db.Column(db.Float, nullable=False, default=0)

    # Stock after this transaction was applied
    count_after = db.Column(db.Integer, nullable=True)
    measure_after = db.Column(db.Float, nullable=True)

    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=True, index=True)

    note = db.Column(db.String(255), nullable=True)

    occurred_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        index=True,
    )
    posted_by_user_id = db.Column(db.Integer, nullable=True)

    __table_args__ = (
        db.Index("ix_invtx_org_product_occurred", "org_id", "product_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "product_id": self.product_id,
            "type": self.type,
            "count_delta": self.count_delta,
            "measure_delta": self.measure_delta,
            "count_after": self.count_after,
            "measure_after": self.measure_after,
            "invoice_id": self.invoice_id,
            "note": self.note,
            "occurred_at": to_utc_z(self.occurred_at),
            "posted_by_user_id": self.posted_by_user_id,
        }
