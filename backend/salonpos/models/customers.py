from __future__ import annotations

from ..extensions import db
from salonpos.time_utils import to_utc_z


LOYALTY_CREDIT = "Credit"
LOYALTY_DEBIT = "Debit"


class Customer(db.Model):
    """
    Customer master data for tracking visits and loyalty.

    MULTI-TENANT: Customers are scoped to organizations via org_id.

    gender drives which consumable quantity a service uses from stock
    (see ServiceConsumable).
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("org_id", "phone_number", name="uq_customers_org_phone"),
        db.Index("ix_customers_org_active", "org_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    phone_number = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    gender = db.Column(db.String(16), nullable=False, default="other")  # male, female, other
    is_membership = db.Column(db.Boolean, nullable=False, default=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    organization = db.relationship("Organization", backref=db.backref("customers", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "name": self.name,
            "phone_number": self.phone_number,
            "email": self.email,
            "gender": self.gender,
            "is_membership": self.is_membership,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class CustomerRewardAccount(db.Model):
    """
    Loyalty account for a customer.

    WHY: Tracks points balance and lifetime earning/redemption.
    One account per customer. The balance is a running total of the
    LoyaltyTransaction ledger and may never go negative.
    """
    __tablename__ = "customer_reward_accounts"
    __table_args__ = (
        db.UniqueConstraint("customer_id", name="uq_reward_accounts_customer"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)

    points_balance = db.Column(db.Integer, nullable=False, default=0)
    lifetime_points_earned = db.Column(db.Integer, nullable=False, default=0)
    lifetime_points_redeemed = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    customer = db.relationship("Customer", backref=db.backref("reward_account", uselist=False, lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "org_id": self.org_id,
            "points_balance": self.points_balance,
            "lifetime_points_earned": self.lifetime_points_earned,
            "lifetime_points_redeemed": self.lifetime_points_redeemed,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }


class LoyaltyTransaction(db.Model):
    """
    Append-only ledger of loyalty point events.

    DIRECTIONS:
    - Credit: points earned (sale, upward correction)
    - Debit: points removed (redemption, downward correction)

    points is always positive; direction carries the sign.

    IMMUTABLE: Records are never updated or deleted. A correction appends
    one adjusting entry instead of rewriting the original earn.
    """
    __tablename__ = "loyalty_transactions"
    __table_args__ = (
        db.Index("ix_loyalty_txns_customer_occurred", "customer_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    reward_account_id = db.Column(db.Integer, db.ForeignKey("customer_reward_accounts.id"), nullable=False, index=True)

    direction = db.Column(db.String(16), nullable=False, index=True)  # Credit, Debit
    points = db.Column(db.Integer, nullable=False)

    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=True, index=True)
    reason = db.Column(db.String(64), nullable=False)
    description = db.Column(db.String(255), nullable=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    reward_account = db.relationship("CustomerRewardAccount", backref=db.backref("transactions", lazy=True))

    @property
    def signed_points(self) -> int:
        return self.points if self.direction == LOYALTY_CREDIT else -self.points

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "customer_id": self.customer_id,
            "reward_account_id": self.reward_account_id,
            "direction": self.direction,
            "points": self.points,
            "invoice_id": self.invoice_id,
            "reason": self.reason,
            "description": self.description,
            "user_id": self.user_id,
            "occurred_at": to_utc_z(self.occurred_at),
        }
