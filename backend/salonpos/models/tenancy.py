from __future__ import annotations

from ..extensions import db
from salonpos.time_utils import to_utc_z

class Organization(db.Model):
    """
    Multi-tenant root: Every tenant (salon business) is an Organization.

    WHY: Enables shared-database multi-tenancy with strict isolation.
    Invoices, catalog, customers, staff and every ledger belong to exactly
    one organization. No data may cross organization boundaries.

    DESIGN:
    - Organizations are the tenant boundary
    - All tenant-owned rows carry org_id directly
    - All queries must be scoped by org_id
    """
    __tablename__ = "organizations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(32), nullable=True, unique=True, index=True)  # Short code for lookups

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Organization id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class OrganizationSetting(db.Model):
    """
    Key-value business rules at the organization level.

    Values are JSON-encoded text. The "loyalty" key holds the point-earning
    rule consumed by the loyalty ledger.
    """
    __tablename__ = "organization_settings"
    __table_args__ = (
        db.UniqueConstraint("org_id", "key", name="uq_org_settings_key"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)

    key = db.Column(db.String(128), nullable=False)
    value = db.Column(db.Text, nullable=True)

    updated_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "org_id": self.org_id,
            "key": self.key,
            "value": self.value,
            "updated_by_user_id": self.updated_by_user_id,
            "updated_at": to_utc_z(self.updated_at),
        }
