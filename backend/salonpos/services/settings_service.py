from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from ..extensions import db
from ..errors import NotFoundError, ValidationError
from ..models import Organization, OrganizationSetting


LOYALTY_KEY = "loyalty"


@dataclass(frozen=True)
class LoyaltyRule:
    """Earn points_awarded for every rupees_for_points rupees billed."""
    rupees_for_points: int
    points_awarded: int

    @property
    def enabled(self) -> bool:
        return self.rupees_for_points > 0 and self.points_awarded > 0

    def to_dict(self) -> dict:
        return {"rupees_for_points": self.rupees_for_points, "points_awarded": self.points_awarded}


DISABLED_RULE = LoyaltyRule(rupees_for_points=0, points_awarded=0)


def _positive_int(v: Any) -> int | None:
    if isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v if v > 0 else None
    if isinstance(v, str) and v.strip().isdigit():
        parsed = int(v.strip())
        return parsed if parsed > 0 else None
    return None


def get_org_setting(org_id: int, key: str) -> Any:
    row = db.session.query(OrganizationSetting).filter_by(org_id=org_id, key=key).first()
    if not row or row.value is None:
        return None
    s = row.value.strip()
    if s == "":
        return None
    try:
        return json.loads(s)
    except json.JSONDecodeError:
        return s


def set_org_setting(org_id: int, key: str, value: Any, *, user_id: int | None = None) -> OrganizationSetting:
    """Upsert a JSON-encoded organization setting. Does NOT commit."""
    org = db.session.query(Organization).filter_by(id=org_id).first()
    if not org:
        raise NotFoundError("Organization not found", {"org_id": org_id})

    row = db.session.query(OrganizationSetting).filter_by(org_id=org_id, key=key).first()
    if row is None:
        row = OrganizationSetting(org_id=org_id, key=key)
        db.session.add(row)
    row.value = json.dumps(value)
    row.updated_by_user_id = user_id
    db.session.flush()
    return row


def get_loyalty_rule(org_id: int) -> LoyaltyRule:
    """
    Loyalty earn rule for the organization.

    A missing or malformed setting yields DISABLED_RULE (zero points),
    never an error: billing must not fail because loyalty is unconfigured.
    """
    value = get_org_setting(org_id, LOYALTY_KEY)
    if not isinstance(value, dict):
        return DISABLED_RULE
    rupees = _positive_int(value.get("rupees_for_points"))
    points = _positive_int(value.get("points_awarded"))
    if rupees is None or points is None:
        return DISABLED_RULE
    return LoyaltyRule(rupees_for_points=rupees, points_awarded=points)


def set_loyalty_rule(org_id: int, rupees_for_points: int, points_awarded: int, *, user_id: int | None = None) -> LoyaltyRule:
    rule = LoyaltyRule(
        rupees_for_points=_positive_int(rupees_for_points) or 0,
        points_awarded=_positive_int(points_awarded) or 0,
    )
    if not rule.enabled:
        raise ValidationError(
            "rupees_for_points and points_awarded must be positive integers",
            {"rupees_for_points": rupees_for_points, "points_awarded": points_awarded},
        )
    set_org_setting(org_id, LOYALTY_KEY, rule.to_dict(), user_id=user_id)
    return rule
