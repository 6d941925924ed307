from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .errors import ValidationError
from .models.billing import LINE_ITEM_TYPES


# Maximum amount: Rs 9,999,999.99 (999,999,999 paise)
# This prevents database overflow issues and nonsensical prices
MAX_AMOUNT_PAISE = 999_999_999

# Tolerance when comparing money totals
PAISE_EPSILON = 1

DISCOUNT_TYPES = {"percentage", "fixed"}
PAYMENT_METHODS = ("cash", "card", "upi", "other")

__all__ = [
    "ValidationError",
    "CorrectionPayload",
    "LineItemInput",
    "ManualDiscountInput",
    "GiftCardRedemptionInput",
    "PackageRedemptionInput",
    "InventoryAdjustmentInput",
    "parse_correction_payload",
    "check_payment_balance",
]


@dataclass(frozen=True)
class LineItemInput:
    item_type: str
    item_id: int | None
    name: str
    quantity: int
    unit_price: int
    membership_rate: int | None
    membership_discount: int
    final_price: int
    staff_id: int | None


@dataclass(frozen=True)
class ManualDiscountInput:
    type: str | None = None
    value: float = 0
    applied_amount: int = 0


@dataclass(frozen=True)
class GiftCardRedemptionInput:
    card_id: int
    amount: int


@dataclass(frozen=True)
class PackageRedemptionInput:
    customer_package_id: int
    entitlement_id: int
    quantity: int
    redeemed_by: int | None


@dataclass(frozen=True)
class InventoryAdjustmentInput:
    """quantity_delta is the signed stock change; negative means consumed."""
    product_id: int
    quantity_delta: float


@dataclass(frozen=True)
class CorrectionPayload:
    """Full replacement content for an invoice. Amounts are integer paise."""
    customer_id: int
    items: tuple[LineItemInput, ...]
    grand_total: int
    payment_details: dict[str, int]
    appointment_id: int | None = None
    billing_staff_id: int | None = None
    stylist_id: int | None = None
    service_total: int = 0
    product_total: int = 0
    subtotal: int = 0
    membership_discount: int = 0
    manual_discount: ManualDiscountInput = field(default_factory=ManualDiscountInput)
    gift_card_redemption: GiftCardRedemptionInput | None = None
    package_redemptions: tuple[PackageRedemptionInput, ...] = ()
    manual_inventory_adjustments: tuple[InventoryAdjustmentInput, ...] = ()
    notes: str | None = None

    @property
    def gift_card_amount(self) -> int:
        return self.gift_card_redemption.amount if self.gift_card_redemption else 0

    @property
    def line_staff_ids(self) -> set[int]:
        return {li.staff_id for li in self.items if li.staff_id is not None}

    def items_of(self, item_type: str) -> list[LineItemInput]:
        return [li for li in self.items if li.item_type == item_type]


def _require_int(data: dict, key: str, *, where: str = "", minimum: int | None = 0, required: bool = True) -> int | None:
    """
    Strict integer coercion: rejects bools, floats, decimals and
    scientific notation. Returns None for absent optional keys.
    """
    label = f"{where}{key}"
    value = data.get(key)
    if value is None:
        if required:
            raise ValidationError(f"{label} is required", {"field": label})
        return None

    if isinstance(value, bool):
        raise ValidationError(f"{label} must be an integer", {"field": label})
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped or "e" in stripped.lower() or "." in stripped:
            raise ValidationError(f"{label} must be a plain integer", {"field": label})
        try:
            parsed = int(stripped)
        except ValueError:
            raise ValidationError(f"{label} must be an integer", {"field": label})
    elif isinstance(value, float):
        raise ValidationError(f"{label} must be an integer, not a decimal", {"field": label})
    else:
        raise ValidationError(f"{label} must be an integer", {"field": label})

    if minimum is not None and parsed < minimum:
        raise ValidationError(f"{label} must be >= {minimum}", {"field": label})
    if parsed > MAX_AMOUNT_PAISE:
        raise ValidationError(f"{label} cannot exceed {MAX_AMOUNT_PAISE}", {"field": label})
    return parsed


def _require_number(data: dict, key: str, *, where: str = "") -> float:
    label = f"{where}{key}"
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{label} must be a number", {"field": label})
    return float(value)


def _require_dict(value: Any, label: str) -> dict:
    if not isinstance(value, dict):
        raise ValidationError(f"{label} must be an object", {"field": label})
    return value


def _require_list(value: Any, label: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{label} must be a list", {"field": label})
    return value


def _parse_line_item(raw: Any, index: int) -> LineItemInput:
    where = f"items[{index}]."
    raw = _require_dict(raw, f"items[{index}]")

    item_type = raw.get("item_type")
    if item_type not in LINE_ITEM_TYPES:
        raise ValidationError(
            f"{where}item_type must be one of {', '.join(LINE_ITEM_TYPES)}",
            {"field": f"{where}item_type", "value": item_type},
        )

    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f"{where}name cannot be blank", {"field": f"{where}name"})

    return LineItemInput(
        item_type=item_type,
        item_id=_require_int(raw, "item_id", where=where, minimum=1, required=item_type != "fee"),
        name=name.strip(),
        quantity=_require_int(raw, "quantity", where=where, minimum=1),
        unit_price=_require_int(raw, "unit_price", where=where),
        membership_rate=_require_int(raw, "membership_rate", where=where, required=False),
        membership_discount=_require_int(raw, "membership_discount", where=where, required=False) or 0,
        final_price=_require_int(raw, "final_price", where=where),
        staff_id=_require_int(raw, "staff_id", where=where, minimum=1, required=False),
    )


def _parse_manual_discount(raw: Any) -> ManualDiscountInput:
    if raw is None:
        return ManualDiscountInput()
    raw = _require_dict(raw, "manual_discount")
    dtype = raw.get("type")
    if dtype is not None and dtype not in DISCOUNT_TYPES:
        raise ValidationError("manual_discount.type must be 'percentage' or 'fixed'", {"field": "manual_discount.type"})
    value = _require_number(raw, "value", where="manual_discount.") if raw.get("value") is not None else 0.0
    if value < 0:
        raise ValidationError("manual_discount.value must be >= 0", {"field": "manual_discount.value"})
    if dtype == "percentage" and value > 100:
        raise ValidationError("manual_discount.value cannot exceed 100 percent", {"field": "manual_discount.value"})
    applied = _require_int(raw, "applied_amount", where="manual_discount.", required=False) or 0
    return ManualDiscountInput(type=dtype, value=value, applied_amount=applied)


def _parse_gift_card_redemption(raw: Any) -> GiftCardRedemptionInput | None:
    if raw is None:
        return None
    raw = _require_dict(raw, "gift_card_redemption")
    amount = _require_int(raw, "amount", where="gift_card_redemption.", required=False) or 0
    if amount == 0:
        return None
    card_id = _require_int(raw, "card_id", where="gift_card_redemption.", minimum=1)
    return GiftCardRedemptionInput(card_id=card_id, amount=amount)


def _parse_package_redemption(raw: Any, index: int) -> PackageRedemptionInput:
    where = f"package_redemptions[{index}]."
    raw = _require_dict(raw, f"package_redemptions[{index}]")
    return PackageRedemptionInput(
        customer_package_id=_require_int(raw, "customer_package_id", where=where, minimum=1),
        entitlement_id=_require_int(raw, "entitlement_id", where=where, minimum=1),
        quantity=_require_int(raw, "quantity", where=where, minimum=1),
        redeemed_by=_require_int(raw, "redeemed_by", where=where, minimum=1, required=False),
    )


def _parse_inventory_adjustment(raw: Any, index: int) -> InventoryAdjustmentInput:
    where = f"manual_inventory_adjustments[{index}]."
    raw = _require_dict(raw, f"manual_inventory_adjustments[{index}]")
    delta = _require_number(raw, "quantity_delta", where=where)
    if delta == 0:
        raise ValidationError(f"{where}quantity_delta must be non-zero", {"field": f"{where}quantity_delta"})
    return InventoryAdjustmentInput(
        product_id=_require_int(raw, "product_id", where=where, minimum=1),
        quantity_delta=delta,
    )


def check_payment_balance(payload: CorrectionPayload) -> None:
    """Payment methods plus the gift card amount must cover the grand total."""
    paid = sum(payload.payment_details.values()) + payload.gift_card_amount
    if abs(paid - payload.grand_total) > PAISE_EPSILON:
        raise ValidationError(
            "Payment breakdown does not match grand total",
            {"grand_total": payload.grand_total, "paid_total": paid},
        )


def parse_correction_payload(data: Any) -> CorrectionPayload:
    """
    Validates + normalizes a correction request body.

    Raises ValidationError on the first malformed field or when the declared
    payments do not sum to the grand total. No database access happens here.
    """
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")

    items = tuple(_parse_line_item(raw, i) for i, raw in enumerate(_require_list(data.get("items"), "items")))
    if not items:
        raise ValidationError("items cannot be empty", {"field": "items"})

    raw_payments = data.get("payment_details") or {}
    raw_payments = _require_dict(raw_payments, "payment_details")
    unknown = set(raw_payments) - set(PAYMENT_METHODS)
    if unknown:
        raise ValidationError(f"Unknown payment method: {', '.join(sorted(unknown))}", {"field": "payment_details"})
    payment_details = {
        method: _require_int(raw_payments, method, where="payment_details.", required=False) or 0
        for method in PAYMENT_METHODS
    }

    notes = data.get("notes")
    if notes is not None and not isinstance(notes, str):
        raise ValidationError("notes must be a string", {"field": "notes"})

    payload = CorrectionPayload(
        customer_id=_require_int(data, "customer_id", minimum=1),
        items=items,
        grand_total=_require_int(data, "grand_total"),
        payment_details=payment_details,
        appointment_id=_require_int(data, "appointment_id", minimum=1, required=False),
        billing_staff_id=_require_int(data, "billing_staff_id", minimum=1, required=False),
        stylist_id=_require_int(data, "stylist_id", minimum=1, required=False),
        service_total=_require_int(data, "service_total", required=False) or 0,
        product_total=_require_int(data, "product_total", required=False) or 0,
        subtotal=_require_int(data, "subtotal", required=False) or 0,
        membership_discount=_require_int(data, "membership_discount", required=False) or 0,
        manual_discount=_parse_manual_discount(data.get("manual_discount")),
        gift_card_redemption=_parse_gift_card_redemption(data.get("gift_card_redemption")),
        package_redemptions=tuple(
            _parse_package_redemption(raw, i)
            for i, raw in enumerate(_require_list(data.get("package_redemptions"), "package_redemptions"))
        ),
        manual_inventory_adjustments=tuple(
            _parse_inventory_adjustment(raw, i)
            for i, raw in enumerate(
                _require_list(data.get("manual_inventory_adjustments"), "manual_inventory_adjustments")
            )
        ),
        notes=notes.strip() if notes else None,
    )

    check_payment_balance(payload)
    return payload
