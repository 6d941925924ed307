# Overview: Package ledger; entitlement redemptions, package sales, and their reversal on invoice correction.

from __future__ import annotations

from datetime import date, timedelta

from ..extensions import db
from ..errors import InvariantViolation, NotFoundError, ValidationError
from ..models import (
    CustomerPackage,
    CustomerPackageItem,
    CustomerPackageLog,
    Invoice,
    PackageTemplate,
)
from ..models.billing import LINE_PACKAGE
from ..models.packages import PACKAGE_ACTIVE, PACKAGE_COMPLETED
from salonpos.time_utils import utcnow
from .concurrency import lock_for_update


def _lock_package(org_id: int, package_id: int) -> CustomerPackage | None:
    return lock_for_update(
        db.session.query(CustomerPackage).filter_by(id=package_id, org_id=org_id)
    ).first()


def reverse_invoice_effects(invoice: Invoice) -> None:
    """
    Undo everything this invoice did to customer packages.

    Restores entitlement quantities consumed by the invoice (reopening
    completed packages) and deletes its redemption logs, then deletes
    packages the invoice sold. A sold package that any other invoice has
    redeemed from blocks the correction.

    Does NOT commit.
    """
    logs = (
        db.session.query(CustomerPackageLog)
        .filter_by(org_id=invoice.org_id, invoice_id=invoice.id)
        .order_by(CustomerPackageLog.id)
        .all()
    )
    for log in logs:
        package = _lock_package(invoice.org_id, log.customer_package_id)
        item = lock_for_update(
            db.session.query(CustomerPackageItem).filter_by(id=log.package_item_id)
        ).first()
        if package is not None and item is not None:
            item.remaining_quantity += log.quantity
            if item.remaining_quantity > item.total_quantity:
                raise InvariantViolation(
                    f"Package '{package.name}' entitlement would exceed its total",
                    {"customer_package_id": package.id, "entitlement_id": item.id},
                )
            if package.status == PACKAGE_COMPLETED:
                package.status = PACKAGE_ACTIVE
        db.session.delete(log)
    db.session.flush()

    sold = (
        lock_for_update(
            db.session.query(CustomerPackage).filter_by(org_id=invoice.org_id, purchase_invoice_id=invoice.id)
        )
        .order_by(CustomerPackage.id)
        .all()
    )
    for package in sold:
        foreign = (
            db.session.query(CustomerPackageLog.invoice_id)
            .filter(
                CustomerPackageLog.customer_package_id == package.id,
                CustomerPackageLog.invoice_id != invoice.id,
            )
            .first()
        )
        drawn_down = any(i.remaining_quantity != i.total_quantity for i in package.items)
        if foreign or drawn_down:
            raise InvariantViolation(
                f"Package '{package.name}' already used elsewhere",
                {
                    "customer_package_id": package.id,
                    "invoice_id": foreign[0] if foreign else None,
                },
            )
        db.session.delete(package)

    db.session.flush()


def _redeem(invoice: Invoice, redemption, customer_id: int, sale_day: date) -> CustomerPackage:
    package = _lock_package(invoice.org_id, redemption.customer_package_id)
    if not package:
        raise NotFoundError(
            "Customer package not found",
            {"customer_package_id": redemption.customer_package_id},
        )
    if package.customer_id != customer_id:
        raise InvariantViolation(
            f"Package '{package.name}' does not belong to this customer",
            {"customer_package_id": package.id, "customer_id": customer_id},
        )
    if package.status != PACKAGE_ACTIVE:
        raise InvariantViolation(
            f"Package '{package.name}' is not active (status: {package.status})",
            {"customer_package_id": package.id, "status": package.status},
        )
    if package.expiry_date and package.expiry_date < sale_day:
        raise InvariantViolation(
            f"Package '{package.name}' has expired",
            {"customer_package_id": package.id, "expiry_date": package.expiry_date.isoformat()},
        )

    item = lock_for_update(
        db.session.query(CustomerPackageItem).filter_by(
            id=redemption.entitlement_id, customer_package_id=package.id
        )
    ).first()
    if not item:
        raise NotFoundError(
            f"Entitlement not found in package '{package.name}'",
            {"customer_package_id": package.id, "entitlement_id": redemption.entitlement_id},
        )
    if item.remaining_quantity < redemption.quantity:
        raise InvariantViolation(
            f"Insufficient remaining quantity in package '{package.name}'",
            {
                "customer_package_id": package.id,
                "entitlement_id": item.id,
                "remaining": item.remaining_quantity,
                "requested": redemption.quantity,
            },
        )

    item.remaining_quantity -= redemption.quantity
    if all(i.remaining_quantity == 0 for i in package.items):
        package.status = PACKAGE_COMPLETED

    db.session.add(CustomerPackageLog(
        org_id=invoice.org_id,
        customer_package_id=package.id,
        package_item_id=item.id,
        invoice_id=invoice.id,
        quantity=redemption.quantity,
        redeemed_by_staff_id=redemption.redeemed_by,
    ))
    return package


def _sell(invoice: Invoice, line, customer_id: int, sale_day: date) -> CustomerPackage:
    template = (
        db.session.query(PackageTemplate)
        .filter_by(id=line.item_id, org_id=invoice.org_id, is_active=True)
        .first()
    )
    if not template:
        raise NotFoundError("Package template not found or inactive", {"package_template_id": line.item_id})
    if line.staff_id is None:
        raise ValidationError(
            f"Package '{template.name}' requires a selling staff member",
            {"package_template_id": template.id},
        )

    package = CustomerPackage(
        org_id=invoice.org_id,
        customer_id=customer_id,
        package_template_id=template.id,
        name=template.name,
        price_paise=template.price_paise,
        status=PACKAGE_ACTIVE,
        sold_by_staff_id=line.staff_id,
        purchase_invoice_id=invoice.id,
        purchase_date=sale_day,
        expiry_date=sale_day + timedelta(days=template.validity_in_days),
    )
    for t_item in template.items:
        package.items.append(CustomerPackageItem(
            item_type=t_item.item_type,
            item_id=t_item.item_id,
            total_quantity=t_item.quantity,
            remaining_quantity=t_item.quantity,
        ))
    db.session.add(package)
    return package


def apply_invoice_effects(invoice: Invoice, payload, *, sale_day: date | None = None) -> list[CustomerPackage]:
    """
    Apply the revised invoice's package effects.

    Redemptions are validated against the sale day so an unchanged
    correction of an old invoice is not rejected for later expiry.
    Returns the packages sold by the revised invoice.

    Does NOT commit.
    """
    sale_day = sale_day or utcnow().date()

    for redemption in payload.package_redemptions:
        _redeem(invoice, redemption, payload.customer_id, sale_day)

    sold = [_sell(invoice, line, payload.customer_id, sale_day) for line in payload.items_of(LINE_PACKAGE)]
    db.session.flush()
    return sold


def check_package_invariants(packages) -> None:
    for package in packages:
        for item in package.items:
            if item.remaining_quantity < 0 or item.remaining_quantity > item.total_quantity:
                raise InvariantViolation(
                    f"Package '{package.name}' entitlement out of range",
                    {
                        "customer_package_id": package.id,
                        "entitlement_id": item.id,
                        "remaining": item.remaining_quantity,
                        "total": item.total_quantity,
                    },
                )
