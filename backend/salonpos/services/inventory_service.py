# Overview: Stock ledger for invoice consumption; derives what an invoice takes from stock and reconciles corrections.

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass

from ..extensions import db
from ..errors import InvariantViolation, NotFoundError
from ..models import (
    Customer,
    InventoryTransaction,
    Invoice,
    Product,
    ServiceConsumable,
    ServiceItem,
)
from ..models.billing import LINE_PRODUCT, LINE_SERVICE
from .concurrency import lock_for_update

"""
Inventory invariants (authoritative)

- stock_count and stock_measure never go negative.
- Stock is only changed by applying a signed delta; every persisted delta
  appends one InventoryTransaction row.
- A correction applies exactly one net delta per product:
  (what the original invoice consumed) - (what the revised invoice consumes).
- All deltas are validated in memory before any row is written.
"""

SOURCE_CATALOG = "catalog"
SOURCE_MANUAL = "manual"

TX_INVOICE_CORRECTION = "INVOICE_CORRECTION"

# Float noise tolerance for fractional stock (ml, g)
MEASURE_EPSILON = 1e-6


@dataclass
class StockConsumption:
    count: int = 0
    measure: float = 0.0

    def add(self, count: int = 0, measure: float = 0.0) -> None:
        self.count += count
        self.measure += measure

    @property
    def is_zero(self) -> bool:
        return self.count == 0 and abs(self.measure) < MEASURE_EPSILON


@dataclass(frozen=True)
class StockDelta:
    product_id: int
    count_delta: int
    measure_delta: float
    count_after: int
    measure_after: float

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "count_delta": self.count_delta,
            "measure_delta": self.measure_delta,
            "count_after": self.count_after,
            "measure_after": self.measure_after,
        }


def _merge(*maps: dict[int, StockConsumption]) -> dict[int, StockConsumption]:
    merged: dict[int, StockConsumption] = defaultdict(StockConsumption)
    for m in maps:
        for product_id, c in m.items():
            merged[product_id].add(c.count, c.measure)
    return dict(merged)


def _catalog_consumption(org_id: int, lines, gender: str | None) -> dict[int, StockConsumption]:
    """
    Stock taken by billed lines.

    lines: iterable of (item_type, item_id, quantity). Product lines take
    whole pieces plus quantity_per_item of measure; service lines take the
    gender-specific consumable quantity of each product they use.
    """
    out: dict[int, StockConsumption] = defaultdict(StockConsumption)

    product_qty: dict[int, int] = defaultdict(int)
    service_qty: dict[int, int] = defaultdict(int)
    for item_type, item_id, quantity in lines:
        if item_id is None:
            continue
        if item_type == LINE_PRODUCT:
            product_qty[item_id] += quantity
        elif item_type == LINE_SERVICE:
            service_qty[item_id] += quantity

    if product_qty:
        products = (
            db.session.query(Product)
            .filter(Product.org_id == org_id, Product.id.in_(product_qty.keys()))
            .all()
        )
        found = {p.id: p for p in products}
        missing = sorted(set(product_qty) - set(found))
        if missing:
            raise NotFoundError("Product not found", {"product_ids": missing})
        for product_id, qty in product_qty.items():
            per_item = found[product_id].quantity_per_item or 0
            out[product_id].add(count=qty, measure=qty * per_item)

    if service_qty:
        consumables = (
            db.session.query(ServiceConsumable)
            .join(ServiceItem, ServiceItem.id == ServiceConsumable.service_item_id)
            .filter(ServiceItem.org_id == org_id, ServiceItem.id.in_(service_qty.keys()))
            .all()
        )
        for consumable in consumables:
            qty = service_qty[consumable.service_item_id]
            out[consumable.product_id].add(measure=consumable.quantity_for(gender) * qty)

    return dict(out)


def _manual_consumption(adjustments) -> dict[int, StockConsumption]:
    out: dict[int, StockConsumption] = defaultdict(StockConsumption)
    for adj in adjustments:
        # quantity_delta is a stock change: -50 means 50 consumed
        out[adj.product_id].add(measure=-adj.quantity_delta)
    return dict(out)


def consumption_for_invoice(invoice: Invoice) -> dict[int, StockConsumption]:
    """
    What the invoice currently holds out of stock.

    Once a correction has recorded InvoiceStockConsumption rows they are
    authoritative, even when there are none. Invoices never corrected fall
    back to their line items and the catalog.
    """
    if invoice.stock_recorded:
        out: dict[int, StockConsumption] = defaultdict(StockConsumption)
        for row in invoice.stock_consumptions:
            out[row.product_id].add(row.count, row.measure)
        return dict(out)

    gender = invoice.customer.gender if invoice.customer else None
    lines = [(li.item_type, li.item_id, li.quantity) for li in invoice.line_items]
    return _catalog_consumption(invoice.org_id, lines, gender)


def payload_consumption_by_source(org_id: int, payload, customer: Customer | None) -> dict[str, dict[int, StockConsumption]]:
    gender = customer.gender if customer else None
    lines = [(li.item_type, li.item_id, li.quantity) for li in payload.items]
    return {
        SOURCE_CATALOG: _catalog_consumption(org_id, lines, gender),
        SOURCE_MANUAL: _manual_consumption(payload.manual_inventory_adjustments),
    }


def consumption_for_payload(org_id: int, payload, customer: Customer | None) -> dict[int, StockConsumption]:
    by_source = payload_consumption_by_source(org_id, payload, customer)
    return _merge(by_source[SOURCE_CATALOG], by_source[SOURCE_MANUAL])


def reconcile(
    org_id: int,
    invoice_id: int,
    original: dict[int, StockConsumption],
    revised: dict[int, StockConsumption],
    *,
    actor_user_id: int | None = None,
) -> dict[int, StockDelta]:
    """
    Apply one net stock delta per product for a corrected invoice.

    delta = original consumption - revised consumption, so giving back
    stock is positive. The whole reconciliation is rejected (nothing
    written) if any product would go negative.

    Does NOT commit.
    """
    product_ids = sorted(set(original) | set(revised))
    if not product_ids:
        return {}

    products = (
        lock_for_update(
            db.session.query(Product).filter(Product.org_id == org_id, Product.id.in_(product_ids))
        )
        .order_by(Product.id)
        .all()
    )
    found = {p.id: p for p in products}
    missing = [pid for pid in product_ids if pid not in found]
    if missing:
        raise NotFoundError("Product not found", {"product_ids": missing})

    empty = StockConsumption()
    planned: list[tuple[Product, StockDelta]] = []
    shortfalls = []
    for product_id in product_ids:
        before = original.get(product_id, empty)
        after = revised.get(product_id, empty)
        count_delta = before.count - after.count
        measure_delta = round(before.measure - after.measure, 6)
        if count_delta == 0 and abs(measure_delta) < MEASURE_EPSILON:
            continue

        product = found[product_id]
        count_after = product.stock_count + count_delta
        measure_after = round(product.stock_measure + measure_delta, 6)
        if count_after < 0 or measure_after < -MEASURE_EPSILON:
            shortfalls.append({
                "product_id": product_id,
                "name": product.name,
                "count_shortfall": max(0, -count_after),
                "measure_shortfall": max(0.0, -measure_after),
            })
            continue
        planned.append((product, StockDelta(
            product_id=product_id,
            count_delta=count_delta,
            measure_delta=measure_delta,
            count_after=count_after,
            measure_after=max(0.0, measure_after),
        )))

    if shortfalls:
        first = shortfalls[0]
        raise InvariantViolation(
            f"Insufficient stock for '{first['name']}'",
            {"items": shortfalls},
        )

    deltas: dict[int, StockDelta] = {}
    for product, delta in planned:
        product.stock_count = delta.count_after
        product.stock_measure = delta.measure_after
        db.session.add(InventoryTransaction(
            org_id=org_id,
            product_id=product.id,
            type=TX_INVOICE_CORRECTION,
            count_delta=delta.count_delta,
            measure_delta=delta.measure_delta,
            count_after=delta.count_after,
            measure_after=delta.measure_after,
            invoice_id=invoice_id,
            note=f"Invoice {invoice_id} corrected",
            posted_by_user_id=actor_user_id,
        ))
        deltas[product.id] = delta

    db.session.flush()
    return deltas


def check_stock_invariants(products) -> None:
    for product in products:
        if product.stock_count < 0 or product.stock_measure < -MEASURE_EPSILON:
            raise InvariantViolation(
                f"Stock for '{product.name}' went negative",
                {"product_id": product.id, "stock_count": product.stock_count, "stock_measure": product.stock_measure},
            )
