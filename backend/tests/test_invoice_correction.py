# Overview: Pytest coverage for end-to-end invoice corrections across every ledger.

"""
Invoice Correction Tests

Each test bills an invoice through the correction path (blank invoice ->
billed content), then corrects it and checks every ledger it touches:
- Inventory: one net delta per product, never negative
- Gift cards: reversal + reapply, code reuse, already-used detection
- Packages: sold packages redeemed elsewhere block the correction
- Loyalty: only the points difference moves
- Atomicity: a rejected correction leaves every row as it was
"""

from datetime import timedelta

import pytest
from sqlalchemy.orm.exc import StaleDataError

from salonpos.errors import ConflictError, InvariantViolation, NotFoundError, ValidationError
from salonpos.models import (
    CustomerPackage,
    GiftCard,
    GiftCardLog,
    InventoryTransaction,
    Invoice,
    InvoiceCorrection,
    ServiceConsumable,
    ServiceItem,
)
from salonpos.services import (
    audit_service,
    correction_service,
    gift_card_service,
    loyalty_service,
)
from salonpos.time_utils import utcnow


@pytest.fixture
def gift_card(db_session, org):
    """Active Rs 300 card, unrelated to any invoice."""
    today = utcnow().date()
    card = GiftCard(
        org_id=org.id,
        code="GIFT300",
        initial_balance_paise=30000,
        current_balance_paise=30000,
        status="active",
        issue_date=today,
        expiry_date=today + timedelta(days=365),
    )
    db_session.add(card)
    db_session.commit()
    return card


class TestInventoryReconciliation:

    def test_quantity_increase_applies_only_the_difference(self, db_session, billing, customer, stylist, serum):
        """Product line 2 -> 5 with 10 on the shelf leaves 7, not 10 - 5 - 2."""
        serum.stock_count = 12
        serum.stock_measure = 1200.0
        db_session.commit()

        invoice, _ = billing.finalize(billing.payload(
            customer, [billing.line("product", serum.id, 90000, quantity=2, staff=stylist)],
        ))
        assert serum.stock_count == 10

        result = billing.correct(invoice, billing.payload(
            customer, [billing.line("product", serum.id, 90000, quantity=5, staff=stylist)],
        ))

        assert serum.stock_count == 7
        assert serum.stock_measure == pytest.approx(700.0)
        assert result["inventory_deltas"] == [{
            "product_id": serum.id,
            "count_delta": -3,
            "measure_delta": -300.0,
            "count_after": 7,
            "measure_after": 700.0,
        }]

        txns = db_session.query(InventoryTransaction).filter_by(invoice_id=invoice.id).order_by(InventoryTransaction.id).all()
        assert [t.count_delta for t in txns] == [-2, -3]

    def test_service_consumables_follow_customer_gender(self, db_session, billing, customer, customer_b, stylist, haircut, shampoo):
        """Female customers use 30 ml, male customers 20 ml; switching customer nets 10 ml back."""
        invoice, _ = billing.finalize(billing.payload(
            customer, [billing.line("service", haircut.id, 50000, staff=stylist)],
        ))
        assert shampoo.stock_measure == pytest.approx(970.0)

        result = billing.correct(invoice, billing.payload(
            customer_b, [billing.line("service", haircut.id, 50000, staff=stylist)],
        ))

        assert shampoo.stock_measure == pytest.approx(980.0)
        assert result["inventory_deltas"][0]["measure_delta"] == pytest.approx(10.0)

    def test_manual_adjustment_is_reconciled(self, db_session, billing, customer, stylist, haircut, shampoo):
        """Operator adjustments count as consumption and are undone on the next correction."""
        items = [billing.line("service", haircut.id, 50000, staff=stylist)]
        invoice, _ = billing.finalize(billing.payload(
            customer, items, adjustments=[{"product_id": shampoo.id, "quantity_delta": -50}],
        ))
        assert shampoo.stock_measure == pytest.approx(920.0)

        billing.correct(invoice, billing.payload(customer, items))

        assert shampoo.stock_measure == pytest.approx(970.0)

    def test_consumable_added_after_billing_is_not_credited_back(self, db_session, billing, org, customer, stylist, shampoo):
        """A service billed with no consumables took nothing, whatever the catalog says later."""
        beard_trim = ServiceItem(org_id=org.id, name="Beard trim", price_paise=20000)
        db_session.add(beard_trim)
        db_session.commit()

        invoice, _ = billing.finalize(billing.payload(
            customer, [billing.line("service", beard_trim.id, 20000, staff=stylist)],
        ))
        assert invoice.stock_recorded
        assert invoice.stock_consumptions == []

        db_session.add(ServiceConsumable(service_item_id=beard_trim.id, product_id=shampoo.id, quantity_default=50.0, unit="ml"))
        db_session.commit()

        result = billing.correct(invoice, billing.payload(
            customer, [billing.line("fee", None, 20000, staff=stylist, name="Towel fee")],
        ))

        assert shampoo.stock_measure == pytest.approx(1000.0)
        assert result["inventory_deltas"] == []

    def test_insufficient_stock_rejects_everything(self, db_session, billing, customer, stylist, serum, gift_card):
        """Stock shortfall found after the gift card step rolls the card back too."""
        invoice, _ = billing.finalize(billing.payload(
            customer,
            [billing.line("product", serum.id, 90000, staff=stylist)],
            gift_card=gift_card, gift_amount=20000,
        ))
        assert gift_card.current_balance_paise == 10000
        events_before = db_session.query(InvoiceCorrection).count()
        txns_before = db_session.query(InventoryTransaction).count()

        with pytest.raises(InvariantViolation) as exc:
            billing.correct(invoice, billing.payload(
                customer,
                [billing.line("product", serum.id, 90000, quantity=50, staff=stylist)],
                gift_card=gift_card, gift_amount=25000,
            ))

        assert exc.value.message == "Insufficient stock for 'Hair Serum'"
        assert serum.stock_count == 9
        assert gift_card.current_balance_paise == 10000
        assert db_session.query(GiftCardLog).filter_by(invoice_id=invoice.id).one().amount_paise == 20000
        assert invoice.grand_total_paise == 90000
        assert [li.quantity for li in invoice.line_items] == [1]
        assert db_session.query(InvoiceCorrection).count() == events_before
        assert db_session.query(InventoryTransaction).count() == txns_before


class TestGiftCardCorrections:

    def test_redemption_amount_change(self, db_session, billing, customer, stylist, haircut, gift_card):
        """Rs 300 card, Rs 200 redeemed, corrected to Rs 250 -> Rs 50 left."""
        items = [billing.line("service", haircut.id, 50000, staff=stylist)]
        invoice, _ = billing.finalize(billing.payload(customer, items, gift_card=gift_card, gift_amount=20000))
        assert gift_card.current_balance_paise == 10000

        billing.correct(invoice, billing.payload(customer, items, gift_card=gift_card, gift_amount=25000))

        assert gift_card.current_balance_paise == 5000
        assert gift_card.status == "active"
        logs = db_session.query(GiftCardLog).filter_by(invoice_id=invoice.id).all()
        assert [(log.amount_paise, log.balance_before_paise, log.balance_after_paise) for log in logs] == [(25000, 30000, 5000)]
        assert invoice.gift_card_amount_paise == 25000

    def test_redemption_above_restored_balance_rejected(self, db_session, billing, customer, stylist, haircut, gift_card):
        """Rs 200 redeemed leaves Rs 100; asking for Rs 400 exceeds the Rs 300 restored."""
        items = [billing.line("service", haircut.id, 50000, staff=stylist)]
        invoice, _ = billing.finalize(billing.payload(customer, items, gift_card=gift_card, gift_amount=20000))

        with pytest.raises(InvariantViolation) as exc:
            billing.correct(invoice, billing.payload(customer, items, gift_card=gift_card, gift_amount=40000))

        assert exc.value.message == "Insufficient balance on gift card #GIFT300"
        assert gift_card.current_balance_paise == 10000
        assert gift_card.status == "active"
        assert db_session.query(GiftCardLog).filter_by(invoice_id=invoice.id).one().amount_paise == 20000
        assert invoice.gift_card_amount_paise == 20000

    def test_redeeming_full_balance_marks_card_redeemed(self, db_session, billing, customer, stylist, haircut, gift_card):
        items = [billing.line("service", haircut.id, 50000, staff=stylist)]
        invoice, _ = billing.finalize(billing.payload(customer, items, gift_card=gift_card, gift_amount=10000))

        billing.correct(invoice, billing.payload(customer, items, gift_card=gift_card, gift_amount=30000))
        assert gift_card.status == "redeemed"

        billing.correct(invoice, billing.payload(customer, items))
        assert gift_card.current_balance_paise == 30000
        assert gift_card.status == "active"
        assert invoice.gift_card_id is None

    def test_removed_issue_line_deletes_card(self, db_session, billing, org, customer, stylist, gift_template):
        """An unredeemed card whose sale is corrected away no longer exists."""
        invoice, result = billing.finalize(billing.payload(
            customer, [billing.line("gift_card", gift_template.id, 500000, staff=stylist)],
        ))
        code = result["issued_gift_cards"][0]["code"]

        billing.correct(invoice, billing.payload(customer, [billing.line("fee", None, 10000, name="Styling fee")]))

        assert db_session.query(GiftCard).filter_by(code=code).first() is None
        with pytest.raises(NotFoundError):
            gift_card_service.validate_card_for_redemption(org.id, code)

    def test_kept_issue_line_reissues_same_code(self, db_session, billing, customer, stylist, gift_template):
        """Corrected invoice keeping one card line of the template hands out the first code again."""
        line = billing.line("gift_card", gift_template.id, 500000, staff=stylist)
        invoice, result = billing.finalize(billing.payload(customer, [line, dict(line)]))
        first, second = result["issued_gift_cards"]

        result = billing.correct(invoice, billing.payload(customer, [line]))

        reissued = result["issued_gift_cards"]
        assert [c["code"] for c in reissued] == [first["code"]]
        assert reissued[0]["issue_date"] == first["issue_date"]
        assert reissued[0]["expiry_date"] == first["expiry_date"]
        assert reissued[0]["issued_by_staff_name"] == "Asha"
        assert db_session.query(GiftCard).filter_by(code=second["code"]).first() is None

    def test_used_issued_card_blocks_correction(self, db_session, billing, customer, stylist, haircut, gift_template):
        invoice, result = billing.finalize(billing.payload(
            customer, [billing.line("gift_card", gift_template.id, 500000, staff=stylist)],
        ))
        card = db_session.get(GiftCard, result["issued_gift_cards"][0]["id"])
        billing.finalize(billing.payload(
            customer, [billing.line("service", haircut.id, 50000, staff=stylist)],
            gift_card=card, gift_amount=50000,
        ))

        with pytest.raises(InvariantViolation) as exc:
            billing.correct(invoice, billing.payload(customer, [billing.line("fee", None, 500000, name="Fee")]))

        assert exc.value.message == f"Gift card #{card.code} already used"
        assert card.current_balance_paise == 450000

    def test_card_expired_since_sale_stays_redeemable_on_its_invoice(self, db_session, billing, customer, stylist, haircut, gift_card):
        items = [billing.line("service", haircut.id, 50000, staff=stylist)]
        invoice, _ = billing.finalize(billing.payload(customer, items, gift_card=gift_card, gift_amount=20000))
        gift_card.expiry_date = utcnow().date() - timedelta(days=1)
        db_session.commit()

        billing.correct(invoice, billing.payload(customer, items, gift_card=gift_card, gift_amount=15000))

        assert gift_card.current_balance_paise == 15000

    def test_expired_card_cannot_be_newly_applied(self, db_session, billing, customer, stylist, haircut, gift_card):
        gift_card.expiry_date = utcnow().date() - timedelta(days=1)
        db_session.commit()

        with pytest.raises(InvariantViolation):
            billing.finalize(billing.payload(
                customer, [billing.line("service", haircut.id, 50000, staff=stylist)],
                gift_card=gift_card, gift_amount=20000,
            ))
        assert gift_card.current_balance_paise == 30000

    def test_card_from_another_tenant_not_found(self, db_session, billing, org_b, customer, stylist, haircut):
        today = utcnow().date()
        foreign = GiftCard(
            org_id=org_b.id, code="FOREIGN1", initial_balance_paise=10000, current_balance_paise=10000,
            status="active", issue_date=today, expiry_date=today + timedelta(days=30),
        )
        db_session.add(foreign)
        db_session.commit()

        with pytest.raises(NotFoundError):
            billing.finalize(billing.payload(
                customer, [billing.line("service", haircut.id, 50000, staff=stylist)],
                gift_card=foreign, gift_amount=5000,
            ))


class TestPackageCorrections:

    def _sell(self, billing, customer, stylist, package_template):
        invoice, result = billing.finalize(billing.payload(
            customer, [billing.line("package", package_template.id, 200000, staff=stylist)],
        ))
        return invoice, result["sold_packages"][0]

    def _redemption(self, package, stylist, quantity=1):
        return {
            "customer_package_id": package["id"],
            "entitlement_id": package["items"][0]["id"],
            "quantity": quantity,
            "redeemed_by": stylist.id,
        }

    def test_package_sale_snapshots_template(self, db_session, billing, customer, stylist, haircut, package_template):
        _, sold = self._sell(billing, customer, stylist, package_template)

        assert sold["name"] == "Glow 5"
        assert sold["status"] == "active"
        assert sold["purchase_date"] == "2026-03-14"
        assert sold["expiry_date"] == "2027-03-14"
        assert [(i["item_id"], i["total_quantity"], i["remaining_quantity"]) for i in sold["items"]] == [(haircut.id, 5, 5)]

    def test_redemption_quantity_change(self, db_session, billing, customer, stylist, haircut, package_template):
        _, sold = self._sell(billing, customer, stylist, package_template)
        items = [billing.line("service", haircut.id, 0, staff=stylist)]
        visit, _ = billing.finalize(billing.payload(
            customer, items, package_redemptions=[self._redemption(sold, stylist, 2)],
        ))
        package = db_session.get(CustomerPackage, sold["id"])
        assert package.items[0].remaining_quantity == 3

        billing.correct(visit, billing.payload(customer, items, package_redemptions=[self._redemption(sold, stylist, 5)]))
        assert package.items[0].remaining_quantity == 0
        assert package.status == "completed"

        billing.correct(visit, billing.payload(customer, items))
        assert package.items[0].remaining_quantity == 5
        assert package.status == "active"

    def test_redemption_above_remaining_quantity_rejected(self, db_session, billing, customer, stylist, haircut, package_template):
        _, sold = self._sell(billing, customer, stylist, package_template)
        items = [billing.line("service", haircut.id, 0, staff=stylist)]
        visit, _ = billing.finalize(billing.payload(
            customer, items, package_redemptions=[self._redemption(sold, stylist, 2)],
        ))

        with pytest.raises(InvariantViolation) as exc:
            billing.correct(visit, billing.payload(customer, items, package_redemptions=[self._redemption(sold, stylist, 6)]))

        assert exc.value.message == "Insufficient remaining quantity in package 'Glow 5'"
        package = db_session.get(CustomerPackage, sold["id"])
        assert package.items[0].remaining_quantity == 3
        assert package.status == "active"

    def test_sold_package_redeemed_elsewhere_blocks_correction(
        self, db_session, billing, customer, stylist, haircut, shampoo, package_template
    ):
        """Correcting the sale of a package used on a later invoice fails and changes nothing."""
        sale, sold = self._sell(billing, customer, stylist, package_template)
        billing.finalize(billing.payload(
            customer, [billing.line("service", haircut.id, 0, staff=stylist)],
            package_redemptions=[self._redemption(sold, stylist)],
        ))
        measure_before = shampoo.stock_measure
        events_before = len(audit_service.list_correction_events(sale.org_id, sale.id))

        with pytest.raises(InvariantViolation) as exc:
            billing.correct(sale, billing.payload(customer, [billing.line("service", haircut.id, 50000, staff=stylist)]))

        assert exc.value.message == "Package 'Glow 5' already used elsewhere"
        package = db_session.get(CustomerPackage, sold["id"])
        assert package is not None
        assert package.items[0].remaining_quantity == 4
        assert shampoo.stock_measure == pytest.approx(measure_before)
        assert sale.grand_total_paise == 200000
        assert [li.item_type for li in sale.line_items] == ["package"]
        assert len(audit_service.list_correction_events(sale.org_id, sale.id)) == events_before

    def test_package_of_another_customer_rejected(self, db_session, billing, customer, customer_b, stylist, haircut, package_template):
        _, sold = self._sell(billing, customer, stylist, package_template)

        with pytest.raises(InvariantViolation):
            billing.finalize(billing.payload(
                customer_b, [billing.line("service", haircut.id, 0, staff=stylist)],
                package_redemptions=[self._redemption(sold, stylist)],
            ))

    def test_package_line_requires_staff(self, db_session, billing, customer, package_template):
        with pytest.raises(ValidationError):
            billing.finalize(billing.payload(customer, [billing.line("package", package_template.id, 200000)]))


class TestLoyaltyCorrections:

    def _items(self, billing, stylist, haircut, serum):
        return [
            billing.line("service", haircut.id, 50000, staff=stylist),
            billing.line("product", serum.id, 90000, staff=stylist),
        ]

    def test_discount_only_change(self, db_session, billing, customer, stylist, haircut, serum, shampoo, loyalty_rule):
        """Only discount, grand total and loyalty move when the discount changes."""
        items = self._items(billing, stylist, haircut, serum)
        invoice, result = billing.finalize(billing.payload(customer, items))
        assert result["loyalty_points_delta"] == 14
        stock = (serum.stock_count, serum.stock_measure, shampoo.stock_measure)

        result = billing.correct(invoice, billing.payload(customer, items, discount=20000))

        assert result["loyalty_points_delta"] == -2
        assert result["inventory_deltas"] == []
        assert result["invoice"]["grand_total"] == 120000
        assert result["invoice"]["manual_discount"] == {"type": "fixed", "value": 20000.0, "applied_amount": 20000}
        assert result["invoice"]["subtotal"] == 140000
        assert (serum.stock_count, serum.stock_measure, shampoo.stock_measure) == stock
        assert loyalty_service.get_balance(customer.id) == 12

    def test_identical_payload_is_a_no_op(
        self, db_session, billing, customer, stylist, haircut, serum, gift_template, gift_card, loyalty_rule
    ):
        items = self._items(billing, stylist, haircut, serum)
        items.append(billing.line("gift_card", gift_template.id, 500000, staff=stylist))
        body = billing.payload(customer, items, gift_card=gift_card, gift_amount=20000)
        invoice, first = billing.finalize(body)

        result = billing.correct(invoice, body)

        assert result["inventory_deltas"] == []
        assert result["loyalty_points_delta"] == 0
        assert gift_card.current_balance_paise == 10000
        assert [c["code"] for c in result["issued_gift_cards"]] == [c["code"] for c in first["issued_gift_cards"]]
        assert loyalty_service.get_balance(customer.id) == 64

    def test_customer_change_moves_points(self, db_session, billing, customer, customer_b, stylist, haircut, serum, loyalty_rule):
        items = self._items(billing, stylist, haircut, serum)
        invoice, _ = billing.finalize(billing.payload(customer, items))

        result = billing.correct(invoice, billing.payload(customer_b, items))

        assert result["loyalty_points_delta"] == 0
        assert loyalty_service.get_balance(customer.id) == 0
        assert loyalty_service.get_balance(customer_b.id) == 14
        assert invoice.customer_id == customer_b.id
        assert invoice.appointment.customer_id == customer_b.id

    def test_spent_points_block_downward_correction(self, db_session, billing, org, customer, stylist, haircut, serum, loyalty_rule):
        items = self._items(billing, stylist, haircut, serum)
        invoice, _ = billing.finalize(billing.payload(customer, items))
        loyalty_service.adjust(org.id, customer.id, -10, None, "redemption")
        db_session.commit()

        with pytest.raises(InvariantViolation) as exc:
            billing.correct(invoice, billing.payload(customer, items, discount=90000))

        assert exc.value.message == "Loyalty points balance cannot go negative"
        assert loyalty_service.get_balance(customer.id) == 4
        assert invoice.grand_total_paise == 140000

    def test_custom_rule_provider(self, db_session, billing, customer, stylist, haircut, serum):
        """An injected provider replaces the organization setting."""
        from salonpos.services.settings_service import LoyaltyRule

        items = self._items(billing, stylist, haircut, serum)
        invoice = billing.new_invoice()
        result = billing.correct(
            invoice, billing.payload(customer, items),
            loyalty_rule_provider=lambda org_id: LoyaltyRule(rupees_for_points=10, points_awarded=2),
        )

        assert result["loyalty_points_delta"] == 280


class TestCoordinator:

    def test_invoice_and_appointment_rewritten(self, db_session, billing, customer, stylist, stylist_b, cashier, haircut):
        invoice, _ = billing.finalize(billing.payload(customer, [billing.line("service", haircut.id, 50000, staff=stylist)]))

        body = billing.payload(
            customer,
            [billing.line("service", haircut.id, 45000, staff=stylist_b, name="Haircut")],
            method="upi",
            billing_staff_id=cashier.id,
            stylist_id=stylist_b.id,
            notes="Price match",
        )
        result = billing.correct(invoice, body, actor_user_id=cashier.id)

        view = result["invoice"]
        assert view["payment_details"] == {"cash": 0, "card": 0, "upi": 45000, "other": 0}
        assert view["billing_staff_name"] == "Front Desk"
        assert view["stylist_name"] == "Ravi"
        assert view["customer_name"] == "Meera"
        assert view["items"][0]["staff_name"] == "Ravi"
        assert view["sale_date"] == "2026-03-14"
        assert view["payment_status"] == "Paid"

        appointment = invoice.appointment
        assert appointment.status == "Completed"
        assert appointment.final_amount_paise == 45000
        assert appointment.payment_details == {"cash": 0, "card": 0, "upi": 45000, "other": 0, "gift_card": 0}
        assert appointment.service_ids == [haircut.id]

        event = db_session.get(InvoiceCorrection, result["correction_id"])
        assert event.before["grand_total"] == 50000
        assert event.after["grand_total"] == 45000
        assert event.actor_user_id == cashier.id
        assert event.note == "Price match"

    def test_payment_mismatch_rejected_before_database_work(self, db_session, billing, customer, stylist, haircut):
        invoice, _ = billing.finalize(billing.payload(customer, [billing.line("service", haircut.id, 50000, staff=stylist)]))
        body = billing.payload(customer, [billing.line("service", haircut.id, 60000, staff=stylist)])
        body["payment_details"] = {"cash": 50000}

        with pytest.raises(ValidationError):
            billing.correct(invoice, body)
        assert invoice.grand_total_paise == 50000

    def test_unknown_invoice(self, db_session, billing, customer, haircut):
        with pytest.raises(NotFoundError):
            billing.correct(99999, billing.payload(customer, [billing.line("service", haircut.id, 50000)]))

    def test_invoice_of_another_tenant(self, db_session, billing, org_b, customer, haircut):
        foreign = Invoice(org_id=org_b.id, invoice_number="B-0001", payment_status="Paid")
        db_session.add(foreign)
        db_session.commit()

        with pytest.raises(NotFoundError):
            billing.correct(foreign, billing.payload(customer, [billing.line("service", haircut.id, 50000)]))

    def test_staff_from_another_tenant(self, db_session, billing, org_b, customer, haircut):
        from salonpos.models import Staff

        outsider = Staff(org_id=org_b.id, name="Outsider")
        db_session.add(outsider)
        db_session.commit()

        with pytest.raises(NotFoundError):
            billing.finalize(billing.payload(customer, [billing.line("service", haircut.id, 50000, staff=outsider)]))

    def test_appointment_mismatch(self, db_session, billing, customer, stylist, haircut):
        invoice = billing.new_invoice()
        body = billing.payload(
            customer, [billing.line("service", haircut.id, 50000, staff=stylist)],
            appointment_id=invoice.appointment_id + 100,
        )

        with pytest.raises(ValidationError):
            billing.correct(invoice, body)

    def test_conflict_retried_then_succeeds(self, db_session, billing, customer, stylist, haircut, monkeypatch):
        invoice = billing.new_invoice()
        real = correction_service._correct
        calls = []

        def flaky(*args, **kwargs):
            calls.append(1)
            if len(calls) == 1:
                raise StaleDataError("UPDATE statement on table 'invoices' expected to update 1 row(s); 0 were matched.")
            return real(*args, **kwargs)

        monkeypatch.setattr(correction_service, "_correct", flaky)
        result = billing.correct(invoice, billing.payload(customer, [billing.line("service", haircut.id, 50000, staff=stylist)]))

        assert len(calls) == 2
        assert result["invoice"]["grand_total"] == 50000

    def test_conflict_exhausts_retries(self, db_session, billing, customer, stylist, haircut, monkeypatch):
        invoice = billing.new_invoice()
        calls = []

        def always_stale(*args, **kwargs):
            calls.append(1)
            raise StaleDataError("stale")

        monkeypatch.setattr(correction_service, "_correct", always_stale)
        with pytest.raises(ConflictError) as exc:
            billing.correct(invoice, billing.payload(customer, [billing.line("service", haircut.id, 50000, staff=stylist)]))

        assert len(calls) == 3
        assert exc.value.retryable is True
        assert exc.value.to_dict()["retryable"] is True
