# Overview: Pytest coverage for the individual ledgers outside the correction coordinator.

import pytest

from salonpos.errors import InvariantViolation, NotFoundError, ValidationError
from salonpos.models import InventoryTransaction, LoyaltyTransaction, Product
from salonpos.services import gift_card_service, inventory_service, loyalty_service
from salonpos.services.inventory_service import StockConsumption
from salonpos.services.settings_service import DISABLED_RULE, LoyaltyRule


class TestInventoryLedger:

    def test_reconcile_returns_stock(self, db_session, org, serum):
        deltas = inventory_service.reconcile(
            org.id, 1, {serum.id: StockConsumption(count=3, measure=300.0)}, {}, actor_user_id=5,
        )

        assert deltas[serum.id].count_delta == 3
        assert serum.stock_count == 13
        assert serum.stock_measure == pytest.approx(1300.0)
        txn = db_session.query(InventoryTransaction).one()
        assert txn.type == "INVOICE_CORRECTION"
        assert txn.posted_by_user_id == 5
        assert txn.count_after == 13

    def test_unchanged_products_write_nothing(self, db_session, org, serum):
        same = {serum.id: StockConsumption(count=2, measure=200.0)}
        same_again = {serum.id: StockConsumption(count=2, measure=200.0000001)}

        assert inventory_service.reconcile(org.id, 1, same, same_again) == {}
        assert db_session.query(InventoryTransaction).count() == 0

    def test_shortfall_lists_every_product(self, db_session, org, serum, shampoo):
        with pytest.raises(InvariantViolation) as exc:
            inventory_service.reconcile(org.id, 1, {}, {
                serum.id: StockConsumption(count=11),
                shampoo.id: StockConsumption(measure=1000.5),
            })

        names = [item["name"] for item in exc.value.details["items"]]
        assert sorted(names) == ["Hair Serum", "Salon Shampoo"]
        assert db_session.query(InventoryTransaction).count() == 0

    def test_product_from_another_tenant(self, db_session, org, org_b):
        foreign = Product(org_id=org_b.id, sku="X-1", name="Foreign", stock_count=5)
        db_session.add(foreign)
        db_session.commit()

        with pytest.raises(NotFoundError):
            inventory_service.reconcile(org.id, 1, {}, {foreign.id: StockConsumption(count=1)})

    def test_low_stock_flag(self, db_session, serum):
        serum.low_stock_threshold = 10
        assert serum.is_low_stock
        serum.stock_count = 0
        assert not serum.is_low_stock


class TestGiftCardLedger:

    def test_generated_codes_are_alphanumeric(self, db_session, org):
        code = gift_card_service.generate_unique_code(org.id)
        assert len(code) == 10
        assert set(code) <= set(gift_card_service.CODE_ALPHABET)

    def test_find_card_requires_code(self, db_session, org):
        with pytest.raises(ValidationError):
            gift_card_service.find_card_by_code(org.id, "")
        with pytest.raises(NotFoundError):
            gift_card_service.find_card_by_code(org.id, "MISSING")


class TestLoyaltyLedger:

    @pytest.mark.parametrize("total, expected", [
        (0, 0),
        (9999, 0),
        (10000, 1),
        (145099, 14),
        (-50000, 0),
    ])
    def test_points_for_total(self, total, expected):
        assert loyalty_service.points_for_total(total, LoyaltyRule(100, 1)) == expected

    def test_disabled_rule_awards_nothing(self):
        assert loyalty_service.points_for_total(10_000_000, DISABLED_RULE) == 0
        assert loyalty_service.points_for_total(10_000_000, None) == 0

    def test_zero_delta_writes_nothing(self, db_session, org, customer):
        assert loyalty_service.adjust(org.id, customer.id, 0, None, "manual") is None
        assert db_session.query(LoyaltyTransaction).count() == 0

    def test_adjust_appends_signed_entries(self, db_session, org, customer):
        loyalty_service.adjust(org.id, customer.id, 20, None, "sale")
        txn = loyalty_service.adjust(org.id, customer.id, -5, None, "redemption", description="Redeemed at desk")
        db_session.commit()

        assert txn.direction == "Debit"
        assert txn.points == 5
        assert txn.signed_points == -5
        account = customer.reward_account
        assert account.points_balance == 15
        assert account.lifetime_points_earned == 15
        assert db_session.query(LoyaltyTransaction).count() == 2

    def test_balance_cannot_go_negative(self, db_session, org, customer):
        loyalty_service.adjust(org.id, customer.id, 3, None, "sale")
        with pytest.raises(InvariantViolation):
            loyalty_service.adjust(org.id, customer.id, -4, None, "redemption")
