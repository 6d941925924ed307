from datetime import date, datetime

from salonpos.models import DailySale
from salonpos.services import sales_rollup_service


DAY = date(2026, 3, 14)


def _row(org, staff):
    return sales_rollup_service.get_daily_sales(org.id, staff.id, DAY)


class TestDailySalesRollup:

    def test_totals_by_line_type(self, db_session, billing, org, customer, stylist, haircut, serum, gift_template, package_template):
        billing.finalize(billing.payload(customer, [
            billing.line("service", haircut.id, 50000, staff=stylist),
            billing.line("product", serum.id, 90000, staff=stylist),
            billing.line("gift_card", gift_template.id, 500000, staff=stylist),
            billing.line("package", package_template.id, 200000, staff=stylist),
            billing.line("fee", None, 5000, staff=stylist, name="Towel fee"),
        ]))

        row = _row(org, stylist)
        assert row.service_sale_paise == 50000
        assert row.product_sale_paise == 90000
        assert row.gift_card_sale_paise == 500000
        assert row.package_sale_paise == 200000
        assert row.total_sale_paise == 840000
        assert row.customer_count == 1

    def test_distinct_customers(self, db_session, billing, org, customer, customer_b, stylist, haircut):
        line = billing.line("service", haircut.id, 50000, staff=stylist)
        billing.finalize(billing.payload(customer, [line]))
        billing.finalize(billing.payload(customer, [line]))
        billing.finalize(billing.payload(customer_b, [line]))

        row = _row(org, stylist)
        assert row.service_sale_paise == 150000
        assert row.customer_count == 2

    def test_correction_moves_sales_between_staff(self, db_session, billing, org, customer, stylist, stylist_b, haircut):
        invoice, _ = billing.finalize(billing.payload(customer, [billing.line("service", haircut.id, 50000, staff=stylist)]))

        billing.correct(invoice, billing.payload(customer, [billing.line("service", haircut.id, 50000, staff=stylist_b)]))

        old = _row(org, stylist)
        assert old.service_sale_paise == 0
        assert old.customer_count == 0
        assert _row(org, stylist_b).service_sale_paise == 50000

    def test_other_days_ignored(self, db_session, billing, org, customer, stylist, haircut):
        line = billing.line("service", haircut.id, 50000, staff=stylist)
        billing.finalize(billing.payload(customer, [line]))
        billing.finalize(billing.payload(customer, [line]), at=datetime(2026, 3, 15, 9, 0))

        assert _row(org, stylist).service_sale_paise == 50000
        assert sales_rollup_service.get_daily_sales(org.id, stylist.id, date(2026, 3, 15)).service_sale_paise == 50000

    def test_walk_in_invoice_booked_on_invoice_day(self, db_session, billing, org, customer, stylist, haircut):
        line = billing.line("service", haircut.id, 50000, staff=stylist)
        invoice, _ = billing.finalize(billing.payload(customer, [line]), walk_in=True)
        billing.finalize(billing.payload(customer, [line]), at=datetime(2026, 3, 15, 9, 0), walk_in=True)

        assert invoice.appointment_id is None
        row = _row(org, stylist)
        assert row.service_sale_paise == 50000
        assert row.customer_count == 1

        billing.correct(invoice, billing.payload(customer, [billing.line("service", haircut.id, 45000, staff=stylist)]))
        assert _row(org, stylist).service_sale_paise == 45000

    def test_recompute_is_idempotent(self, db_session, billing, org, customer, stylist, haircut):
        billing.finalize(billing.payload(customer, [billing.line("service", haircut.id, 50000, staff=stylist)]))

        sales_rollup_service.recompute(org.id, [stylist.id], DAY)
        sales_rollup_service.recompute(org.id, [stylist.id], DAY)
        db_session.commit()

        rows = db_session.query(DailySale).filter_by(org_id=org.id, staff_id=stylist.id, sale_date=DAY).all()
        assert len(rows) == 1
        assert rows[0].service_sale_paise == 50000

    def test_requested_staff_without_sales_zeroed(self, db_session, org, stylist):
        rows = sales_rollup_service.recompute(org.id, [stylist.id], DAY)
        db_session.commit()

        assert len(rows) == 1
        assert rows[0].total_sale_paise == 0

    def test_unpaid_invoices_excluded(self, db_session, billing, org, customer, stylist, haircut):
        invoice, _ = billing.finalize(billing.payload(customer, [billing.line("service", haircut.id, 50000, staff=stylist)]))
        invoice.payment_status = "Refunded"
        db_session.commit()

        sales_rollup_service.recompute(org.id, [stylist.id], DAY)
        db_session.commit()

        assert _row(org, stylist).service_sale_paise == 0

    def test_tenant_scoped(self, db_session, billing, org, org_b, customer, stylist, haircut):
        billing.finalize(billing.payload(customer, [billing.line("service", haircut.id, 50000, staff=stylist)]))

        assert sales_rollup_service.list_daily_sales(org_b.id, DAY) == []
        assert len(sales_rollup_service.list_daily_sales(org.id, DAY)) == 1
