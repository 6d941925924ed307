"""
Pytest fixtures for salonpos backend tests.

Provides test database setup, two tenants with catalog data, and a billing
helper that finalizes invoices the same way the correction path rewrites
them: a blank Paid invoice is "corrected" into its billed content, which
applies every ledger effect (stock, gift cards, packages, loyalty, rollups).
"""

from datetime import datetime

import pytest

from salonpos import create_app
from salonpos.extensions import db
from salonpos.models import (
    Appointment,
    Customer,
    GiftCardTemplate,
    Invoice,
    Organization,
    PackageTemplate,
    PackageTemplateItem,
    Product,
    ServiceConsumable,
    ServiceItem,
    Staff,
    User,
)
from salonpos.services import correction_service, settings_service


SALE_AT = datetime(2026, 3, 14, 10, 30)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'CORRECTION_RETRY_ATTEMPTS': 3,
        'CORRECTION_RETRY_BACKOFF': 0,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def org(db_session):
    """Create the primary tenant."""
    org = Organization(name="Glow Studio", code="GLOW", is_active=True)
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture(scope='function')
def org_b(db_session):
    """Create a second tenant."""
    org = Organization(name="Shear Bliss", code="SHEAR", is_active=True)
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture(scope='function')
def stylist(db_session, org):
    staff = Staff(org_id=org.id, name="Asha")
    db_session.add(staff)
    db_session.commit()
    return staff


@pytest.fixture(scope='function')
def stylist_b(db_session, org):
    """Second stylist in the same tenant."""
    staff = Staff(org_id=org.id, name="Ravi")
    db_session.add(staff)
    db_session.commit()
    return staff


@pytest.fixture(scope='function')
def cashier(db_session, org):
    user = User(org_id=org.id, name="Front Desk", email="desk@glow.test")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def customer(db_session, org):
    customer = Customer(org_id=org.id, name="Meera", phone_number="9800000001", gender="female")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def customer_b(db_session, org):
    customer = Customer(org_id=org.id, name="Kabir", phone_number="9800000002", gender="male")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def shampoo(db_session, org):
    """Backbar product consumed by services, tracked in ml."""
    product = Product(
        org_id=org.id,
        sku="SHAMPOO-1L",
        name="Salon Shampoo",
        unit="ml",
        stock_count=0,
        stock_measure=1000.0,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def serum(db_session, org):
    """Retail product sold by the piece; each piece holds 100 ml."""
    product = Product(
        org_id=org.id,
        sku="SERUM-100",
        name="Hair Serum",
        unit="piece",
        price_paise=90000,
        stock_count=10,
        stock_measure=1000.0,
        quantity_per_item=100.0,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def haircut(db_session, org, shampoo):
    """Haircut uses 20 ml of shampoo (30 ml for female customers)."""
    service = ServiceItem(org_id=org.id, name="Haircut", price_paise=50000, membership_rate_paise=40000)
    db_session.add(service)
    db_session.flush()
    db_session.add(ServiceConsumable(
        service_item_id=service.id,
        product_id=shampoo.id,
        quantity_default=20.0,
        quantity_female=30.0,
        unit="ml",
    ))
    db_session.commit()
    return service


@pytest.fixture(scope='function')
def gift_template(db_session, org):
    template = GiftCardTemplate(org_id=org.id, name="Rs 5000 Card", amount_paise=500000, price_paise=500000)
    db_session.add(template)
    db_session.commit()
    return template


@pytest.fixture(scope='function')
def package_template(db_session, org, haircut):
    """Five haircuts, valid for a year."""
    template = PackageTemplate(org_id=org.id, name="Glow 5", price_paise=200000, validity_in_days=365)
    db_session.add(template)
    db_session.flush()
    db_session.add(PackageTemplateItem(
        package_template_id=template.id, item_type="service", item_id=haircut.id, quantity=5,
    ))
    db_session.commit()
    return template


@pytest.fixture(scope='function')
def loyalty_rule(db_session, org):
    """1 point per Rs 100 billed."""
    rule = settings_service.set_loyalty_rule(org.id, 100, 1)
    db_session.commit()
    return rule


class Billing:
    """Builds correction payloads and finalized invoices for one tenant."""

    def __init__(self, session, org):
        self.session = session
        self.org = org
        self._seq = 0

    @staticmethod
    def line(item_type, item_id, price, *, quantity=1, staff=None, name=None):
        return {
            "item_type": item_type,
            "item_id": item_id,
            "name": name or f"{item_type} {item_id}",
            "quantity": quantity,
            "unit_price": price,
            "final_price": price * quantity,
            "staff_id": staff.id if staff is not None else None,
        }

    @staticmethod
    def payload(customer, items, *, gift_card=None, gift_amount=0, package_redemptions=(),
                adjustments=(), discount=0, method="cash", **extra):
        """
        Full replacement body. grand_total = lines - discount; the declared
        payment method covers whatever the gift card does not.
        """
        subtotal = sum(i["final_price"] for i in items)
        grand_total = subtotal - discount
        body = {
            "customer_id": customer.id,
            "items": list(items),
            "service_total": sum(i["final_price"] for i in items if i["item_type"] == "service"),
            "product_total": sum(i["final_price"] for i in items if i["item_type"] == "product"),
            "subtotal": subtotal,
            "grand_total": grand_total,
            "manual_discount": {"type": "fixed" if discount else None, "value": discount, "applied_amount": discount},
            "payment_details": {method: grand_total - gift_amount},
            "package_redemptions": list(package_redemptions),
            "manual_inventory_adjustments": list(adjustments),
        }
        if gift_card is not None:
            body["gift_card_redemption"] = {"card_id": gift_card.id, "amount": gift_amount}
        body.update(extra)
        return body

    def new_invoice(self, *, at=SALE_AT, stylist=None, walk_in=False) -> Invoice:
        """
        Blank Paid invoice with its appointment; no ledger effects yet.
        A walk_in invoice has no appointment and is dated `at` instead.
        """
        self._seq += 1
        invoice = Invoice(
            org_id=self.org.id,
            invoice_number=f"INV-{self._seq:04d}",
            stylist_id=stylist.id if stylist is not None else None,
            payment_status="Paid",
        )
        if walk_in:
            invoice.created_at = at
            self.session.add(invoice)
            self.session.commit()
            return invoice

        appointment = Appointment(
            org_id=self.org.id,
            appointment_at=at,
            stylist_id=stylist.id if stylist is not None else None,
        )
        self.session.add(appointment)
        self.session.flush()
        invoice.appointment_id = appointment.id
        self.session.add(invoice)
        self.session.flush()
        appointment.invoice_id = invoice.id
        self.session.commit()
        return invoice

    def correct(self, invoice_or_id, body, **kwargs) -> dict:
        invoice_id = getattr(invoice_or_id, "id", invoice_or_id)
        return correction_service.correct_invoice(self.org.id, invoice_id, body, **kwargs)

    def finalize(self, body, *, at=SALE_AT, stylist=None, walk_in=False):
        """Bill a new invoice with `body`; returns (invoice, corrected view)."""
        invoice = self.new_invoice(at=at, stylist=stylist, walk_in=walk_in)
        result = self.correct(invoice, body)
        return invoice, result


@pytest.fixture(scope='function')
def billing(db_session, org):
    return Billing(db_session, org)


def tenant_headers(org, user=None) -> dict:
    """Helper to create tenant context headers."""
    headers = {'X-Tenant-ID': str(org.id)}
    if user is not None:
        headers['X-User-ID'] = str(user.id)
    return headers


@pytest.fixture(scope='function')
def headers(org, cashier):
    return tenant_headers(org, cashier)
