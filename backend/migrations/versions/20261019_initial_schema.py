"""Initial billing schema: tenants, catalog, invoices, ledgers, rollups, corrections

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def _now():
    return sa.text("(CURRENT_TIMESTAMP)")


def _created_at():
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=_now(), nullable=False)


def _updated_at():
    return sa.Column("updated_at", sa.DateTime(timezone=True), server_default=_now(), nullable=False)


def _version_id():
    return sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1"))


def _org_id():
    return sa.Column("org_id", sa.Integer(), sa.ForeignKey("organizations.id"), nullable=False)


def upgrade():
    op.create_table(
        "organizations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("code", sa.String(32), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        _created_at(),
        _updated_at(),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_organizations_code", "organizations", ["code"], unique=True)
    op.create_index("ix_organizations_is_active", "organizations", ["is_active"])

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        _org_id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        _created_at(),
        sa.UniqueConstraint("org_id", "email", name="uq_users_org_email"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_users_org_id", "users", ["org_id"])

    op.create_table(
        "organization_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        _org_id(),
        sa.Column("key", sa.String(128), nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        sa.Column("updated_by_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        _updated_at(),
        sa.UniqueConstraint("org_id", "key", name="uq_org_settings_key"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_organization_settings_org_id", "organization_settings", ["org_id"])

    op.create_table(
        "staff",
        sa.Column("id", sa.Integer(), primary_key=True),
        _org_id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        _created_at(),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_staff_org_id", "staff", ["org_id"])
    op.create_index("ix_staff_org_active", "staff", ["org_id", "is_active"])

    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), primary_key=True),
        _org_id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(32), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("gender", sa.String(16), nullable=False, server_default="other"),
        sa.Column("is_membership", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("org_id", "phone_number", name="uq_customers_org_phone"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_customers_org_id", "customers", ["org_id"])
    op.create_index("ix_customers_is_active", "customers", ["is_active"])
    op.create_index("ix_customers_org_active", "customers", ["org_id", "is_active"])

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        _org_id(),
        sa.Column("sku", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("unit", sa.String(16), nullable=False, server_default="piece"),
        sa.Column("price_paise", sa.Integer(), nullable=True),
        sa.Column("stock_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("stock_measure", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("quantity_per_item", sa.Float(), nullable=True),
        sa.Column("low_stock_threshold", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        _version_id(),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("org_id", "sku", name="uq_products_org_sku"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_products_org_id", "products", ["org_id"])
    op.create_index("ix_products_org_name", "products", ["org_id", "name"])

    op.create_table(
        "service_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        _org_id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("price_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("membership_rate_paise", sa.Integer(), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        _created_at(),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_service_items_org_id", "service_items", ["org_id"])
    op.create_index("ix_service_items_org_active", "service_items", ["org_id", "is_active"])

    op.create_table(
        "service_consumables",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("service_item_id", sa.Integer(), sa.ForeignKey("service_items.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("quantity_default", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("quantity_male", sa.Float(), nullable=True),
        sa.Column("quantity_female", sa.Float(), nullable=True),
        sa.Column("unit", sa.String(16), nullable=True),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_service_consumables_service_item_id", "service_consumables", ["service_item_id"])
    op.create_index("ix_service_consumables_product_id", "service_consumables", ["product_id"])

    op.create_table(
        "gift_card_templates",
        sa.Column("id", sa.Integer(), primary_key=True),
        _org_id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("amount_paise", sa.Integer(), nullable=False),
        sa.Column("price_paise", sa.Integer(), nullable=True),
        sa.Column("validity_in_days", sa.Integer(), nullable=False, server_default=sa.text("365")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        _created_at(),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_gift_card_templates_org_id", "gift_card_templates", ["org_id"])

    op.create_table(
        "package_templates",
        sa.Column("id", sa.Integer(), primary_key=True),
        _org_id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("price_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("validity_in_days", sa.Integer(), nullable=False, server_default=sa.text("365")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        _created_at(),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_package_templates_org_id", "package_templates", ["org_id"])

    op.create_table(
        "package_template_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("package_template_id", sa.Integer(), sa.ForeignKey("package_templates.id"), nullable=False),
        sa.Column("item_type", sa.String(16), nullable=False),
        sa.Column("item_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_package_template_items_package_template_id", "package_template_items", ["package_template_id"])

    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer(), primary_key=True),
        _org_id(),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=True),
        sa.Column("stylist_id", sa.Integer(), sa.ForeignKey("staff.id"), nullable=True),
        sa.Column("appointment_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="Booked"),
        sa.Column("amount_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("final_amount_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("membership_discount_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("payment_details", sa.JSON(), nullable=True),
        sa.Column("service_ids", sa.JSON(), nullable=True),
        sa.Column("billing_staff_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("invoice_id", sa.Integer(), nullable=True),
        _created_at(),
        _updated_at(),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_appointments_org_id", "appointments", ["org_id"])
    op.create_index("ix_appointments_customer_id", "appointments", ["customer_id"])
    op.create_index("ix_appointments_stylist_id", "appointments", ["stylist_id"])
    op.create_index("ix_appointments_invoice_id", "appointments", ["invoice_id"])
    op.create_index("ix_appointments_org_at", "appointments", ["org_id", "appointment_at"])

    op.create_table(
        "invoices",
        sa.Column("id", sa.Integer(), primary_key=True),
        _org_id(),
        sa.Column("invoice_number", sa.String(64), nullable=False),
        sa.Column("appointment_id", sa.Integer(), sa.ForeignKey("appointments.id"), nullable=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=True),
        sa.Column("stylist_id", sa.Integer(), sa.ForeignKey("staff.id"), nullable=True),
        sa.Column("billing_staff_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("service_total_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("product_total_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("subtotal_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("membership_discount_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_membership_applied", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("manual_discount_type", sa.String(16), nullable=True),
        sa.Column("manual_discount_value", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("manual_discount_applied_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("gift_card_id", sa.Integer(), nullable=True),
        sa.Column("gift_card_amount_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("cash_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("card_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("upi_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("other_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("grand_total_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("payment_status", sa.String(16), nullable=False, server_default="Paid"),
        sa.Column("notes", sa.Text(), nullable=True),
        _created_at(),
        _updated_at(),
        _version_id(),
        sa.UniqueConstraint("org_id", "invoice_number", name="uq_invoices_org_number"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_invoices_org_id", "invoices", ["org_id"])
    op.create_index("ix_invoices_appointment_id", "invoices", ["appointment_id"])
    op.create_index("ix_invoices_customer_id", "invoices", ["customer_id"])
    op.create_index("ix_invoices_stylist_id", "invoices", ["stylist_id"])
    op.create_index("ix_invoices_gift_card_id", "invoices", ["gift_card_id"])
    op.create_index("ix_invoices_payment_status", "invoices", ["payment_status"])
    op.create_index("ix_invoices_org_status", "invoices", ["org_id", "payment_status"])

    op.create_table(
        "invoice_line_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("invoices.id"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("item_type", sa.String(16), nullable=False),
        sa.Column("item_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("unit_price_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("membership_rate_paise", sa.Integer(), nullable=True),
        sa.Column("membership_discount_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("final_price_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("staff_id", sa.Integer(), sa.ForeignKey("staff.id"), nullable=True),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_invoice_line_items_invoice_id", "invoice_line_items", ["invoice_id"])
    op.create_index("ix_invoice_line_items_staff_id", "invoice_line_items", ["staff_id"])

    op.create_table(
        "invoice_stock_consumptions",
        sa.Column("id", sa.Integer(), primary_key=True),
        _org_id(),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("invoices.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("measure", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("source", sa.String(16), nullable=False, server_default="catalog"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_invoice_stock_consumptions_org_id", "invoice_stock_consumptions", ["org_id"])
    op.create_index("ix_invoice_stock_consumptions_product_id", "invoice_stock_consumptions", ["product_id"])
    op.create_index("ix_invoice_stock_invoice_product", "invoice_stock_consumptions", ["invoice_id", "product_id"])

    op.create_table(
        "inventory_transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        _org_id(),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("count_delta", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("measure_delta", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("count_after", sa.Integer(), nullable=True),
        sa.Column("measure_after", sa.Float(), nullable=True),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("invoices.id"), nullable=True),
        sa.Column("note", sa.String(255), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.Column("posted_by_user_id", sa.Integer(), nullable=True),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_inventory_transactions_org_id", "inventory_transactions", ["org_id"])
    op.create_index("ix_inventory_transactions_product_id", "inventory_transactions", ["product_id"])
    op.create_index("ix_inventory_transactions_type", "inventory_transactions", ["type"])
    op.create_index("ix_inventory_transactions_invoice_id", "inventory_transactions", ["invoice_id"])
    op.create_index("ix_inventory_transactions_occurred_at", "inventory_transactions", ["occurred_at"])
    op.create_index("ix_invtx_org_product_occurred", "inventory_transactions", ["org_id", "product_id", "occurred_at"])

    op.create_table(
        "gift_cards",
        sa.Column("id", sa.Integer(), primary_key=True),
        _org_id(),
        sa.Column("code", sa.String(32), nullable=False),
        sa.Column("template_id", sa.Integer(), sa.ForeignKey("gift_card_templates.id"), nullable=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=True),
        sa.Column("initial_balance_paise", sa.Integer(), nullable=False),
        sa.Column("current_balance_paise", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.Column("issued_by_staff_id", sa.Integer(), sa.ForeignKey("staff.id"), nullable=True),
        sa.Column("purchase_invoice_id", sa.Integer(), sa.ForeignKey("invoices.id"), nullable=True),
        _created_at(),
        _version_id(),
        sa.UniqueConstraint("org_id", "code", name="uq_gift_cards_org_code"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_gift_cards_org_id", "gift_cards", ["org_id"])
    op.create_index("ix_gift_cards_template_id", "gift_cards", ["template_id"])
    op.create_index("ix_gift_cards_customer_id", "gift_cards", ["customer_id"])
    op.create_index("ix_gift_cards_status", "gift_cards", ["status"])
    op.create_index("ix_gift_cards_purchase_invoice_id", "gift_cards", ["purchase_invoice_id"])

    op.create_table(
        "gift_card_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        _org_id(),
        sa.Column("gift_card_id", sa.Integer(), sa.ForeignKey("gift_cards.id"), nullable=False),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("invoices.id"), nullable=False),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=True),
        sa.Column("amount_paise", sa.Integer(), nullable=False),
        sa.Column("balance_before_paise", sa.Integer(), nullable=False),
        sa.Column("balance_after_paise", sa.Integer(), nullable=False),
        _created_at(),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_gift_card_logs_org_id", "gift_card_logs", ["org_id"])
    op.create_index("ix_gift_card_logs_gift_card_id", "gift_card_logs", ["gift_card_id"])
    op.create_index("ix_gift_card_logs_invoice", "gift_card_logs", ["invoice_id"])

    op.create_table(
        "customer_packages",
        sa.Column("id", sa.Integer(), primary_key=True),
        _org_id(),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("package_template_id", sa.Integer(), sa.ForeignKey("package_templates.id"), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("price_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        sa.Column("sold_by_staff_id", sa.Integer(), sa.ForeignKey("staff.id"), nullable=True),
        sa.Column("purchase_invoice_id", sa.Integer(), sa.ForeignKey("invoices.id"), nullable=True),
        sa.Column("purchase_date", sa.Date(), nullable=False),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        _created_at(),
        _version_id(),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_customer_packages_org_id", "customer_packages", ["org_id"])
    op.create_index("ix_customer_packages_status", "customer_packages", ["status"])
    op.create_index("ix_customer_packages_purchase_invoice_id", "customer_packages", ["purchase_invoice_id"])
    op.create_index("ix_customer_packages_org_customer", "customer_packages", ["org_id", "customer_id"])

    op.create_table(
        "customer_package_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_package_id", sa.Integer(), sa.ForeignKey("customer_packages.id"), nullable=False),
        sa.Column("item_type", sa.String(16), nullable=False),
        sa.Column("item_id", sa.Integer(), nullable=False),
        sa.Column("total_quantity", sa.Integer(), nullable=False),
        sa.Column("remaining_quantity", sa.Integer(), nullable=False),
        _version_id(),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_customer_package_items_customer_package_id", "customer_package_items", ["customer_package_id"])

    op.create_table(
        "customer_package_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        _org_id(),
        sa.Column("customer_package_id", sa.Integer(), sa.ForeignKey("customer_packages.id"), nullable=False),
        sa.Column("package_item_id", sa.Integer(), sa.ForeignKey("customer_package_items.id"), nullable=False),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("invoices.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("redeemed_by_staff_id", sa.Integer(), sa.ForeignKey("staff.id"), nullable=True),
        _created_at(),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_customer_package_logs_org_id", "customer_package_logs", ["org_id"])
    op.create_index("ix_customer_package_logs_customer_package_id", "customer_package_logs", ["customer_package_id"])
    op.create_index("ix_customer_package_logs_invoice", "customer_package_logs", ["invoice_id"])

    op.create_table(
        "customer_reward_accounts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=False),
        _org_id(),
        sa.Column("points_balance", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("lifetime_points_earned", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("lifetime_points_redeemed", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _created_at(),
        _updated_at(),
        _version_id(),
        sa.UniqueConstraint("customer_id", name="uq_reward_accounts_customer"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_customer_reward_accounts_customer_id", "customer_reward_accounts", ["customer_id"])
    op.create_index("ix_customer_reward_accounts_org_id", "customer_reward_accounts", ["org_id"])

    op.create_table(
        "loyalty_transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        _org_id(),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("reward_account_id", sa.Integer(), sa.ForeignKey("customer_reward_accounts.id"), nullable=False),
        sa.Column("direction", sa.String(16), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("invoices.id"), nullable=True),
        sa.Column("reason", sa.String(64), nullable=False),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_loyalty_transactions_org_id", "loyalty_transactions", ["org_id"])
    op.create_index("ix_loyalty_transactions_customer_id", "loyalty_transactions", ["customer_id"])
    op.create_index("ix_loyalty_transactions_reward_account_id", "loyalty_transactions", ["reward_account_id"])
    op.create_index("ix_loyalty_transactions_direction", "loyalty_transactions", ["direction"])
    op.create_index("ix_loyalty_transactions_invoice_id", "loyalty_transactions", ["invoice_id"])
    op.create_index("ix_loyalty_transactions_user_id", "loyalty_transactions", ["user_id"])
    op.create_index("ix_loyalty_transactions_occurred_at", "loyalty_transactions", ["occurred_at"])
    op.create_index("ix_loyalty_txns_customer_occurred", "loyalty_transactions", ["customer_id", "occurred_at"])

    op.create_table(
        "daily_sales",
        sa.Column("id", sa.Integer(), primary_key=True),
        _org_id(),
        sa.Column("staff_id", sa.Integer(), sa.ForeignKey("staff.id"), nullable=False),
        sa.Column("sale_date", sa.Date(), nullable=False),
        sa.Column("service_sale_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("product_sale_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("package_sale_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("gift_card_sale_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("customer_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _updated_at(),
        sa.UniqueConstraint("org_id", "staff_id", "sale_date", name="uq_daily_sales_org_staff_date"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_daily_sales_org_id", "daily_sales", ["org_id"])
    op.create_index("ix_daily_sales_staff_id", "daily_sales", ["staff_id"])
    op.create_index("ix_daily_sales_sale_date", "daily_sales", ["sale_date"])

    op.create_table(
        "invoice_corrections",
        sa.Column("id", sa.Integer(), primary_key=True),
        _org_id(),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("invoices.id"), nullable=False),
        sa.Column("before", sa.JSON(), nullable=False),
        sa.Column("after", sa.JSON(), nullable=False),
        sa.Column("note", sa.String(255), nullable=True),
        sa.Column("actor_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        _created_at(),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_invoice_corrections_org_id", "invoice_corrections", ["org_id"])
    op.create_index("ix_invoice_corrections_invoice_created", "invoice_corrections", ["invoice_id", "created_at"])


def downgrade():
    for table in (
        "invoice_corrections",
        "daily_sales",
        "loyalty_transactions",
        "customer_reward_accounts",
        "customer_package_logs",
        "customer_package_items",
        "customer_packages",
        "gift_card_logs",
        "gift_cards",
        "inventory_transactions",
        "invoice_stock_consumptions",
        "invoice_line_items",
        "invoices",
        "appointments",
        "package_template_items",
        "package_templates",
        "gift_card_templates",
        "service_consumables",
        "service_items",
        "products",
        "customers",
        "staff",
        "organization_settings",
        "users",
        "organizations",
    ):
        op.drop_table(table)
