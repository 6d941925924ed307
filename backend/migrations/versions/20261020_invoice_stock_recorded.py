"""Add stock_recorded to invoices

Revision ID: 20261020_stock_recorded
Revises: 20261019_initial
Create Date: 2026-10-20
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261020_stock_recorded"
down_revision = "20261019_initial"
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table("invoices", schema=None) as batch_op:
        batch_op.add_column(sa.Column("stock_recorded", sa.Boolean(), nullable=False, server_default=sa.text("0")))

    # Invoices that already carry consumption rows were written by a correction
    op.execute(
        "UPDATE invoices SET stock_recorded = 1 "
        "WHERE id IN (SELECT DISTINCT invoice_id FROM invoice_stock_consumptions)"
    )


def downgrade():
    with op.batch_alter_table("invoices", schema=None) as batch_op:
        batch_op.drop_column("stock_recorded")
