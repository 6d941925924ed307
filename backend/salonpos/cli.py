# Overview: Flask CLI command groups for bootstrap, settings, and rollup maintenance.

# backend/salonpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db [--org "Salon Name"] [--org-code SALON]
#   Create all tables and a default organization (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Organization management (MULTI-TENANT):
# - python -m flask orgs list
# - python -m flask orgs create --name "Glow Studio" --code "GLOW"
#
# Loyalty settings:
# - python -m flask settings set-loyalty --org-id 1 --rupees-for-points 100 --points-awarded 1
#   Earn 1 point per Rs 100 billed.
# - python -m flask settings show-loyalty --org-id 1
#
# Daily sales rollups:
# - python -m flask rollups recompute --org-id 1 --date 2026-03-14 [--staff-id 4 --staff-id 7]
#   Rebuild per-staff daily sales from that day's paid invoices.

import click
from flask.cli import with_appcontext

from .errors import BillingError
from .extensions import db
from .models import Organization, Staff, User
from .services import sales_rollup_service, settings_service
from .time_utils import parse_iso_date


def _require_org(org_id: int) -> Organization:
    org = db.session.query(Organization).filter_by(id=org_id).first()
    if not org:
        raise click.ClickException(f"Organization {org_id} not found")
    return org


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@click.option('--org', 'org_name', default='Default Salon', help='Organization name')
@click.option('--org-code', default='DEFAULT', help='Organization code')
@with_appcontext
def init_db(org_name, org_code):
    """
    Create all tables and ensure a default organization exists.

    Safe to run repeatedly.
    """
    click.echo("START Initializing database...")
    db.create_all()

    org = db.session.query(Organization).first()
    if not org:
        org = Organization(name=org_name, code=org_code, is_active=True)
        db.session.add(org)
        db.session.commit()
        click.echo(f"PASS Created default organization: {org.name} (ID: {org.id}, Code: {org.code})")
    else:
        click.echo(f"PASS Using existing organization: {org.name} (ID: {org.id})")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init-db' to initialize.")


@click.group('orgs')
def orgs_group():
    """Organization (tenant) management commands."""


@orgs_group.command('list')
@with_appcontext
def list_orgs():
    """List all organizations."""
    orgs = db.session.query(Organization).all()

    if not orgs:
        click.echo("No organizations found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<30} {'Code':<15} {'Active':<8} {'Staff':<8} {'Users'}")
    click.echo("="*80)

    for org in orgs:
        staff_count = db.session.query(Staff).filter_by(org_id=org.id).count()
        user_count = db.session.query(User).filter_by(org_id=org.id).count()
        active_str = "Yes" if org.is_active else "No"

        click.echo(f"{org.id:<5} {org.name:<30} {org.code or '-':<15} {active_str:<8} {staff_count:<8} {user_count}")

    click.echo("="*80 + "\n")


@orgs_group.command('create')
@click.option('--name', required=True, help='Organization name')
@click.option('--code', required=True, help='Short code (unique)')
@with_appcontext
def create_org_cli(name, code):
    """Create a new organization (tenant)."""
    existing = db.session.query(Organization).filter_by(code=code).first()
    if existing:
        click.echo(f"FAIL Organization with code '{code}' already exists")
        return

    org = Organization(name=name, code=code, is_active=True)
    db.session.add(org)
    db.session.commit()

    click.echo(f"PASS Created organization: {org.name} (ID: {org.id}, Code: {org.code})")


@click.group('settings')
def settings_group():
    """Organization settings."""


@settings_group.command('set-loyalty')
@click.option('--org-id', type=int, required=True, help='Organization ID')
@click.option('--rupees-for-points', type=int, required=True, help='Rupees billed per award')
@click.option('--points-awarded', type=int, required=True, help='Points per award')
@with_appcontext
def set_loyalty_cli(org_id, rupees_for_points, points_awarded):
    """Set the loyalty earn rule for an organization."""
    _require_org(org_id)
    try:
        rule = settings_service.set_loyalty_rule(org_id, rupees_for_points, points_awarded)
    except BillingError as e:
        db.session.rollback()
        raise click.ClickException(e.message)
    db.session.commit()
    click.echo(f"PASS Loyalty: {rule.points_awarded} point(s) per Rs {rule.rupees_for_points}")


@settings_group.command('show-loyalty')
@click.option('--org-id', type=int, required=True, help='Organization ID')
@with_appcontext
def show_loyalty_cli(org_id):
    """Show the loyalty earn rule in effect."""
    _require_org(org_id)
    rule = settings_service.get_loyalty_rule(org_id)
    if not rule.enabled:
        click.echo("Loyalty is disabled (no valid rule configured).")
        return
    click.echo(f"{rule.points_awarded} point(s) per Rs {rule.rupees_for_points}")


@click.group('rollups')
def rollups_group():
    """Daily sales rollup maintenance."""


@rollups_group.command('recompute')
@click.option('--org-id', type=int, required=True, help='Organization ID')
@click.option('--date', 'date_str', required=True, help='Sale date (YYYY-MM-DD)')
@click.option('--staff-id', 'staff_ids', type=int, multiple=True, help='Staff to zero if they have no sales')
@with_appcontext
def recompute_rollups_cli(org_id, date_str, staff_ids):
    """Rebuild per-staff daily sales for one day."""
    _require_org(org_id)
    try:
        day = parse_iso_date(date_str)
    except ValueError:
        day = None
    if day is None:
        raise click.BadParameter("must be YYYY-MM-DD", param_hint="--date")

    rows = sales_rollup_service.recompute(org_id, staff_ids, day)
    db.session.commit()

    click.echo(f"PASS Recomputed {len(rows)} row(s) for {day.isoformat()}")
    for row in rows:
        click.echo(
            f"  staff {row.staff_id:<6} service={row.service_sale_paise:<10} product={row.product_sale_paise:<10} "
            f"package={row.package_sale_paise:<10} gift_card={row.gift_card_sale_paise:<10} customers={row.customer_count}"
        )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(orgs_group)  # Multi-tenant organization management
    app.cli.add_command(settings_group)
    app.cli.add_command(rollups_group)
