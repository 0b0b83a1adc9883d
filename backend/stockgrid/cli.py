# Overview: Flask CLI command groups for bootstrap, inspection, and day reports.

# backend/stockgrid/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Bootstrap/repair:
# - python -m flask stockgrid init-db
#   Create all tables (use `flask db upgrade` for migrated deployments).
# - python -m flask stockgrid reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask stockgrid seed-demo
#   Create a demo cashier with rice products, sack and per-kilo tiers.
#
# Inspection:
# - python -m flask stockgrid resolve-day --date 2025-09-10
#   Print the UTC bounds of a business day (default today at UTC+8).
# - python -m flask stockgrid stock-stats --cashier-id 1 --date 2025-09-10
#   Print sold/transferred quantities per product for a day.
#
# Cashiers:
# - python -m flask cashiers list
# - python -m flask cashiers create --name "Front Counter" [--user-id 1]

import json

import click
from flask.cli import with_appcontext

from .business_day import resolve_day
from .extensions import db
from .models import Cashier
from .services import catalog_service, daily_service
from .services.errors import LedgerError


@click.group('stockgrid')
def stockgrid_group():
    """Stock ledger bootstrap and inspection commands."""


@stockgrid_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created.")


@stockgrid_group.command('reset-db')
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

    click.echo("PASS Database reset complete. Run 'python -m flask stockgrid seed-demo' for demo data.")


DEMO_PRODUCTS = [
    {
        "name": "Dinorado",
        "sack_prices": [
            {"type": "FIFTY_KG", "price": "2650", "stock": 20, "profit": "150",
             "special_price": {"price": "2600", "minimum_qty": 5}},
            {"type": "TWENTY_FIVE_KG", "price": "1350", "stock": 40, "profit": "75"},
        ],
        "per_kilo_price": {"price": "56", "stock": "120", "profit": "4"},
    },
    {
        "name": "Jasmine",
        "sack_prices": [
            {"type": "TWENTY_FIVE_KG", "price": "1250", "stock": 30, "profit": "60"},
            {"type": "FIVE_KG", "price": "265", "stock": 50},
        ],
        "per_kilo_price": {"price": "52", "stock": "80.5"},
    },
    {
        "name": "Asin Rock Salt",
        "sack_prices": [{"type": "FIVE_KG", "price": "120", "stock": 25}],
    },
    {
        "name": "Plastic Bag Large",
        "per_kilo_price": {"price": "180", "stock": "10"},
    },
]


@stockgrid_group.command('seed-demo')
@click.option('--cashier-name', default='Demo Cashier', show_default=True)
@click.option('--user-id', type=int, default=None, help='Owning back-office user id')
@click.option('--unassigned', is_flag=True, help='Leave products unassigned (claimed on first delivery/transfer)')
@with_appcontext
def seed_demo(cashier_name, user_id, unassigned):
    """Create a cashier and a small rice catalog. Idempotent per cashier name."""
    cashier = db.session.query(Cashier).filter_by(name=cashier_name).first()
    if cashier is None:
        cashier = Cashier(name=cashier_name, user_id=user_id)
        db.session.add(cashier)
        db.session.flush()
        click.echo(f"PASS Created cashier: {cashier.name} (ID: {cashier.id})")
    else:
        click.echo(f"PASS Using existing cashier: {cashier.name} (ID: {cashier.id})")

    owner_id = None if unassigned else cashier.id
    existing = {p.name for p in catalog_service.list_products(cashier.id)}
    for product_data in DEMO_PRODUCTS:
        if product_data["name"] in existing:
            click.echo(f"SKIP Product exists: {product_data['name']}")
            continue
        product = catalog_service.create_product(cashier_id=owner_id, **product_data)
        click.echo(f"PASS Created product: {product.name} (ID: {product.id})")

    db.session.commit()
    click.echo("PASS Demo data ready.")


@stockgrid_group.command('resolve-day')
@click.option('--date', 'date_str', default=None, help='YYYY-MM-DD (default: today at UTC+8)')
def resolve_day_cli(date_str):
    """Print the inclusive UTC bounds of a business day."""
    try:
        day = resolve_day(date_str)
    except LedgerError as e:
        raise click.BadParameter(e.message, param_hint='--date')
    click.echo(json.dumps(day.to_dict(), indent=2))


@stockgrid_group.command('stock-stats')
@click.option('--cashier-id', type=int, required=True)
@click.option('--date', 'date_str', default=None, help='YYYY-MM-DD (default: today at UTC+8)')
@with_appcontext
def stock_stats(cashier_id, date_str):
    """Print sold + transferred quantities per product, grouped by category."""
    try:
        report = daily_service.get_stock_statistics(cashier_id, date_str)
    except LedgerError as e:
        raise click.ClickException(e.message)

    click.echo(f"Stock report for {report['day']['date']} (cashier {cashier_id})")
    for category, block in report["categories"].items():
        click.echo(f"\n[{category.upper()}]")
        for product in block["products"]:
            click.echo(
                f"  {product['product_name']:<30} sold={product['stock_sold']:>8} "
                f"transferred={product['stock_transferred']:>8} total={product['total']:>8}"
            )
        totals = block["totals"]
        click.echo(
            f"  {'TOTAL':<30} sold={totals['stock_sold']:>8} "
            f"transferred={totals['stock_transferred']:>8} total={totals['total']:>8}"
        )


@click.group('cashiers')
def cashiers_group():
    """Cashier identity management."""


@cashiers_group.command('list')
@with_appcontext
def list_cashiers():
    cashiers = db.session.query(Cashier).order_by(Cashier.id.asc()).all()
    if not cashiers:
        click.echo("No cashiers found.")
        return
    for cashier in cashiers:
        click.echo(f"{cashier.id:>4}  {cashier.name:<30} user_id={cashier.user_id}")


@cashiers_group.command('create')
@click.option('--name', required=True, help='Cashier display name')
@click.option('--user-id', type=int, default=None, help='Owning back-office user id')
@with_appcontext
def create_cashier_cli(name, user_id):
    cashier = Cashier(name=name, user_id=user_id)
    db.session.add(cashier)
    db.session.commit()
    click.echo(f"PASS Created cashier: {cashier.name} (ID: {cashier.id})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(stockgrid_group)
    app.cli.add_command(cashiers_group)
