# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/brewpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Use: python -m flask --app brewpos <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask --app brewpos system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask --app brewpos system seed
#   Load the sample tea/coffee inventory, recipes and products (idempotent).
#
# Inventory inspection/repair:
# - python -m flask --app brewpos inventory low-stock
#   List items at or below their minimum stock level.
# - python -m flask --app brewpos inventory adjust TEA001 5 --operation add --reason "delivery"
#   Adjust stock for one item (add, subtract, or set) and log the adjustment.

import click
from flask.cli import with_appcontext

from .extensions import db
from .quantities import quantity_to_json, to_quantity
from .services.inventory_service import InventoryStore, InventoryItemNotFound


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


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

    click.echo("PASS Database reset complete. Run 'python -m flask --app brewpos system seed' to load sample data.")


@system_group.command('seed')
@with_appcontext
def seed():
    """
    Load the sample tea/coffee catalog.

    Creates (skipping anything that already exists):
    - 10 raw materials (tea leaves, coffee beans, milk, sweeteners, flavors)
    - 8 recipes, one per prepared drink
    - 10 products: 8 prepared drinks plus 2 simple products without recipes
    """
    from .seed_data import seed_sample_catalog

    click.echo("START Seeding sample catalog...")
    created = seed_sample_catalog()

    for label, count in created.items():
        if count:
            click.echo(f"PASS Created {count} {label.replace('_', ' ')}")
        else:
            click.echo(f"SKIP No new {label.replace('_', ' ')} (already present)")

    click.echo("DONE Sample catalog ready.")


@click.group('inventory')
def inventory_group():
    """Inventory inspection and repair commands."""


@inventory_group.command('low-stock')
@with_appcontext
def low_stock_cli():
    """
    List items at or below their minimum stock level.

    Example:
        flask --app brewpos inventory low-stock
    """
    items = InventoryStore().list_low_stock()

    if not items:
        click.echo("No low-stock items.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'SKU':<12} {'Name':<28} {'Stock':>10} {'Min':>8} {'Unit':<8}")
    click.echo("="*80)

    for item in items:
        minimum = item.min_stock_level if item.min_stock_level is not None else "-"
        click.echo(
            f"{item.sku:<12} {item.name[:28]:<28} {quantity_to_json(item.current_stock):>10} "
            f"{str(minimum):>8} {item.unit:<8}"
        )

    click.echo("="*80)
    click.echo(f"Total: {len(items)} item(s)\n")


@inventory_group.command('adjust')
@click.argument('sku')
@click.argument('quantity', type=str)
@click.option('--operation', type=click.Choice(['add', 'subtract', 'set']), default='add', show_default=True)
@click.option('--reason', default='manual', show_default=True, help='Reason recorded in the adjustment log')
@with_appcontext
def adjust_cli(sku, quantity, operation, reason):
    """
    Adjust stock for one item and log the change.

    Example:
        flask --app brewpos inventory adjust TEA001 5 --operation add --reason "delivery"
        flask --app brewpos inventory adjust MILK001 0.5 --operation subtract --reason "spoilage"
    """
    try:
        amount = to_quantity(quantity)
    except ValueError:
        raise click.BadParameter(f"'{quantity}' is not a number", param_hint='QUANTITY')
    if amount < 0:
        raise click.BadParameter("quantity must be >= 0", param_hint='QUANTITY')

    store = InventoryStore()
    try:
        new_stock = store.adjust(sku, amount, operation=operation, reason=reason, adjusted_by="cli")
    except InventoryItemNotFound as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    item = store.require(sku)
    click.echo(f"PASS {sku}: {operation} {quantity_to_json(amount)} -> {quantity_to_json(new_stock)} {item.unit} ({item.status})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(inventory_group)
