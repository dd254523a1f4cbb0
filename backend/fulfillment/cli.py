# Overview: Flask CLI command groups for bootstrap, inspection, and item maintenance.

# backend/fulfillment/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Point Flask at wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create tables and the default printshops (idempotent).
# - python -m flask system seed-demo
#   Load demo users, customers and orders (skipped if orders exist).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Order inspection:
# - python -m flask orders list [--role printshop_manager --shop victor]
#   List orders visible to the role with their rolled-up status.
# - python -m flask orders show 12 [--role driver]
#   Show one order and the items the role can see.
# - python -m flask orders activity [12] [--role printshop_manager --shop victor]
#   Show the activity feed (optionally one order's) as the role sees it.
#
# Item maintenance:
# - python -m flask items set-status 34 ready --role printshop_manager
#   Change an item's status as a role.
# - python -m flask items assign 34 victor   |   python -m flask items assign 34 --clear
#   Assign an item to a printshop, or clear the assignment.
# - python -m flask items cancel 34 35 36 --role manager
#   Cancel several items; each id is reported separately.
#
# Printshop access:
# - python -m flask access grant 2 victor
#   Scope a printshop manager to a printshop.
# - python -m flask access revoke 2 victor
#   Remove that scope.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .permissions import Role, get_all_role_codes
from .services import access_service, mutation_service, query_service, seed_service
from .services.access_service import ActorScope
from .services.status_service import ITEM_STATUSES, status_label
from .validation import ValidationError


def _actor(role, shops):
    if role == Role.PRINTSHOP_MANAGER:
        return ActorScope.printshop_manager(shops)
    return ActorScope(role)


def _echo_result(label, result):
    if result.ok:
        suffix = " (no change)" if result.noop else ""
        click.echo(f"PASS {label}{suffix}")
    else:
        click.echo(f"FAIL {label}: [{result.error}] {result.message}")


# =============================================================================
# SYSTEM
# =============================================================================

@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create tables and the default printshops."""
    click.echo("START Initializing fulfillment database...")
    db.create_all()
    created = seed_service.ensure_printshops()
    click.echo(f"PASS Printshops created: {created}")


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Load demo users, customers and orders."""
    db.create_all()
    counts = seed_service.seed_demo()
    if not counts["orders"]:
        click.echo("WARN  Orders already exist, demo data skipped")
        return
    click.echo(
        f"PASS Seeded {counts['users']} users, {counts['customers']} customers, "
        f"{counts['orders']} orders, {counts['items']} items"
    )


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


# =============================================================================
# ORDERS
# =============================================================================

@click.group('orders')
def orders_group():
    """Order inspection commands."""


@orders_group.command('list')
@click.option('--role', type=click.Choice(get_all_role_codes()), default=Role.MANAGER, show_default=True)
@click.option('--shop', 'shops', multiple=True, help='Printshop scope (printshop_manager only, repeatable)')
@with_appcontext
def list_orders_cli(role, shops):
    """List orders visible to a role."""
    views = query_service.list_orders(_actor(role, shops))
    if not views:
        click.echo("No orders found.")
        return

    click.echo("\n" + "=" * 80)
    click.echo(f"{'ID':<5} {'Ref':<8} {'Customer':<22} {'Method':<16} {'Items':<6} {'Status'}")
    click.echo("=" * 80)
    for view in views:
        click.echo(
            f"{view.id:<5} {view.external_id or '-':<8} {view.customer_name or '-':<22} "
            f"{view.delivery_method:<16} {view.items_count:<6} {view.status_label}"
        )
    click.echo("=" * 80 + "\n")


@orders_group.command('show')
@click.argument('order_id')
@click.option('--role', type=click.Choice(get_all_role_codes()), default=Role.MANAGER, show_default=True)
@click.option('--shop', 'shops', multiple=True, help='Printshop scope (printshop_manager only, repeatable)')
@with_appcontext
def show_order(order_id, role, shops):
    """Show one order and its visible items."""
    try:
        view = query_service.get_order(order_id, _actor(role, shops))
    except ValidationError as e:
        click.echo(f"FAIL {e}")
        return
    if view is None:
        click.echo(f"FAIL Order {order_id} not found or not visible to {role}")
        return

    click.echo(f"Order {view.id} ({view.external_id or '-'}) for {view.customer_name or '-'}")
    click.echo(f"  Status:   {view.status_label}")
    click.echo(f"  Payment:  {view.payment_status} ({view.payment_method or '-'})")
    click.echo(f"  Delivery: {view.delivery_method}")
    click.echo(f"  Version:  {view.version_id}")
    for item in view.items:
        click.echo(
            f"  - #{item.id:<5} {item.product_name:<24} x{item.quantity:<6} "
            f"{item.assigned_printshop_id or 'unassigned':<12} {status_label(item.status)}"
        )


@orders_group.command('activity')
@click.argument('order_id', required=False)
@click.option('--role', type=click.Choice(get_all_role_codes()), default=Role.MANAGER, show_default=True)
@click.option('--shop', 'shops', multiple=True, help='Printshop scope (printshop_manager only, repeatable)')
@with_appcontext
def show_activity(order_id, role, shops):
    """Show the activity feed, newest first."""
    try:
        entries = query_service.list_activities(_actor(role, shops), order_id=order_id)
    except ValidationError as e:
        click.echo(f"FAIL {e}")
        return
    if not entries:
        click.echo("No activity found.")
        return

    for entry in entries:
        change = f" ({entry['from'] or '-'} -> {entry['to'] or '-'})" if entry['from'] or entry['to'] else ""
        click.echo(
            f"{entry['created_at']}  order {entry['order_id']:<5} {entry['type']:<14} "
            f"{entry['message']}{change}  by {entry['user']}"
        )


# =============================================================================
# ITEMS
# =============================================================================

@click.group('items')
def items_group():
    """Item status and assignment commands."""


@items_group.command('set-status')
@click.argument('item_id')
@click.argument('status', type=click.Choice(ITEM_STATUSES))
@click.option('--role', type=click.Choice(get_all_role_codes()), required=True)
@click.option('--user-id', type=int, default=None, help='Recorded on the status history entry')
@click.option('--note', default=None)
@with_appcontext
def set_status_cli(item_id, status, role, user_id, note):
    """Change an item's status as a role."""
    try:
        result = mutation_service.set_item_status(
            item_id, status, role, changed_by_user_id=user_id, note=note,
        )
    except ValidationError as e:
        click.echo(f"FAIL {e}")
        return
    _echo_result(f"Item {item_id} -> {status}", result)


@items_group.command('assign')
@click.argument('item_id')
@click.argument('printshop_id', required=False)
@click.option('--clear', is_flag=True, help='Remove the printshop assignment')
@click.option('--user-id', type=int, default=None)
@with_appcontext
def assign_item(item_id, printshop_id, clear, user_id):
    """Assign an item to a printshop (or --clear)."""
    if bool(printshop_id) == bool(clear):
        click.echo("FAIL Give either a printshop id or --clear")
        return
    try:
        result = mutation_service.set_item_printshop(
            item_id, None if clear else printshop_id, changed_by_user_id=user_id,
        )
    except ValidationError as e:
        click.echo(f"FAIL {e}")
        return
    _echo_result(f"Item {item_id} -> {printshop_id or 'unassigned'}", result)


@items_group.command('cancel')
@click.argument('item_ids', nargs=-1, required=True)
@click.option('--role', type=click.Choice(get_all_role_codes()), required=True)
@click.option('--user-id', type=int, default=None)
@with_appcontext
def cancel_items(item_ids, role, user_id):
    """Cancel several items."""
    try:
        bulk = mutation_service.cancel_bulk(list(item_ids), role, changed_by_user_id=user_id)
    except ValidationError as e:
        click.echo(f"FAIL {e}")
        return
    for item_id, result in bulk.results.items():
        _echo_result(f"Item {item_id} -> canceled", result)


# =============================================================================
# PRINTSHOP ACCESS
# =============================================================================

@click.group('access')
def access_group():
    """Printshop access grants for printshop managers."""


@access_group.command('grant')
@click.argument('user_id', type=int)
@click.argument('printshop_id')
@click.option('--granted-by', type=int, default=None)
@with_appcontext
def grant_access(user_id, printshop_id, granted_by):
    try:
        access_service.grant_printshop_access(
            user_id=user_id, printshop_id=printshop_id, granted_by_user_id=granted_by,
        )
    except ValueError as e:
        click.echo(f"FAIL {e}")
        return
    user = db.session.get(User, user_id)
    click.echo(f"PASS {user.name} can now see printshop '{printshop_id}'")


@access_group.command('revoke')
@click.argument('user_id', type=int)
@click.argument('printshop_id')
@with_appcontext
def revoke_access(user_id, printshop_id):
    if access_service.revoke_printshop_access(user_id=user_id, printshop_id=printshop_id):
        click.echo(f"PASS Revoked printshop '{printshop_id}' from user {user_id}")
    else:
        click.echo(f"WARN  User {user_id} had no access to '{printshop_id}'")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(orders_group)
    app.cli.add_command(items_group)
    app.cli.add_command(access_group)
