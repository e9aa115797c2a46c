# Overview: Flask CLI command groups for bootstrap, inspection, and register operations.

# backend/restopos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create tables (if missing) and the default register configuration.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Configuration:
# - python -m flask config show
#   Print business details and the daily cash base.
# - python -m flask config set-daily-base 500.00
#   Change the till float kept after each closure (applies to the next close).
# - python -m flask config set-reopen-password
#   Replace the reopen password (prompts, hidden input).
#
# Major cash ledger:
# - python -m flask ledger summary
#   Show transfer / saved cash balances.
# - python -m flask ledger list --account saved_cash --limit 20
#   List recent movements.
# - python -m flask ledger add --account saved_cash --direction expense --amount 150.00 --description "Depósito"
#   Post a manual adjustment.
#
# Register:
# - python -m flask register status
#   Show today's state and expected till cash.
# - python -m flask register close
#   Close today's register and sweep excess cash.
# - python -m flask register reopen
#   Reopen today's register (prompts for the password).
# - python -m flask register closures --limit 10
#   List recent closures.

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import closure_service, config_service, ledger_service
from .services.closure_service import InvalidCredentialsError
from .services.concurrency import PersistenceError
from .services.ledger_service import LedgerError
from .validation import ValidationError, units_to_cents


def _money(cents: int) -> str:
    return f"${cents / 100:,.2f}"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the database and default configuration.

    Idempotent: existing tables and configuration are left untouched.
    Default reopen password comes from DEFAULT_REOPEN_PASSWORD.

    SECURITY: Change the reopen password immediately in production!
    """
    click.echo("START Initializing register database...")

    db.create_all()
    click.echo("PASS Tables ready")

    config = config_service.get_config()
    click.echo(f"PASS Configuration ready: {config.business_name} (daily base {_money(config.daily_base_cents)})")

    click.echo("\nDONE Run 'python -m flask config set-reopen-password' to replace the default password.")


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


@click.group('config')
def config_group():
    """Register configuration commands."""


@config_group.command('show')
@with_appcontext
def show_config():
    """Print the current configuration (the reopen password is never shown)."""
    config = config_service.get_config()
    click.echo(f"Business:    {config.business_name}")
    click.echo(f"Address:     {config.business_address or '-'}")
    click.echo(f"Phone:       {config.business_phone or '-'}")
    click.echo(f"Tax ID:      {config.business_tax_id or '-'}")
    click.echo(f"Daily base:  {_money(config.daily_base_cents)}")
    click.echo(f"Top N:       {config.top_n}")


@config_group.command('set-daily-base')
@click.argument('amount')
@with_appcontext
def set_daily_base(amount):
    """
    Set the till float in currency units.

    Example:
        flask config set-daily-base 500
        flask config set-daily-base 750.50
    """
    try:
        cents = units_to_cents("amount", amount)
        config = config_service.update_config({"daily_base_cents": cents})
    except (ValidationError, PersistenceError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Daily base set to {_money(config.daily_base_cents)}")


@config_group.command('set-reopen-password')
@click.option('--current', prompt=True, hide_input=True, help='Current reopen password')
@click.option('--new', 'new_password', prompt=True, hide_input=True, confirmation_prompt=True, help='New reopen password')
@with_appcontext
def set_reopen_password(current, new_password):
    """Replace the reopen password."""
    try:
        config_service.set_reopen_password(new_password, current_password=current)
    except (ValidationError, PersistenceError) as e:
        raise click.ClickException(str(e))
    click.echo("PASS Reopen password updated")


@click.group('ledger')
def ledger_group():
    """Major cash ledger commands."""


@ledger_group.command('summary')
@with_appcontext
def ledger_summary():
    """Show account balances."""
    summary = ledger_service.get_summary()
    click.echo(f"Transfers:   {_money(summary.total_transfers_cents)}")
    click.echo(f"Saved cash:  {_money(summary.total_saved_cash_cents)}")
    click.echo(f"Major cash:  {_money(summary.total_major_cash_cents)}")
    click.echo(f"Movements:   {summary.movement_count}")


@ledger_group.command('list')
@click.option('--account', type=click.Choice(['transfer', 'saved_cash']), help='Filter by account')
@click.option('--limit', type=int, default=20, help='Number of movements to show')
@with_appcontext
def list_ledger_movements(account, limit):
    """
    List recent movements, newest first.

    Example:
        flask ledger list
        flask ledger list --account saved_cash --limit 50
    """
    movements = ledger_service.list_movements(account=account, limit=limit)

    if not movements:
        click.echo("No movements found.")
        return

    click.echo("\n" + "="*110)
    click.echo(f"{'ID':<6} {'Date':<22} {'Account':<11} {'Amount':>14}  {'Description'}")
    click.echo("="*110)

    for m in movements:
        created = m.created_at.strftime("%Y-%m-%d %H:%M:%S") if m.created_at else ""
        click.echo(f"{m.id:<6} {created:<22} {m.account:<11} {_money(m.signed_amount_cents):>14}  {m.description}")

    click.echo("="*110)


@ledger_group.command('add')
@click.option('--account', type=click.Choice(['transfer', 'saved_cash']), required=True)
@click.option('--direction', type=click.Choice(['income', 'expense']), required=True)
@click.option('--amount', required=True, help='Amount in currency units, e.g. 150.00')
@click.option('--description', required=True)
@click.option('--notes', default=None)
@with_appcontext
def add_ledger_movement(account, direction, amount, description, notes):
    """Post a manual adjustment."""
    try:
        movement = ledger_service.post_movement(
            account=account,
            description=description,
            amount_cents=units_to_cents("amount", amount),
            direction=direction,
            notes=notes,
            created_by="cli",
        )
    except (ValidationError, LedgerError, PersistenceError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Posted movement {movement.id}: {account} {direction} {_money(movement.amount_cents)}")


@click.group('register')
def register_group():
    """Daily closure commands."""


@register_group.command('status')
@with_appcontext
def register_status():
    """Show today's state and the expected till balance."""
    summary = closure_service.calculate_cash_summary()
    click.echo(f"Date:            {summary['date']}")
    click.echo(f"Status:          {summary['status'].upper()}")
    click.echo(f"Cash sales:      {_money(summary['cash_sales_cents'])}")
    click.echo(f"Cash expenses:   {_money(summary['cash_expenses_cents'])}")
    click.echo(f"Cash payments:   {_money(summary['cash_payments_cents'])}")
    click.echo(f"Expected cash:   {_money(summary['current_cash_cents'])}")
    click.echo(f"Daily base:      {_money(summary['daily_base_cents'])}")
    if summary['status'] == 'closed':
        click.echo(f"Swept at close:  {_money(summary['excess_transferred_cents'])}")
    else:
        click.echo(f"Excess to sweep: {_money(summary['excess_to_transfer_cents'])}")


@register_group.command('close')
@with_appcontext
def close_register():
    """Close today's register (idempotent)."""
    try:
        closure = closure_service.close_register(created_by="cli")
    except PersistenceError as e:
        raise click.ClickException(str(e))
    click.echo(
        f"PASS Register closed for {closure.date.isoformat()} "
        f"(closure {closure.id}, swept {_money(closure.cash_excess_transferred_cents)})"
    )


@register_group.command('reopen')
@click.option('--password', prompt=True, hide_input=True, help='Reopen password')
@with_appcontext
def reopen_register(password):
    """Reopen today's register and reverse the cash sweep."""
    try:
        result = closure_service.reopen_register(password, created_by="cli")
    except (InvalidCredentialsError, PersistenceError) as e:
        raise click.ClickException(str(e))

    if result.nothing_to_reopen:
        click.echo("INFO Register is already open")
    else:
        click.echo(f"PASS Register reopened; reverted {_money(result.reverted_amount_cents)} from saved cash")


@register_group.command('closures')
@click.option('--limit', type=int, default=10, help='Number of closures to show')
@with_appcontext
def list_closures(limit):
    """List recent closures, newest first."""
    closures = closure_service.list_closures(limit=limit)

    if not closures:
        click.echo("No closures found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<6} {'Date':<12} {'Sales':>14} {'Cash':>14} {'Base':>12} {'Swept':>14}")
    click.echo("="*90)

    for c in closures:
        click.echo(
            f"{c.id:<6} {c.date.isoformat():<12} {_money(c.total_sales_cents):>14} "
            f"{_money(c.total_cash_cents):>14} {_money(c.daily_base_cents):>12} "
            f"{_money(c.cash_excess_transferred_cents):>14}"
        )

    click.echo("="*90)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(config_group)
    app.cli.add_command(ledger_group)
    app.cli.add_command(register_group)
