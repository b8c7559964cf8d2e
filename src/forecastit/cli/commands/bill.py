"""One-off bill commands."""

import click
from forecastit.cli.account_resolution import resolve_account_or_exit
from forecastit.cli.error_handling import handle_domain_error
from forecastit.domain.account import AccountService
from forecastit.domain.entities import BillDirection
from forecastit.domain.schedule import ScheduleService
from forecastit.utils.amount_parser import parse_magnitude
from forecastit.utils.date_parser import parse_date


@click.group()
def bill_group():
    """Manage one-off bills and deposits."""
    pass


@bill_group.command("add")
@click.argument("description", metavar="DESCRIPTION")
@click.argument("amount", metavar="AMOUNT")
@click.option("--due", "due_str", required=True, help="Due date")
@click.option("--account", help="Account the bill is paid from (optional)")
@click.option("--deposit", is_flag=True, help="Money coming in rather than going out")
@click.option("--currency", help="Currency (defaults to the account's currency, or EUR)")
@click.pass_context
def add_bill(
    ctx,
    description: str,
    amount: str,
    due_str: str,
    account: str | None,
    deposit: bool,
    currency: str | None,
):
    """Add a one-off bill.

    Examples:
        forecastit bill add "Car repair" 640 --due 2024-03-12 --account Checking
        forecastit bill add "Tax refund" 900 --due 2024-05-01 --deposit
    """
    db = ctx.obj["db"]
    service = ScheduleService(db)

    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    try:
        bill_id = service.add_bill(
            description=description,
            amount=parse_magnitude(amount),
            due_date=parse_date(due_str, today=ctx.obj["today"]),
            currency=currency,
            direction=BillDirection.DEPOSIT if deposit else BillDirection.PAYMENT,
            account_id=account_id,
        )
        click.echo(f"Created bill {bill_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@bill_group.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include paid bills")
@click.pass_context
def list_bills(ctx, show_all: bool):
    """List one-off bills."""
    service = ScheduleService(ctx.obj["db"])
    bills = service.list_bills(unpaid_only=not show_all)
    if not bills:
        click.echo("No bills found.")
        return

    click.echo("\nBills:")
    click.echo("-" * 70)
    for b in bills:
        sign = "+" if b.direction == BillDirection.DEPOSIT else "-"
        click.echo(
            f"ID: {b.id:3d} | {b.due_date} | {sign}{b.amount:,.2f} {b.currency} | "
            f"{b.status.value:6s} | {b.description}"
        )


@bill_group.command("pay")
@click.argument("bill_id", type=int, metavar="BILL_ID")
@click.pass_context
def pay_bill(ctx, bill_id: int):
    """Mark a bill as paid."""
    service = ScheduleService(ctx.obj["db"])
    try:
        service.pay_bill(bill_id)
        click.echo(f"Marked bill {bill_id} as paid")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register bill commands with main CLI."""
    cli.add_command(bill_group, name="bill")
