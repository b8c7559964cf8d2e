"""Recurring rule commands."""

import click
from forecastit.cli.account_resolution import parse_option_or_exit, resolve_account_or_exit
from forecastit.cli.error_handling import handle_domain_error
from forecastit.domain.account import AccountService
from forecastit.domain.entities import Frequency, TransactionKind, WeekendAdjustment
from forecastit.domain.schedule import ScheduleService
from forecastit.utils.amount_parser import parse_magnitude
from forecastit.utils.date_parser import parse_date


@click.group()
def rule_group():
    """Manage recurring rules and their per-occurrence overrides."""
    pass


@rule_group.command("add")
@click.argument("account", metavar="ACCOUNT")
@click.argument("amount", metavar="AMOUNT")
@click.option("--kind", type=click.Choice([k.value for k in TransactionKind]), default="expense", show_default=True)
@click.option("--frequency", type=click.Choice([f.value for f in Frequency]), default="monthly", show_default=True)
@click.option("--interval", type=int, default=1, show_default=True, help="Every N periods")
@click.option("--start", "start_str", required=True, help="First occurrence date")
@click.option("--next-due", "next_due_str", help="Next unmaterialized occurrence")
@click.option("--end", "end_str", help="Last possible occurrence date")
@click.option("--to", "destination", help="Destination account for transfers")
@click.option("--pinned-day", type=int, help="Day of month for monthly/yearly rules")
@click.option(
    "--weekend",
    type=click.Choice([w.value for w in WeekendAdjustment]),
    default="on",
    show_default=True,
    help="Move weekend settlements before or after the weekend",
)
@click.option("--currency", help="Currency (defaults to the account's currency)")
@click.option("--description", "-d", default="", help="Description")
@click.pass_context
def add_rule(
    ctx,
    account: str,
    amount: str,
    kind: str,
    frequency: str,
    interval: int,
    start_str: str,
    next_due_str: str | None,
    end_str: str | None,
    destination: str | None,
    pinned_day: int | None,
    weekend: str,
    currency: str | None,
    description: str,
):
    """Add a recurring rule.

    ACCOUNT can be an account name or ID. AMOUNT is a positive magnitude;
    --kind decides whether it is money in or out.

    Examples:
        forecastit rule add Checking 1500 --start 2024-01-01 -d "Rent"
        forecastit rule add Checking 3200 --kind income --start 2024-01-25
        forecastit rule add Checking 200 --kind transfer --to Savings --start 2024-01-31
    """
    db = ctx.obj["db"]
    today = ctx.obj["today"]
    account_service = AccountService(db)
    service = ScheduleService(db)

    account_id = resolve_account_or_exit(ctx, account_service, account)
    destination_id = None
    if destination is not None:
        destination_id = resolve_account_or_exit(ctx, account_service, destination)

    def as_date(value):
        return parse_date(value, today=today)

    try:
        rule_id = service.add_rule(
            account_id=account_id,
            amount=parse_magnitude(amount),
            kind=TransactionKind(kind),
            frequency=Frequency(frequency),
            start_date=as_date(start_str),
            currency=currency,
            interval=interval,
            next_due_date=parse_option_or_exit(ctx, as_date, next_due_str, "--next-due"),
            end_date=parse_option_or_exit(ctx, as_date, end_str, "--end"),
            destination_account_id=destination_id,
            pinned_day=pinned_day,
            weekend_adjustment=WeekendAdjustment(weekend),
            description=description,
        )
        click.echo(f"Created recurring rule {rule_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@rule_group.command("list")
@click.option("--account", help="Only rules charging this account")
@click.pass_context
def list_rules(ctx, account: str | None):
    """List recurring rules."""
    db = ctx.obj["db"]
    service = ScheduleService(db)

    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    rules = service.list_rules(account_id=account_id)
    if not rules:
        click.echo("No recurring rules found.")
        return

    click.echo("\nRecurring rules:")
    click.echo("-" * 80)
    for r in rules:
        cadence = r.frequency.value if r.interval == 1 else f"every {r.interval} {r.frequency.value}"
        target = f" -> {r.destination_account_id}" if r.destination_account_id else ""
        click.echo(
            f"ID: {r.id:>4s} | account {r.account_id}{target} | {r.kind.value:8s} | "
            f"{r.amount:>10,.2f} {r.currency} | {cadence} from {r.start_date} | {r.description}"
        )


@rule_group.command("skip")
@click.argument("rule_id", metavar="RULE_ID")
@click.argument("original_date", metavar="DATE")
@click.pass_context
def skip_occurrence(ctx, rule_id: str, original_date: str):
    """Skip one occurrence of a rule.

    RULE_ID is a stored rule ID or a derived one such as loan-pmt-3.
    DATE is the occurrence's scheduled date.
    """
    service = ScheduleService(ctx.obj["db"])
    try:
        when = parse_date(original_date, today=ctx.obj["today"])
        service.skip_occurrence(rule_id, when)
        click.echo(f"Skipped {rule_id} on {when.isoformat()}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@rule_group.command("override")
@click.argument("rule_id", metavar="RULE_ID")
@click.argument("original_date", metavar="DATE")
@click.option("--date", "new_date_str", help="Move the occurrence to this date")
@click.option("--amount", help="Replacement amount (positive magnitude)")
@click.option("--description", "-d", help="Replacement description")
@click.pass_context
def override_occurrence(
    ctx,
    rule_id: str,
    original_date: str,
    new_date_str: str | None,
    amount: str | None,
    description: str | None,
):
    """Change the date, amount or description of one occurrence."""
    today = ctx.obj["today"]
    service = ScheduleService(ctx.obj["db"])
    try:
        when = parse_date(original_date, today=today)
        service.override_occurrence(
            rule_id,
            when,
            new_date=parse_date(new_date_str, today=today) if new_date_str else None,
            amount=parse_magnitude(amount) if amount is not None else None,
            description=description,
        )
        click.echo(f"Overrode {rule_id} on {when.isoformat()}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@rule_group.command("clear")
@click.argument("rule_id", metavar="RULE_ID")
@click.argument("original_date", metavar="DATE")
@click.pass_context
def clear_override(ctx, rule_id: str, original_date: str):
    """Remove the override of one occurrence, restoring it."""
    service = ScheduleService(ctx.obj["db"])
    try:
        when = parse_date(original_date, today=ctx.obj["today"])
        service.clear_override(rule_id, when)
        click.echo(f"Cleared override of {rule_id} on {when.isoformat()}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register rule commands with main CLI."""
    cli.add_command(rule_group, name="rule")
