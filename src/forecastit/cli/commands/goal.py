"""Goal commands."""

from decimal import Decimal

import click
from forecastit.cli.account_resolution import resolve_account_or_exit
from forecastit.cli.error_handling import handle_domain_error
from forecastit.domain.account import AccountService
from forecastit.domain.entities import TransactionKind
from forecastit.domain.schedule import ScheduleService
from forecastit.utils.amount_parser import parse_magnitude
from forecastit.utils.date_parser import parse_date


@click.group()
def goal_group():
    """Manage financial goals."""
    pass


@goal_group.command("add")
@click.argument("name", metavar="NAME")
@click.argument("target", metavar="TARGET_AMOUNT")
@click.option("--current", default="0", help="Amount already put aside")
@click.option("--account", help="Account the goal is paid from")
@click.option("--rule", "rule_id", help="Recurring rule that funds the goal")
@click.option("--target-date", "target_date_str", help="Date the remaining amount is due")
@click.option("--income", is_flag=True, help="Goal brings money in rather than out")
@click.option("--currency", help="Currency (defaults to the account's currency, or EUR)")
@click.pass_context
def add_goal(
    ctx,
    name: str,
    target: str,
    current: str,
    account: str | None,
    rule_id: str | None,
    target_date_str: str | None,
    income: bool,
    currency: str | None,
):
    """Add a goal.

    Examples:
        forecastit goal add "Holiday" 2000 --current 500 --target-date 2024-07-01 --account Checking
        forecastit goal add "Emergency fund" 10000 --rule 4
    """
    db = ctx.obj["db"]
    service = ScheduleService(db)

    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    try:
        goal_id = service.add_goal(
            name=name,
            target_amount=parse_magnitude(target),
            currency=currency,
            current_amount=parse_magnitude(current) if current else Decimal("0"),
            kind=TransactionKind.INCOME if income else TransactionKind.EXPENSE,
            payment_account_id=account_id,
            linked_rule_id=rule_id,
            target_date=parse_date(target_date_str, today=ctx.obj["today"]) if target_date_str else None,
        )
        click.echo(f"Created goal {goal_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@goal_group.command("list")
@click.pass_context
def list_goals(ctx):
    """List goals."""
    goals = ScheduleService(ctx.obj["db"]).list_goals()
    if not goals:
        click.echo("No goals found.")
        return

    click.echo("\nGoals:")
    click.echo("-" * 70)
    for g in goals:
        funding = f"rule {g.linked_rule_id}" if g.linked_rule_id else f"due {g.target_date or '-'}"
        click.echo(
            f"ID: {g.id:3d} | {g.name:20s} | {g.current_amount:,.2f}/{g.target_amount:,.2f} "
            f"{g.currency} | {funding}"
        )


def register_commands(cli):
    """Register goal commands with main CLI."""
    cli.add_command(goal_group, name="goal")
