"""Credit card statement command."""

import click
from forecastit.cli.account_resolution import resolve_account_or_exit
from forecastit.cli.error_handling import handle_domain_error
from forecastit.domain.account import AccountService
from forecastit.domain.forecast import ForecastService


@click.command("statement")
@click.argument("account", metavar="CARD_ACCOUNT")
@click.pass_context
def statement_command(ctx, account: str):
    """Show previous, current and next billing cycles of a credit card.

    CARD_ACCOUNT can be an account name or ID.
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    try:
        reports = ForecastService(db).statements(account_id, today=ctx.obj["today"])
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    for report in reports:
        period = report.period
        details = report.details
        click.echo(f"\n{report.label.capitalize()} statement: {period.start} to {period.end}")
        click.echo(f"  Payment due:       {period.payment_due}")
        click.echo(f"  Statement balance: {details.statement_balance:,.2f}")
        click.echo(f"  Amount paid:       {details.amount_paid:,.2f}")
        click.echo(f"  Transactions:      {details.transaction_count}")


def register_commands(cli):
    """Register statement command with main CLI."""
    cli.add_command(statement_command, name="statement")
