"""Upcoming obligations command."""

import click
from forecastit.cli.error_handling import handle_domain_error
from forecastit.domain.account import AccountService
from forecastit.domain.forecast import ForecastService


@click.command("upcoming")
@click.option("--days", type=int, default=30, show_default=True, help="How many days ahead")
@click.pass_context
def upcoming_command(ctx, days: int):
    """List recurring, derived and one-off items due soon."""
    db = ctx.obj["db"]

    try:
        items = ForecastService(db).upcoming(today=ctx.obj["today"], days=days)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    if not items:
        click.echo(f"Nothing due in the next {days} days.")
        return

    names = {acc.id: acc.name for acc in AccountService(db).list_accounts()}
    click.echo(f"\nDue in the next {days} days:")
    click.echo("-" * 80)
    for occ in items:
        name = names.get(occ.account_id, "-") if occ.account_id is not None else "-"
        moved = " (moved)" if occ.is_override and occ.date != occ.original_date else ""
        click.echo(
            f"{occ.date} | {name:15s} | {occ.amount:>12,.2f} {occ.currency} | "
            f"{occ.obligation_id:20s} | {occ.description}{moved}"
        )


def register_commands(cli):
    """Register upcoming command with main CLI."""
    cli.add_command(upcoming_command, name="upcoming")
