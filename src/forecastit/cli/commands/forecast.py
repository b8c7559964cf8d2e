"""Cash-flow forecast command."""

import click
from forecastit.cli.account_resolution import resolve_account_or_exit
from forecastit.cli.error_handling import handle_domain_error
from forecastit.domain.account import AccountService
from forecastit.domain.forecast import ForecastService
from forecastit.utils.date_parser import get_forecast_end


def _money(amount, currency: str) -> str:
    return f"{amount:,.2f} {currency}"


@click.command("forecast")
@click.option(
    "--horizon",
    default="3M",
    show_default=True,
    help="How far ahead to forecast: 3M, 6M, EOY, 1Y or an end date",
)
@click.option("--account", "accounts", multiple=True, help="Only forecast these accounts (repeatable)")
@click.option("--base-currency", default="EUR", show_default=True, help="Currency to report in")
@click.option("--events", "show_events", is_flag=True, help="Show every forecast event")
@click.option("--no-weekend-adjust", is_flag=True, help="Keep settlements on weekend dates")
@click.pass_context
def forecast_command(
    ctx,
    horizon: str,
    accounts: tuple[str, ...],
    base_currency: str,
    show_events: bool,
    no_weekend_adjust: bool,
):
    """Project balances forward and report the lowest point.

    Examples:
        forecastit forecast
        forecastit forecast --horizon EOY --events
        forecastit forecast --account Checking --base-currency USD
    """
    db = ctx.obj["db"]
    today = ctx.obj["today"]
    service = ForecastService(db)
    account_service = AccountService(db)

    account_ids = None
    if accounts:
        account_ids = [resolve_account_or_exit(ctx, account_service, a) for a in accounts]

    try:
        horizon_end = get_forecast_end(horizon, today=today)
        result = service.forecast(
            today=today,
            horizon_end=horizon_end,
            account_ids=account_ids,
            base_currency=base_currency,
            apply_weekend_adjustment=not no_weekend_adjust,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    currency = result.base_currency
    names = {acc.id: acc.name for acc in account_service.list_accounts()}

    click.echo(f"\nForecast {result.start_date} to {result.end_date} ({currency})")
    click.echo("-" * 60)
    click.echo(f"Starting balance: {_money(result.starting_total, currency)}")
    click.echo(f"Ending balance:   {_money(result.ending_total, currency)}")
    click.echo(
        f"Lowest point:     {_money(result.lowest_point.balance, currency)} "
        f"on {result.lowest_point.date}"
    )
    if result.first_shortfall is not None:
        click.echo(f"First shortfall:  {result.first_shortfall}")
    else:
        click.echo("First shortfall:  none")

    if result.account_lowest_points:
        click.echo("\nLowest point per account:")
        for account_id, point in sorted(result.account_lowest_points.items()):
            name = names.get(account_id, str(account_id))
            click.echo(f"  {name:20s} {_money(point.balance, currency):>20s} on {point.date}")

    if show_events:
        click.echo("\nEvents:")
        if not result.events:
            click.echo("  (none)")
        for event in result.events:
            name = names.get(event.account_id, "-") if event.account_id is not None else "-"
            marker = " [goal]" if event.is_goal else ""
            click.echo(
                f"  {event.date} | {name:15s} | {event.amount:>12,.2f} | "
                f"{event.total_balance:>14,.2f} | {event.description}{marker}"
            )

    if result.issues:
        click.echo("\nExcluded from forecast:", err=True)
        for issue in result.issues:
            click.echo(f"  {issue.subject_id}: {issue.message}", err=True)


def register_commands(cli):
    """Register forecast command with main CLI."""
    cli.add_command(forecast_command, name="forecast")
