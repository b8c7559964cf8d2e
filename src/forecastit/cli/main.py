"""Main CLI entry point."""

import logging
from datetime import date

import click
from forecastit.database.factories import create_sqlite_database
from forecastit.utils.date_parser import parse_date

# Import and register all commands at module level
from forecastit.cli.commands import (
    account,
    rule,
    bill,
    goal,
    forecast,
    schedule,
    statement,
    upcoming,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides FORECASTIT_DB_PATH environment variable)",
    envvar="FORECASTIT_DB_PATH",
)
@click.option(
    "--today",
    "today_str",
    help="Reference date for forecasts and schedules (default: today)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, today_str: str | None, verbose: bool):
    """Forecastit - Recurring obligation and cash-flow forecasting.

    Define accounts, recurring rules and one-off bills, then project
    balances forward to find the lowest point ahead.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    today = date.today()
    if today_str is not None:
        try:
            today = parse_date(today_str, today=today)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--today")
    ctx.obj["today"] = today

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db


# Register all commands
account.register_commands(cli)
rule.register_commands(cli)
bill.register_commands(cli)
goal.register_commands(cli)
forecast.register_commands(cli)
schedule.register_commands(cli)
statement.register_commands(cli)
upcoming.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
