"""CLI helpers for account resolution."""

from __future__ import annotations

import click
from forecastit.domain.account import AccountService
from forecastit.utils.account_resolver import resolve_account


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, account: str | int
) -> int:
    """Resolve account name or ID, or exit with a CLI error."""
    try:
        return resolve_account(account_service, account)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def parse_option_or_exit(ctx: click.Context, parser, value: str | None, option: str):
    """Run a value parser on an optional CLI value, exiting with an error on failure."""
    if value is None:
        return None
    try:
        return parser(value)
    except ValueError as exc:
        click.echo(f"Error: {option}: {exc}", err=True)
        ctx.exit(1)
