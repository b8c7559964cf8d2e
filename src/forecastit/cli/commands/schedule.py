"""Loan amortization schedule commands."""

import click
from forecastit.cli.account_resolution import parse_option_or_exit, resolve_account_or_exit
from forecastit.cli.error_handling import handle_domain_error
from forecastit.domain.account import AccountService
from forecastit.domain.forecast import ForecastService
from forecastit.domain.schedule import ScheduleService
from forecastit.utils.amount_parser import parse_magnitude
from forecastit.utils.date_parser import parse_date


@click.command("schedule")
@click.argument("account", metavar="LOAN_ACCOUNT")
@click.option("--upcoming-only", is_flag=True, help="Hide paid installments")
@click.pass_context
def schedule_command(ctx, account: str, upcoming_only: bool):
    """Show the amortization schedule of a loan.

    LOAN_ACCOUNT can be an account name or ID.
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    try:
        payments = ForecastService(db).loan_schedule(account_id, today=ctx.obj["today"])
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"\n{'#':>4s} | {'Date':10s} | {'Payment':>11s} | {'Principal':>11s} | "
               f"{'Interest':>10s} | {'Balance':>13s} | Status")
    click.echo("-" * 85)
    for p in payments:
        if upcoming_only and p.status.value == "paid":
            continue
        click.echo(
            f"{p.installment:4d} | {p.date} | {p.total_payment:>11,.2f} | {p.principal:>11,.2f} | "
            f"{p.interest:>10,.2f} | {p.outstanding_balance:>13,.2f} | {p.status.value}"
        )


@click.command("installment")
@click.argument("account", metavar="LOAN_ACCOUNT")
@click.argument("installment", type=int, metavar="N")
@click.option("--date", "new_date_str", help="Move the installment to this date")
@click.option("--total", help="Replacement total payment")
@click.option("--principal", help="Replacement principal part")
@click.option("--interest", help="Replacement interest part")
@click.pass_context
def installment_command(
    ctx,
    account: str,
    installment: int,
    new_date_str: str | None,
    total: str | None,
    principal: str | None,
    interest: str | None,
):
    """Override one installment of a loan schedule.

    Example:
        forecastit installment Mortgage 12 --total 1500
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    def as_date(value):
        return parse_date(value, today=ctx.obj["today"])

    try:
        ScheduleService(db).override_installment(
            account_id,
            installment,
            new_date=parse_option_or_exit(ctx, as_date, new_date_str, "--date"),
            total_payment=parse_option_or_exit(ctx, parse_magnitude, total, "--total"),
            principal=parse_option_or_exit(ctx, parse_magnitude, principal, "--principal"),
            interest=parse_option_or_exit(ctx, parse_magnitude, interest, "--interest"),
        )
        click.echo(f"Overrode installment {installment} of loan {account_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register loan schedule commands with main CLI."""
    cli.add_command(schedule_command, name="schedule")
    cli.add_command(installment_command, name="installment")
