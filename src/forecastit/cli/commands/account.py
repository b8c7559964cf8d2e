"""Account management commands."""

from decimal import Decimal

import click
from forecastit.cli.account_resolution import parse_option_or_exit, resolve_account_or_exit
from forecastit.cli.error_handling import handle_domain_error
from forecastit.domain.account import AccountService
from forecastit.domain.entities import AccountType, Frequency
from forecastit.utils.amount_parser import parse_amount, parse_magnitude
from forecastit.utils.date_parser import parse_date

ACCOUNT_TYPES = [t.value for t in AccountType]
FREQUENCIES = [f.value for f in Frequency]


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--type", "account_type", type=click.Choice(ACCOUNT_TYPES), default="checking", show_default=True)
@click.option("--balance", default="0", help="Current signed balance")
@click.option("--currency", default="EUR", show_default=True)
@click.option("--settlement-account", help="Account that pays this account's obligations")
@click.option("--statement-start-day", type=int, help="Credit card: first day of each cycle")
@click.option("--payment-day", type=int, help="Credit card: day the statement is due")
@click.option("--credit-limit", help="Credit card limit")
@click.option("--interest-rate", help="Annual interest rate in percent")
@click.option("--principal", help="Loan: original principal")
@click.option("--duration", "duration_months", type=int, help="Loan: term in months")
@click.option("--loan-start", help="Loan: start date")
@click.option("--monthly-payment", help="Loan: fixed monthly payment")
@click.option("--payment-day-of-month", type=int, help="Loan: installment day")
@click.option("--property-tax", help="Property: yearly tax amount")
@click.option("--property-tax-date", help="Property: tax due date")
@click.option("--insurance", help="Property: insurance amount")
@click.option("--insurance-frequency", type=click.Choice(FREQUENCIES))
@click.option("--insurance-date", help="Property: insurance payment date")
@click.option("--hoa-fee", help="Property: HOA fee amount")
@click.option("--hoa-frequency", type=click.Choice(FREQUENCIES))
@click.option("--rental-income", help="Property: rental income amount (marks the property as rental)")
@click.option("--rental-frequency", type=click.Choice(FREQUENCIES))
@click.pass_context
def create_account(
    ctx,
    name: str,
    account_type: str,
    balance: str,
    currency: str,
    settlement_account: str | None,
    statement_start_day: int | None,
    payment_day: int | None,
    credit_limit: str | None,
    interest_rate: str | None,
    principal: str | None,
    duration_months: int | None,
    loan_start: str | None,
    monthly_payment: str | None,
    payment_day_of_month: int | None,
    property_tax: str | None,
    property_tax_date: str | None,
    insurance: str | None,
    insurance_frequency: str | None,
    insurance_date: str | None,
    hoa_fee: str | None,
    hoa_frequency: str | None,
    rental_income: str | None,
    rental_frequency: str | None,
):
    """Create a new account.

    Examples:
        forecastit account create "Checking" --balance 2500
        forecastit account create "Visa" --type credit_card --balance -320 \\
            --statement-start-day 5 --payment-day 25 --settlement-account Checking
        forecastit account create "Mortgage" --type loan --principal 200000 \\
            --interest-rate 3.5 --duration 360 --loan-start 2024-01-01 \\
            --payment-day-of-month 1 --settlement-account Checking
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    today = ctx.obj["today"]

    def as_date(value):
        return parse_date(value, today=today)

    details = {
        "statement_start_day": statement_start_day,
        "payment_day": payment_day,
        "credit_limit": parse_option_or_exit(ctx, parse_magnitude, credit_limit, "--credit-limit"),
        "interest_rate": parse_option_or_exit(ctx, parse_magnitude, interest_rate, "--interest-rate"),
        "principal_amount": parse_option_or_exit(ctx, parse_magnitude, principal, "--principal"),
        "duration_months": duration_months,
        "loan_start_date": parse_option_or_exit(ctx, as_date, loan_start, "--loan-start"),
        "monthly_payment": parse_option_or_exit(ctx, parse_magnitude, monthly_payment, "--monthly-payment"),
        "payment_day_of_month": payment_day_of_month,
        "property_tax_amount": parse_option_or_exit(ctx, parse_magnitude, property_tax, "--property-tax"),
        "property_tax_date": parse_option_or_exit(ctx, as_date, property_tax_date, "--property-tax-date"),
        "insurance_amount": parse_option_or_exit(ctx, parse_magnitude, insurance, "--insurance"),
        "insurance_frequency": Frequency(insurance_frequency) if insurance_frequency else None,
        "insurance_payment_date": parse_option_or_exit(ctx, as_date, insurance_date, "--insurance-date"),
        "hoa_fee_amount": parse_option_or_exit(ctx, parse_magnitude, hoa_fee, "--hoa-fee"),
        "hoa_fee_frequency": Frequency(hoa_frequency) if hoa_frequency else None,
        "rental_income_amount": parse_option_or_exit(ctx, parse_magnitude, rental_income, "--rental-income"),
        "rental_income_frequency": Frequency(rental_frequency) if rental_frequency else None,
    }
    details = {key: value for key, value in details.items() if value is not None}
    if "rental_income_amount" in details:
        details["is_rental"] = True
    if settlement_account is not None:
        details["settlement_account_id"] = resolve_account_or_exit(ctx, service, settlement_account)

    starting_balance = parse_option_or_exit(ctx, parse_amount, balance, "--balance") or Decimal("0")

    try:
        account_id = service.create_account(
            name=name,
            account_type=AccountType(account_type),
            balance=starting_balance,
            currency=currency,
            **details,
        )
        click.echo(f"Created account '{name}' (ID: {account_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.pass_context
def list_accounts(ctx):
    """List all accounts."""
    db = ctx.obj["db"]
    service = AccountService(db)

    accounts = service.list_accounts()
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 70)
    for acc in accounts:
        click.echo(
            f"ID: {acc.id:3d} | {acc.name:20s} | {acc.type.value:12s} | "
            f"{acc.balance:>12,.2f} {acc.currency}"
        )


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
