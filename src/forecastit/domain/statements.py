"""Credit-card statement cycles and statement balances."""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Sequence

from dateutil.relativedelta import relativedelta

from forecastit.domain.dates import clamp_day
from forecastit.domain.entities import (
    Account,
    AccountType,
    StatementDetails,
    StatementPeriod,
    StatementPeriods,
    Transaction,
    TransactionKind,
)
from forecastit.domain.errors import ValidationError, account_type_mismatch


def _check_day(name: str, day: int) -> None:
    if not 1 <= day <= 31:
        raise ValidationError(f"{name} must be a day of month between 1 and 31, got {day}")


def cycle_start_for(reference_date: date, statement_start_day: int) -> date:
    """Return the start of the cycle that contains ``reference_date``."""
    this_month = clamp_day(reference_date.year, reference_date.month, statement_start_day)
    if reference_date >= this_month:
        return this_month
    return reference_date + relativedelta(months=-1, day=statement_start_day)


def payment_due_for(cycle_end: date, statement_start_day: int, payment_day: int) -> date:
    """Return the payment-due date for a cycle ending on ``cycle_end``.

    Payment falls in the month after the cycle end when ``payment_day``
    precedes ``statement_start_day``, otherwise in the cycle end's month.
    A due date that would not come after the cycle end moves one month on.
    """
    if payment_day < statement_start_day:
        due = cycle_end + relativedelta(months=1, day=payment_day)
    else:
        due = clamp_day(cycle_end.year, cycle_end.month, payment_day)
    if due <= cycle_end:
        due = cycle_end + relativedelta(months=1, day=payment_day)
    return due


def build_period(start: date, statement_start_day: int, payment_day: int) -> StatementPeriod:
    """Build the cycle starting on ``start``; it ends the day before the next cycle."""
    next_start = start + relativedelta(months=1, day=statement_start_day)
    end = next_start - timedelta(days=1)
    return StatementPeriod(
        start=start,
        end=end,
        payment_due=payment_due_for(end, statement_start_day, payment_day),
    )


def periods(statement_start_day: int, payment_day: int, reference_date: date) -> StatementPeriods:
    """Compute the previous, current and next billing cycles around a date.

    Args:
        statement_start_day: Day of month a cycle starts on (1-31, clamped)
        payment_day: Day of month the statement is due (1-31, clamped)
        reference_date: Date that falls inside the current cycle

    Returns:
        StatementPeriods with contiguous, non-overlapping cycles

    Raises:
        ValidationError: If either day is outside 1-31
    """
    _check_day("Statement start day", statement_start_day)
    _check_day("Payment day", payment_day)

    current_start = cycle_start_for(reference_date, statement_start_day)
    previous_start = current_start + relativedelta(months=-1, day=statement_start_day)
    future_start = current_start + relativedelta(months=1, day=statement_start_day)

    return StatementPeriods(
        previous=build_period(previous_start, statement_start_day, payment_day),
        current=build_period(current_start, statement_start_day, payment_day),
        future=build_period(future_start, statement_start_day, payment_day),
    )


def _is_settlement_payment(
    txn: Transaction, account: Account, by_transfer: dict[str, list[Transaction]]
) -> bool:
    if txn.kind != TransactionKind.INCOME or not txn.transfer_id:
        return False
    if account.settlement_account_id is None:
        return False
    return any(
        other.id != txn.id and other.account_id == account.settlement_account_id
        for other in by_transfer.get(txn.transfer_id, ())
    )


def get_statement_details(
    account: Account,
    start: date,
    end: date,
    transactions: Sequence[Transaction] | Iterable[Transaction],
) -> StatementDetails:
    """Sum a card's posted transactions in the half-open window ``[start, end)``.

    Payments received from the card's settlement account are reported as
    ``amount_paid`` and left out of the statement balance; purchases,
    fees and refunds make up the balance. Pending transactions are ignored.

    Raises:
        ValidationError: If the account is not a credit card
    """
    if account.type != AccountType.CREDIT_CARD:
        raise ValidationError(account_type_mismatch(account.id, AccountType.CREDIT_CARD.value))

    transactions = list(transactions)
    by_transfer: dict[str, list[Transaction]] = {}
    for txn in transactions:
        if txn.transfer_id:
            by_transfer.setdefault(txn.transfer_id, []).append(txn)

    statement_balance = Decimal("0")
    amount_paid = Decimal("0")
    count = 0
    for txn in transactions:
        if txn.account_id != account.id or txn.pending:
            continue
        if not start <= txn.date < end:
            continue
        count += 1
        if _is_settlement_payment(txn, account, by_transfer):
            amount_paid += txn.amount
        else:
            statement_balance += txn.amount

    return StatementDetails(
        statement_balance=statement_balance,
        amount_paid=amount_paid,
        transaction_count=count,
    )
