"""Synthetic obligation derivers.

Each deriver is a pure function of current account state (plus the ledger
where needed). Nothing here is persisted or cached; calling a deriver again
with the same inputs yields the same obligations.
"""

import logging
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Optional, Sequence

from dateutil.relativedelta import relativedelta

from forecastit.domain.dates import clamp_day, month_start
from forecastit.domain.entities import (
    Account,
    AccountType,
    Frequency,
    LoanPaymentOverride,
    ObligationOrigin,
    PaymentStatus,
    RecurrenceRule,
    ScheduledPayment,
    Transaction,
    TransactionKind,
    WeekendAdjustment,
)
from forecastit.domain.obligations import SyntheticObligation
from forecastit.domain.statements import get_statement_details, periods

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _first_on_or_after(anchor: date, day: int) -> date:
    """First date pinned to ``day`` (clamped) on or after ``anchor``."""
    candidate = clamp_day(anchor.year, anchor.month, day)
    if candidate < anchor:
        candidate = anchor + relativedelta(months=1, day=day)
    return candidate


def has_amortization_profile(account: Account) -> bool:
    return (
        account.type == AccountType.LOAN
        and bool(account.principal_amount)
        and bool(account.duration_months)
        and account.loan_start_date is not None
        and account.interest_rate is not None
    )


def standard_payment(principal: Decimal, annual_rate: Decimal, months: int) -> Decimal:
    """Fixed annuity payment for a loan, at full precision."""
    monthly_rate = annual_rate / Decimal(100) / Decimal(12)
    if monthly_rate == 0:
        return principal / Decimal(months)
    growth = (1 + monthly_rate) ** months
    return principal * monthly_rate * growth / (growth - 1)


def _posted_loan_payments(
    account: Account, transactions: Iterable[Transaction]
) -> dict[tuple[int, int], Transaction]:
    """Posted transfers into a loan account, keyed by (year, month)."""
    payments: dict[tuple[int, int], Transaction] = {}
    relevant = [
        txn
        for txn in transactions
        if txn.account_id == account.id
        and txn.transfer_id
        and txn.kind == TransactionKind.INCOME
        and not txn.pending
    ]
    for txn in sorted(relevant, key=lambda t: t.date):
        payments[(txn.date.year, txn.date.month)] = txn
    return payments


def amortization_schedule(
    account: Account,
    transactions: Sequence[Transaction] = (),
    overrides: Optional[Mapping[int, LoanPaymentOverride] | Iterable[LoanPaymentOverride]] = None,
    today: Optional[date] = None,
) -> list[ScheduledPayment]:
    """Compute the amortization schedule of a loan account.

    Interest for each installment is the outstanding balance times the
    monthly rate; principal is the payment minus interest. The final
    installment, or any installment whose payment would overshoot, clears
    the remaining balance. A posted transfer into the loan during an
    installment's month marks it paid and takes its split from the posting.
    ``overrides`` are keyed by 1-based installment index.

    Args:
        account: Loan account with principal, rate, term and start date
        transactions: Ledger transactions (used to find posted payments)
        overrides: Per-installment overrides, as a mapping or iterable
        today: Reference date for paid/overdue/upcoming status

    Returns:
        One ScheduledPayment per month of the term, or an empty list if the
        account lacks an amortization profile
    """
    if not has_amortization_profile(account):
        return []

    if overrides is None:
        overrides = {}
    elif not isinstance(overrides, Mapping):
        overrides = {
            o.installment: o for o in overrides if o.account_id == account.id
        }

    principal_amount = Decimal(account.principal_amount)
    months = account.duration_months
    monthly_rate = Decimal(account.interest_rate) / Decimal(100) / Decimal(12)
    standard = standard_payment(principal_amount, Decimal(account.interest_rate), months)
    payment_day = account.payment_day_of_month or account.loan_start_date.day
    posted = _posted_loan_payments(account, transactions)

    schedule: list[ScheduledPayment] = []
    outstanding = principal_amount
    for installment in range(1, months + 1):
        scheduled_date = account.loan_start_date + relativedelta(months=installment, day=payment_day)
        override = overrides.get(installment)
        if override is not None and override.date is not None:
            scheduled_date = override.date

        real = posted.get((scheduled_date.year, scheduled_date.month))
        status = PaymentStatus.UPCOMING
        transaction_id = None

        if outstanding <= 0 and real is None:
            # Paid off early; keep the schedule length stable
            total = principal = interest = ZERO
        elif real is not None:
            status = PaymentStatus.PAID
            transaction_id = real.id
            interest = real.interest_amount or ZERO
            if real.principal_amount is not None:
                principal = real.principal_amount
            else:
                principal = real.amount - interest
            total = principal + interest
        else:
            interest = outstanding * monthly_rate
            if override is not None and override.interest is not None:
                interest = override.interest

            base = standard
            if override is not None and override.total_payment is not None:
                base = override.total_payment
            elif account.monthly_payment:
                base = Decimal(account.monthly_payment)

            if override is not None and override.principal is not None:
                principal = override.principal
            elif installment == months or outstanding < base - interest:
                principal = outstanding
            else:
                principal = base - interest
            total = principal + interest

            if today is not None and scheduled_date < today:
                status = PaymentStatus.OVERDUE

        outstanding = outstanding - principal
        schedule.append(
            ScheduledPayment(
                installment=installment,
                date=scheduled_date,
                total_payment=_money(total),
                principal=_money(principal),
                interest=_money(interest),
                outstanding_balance=_money(max(ZERO, outstanding)),
                status=status,
                transaction_id=transaction_id,
            )
        )

    return schedule


def _fixed_payment_rule(account: Account, today: date) -> RecurrenceRule:
    anchor = account.loan_start_date or today
    start = _first_on_or_after(anchor, account.payment_day_of_month)
    end_date = None
    if account.loan_start_date is not None and account.duration_months:
        end_date = account.loan_start_date + relativedelta(months=account.duration_months)
        if end_date < start:
            end_date = start
    return RecurrenceRule(
        id=f"loan-pmt-{account.id}",
        account_id=account.settlement_account_id,
        destination_account_id=account.id,
        amount=Decimal(account.monthly_payment),
        kind=TransactionKind.TRANSFER,
        currency=account.currency,
        frequency=Frequency.MONTHLY,
        start_date=start,
        end_date=end_date,
        pinned_day=account.payment_day_of_month,
        weekend_adjustment=WeekendAdjustment.AFTER,
        description=f"Loan Payment: {account.name}",
        is_synthetic=True,
    )


def derive_loan_obligations(
    accounts: Iterable[Account],
    today: date,
    transactions: Sequence[Transaction] = (),
    loan_overrides: Iterable[LoanPaymentOverride] = (),
) -> list[SyntheticObligation]:
    """Derive installment obligations for loan accounts.

    Loans with a full amortization profile yield their unpaid installments;
    loans with only a fixed monthly payment and payment day yield a monthly
    transfer rule. Either way the payment comes from the loan's settlement
    account, so loans without one are skipped.
    """
    loan_overrides = list(loan_overrides)
    obligations: list[SyntheticObligation] = []

    for account in accounts:
        if account.type != AccountType.LOAN or account.settlement_account_id is None:
            continue

        description = f"Loan Payment: {account.name}"
        if has_amortization_profile(account):
            schedule = amortization_schedule(
                account,
                transactions,
                [o for o in loan_overrides if o.account_id == account.id],
                today,
            )
            upcoming = tuple(p for p in schedule if p.status == PaymentStatus.UPCOMING)
            obligations.append(
                SyntheticObligation(
                    id=f"loan-{account.id}",
                    origin=ObligationOrigin.LOAN,
                    account_id=account.id,
                    description=description,
                    currency=account.currency,
                    installments=upcoming,
                    source_account_id=account.settlement_account_id,
                    destination_account_id=account.id,
                )
            )
        elif account.monthly_payment and account.payment_day_of_month:
            obligations.append(
                SyntheticObligation(
                    id=f"loan-pmt-{account.id}",
                    origin=ObligationOrigin.LOAN,
                    account_id=account.id,
                    description=description,
                    currency=account.currency,
                    rule=_fixed_payment_rule(account, today),
                )
            )

    logger.debug("Derived %d loan obligations", len(obligations))
    return obligations


def derive_credit_card_obligations(
    accounts: Iterable[Account],
    transactions: Sequence[Transaction],
    today: date,
) -> list[SyntheticObligation]:
    """Derive statement payments for configured credit cards.

    For the current and next cycles whose payment is not yet due, a card
    with a negative statement balance gets a one-shot transfer from its
    settlement account for the full balance, on the cycle's due date.
    """
    obligations: list[SyntheticObligation] = []
    for account in accounts:
        if (
            account.type != AccountType.CREDIT_CARD
            or not account.statement_start_day
            or not account.payment_day
            or account.settlement_account_id is None
        ):
            continue

        cycles = periods(account.statement_start_day, account.payment_day, today)
        for label, period in (("Current", cycles.current), ("Next", cycles.future)):
            if period.payment_due < today:
                continue
            details = get_statement_details(
                account, period.start, period.end + timedelta(days=1), transactions
            )
            if details.statement_balance >= 0:
                continue

            due = period.payment_due
            obligation_id = f"cc-pmt-{account.id}-{due.isoformat()}"
            description = f"Payment for {account.name} ({label} Statement)"
            rule = RecurrenceRule(
                id=obligation_id,
                account_id=account.settlement_account_id,
                destination_account_id=account.id,
                amount=-details.statement_balance,
                kind=TransactionKind.TRANSFER,
                currency=account.currency,
                frequency=Frequency.MONTHLY,
                start_date=due,
                end_date=due,
                next_due_date=due,
                weekend_adjustment=WeekendAdjustment.AFTER,
                description=description,
                is_synthetic=True,
            )
            obligations.append(
                SyntheticObligation(
                    id=obligation_id,
                    origin=ObligationOrigin.CREDIT_CARD,
                    account_id=account.id,
                    description=description,
                    currency=account.currency,
                    rule=rule,
                )
            )

    logger.debug("Derived %d credit card obligations", len(obligations))
    return obligations


def _property_rule(
    account: Account,
    label: str,
    amount: Decimal,
    kind: TransactionKind,
    frequency: Frequency,
    start: date,
) -> SyntheticObligation:
    obligation_id = f"property-{label.lower().replace(' ', '-')}-{account.id}"
    description = f"{label}: {account.name}"
    rule = RecurrenceRule(
        id=obligation_id,
        account_id=account.settlement_account_id or account.id,
        amount=Decimal(amount),
        kind=kind,
        currency=account.currency,
        frequency=frequency,
        start_date=start,
        description=description,
        is_synthetic=True,
    )
    return SyntheticObligation(
        id=obligation_id,
        origin=ObligationOrigin.PROPERTY,
        account_id=account.id,
        description=description,
        currency=account.currency,
        rule=rule,
    )


def derive_property_obligations(
    accounts: Iterable[Account],
    today: date,
) -> list[SyntheticObligation]:
    """Derive carrying costs (tax, insurance, HOA) and rental income for properties.

    Costs are charged to the property's settlement account when set,
    otherwise to the property account itself. Items without a stored
    payment date start on the first of the current month.
    """
    first_of_month = month_start(today)
    obligations: list[SyntheticObligation] = []

    for account in accounts:
        if account.type != AccountType.PROPERTY:
            continue

        if account.property_tax_amount:
            obligations.append(
                _property_rule(
                    account, "Property Tax", account.property_tax_amount,
                    TransactionKind.EXPENSE, Frequency.YEARLY,
                    account.property_tax_date or first_of_month,
                )
            )
        if account.insurance_amount:
            obligations.append(
                _property_rule(
                    account, "Insurance", account.insurance_amount,
                    TransactionKind.EXPENSE,
                    account.insurance_frequency or Frequency.YEARLY,
                    account.insurance_payment_date or first_of_month,
                )
            )
        if account.hoa_fee_amount:
            obligations.append(
                _property_rule(
                    account, "HOA Fee", account.hoa_fee_amount,
                    TransactionKind.EXPENSE,
                    account.hoa_fee_frequency or Frequency.MONTHLY,
                    first_of_month,
                )
            )
        if account.is_rental and account.rental_income_amount:
            obligations.append(
                _property_rule(
                    account, "Rental Income", account.rental_income_amount,
                    TransactionKind.INCOME,
                    account.rental_income_frequency or Frequency.MONTHLY,
                    first_of_month,
                )
            )

    logger.debug("Derived %d property obligations", len(obligations))
    return obligations


def derive_all(
    accounts: Sequence[Account],
    transactions: Sequence[Transaction],
    loan_overrides: Iterable[LoanPaymentOverride],
    today: date,
) -> list[SyntheticObligation]:
    """Run all three derivers over current account state."""
    return [
        *derive_loan_obligations(accounts, today, transactions, loan_overrides),
        *derive_credit_card_obligations(accounts, transactions, today),
        *derive_property_obligations(accounts, today),
    ]
