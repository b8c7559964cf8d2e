"""Forecast domain service.

Loads ledger state through the Database interface and runs the pure
engine functions over it. Nothing is written back.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Mapping, Optional, Sequence

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from forecastit.database.base import Database
from forecastit.domain.currency import DEFAULT_RATES, ConversionTable
from forecastit.domain.derivers import amortization_schedule, derive_all, has_amortization_profile
from forecastit.domain.entities import (
    Account,
    AccountType,
    Occurrence,
    ScheduledPayment,
    StatementReport,
)
from forecastit.domain.errors import (
    InvalidRuleError,
    MissingConversionRateError,
    NotFoundError,
    UnboundedExpansionError,
    ValidationError,
    account_not_found,
    account_type_mismatch,
)
from forecastit.domain.obligations import ExplicitObligation, Obligation, SyntheticObligation
from forecastit.domain.overrides import build_override_index
from forecastit.domain.simulator import ForecastResult, forecast
from forecastit.domain.statements import get_statement_details, periods

logger = logging.getLogger(__name__)


class ForecastService:
    """Service running forecasts, loan schedules and statements over the store."""

    def __init__(self, db: Database):
        """Initialize forecast service.

        Args:
            db: Database instance
        """
        self.db = db

    def _require_account(self, account_id: int) -> Account:
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def synthetic_obligations(self, today: date) -> list[SyntheticObligation]:
        """Derive loan, credit-card and property obligations from current state."""
        return derive_all(
            self.db.list_accounts(),
            self.db.list_transactions(),
            self.db.list_loan_payment_overrides(),
            today,
        )

    def forecast(
        self,
        today: date,
        horizon_end: date,
        account_ids: Optional[Sequence[int]] = None,
        base_currency: str = "EUR",
        rates: Optional[Mapping[str, Decimal]] = None,
        apply_weekend_adjustment: bool = True,
    ) -> ForecastResult:
        """Forecast balances from today through horizon_end.

        Args:
            today: Reference date (first simulated day)
            horizon_end: Last simulated day (inclusive)
            account_ids: Restrict the simulation to these accounts (all if None)
            base_currency: Currency every amount is reported in
            rates: Conversion rates (defaults to the built-in table)
            apply_weekend_adjustment: Shift weekend settlements per rule policy

        Returns:
            ForecastResult

        Raises:
            ValidationError: If horizon_end is before today
            NotFoundError: If a selected account does not exist
            MissingConversionRateError: If the base currency has no rate
        """
        if horizon_end < today:
            raise ValidationError(
                f"Forecast end {horizon_end.isoformat()} is before {today.isoformat()}"
            )

        table_rates = DEFAULT_RATES if rates is None else rates
        if base_currency.upper() not in {code.upper() for code in table_rates}:
            raise MissingConversionRateError(base_currency)
        conversion = ConversionTable(table_rates, base_currency=base_currency)

        all_accounts = self.db.list_accounts()
        accounts = all_accounts
        if account_ids is not None:
            by_id = {a.id: a for a in all_accounts}
            missing = [i for i in account_ids if i not in by_id]
            if missing:
                raise NotFoundError(account_not_found(missing[0]))
            accounts = [by_id[i] for i in account_ids]

        transactions = self.db.list_transactions()
        synthetics = derive_all(
            all_accounts, transactions, self.db.list_loan_payment_overrides(), today
        )
        logger.debug("Derived %d synthetic obligations", len(synthetics))

        return forecast(
            accounts,
            rules=self.db.list_recurring_rules(),
            synthetics=synthetics,
            one_offs=self.db.list_bills(unpaid_only=True),
            goals=self.db.list_goals(),
            horizon_end=horizon_end,
            today=today,
            overrides=self.db.list_overrides(),
            conversion=conversion,
            apply_weekend_adjustment=apply_weekend_adjustment,
        )

    def loan_schedule(self, account_id: int, today: date) -> list[ScheduledPayment]:
        """Amortization schedule of a loan account.

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the account is not a loan with full loan terms
        """
        account = self._require_account(account_id)
        if account.type != AccountType.LOAN:
            raise ValidationError(account_type_mismatch(account_id, AccountType.LOAN.value))
        if not has_amortization_profile(account):
            raise ValidationError(
                f"Loan {account_id} needs principal, interest rate, duration and start date"
            )
        return amortization_schedule(
            account,
            self.db.list_transactions(account_id=account_id),
            self.db.list_loan_payment_overrides(account_id=account_id),
            today=today,
        )

    def statements(self, account_id: int, today: date) -> list[StatementReport]:
        """Previous, current and future billing cycles of a credit card.

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the account is not a credit card with cycle days
        """
        account = self._require_account(account_id)
        if account.type != AccountType.CREDIT_CARD:
            raise ValidationError(account_type_mismatch(account_id, AccountType.CREDIT_CARD.value))
        if account.statement_start_day is None or account.payment_day is None:
            raise ValidationError(
                f"Credit card {account_id} needs a statement start day and a payment day"
            )

        cycles = periods(account.statement_start_day, account.payment_day, today)
        # Settlement legs live on another account, so read the whole ledger
        transactions = self.db.list_transactions()
        reports = []
        for label, period in (
            ("previous", cycles.previous),
            ("current", cycles.current),
            ("future", cycles.future),
        ):
            details = get_statement_details(
                account, period.start, period.end + timedelta(days=1), transactions
            )
            reports.append(StatementReport(label=label, period=period, details=details))
        return reports

    def upcoming(self, today: date, days: int = 30) -> list[Occurrence]:
        """Resolved recurring, synthetic and one-off items due in the next ``days`` days.

        Rules that cannot be expanded are left out and logged.
        """
        if days < 0:
            raise ValidationError("Number of days must not be negative")
        window_end = today + timedelta(days=days)

        obligations: list[Obligation] = [
            ExplicitObligation(rule) for rule in self.db.list_recurring_rules()
        ]
        obligations.extend(self.synthetic_obligations(today))
        override_index = build_override_index(self.db.list_overrides())

        items: list[Occurrence] = []
        for obligation in obligations:
            try:
                items.extend(obligation.occurrences(today, window_end, override_index))
            except (InvalidRuleError, UnboundedExpansionError) as exc:
                logger.warning("Skipping %s: %s", obligation.obligation_id, exc)
        for bill in self.db.list_bills(unpaid_only=True):
            items.extend(bill.occurrences(today, window_end))

        items = [occ for occ in items if today <= occ.date <= window_end]
        items.sort(key=lambda occ: (occ.date, occ.obligation_id, occ.account_id or 0))
        return items
