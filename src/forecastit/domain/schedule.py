"""Schedule domain service: recurring rules, overrides, bills and goals."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from forecastit.database.base import Database
from forecastit.domain.entities import (
    AccountType,
    BillDirection,
    Frequency,
    Goal,
    LoanPaymentOverride,
    OneOffObligation,
    Override,
    RecurrenceRule,
    TransactionKind,
    WeekendAdjustment,
)
from forecastit.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    account_type_mismatch,
    rule_not_found,
)
from forecastit.domain.recurrence import expand, validate_rule

logger = logging.getLogger(__name__)


class ScheduleService:
    """Service for managing what the forecast is built from."""

    def __init__(self, db: Database):
        """Initialize schedule service.

        Args:
            db: Database instance
        """
        self.db = db

    def _currency_for(self, account_id: Optional[int], currency: Optional[str]) -> str:
        if currency:
            return currency.upper()
        if account_id is not None:
            account = self.db.get_account(account_id)
            if account is None:
                raise NotFoundError(account_not_found(account_id))
            return account.currency
        return "EUR"

    def add_rule(
        self,
        account_id: int,
        amount: Decimal,
        kind: TransactionKind,
        frequency: Frequency,
        start_date: date,
        currency: Optional[str] = None,
        interval: int = 1,
        next_due_date: Optional[date] = None,
        end_date: Optional[date] = None,
        destination_account_id: Optional[int] = None,
        pinned_day: Optional[int] = None,
        weekend_adjustment: WeekendAdjustment = WeekendAdjustment.ON,
        description: str = "",
    ) -> str:
        """Create a recurring rule.

        Args:
            account_id: Account the rule charges (source for transfers)
            amount: Positive magnitude
            kind: Income, expense or transfer
            frequency: Recurrence frequency
            start_date: First occurrence
            currency: Currency code (defaults to the account's currency)
            interval: Frequency multiplier
            next_due_date: Cursor of the next unmaterialized occurrence
            end_date: Last possible occurrence
            destination_account_id: Receiving account for transfers
            pinned_day: Day of month for monthly/yearly rules
            weekend_adjustment: Weekend settlement policy
            description: Free text

        Returns:
            Rule ID

        Raises:
            NotFoundError: If an account does not exist
            InvalidRuleError: If the rule could never be expanded
        """
        currency = self._currency_for(account_id, currency)
        if destination_account_id is not None and self.db.get_account(destination_account_id) is None:
            raise NotFoundError(account_not_found(destination_account_id))

        validate_rule(
            RecurrenceRule(
                id="new",
                account_id=account_id,
                amount=amount,
                kind=kind,
                currency=currency,
                frequency=frequency,
                start_date=start_date,
                next_due_date=next_due_date,
                interval=interval,
                end_date=end_date,
                destination_account_id=destination_account_id,
                pinned_day=pinned_day,
                weekend_adjustment=weekend_adjustment,
                description=description,
            )
        )

        rule_id = self.db.create_recurring_rule(
            account_id=account_id,
            amount=amount,
            kind=kind,
            currency=currency,
            frequency=frequency,
            start_date=start_date,
            interval=interval,
            next_due_date=next_due_date,
            end_date=end_date,
            destination_account_id=destination_account_id,
            pinned_day=pinned_day,
            weekend_adjustment=weekend_adjustment,
            description=description,
        )
        logger.debug("Created recurring rule %s on account %s", rule_id, account_id)
        return rule_id

    def get_rule(self, rule_id: str) -> RecurrenceRule:
        """Get a stored rule, raising NotFoundError if missing."""
        rule = self.db.get_recurring_rule(rule_id)
        if rule is None:
            raise NotFoundError(rule_not_found(rule_id))
        return rule

    def list_rules(self, account_id: Optional[int] = None) -> list[RecurrenceRule]:
        return self.db.list_recurring_rules(account_id=account_id)

    def _check_occurrence(self, rule_id: str, original_date: date) -> None:
        """Ensure a stored rule actually produces an occurrence on ``original_date``.

        Rule IDs that are not stored (synthetic rules such as ``loan-pmt-3``)
        are accepted as-is.
        """
        if not rule_id.isdigit():
            return
        rule = self.get_rule(rule_id)
        if not expand(rule, original_date, original_date):
            raise ValidationError(
                f"Recurring rule {rule_id} has no occurrence on {original_date.isoformat()}"
            )

    def skip_occurrence(self, rule_id: str, original_date: date) -> None:
        """Suppress one occurrence of a rule.

        Raises:
            NotFoundError: If the rule does not exist
            ValidationError: If the rule has no occurrence on that date
        """
        self._check_occurrence(rule_id, original_date)
        self.db.save_override(Override(rule_id=rule_id, original_date=original_date, is_skipped=True))

    def override_occurrence(
        self,
        rule_id: str,
        original_date: date,
        new_date: Optional[date] = None,
        amount: Optional[Decimal] = None,
        description: Optional[str] = None,
    ) -> None:
        """Replace date, amount or description of one occurrence.

        Saving again for the same occurrence replaces the previous override.

        Raises:
            NotFoundError: If the rule does not exist
            ValidationError: If nothing would change or the rule has no
                occurrence on that date
        """
        if new_date is None and amount is None and description is None:
            raise ValidationError("An override needs a new date, amount or description")
        if amount is not None and amount < 0:
            raise ValidationError("Override amount must be a positive magnitude")
        self._check_occurrence(rule_id, original_date)
        self.db.save_override(
            Override(
                rule_id=rule_id,
                original_date=original_date,
                date=new_date,
                amount=amount,
                description=description,
            )
        )

    def clear_override(self, rule_id: str, original_date: date) -> None:
        """Remove an override, restoring the original occurrence.

        Raises:
            NotFoundError: If there is no override for that occurrence
        """
        if not self.db.delete_override(rule_id, original_date):
            raise NotFoundError(
                f"Recurring rule {rule_id} has no override on {original_date.isoformat()}"
            )

    def list_overrides(self, rule_id: Optional[str] = None) -> list[Override]:
        return self.db.list_overrides(rule_id=rule_id)

    def add_bill(
        self,
        description: str,
        amount: Decimal,
        due_date: date,
        currency: Optional[str] = None,
        direction: BillDirection = BillDirection.PAYMENT,
        account_id: Optional[int] = None,
    ) -> int:
        """Create an unpaid one-off bill or deposit.

        Raises:
            ValidationError: If amount is not positive
            NotFoundError: If the account does not exist
        """
        if amount <= 0:
            raise ValidationError("Bill amount must be positive")
        currency = self._currency_for(account_id, currency)
        return self.db.create_bill(
            description=description,
            amount=amount,
            currency=currency,
            due_date=due_date,
            direction=direction,
            account_id=account_id,
        )

    def list_bills(self, unpaid_only: bool = False) -> list[OneOffObligation]:
        return self.db.list_bills(unpaid_only=unpaid_only)

    def pay_bill(self, bill_id: int) -> None:
        """Mark a bill as paid so it no longer appears in forecasts."""
        try:
            self.db.mark_bill_paid(bill_id)
        except ValueError as exc:
            raise NotFoundError(str(exc)) from exc

    def add_goal(
        self,
        name: str,
        target_amount: Decimal,
        currency: Optional[str] = None,
        current_amount: Decimal = Decimal("0"),
        kind: TransactionKind = TransactionKind.EXPENSE,
        payment_account_id: Optional[int] = None,
        linked_rule_id: Optional[str] = None,
        target_date: Optional[date] = None,
    ) -> int:
        """Create a goal.

        A goal linked to a rule tags that rule's occurrences; an unlinked
        goal with a target date contributes its remaining amount on that date.

        Raises:
            ValidationError: If target amount is not positive
            NotFoundError: If the account or linked rule does not exist
        """
        if target_amount <= 0:
            raise ValidationError("Goal target amount must be positive")
        if linked_rule_id is not None and linked_rule_id.isdigit():
            self.get_rule(linked_rule_id)
        currency = self._currency_for(payment_account_id, currency)
        return self.db.create_goal(
            name=name,
            target_amount=target_amount,
            currency=currency,
            current_amount=current_amount,
            kind=kind,
            payment_account_id=payment_account_id,
            linked_rule_id=linked_rule_id,
            target_date=target_date,
        )

    def list_goals(self) -> list[Goal]:
        return self.db.list_goals()

    def override_installment(
        self,
        account_id: int,
        installment: int,
        new_date: Optional[date] = None,
        total_payment: Optional[Decimal] = None,
        principal: Optional[Decimal] = None,
        interest: Optional[Decimal] = None,
    ) -> None:
        """Replace fields of one installment of a loan's amortization schedule.

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the account is not a loan or the installment
                index is out of range
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        if account.type != AccountType.LOAN:
            raise ValidationError(account_type_mismatch(account_id, AccountType.LOAN.value))
        if installment < 1 or (account.duration_months and installment > account.duration_months):
            raise ValidationError(f"Installment {installment} is out of range for loan {account_id}")
        self.db.save_loan_payment_override(
            LoanPaymentOverride(
                account_id=account_id,
                installment=installment,
                date=new_date,
                total_payment=total_payment,
                principal=principal,
                interest=interest,
            )
        )
