"""Mapper functions to convert SQLAlchemy models into domain entities.

Enum-valued columns are stored as their string values and turned back into
domain enums here, so the engine never sees raw strings.
"""

from typing import Optional

from forecastit.domain import entities as domain
from forecastit.database.models import (
    Account as ORMAccount,
    Bill as ORMBill,
    Goal as ORMGoal,
    LoanPaymentOverride as ORMLoanPaymentOverride,
    RecurringOverride as ORMRecurringOverride,
    RecurringRule as ORMRecurringRule,
    Transaction as ORMTransaction,
)


def _frequency(value: Optional[str]) -> Optional[domain.Frequency]:
    return domain.Frequency(value) if value else None


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        type=domain.AccountType(orm_account.type),
        balance=orm_account.balance,
        currency=orm_account.currency,
        interest_rate=orm_account.interest_rate,
        credit_limit=orm_account.credit_limit,
        statement_start_day=orm_account.statement_start_day,
        payment_day=orm_account.payment_day,
        linked_loan_id=orm_account.linked_loan_id,
        settlement_account_id=orm_account.settlement_account_id,
        principal_amount=orm_account.principal_amount,
        duration_months=orm_account.duration_months,
        loan_start_date=orm_account.loan_start_date,
        monthly_payment=orm_account.monthly_payment,
        payment_day_of_month=orm_account.payment_day_of_month,
        property_tax_amount=orm_account.property_tax_amount,
        property_tax_date=orm_account.property_tax_date,
        insurance_amount=orm_account.insurance_amount,
        insurance_frequency=_frequency(orm_account.insurance_frequency),
        insurance_payment_date=orm_account.insurance_payment_date,
        hoa_fee_amount=orm_account.hoa_fee_amount,
        hoa_fee_frequency=_frequency(orm_account.hoa_fee_frequency),
        is_rental=orm_account.is_rental,
        rental_income_amount=orm_account.rental_income_amount,
        rental_income_frequency=_frequency(orm_account.rental_income_frequency),
    )


def rule_to_domain(orm_rule: ORMRecurringRule) -> domain.RecurrenceRule:
    """Convert SQLAlchemy RecurringRule model to domain RecurrenceRule entity."""
    return domain.RecurrenceRule(
        id=str(orm_rule.id),
        account_id=orm_rule.account_id,
        amount=orm_rule.amount,
        kind=domain.TransactionKind(orm_rule.kind),
        currency=orm_rule.currency,
        frequency=domain.Frequency(orm_rule.frequency),
        start_date=orm_rule.start_date,
        next_due_date=orm_rule.next_due_date,
        interval=orm_rule.interval,
        end_date=orm_rule.end_date,
        destination_account_id=orm_rule.destination_account_id,
        pinned_day=orm_rule.pinned_day,
        weekend_adjustment=domain.WeekendAdjustment(orm_rule.weekend_adjustment),
        description=orm_rule.description or "",
    )


def override_to_domain(orm_override: ORMRecurringOverride) -> domain.Override:
    """Convert SQLAlchemy RecurringOverride model to domain Override entity."""
    return domain.Override(
        rule_id=orm_override.rule_id,
        original_date=orm_override.original_date,
        date=orm_override.date,
        amount=orm_override.amount,
        description=orm_override.description,
        is_skipped=orm_override.is_skipped,
    )


def loan_override_to_domain(orm_override: ORMLoanPaymentOverride) -> domain.LoanPaymentOverride:
    """Convert SQLAlchemy LoanPaymentOverride model to domain entity."""
    return domain.LoanPaymentOverride(
        account_id=orm_override.account_id,
        installment=orm_override.installment,
        date=orm_override.date,
        total_payment=orm_override.total_payment,
        principal=orm_override.principal,
        interest=orm_override.interest,
    )


def bill_to_domain(orm_bill: ORMBill) -> domain.OneOffObligation:
    """Convert SQLAlchemy Bill model to domain OneOffObligation entity."""
    return domain.OneOffObligation(
        id=orm_bill.id,
        description=orm_bill.description,
        amount=orm_bill.amount,
        currency=orm_bill.currency,
        due_date=orm_bill.due_date,
        status=domain.BillStatus(orm_bill.status),
        direction=domain.BillDirection(orm_bill.direction),
        account_id=orm_bill.account_id,
    )


def goal_to_domain(orm_goal: ORMGoal) -> domain.Goal:
    """Convert SQLAlchemy Goal model to domain Goal entity."""
    return domain.Goal(
        id=orm_goal.id,
        name=orm_goal.name,
        target_amount=orm_goal.target_amount,
        current_amount=orm_goal.current_amount,
        currency=orm_goal.currency,
        kind=domain.TransactionKind(orm_goal.kind),
        payment_account_id=orm_goal.payment_account_id,
        linked_rule_id=orm_goal.linked_rule_id,
        target_date=orm_goal.target_date,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        account_id=orm_transaction.account_id,
        date=orm_transaction.date,
        amount=orm_transaction.amount,
        currency=orm_transaction.currency,
        kind=domain.TransactionKind(orm_transaction.kind),
        description=orm_transaction.description,
        transfer_id=orm_transaction.transfer_id,
        principal_amount=orm_transaction.principal_amount,
        interest_amount=orm_transaction.interest_amount,
        pending=orm_transaction.pending,
    )
