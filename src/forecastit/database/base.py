"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Any
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from forecastit.domain.entities import (
    Account,
    AccountType,
    BillDirection,
    Frequency,
    Goal,
    LoanPaymentOverride,
    OneOffObligation,
    Override,
    RecurrenceRule,
    Transaction,
    TransactionKind,
    WeekendAdjustment,
)


class Database(ABC):
    """Abstract ledger store read by the forecasting engine.

    The engine never writes through this interface; writes come from the
    CLI and tests setting up ledger state.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        name: str,
        account_type: AccountType,
        balance: Decimal = Decimal("0"),
        currency: str = "EUR",
        **details: Any,
    ) -> int:
        """Create a new account. Returns account ID.

        ``details`` holds optional card, loan and property fields named as
        on the Account entity.
        """
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self) -> list[Account]:
        """List all accounts."""
        pass

    # Recurring rule operations
    @abstractmethod
    def create_recurring_rule(
        self,
        account_id: int,
        amount: Decimal,
        kind: TransactionKind,
        currency: str,
        frequency: Frequency,
        start_date: date,
        interval: int = 1,
        next_due_date: Optional[date] = None,
        end_date: Optional[date] = None,
        destination_account_id: Optional[int] = None,
        pinned_day: Optional[int] = None,
        weekend_adjustment: WeekendAdjustment = WeekendAdjustment.ON,
        description: str = "",
    ) -> str:
        """Create a recurring rule. Returns rule ID."""
        pass

    @abstractmethod
    def get_recurring_rule(self, rule_id: str) -> Optional[RecurrenceRule]:
        """Get recurring rule by ID."""
        pass

    @abstractmethod
    def list_recurring_rules(self, account_id: Optional[int] = None) -> list[RecurrenceRule]:
        """List recurring rules, optionally filtered by account."""
        pass

    # Override operations
    @abstractmethod
    def save_override(self, override: Override) -> None:
        """Insert or replace the override for (rule_id, original_date)."""
        pass

    @abstractmethod
    def delete_override(self, rule_id: str, original_date: date) -> bool:
        """Delete an override. Returns True if one existed."""
        pass

    @abstractmethod
    def list_overrides(self, rule_id: Optional[str] = None) -> list[Override]:
        """List overrides, optionally filtered by rule."""
        pass

    @abstractmethod
    def save_loan_payment_override(self, override: LoanPaymentOverride) -> None:
        """Insert or replace the override for (account_id, installment)."""
        pass

    @abstractmethod
    def list_loan_payment_overrides(self, account_id: Optional[int] = None) -> list[LoanPaymentOverride]:
        """List loan installment overrides, optionally filtered by account."""
        pass

    # Bill operations
    @abstractmethod
    def create_bill(
        self,
        description: str,
        amount: Decimal,
        currency: str,
        due_date: date,
        direction: BillDirection = BillDirection.PAYMENT,
        account_id: Optional[int] = None,
    ) -> int:
        """Create an unpaid one-off bill. Returns bill ID."""
        pass

    @abstractmethod
    def list_bills(self, unpaid_only: bool = False) -> list[OneOffObligation]:
        """List one-off bills."""
        pass

    @abstractmethod
    def mark_bill_paid(self, bill_id: int) -> None:
        """Mark a bill as paid."""
        pass

    # Goal operations
    @abstractmethod
    def create_goal(
        self,
        name: str,
        target_amount: Decimal,
        currency: str,
        current_amount: Decimal = Decimal("0"),
        kind: TransactionKind = TransactionKind.EXPENSE,
        payment_account_id: Optional[int] = None,
        linked_rule_id: Optional[str] = None,
        target_date: Optional[date] = None,
    ) -> int:
        """Create a goal. Returns goal ID."""
        pass

    @abstractmethod
    def list_goals(self) -> list[Goal]:
        """List all goals."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        account_id: int,
        date: date,
        amount: Decimal,
        currency: str,
        kind: TransactionKind,
        description: Optional[str] = None,
        transfer_id: Optional[str] = None,
        principal_amount: Optional[Decimal] = None,
        interest_amount: Optional[Decimal] = None,
        pending: bool = False,
    ) -> int:
        """Create a ledger transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Transaction]:
        """List transactions with optional filters (dates inclusive)."""
        pass
