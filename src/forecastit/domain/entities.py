"""Domain model entities for forecastit.

These are pure data classes representing the records the forecasting engine
reads (accounts, recurrence rules, overrides, bills, goals, ledger
transactions) and the values it produces (occurrences, scheduled payments,
statement periods, forecast results). They are independent of the database
schema so the engine stays a set of pure functions over plain data.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional


class AccountType(str, Enum):
    """Closed set of account types."""

    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT_CARD = "credit_card"
    LOAN = "loan"
    INVESTMENT = "investment"
    PROPERTY = "property"
    OTHER = "other"


class Frequency(str, Enum):
    """Recurrence frequency."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class TransactionKind(str, Enum):
    """Direction tag of a recurrence rule or ledger transaction."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class WeekendAdjustment(str, Enum):
    """How a settlement falling on a weekend is moved."""

    ON = "on"
    BEFORE = "before"
    AFTER = "after"


class BillStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"


class BillDirection(str, Enum):
    PAYMENT = "payment"
    DEPOSIT = "deposit"


class PaymentStatus(str, Enum):
    PAID = "paid"
    UPCOMING = "upcoming"
    OVERDUE = "overdue"


class ObligationOrigin(str, Enum):
    """Where a dated cash-flow item came from."""

    EXPLICIT = "explicit"
    LOAN = "loan"
    CREDIT_CARD = "credit_card"
    PROPERTY = "property"
    ONE_OFF = "one_off"
    GOAL = "goal"


@dataclass(frozen=True)
class Account:
    """Account domain entity.

    Balance is signed and in the account's native currency. Loan and
    property fields are only meaningful for the matching account type.
    """

    id: int
    name: str
    type: AccountType
    balance: Decimal
    currency: str
    interest_rate: Optional[Decimal] = None
    credit_limit: Optional[Decimal] = None
    statement_start_day: Optional[int] = None
    payment_day: Optional[int] = None
    linked_loan_id: Optional[int] = None
    settlement_account_id: Optional[int] = None

    # Loan terms
    principal_amount: Optional[Decimal] = None
    duration_months: Optional[int] = None
    loan_start_date: Optional[date] = None
    monthly_payment: Optional[Decimal] = None
    payment_day_of_month: Optional[int] = None

    # Property carrying costs
    property_tax_amount: Optional[Decimal] = None
    property_tax_date: Optional[date] = None
    insurance_amount: Optional[Decimal] = None
    insurance_frequency: Optional[Frequency] = None
    insurance_payment_date: Optional[date] = None
    hoa_fee_amount: Optional[Decimal] = None
    hoa_fee_frequency: Optional[Frequency] = None
    is_rental: bool = False
    rental_income_amount: Optional[Decimal] = None
    rental_income_frequency: Optional[Frequency] = None


@dataclass(frozen=True)
class RecurrenceRule:
    """Recurring transaction rule.

    ``amount`` is a positive magnitude; ``kind`` decides the sign.
    ``next_due_date`` is the cursor of the next unmaterialized occurrence.
    Synthetic rules are built in memory by the derivers and never stored.
    """

    id: str
    account_id: int
    amount: Decimal
    kind: TransactionKind
    currency: str
    frequency: Frequency
    start_date: date
    next_due_date: Optional[date] = None
    interval: int = 1
    end_date: Optional[date] = None
    destination_account_id: Optional[int] = None
    pinned_day: Optional[int] = None
    weekend_adjustment: WeekendAdjustment = WeekendAdjustment.ON
    description: str = ""
    is_synthetic: bool = False


@dataclass(frozen=True)
class Override:
    """Per-occurrence exception keyed by (rule_id, original_date).

    ``amount`` replaces the occurrence magnitude; the sign still follows
    the rule's kind.
    """

    rule_id: str
    original_date: date
    date: Optional[date] = None
    amount: Optional[Decimal] = None
    description: Optional[str] = None
    is_skipped: bool = False

    @property
    def key(self) -> tuple[str, date]:
        return (self.rule_id, self.original_date)


@dataclass(frozen=True)
class LoanPaymentOverride:
    """Partial override of a computed installment, keyed by (account_id, installment)."""

    account_id: int
    installment: int
    date: Optional[date] = None
    total_payment: Optional[Decimal] = None
    principal: Optional[Decimal] = None
    interest: Optional[Decimal] = None


@dataclass(frozen=True)
class Transaction:
    """Historical ledger transaction (a posted fact, unless pending)."""

    id: int
    account_id: int
    date: date
    amount: Decimal
    currency: str
    kind: TransactionKind
    description: Optional[str] = None
    transfer_id: Optional[str] = None
    principal_amount: Optional[Decimal] = None
    interest_amount: Optional[Decimal] = None
    pending: bool = False


@dataclass(frozen=True)
class OneOffObligation:
    """Non-recurring dated bill or deposit.

    Once paid it is a ledger fact and no longer forecast. ``account_id`` is
    optional; unassigned bills only move the combined total.
    """

    id: int
    description: str
    amount: Decimal
    currency: str
    due_date: date
    status: BillStatus = BillStatus.UNPAID
    direction: BillDirection = BillDirection.PAYMENT
    account_id: Optional[int] = None

    @property
    def obligation_id(self) -> str:
        return f"bill-{self.id}"

    def occurrences(self, window_start: date, window_end: date) -> list["Occurrence"]:
        """Return the bill as a single occurrence if unpaid and due in the window."""
        if self.status == BillStatus.PAID:
            return []
        if not window_start <= self.due_date <= window_end:
            return []
        magnitude = abs(self.amount)
        return [
            Occurrence(
                obligation_id=self.obligation_id,
                account_id=self.account_id,
                date=self.due_date,
                original_date=self.due_date,
                amount=-magnitude if self.direction == BillDirection.PAYMENT else magnitude,
                currency=self.currency,
                description=self.description,
                origin=ObligationOrigin.ONE_OFF,
            )
        ]


@dataclass(frozen=True)
class Goal:
    """Financial goal. Holds no cadence of its own."""

    id: int
    name: str
    target_amount: Decimal
    current_amount: Decimal
    currency: str
    kind: TransactionKind = TransactionKind.EXPENSE
    payment_account_id: Optional[int] = None
    linked_rule_id: Optional[str] = None
    target_date: Optional[date] = None

    @property
    def remaining(self) -> Decimal:
        return self.target_amount - self.current_amount


@dataclass(frozen=True)
class Occurrence:
    """One concrete dated cash movement on one account.

    ``amount`` is signed from the account's point of view. ``original_date``
    is the cadence date produced by expansion and stays the override key
    even after an override moves ``date``.
    """

    obligation_id: str
    account_id: Optional[int]
    date: date
    original_date: date
    amount: Decimal
    currency: str
    description: str = ""
    origin: ObligationOrigin = ObligationOrigin.EXPLICIT
    counterparty_account_id: Optional[int] = None
    weekend_adjustment: WeekendAdjustment = WeekendAdjustment.ON
    is_override: bool = False


@dataclass(frozen=True)
class ScheduledPayment:
    """One installment of a loan amortization schedule."""

    installment: int
    date: date
    total_payment: Decimal
    principal: Decimal
    interest: Decimal
    outstanding_balance: Decimal
    status: PaymentStatus = PaymentStatus.UPCOMING
    transaction_id: Optional[int] = None


@dataclass(frozen=True)
class StatementPeriod:
    """One billing cycle. ``end`` is the last day inside the cycle."""

    start: date
    end: date
    payment_due: date


@dataclass(frozen=True)
class StatementPeriods:
    previous: StatementPeriod
    current: StatementPeriod
    future: StatementPeriod


@dataclass(frozen=True)
class StatementDetails:
    statement_balance: Decimal
    amount_paid: Decimal
    transaction_count: int = 0


@dataclass(frozen=True)
class StatementReport:
    """One labelled billing cycle with its balances."""

    label: str
    period: StatementPeriod
    details: StatementDetails


@dataclass(frozen=True)
class ForecastEvent:
    """An occurrence placed on the simulated timeline, in base currency."""

    date: date
    account_id: Optional[int]
    amount: Decimal
    balance: Decimal
    total_balance: Decimal
    description: str
    origin: ObligationOrigin
    obligation_id: str
    is_goal: bool = False


@dataclass(frozen=True)
class TrajectoryPoint:
    date: date
    balance: Decimal


@dataclass(frozen=True)
class LowestPoint:
    date: date
    balance: Decimal
    account_id: Optional[int] = None


@dataclass(frozen=True)
class ForecastIssue:
    """A rule, obligation or account excluded from a forecast, and why."""

    subject_id: str
    error_type: str
    message: str


@dataclass(frozen=True)
class ForecastSummary:
    """Plain-data view of a forecast, for presentation layers."""

    start_date: date
    end_date: date
    base_currency: str
    starting_balance: Decimal
    ending_balance: Decimal
    lowest_point: LowestPoint
    first_shortfall: Optional[date]
    account_lowest_points: dict[int, LowestPoint] = field(default_factory=dict)
    issues: tuple[ForecastIssue, ...] = ()
