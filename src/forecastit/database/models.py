"""SQLAlchemy models for the forecastit ledger store."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Account(Base):
    """Account model, including loan and property metadata."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    type = Column(String, nullable=False)
    balance = Column(Numeric(14, 2), nullable=False, default=0)
    currency = Column(String(8), nullable=False, default="EUR")
    interest_rate = Column(Numeric(8, 4), nullable=True)
    credit_limit = Column(Numeric(14, 2), nullable=True)
    statement_start_day = Column(Integer, nullable=True)
    payment_day = Column(Integer, nullable=True)
    linked_loan_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    settlement_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)

    principal_amount = Column(Numeric(14, 2), nullable=True)
    duration_months = Column(Integer, nullable=True)
    loan_start_date = Column(Date, nullable=True)
    monthly_payment = Column(Numeric(14, 2), nullable=True)
    payment_day_of_month = Column(Integer, nullable=True)

    property_tax_amount = Column(Numeric(14, 2), nullable=True)
    property_tax_date = Column(Date, nullable=True)
    insurance_amount = Column(Numeric(14, 2), nullable=True)
    insurance_frequency = Column(String, nullable=True)
    insurance_payment_date = Column(Date, nullable=True)
    hoa_fee_amount = Column(Numeric(14, 2), nullable=True)
    hoa_fee_frequency = Column(String, nullable=True)
    is_rental = Column(Boolean, default=False, nullable=False)
    rental_income_amount = Column(Numeric(14, 2), nullable=True)
    rental_income_frequency = Column(String, nullable=True)

    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    transactions = relationship("Transaction", back_populates="account", cascade="all, delete-orphan")
    recurring_rules = relationship(
        "RecurringRule",
        back_populates="account",
        cascade="all, delete-orphan",
        foreign_keys="RecurringRule.account_id",
    )


class RecurringRule(Base):
    """Stored recurring transaction rule."""

    __tablename__ = "recurring_rules"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    destination_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    amount = Column(Numeric(14, 2), nullable=False)
    kind = Column(String, nullable=False)
    currency = Column(String(8), nullable=False)
    frequency = Column(String, nullable=False)
    interval = Column(Integer, nullable=False, default=1)
    start_date = Column(Date, nullable=False)
    next_due_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    pinned_day = Column(Integer, nullable=True)
    weekend_adjustment = Column(String, nullable=False, default="on")
    description = Column(String, nullable=False, default="")
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    account = relationship("Account", back_populates="recurring_rules", foreign_keys=[account_id])


class RecurringOverride(Base):
    """Per-occurrence exception for a rule.

    ``rule_id`` is free text so overrides can also target synthetic rules
    such as ``loan-pmt-3``.
    """

    __tablename__ = "recurring_overrides"

    id = Column(Integer, primary_key=True)
    rule_id = Column(String, nullable=False)
    original_date = Column(Date, nullable=False)
    date = Column(Date, nullable=True)
    amount = Column(Numeric(14, 2), nullable=True)
    description = Column(String, nullable=True)
    is_skipped = Column(Boolean, default=False, nullable=False)

    __table_args__ = (UniqueConstraint("rule_id", "original_date", name="uq_override_rule_date"),)


class LoanPaymentOverride(Base):
    """Override of one installment of a loan's amortization schedule."""

    __tablename__ = "loan_payment_overrides"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    installment = Column(Integer, nullable=False)
    date = Column(Date, nullable=True)
    total_payment = Column(Numeric(14, 2), nullable=True)
    principal = Column(Numeric(14, 2), nullable=True)
    interest = Column(Numeric(14, 2), nullable=True)

    __table_args__ = (UniqueConstraint("account_id", "installment", name="uq_loan_installment"),)


class Bill(Base):
    """One-off bill or deposit."""

    __tablename__ = "bills"

    id = Column(Integer, primary_key=True)
    description = Column(String, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    currency = Column(String(8), nullable=False)
    due_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default="unpaid")
    direction = Column(String, nullable=False, default="payment")
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class Goal(Base):
    """Financial goal."""

    __tablename__ = "goals"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    target_amount = Column(Numeric(14, 2), nullable=False)
    current_amount = Column(Numeric(14, 2), nullable=False, default=0)
    currency = Column(String(8), nullable=False)
    kind = Column(String, nullable=False, default="expense")
    payment_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    linked_rule_id = Column(String, nullable=True)
    target_date = Column(Date, nullable=True)


class Transaction(Base):
    """Posted or pending ledger transaction."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    currency = Column(String(8), nullable=False)
    kind = Column(String, nullable=False)
    description = Column(String, nullable=True)
    transfer_id = Column(String, nullable=True)
    principal_amount = Column(Numeric(14, 2), nullable=True)
    interest_amount = Column(Numeric(14, 2), nullable=True)
    pending = Column(Boolean, default=False, nullable=False)
    imported_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    account = relationship("Account", back_populates="transactions")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
