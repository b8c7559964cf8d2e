"""Shared pytest fixtures for forecastit tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from forecastit.database.factories import create_sqlite_database
from forecastit.domain.account import AccountService
from forecastit.domain.entities import (
    Account,
    AccountType,
    Frequency,
    RecurrenceRule,
    Transaction,
    TransactionKind,
)
from forecastit.domain.forecast import ForecastService
from forecastit.domain.schedule import ScheduleService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def schedule_service(temp_db):
    """Create a ScheduleService with a temporary database."""
    return ScheduleService(temp_db)


@pytest.fixture
def forecast_service(temp_db):
    """Create a ForecastService with a temporary database."""
    return ForecastService(temp_db)


@pytest.fixture
def checking_id(account_service):
    """Create a checking account holding 1000 EUR."""
    return account_service.create_account(
        name="Checking", account_type=AccountType.CHECKING, balance=Decimal("1000"), currency="EUR"
    )


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


def _make_account(account_id=1, **overrides):
    """Build an Account entity with sensible defaults."""
    values = dict(
        id=account_id,
        name=f"Account {account_id}",
        type=AccountType.CHECKING,
        balance=Decimal("0"),
        currency="EUR",
    )
    values.update(overrides)
    return Account(**values)


def _make_rule(rule_id="1", **overrides):
    """Build a monthly expense RecurrenceRule with sensible defaults."""
    values = dict(
        id=rule_id,
        account_id=1,
        amount=Decimal("100"),
        kind=TransactionKind.EXPENSE,
        currency="EUR",
        frequency=Frequency.MONTHLY,
        start_date=date(2024, 1, 1),
    )
    values.update(overrides)
    return RecurrenceRule(**values)


def _make_transaction(txn_id, account_id, when, amount, **overrides):
    """Build a posted Transaction entity."""
    amount = Decimal(str(amount))
    values = dict(
        id=txn_id,
        account_id=account_id,
        date=when,
        amount=amount,
        currency="EUR",
        kind=TransactionKind.INCOME if amount > 0 else TransactionKind.EXPENSE,
    )
    values.update(overrides)
    return Transaction(**values)


@pytest.fixture
def make_account():
    """Factory for Account entities."""
    return _make_account


@pytest.fixture
def make_rule():
    """Factory for RecurrenceRule entities."""
    return _make_rule


@pytest.fixture
def make_transaction():
    """Factory for posted Transaction entities."""
    return _make_transaction
