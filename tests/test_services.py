"""Tests for the account, schedule and forecast services."""

import pytest
from datetime import date
from decimal import Decimal

from forecastit.domain.entities import (
    AccountType,
    BillDirection,
    Frequency,
    ObligationOrigin,
    PaymentStatus,
    TransactionKind,
)
from forecastit.domain.errors import (
    ConflictError,
    InvalidRuleError,
    MissingConversionRateError,
    NotFoundError,
    ValidationError,
)


def _add_rent(schedule_service, account_id, amount="1500", start=date(2024, 1, 15)):
    return schedule_service.add_rule(
        account_id=account_id,
        amount=Decimal(amount),
        kind=TransactionKind.EXPENSE,
        frequency=Frequency.MONTHLY,
        start_date=start,
        description="Rent",
    )


class TestAccountService:
    def test_duplicate_name(self, account_service, checking_id):
        with pytest.raises(ConflictError, match="already exists"):
            account_service.create_account(name="Checking", account_type=AccountType.SAVINGS)

    def test_day_out_of_range(self, account_service):
        with pytest.raises(ValidationError, match="between 1 and 31"):
            account_service.create_account(
                name="Visa", account_type=AccountType.CREDIT_CARD, statement_start_day=32
            )

    def test_unknown_settlement_account(self, account_service):
        with pytest.raises(NotFoundError):
            account_service.create_account(
                name="Visa", account_type=AccountType.CREDIT_CARD, settlement_account_id=99
            )

    def test_require_missing_account(self, account_service):
        with pytest.raises(NotFoundError):
            account_service.require_account(99)


class TestScheduleService:
    def test_rule_inherits_account_currency(self, account_service, schedule_service):
        usd_id = account_service.create_account(
            name="Dollar", account_type=AccountType.CHECKING, currency="USD"
        )
        rule_id = _add_rent(schedule_service, usd_id)
        assert schedule_service.get_rule(rule_id).currency == "USD"

    def test_zero_interval_rejected(self, schedule_service, checking_id):
        with pytest.raises(InvalidRuleError):
            schedule_service.add_rule(
                account_id=checking_id,
                amount=Decimal("10"),
                kind=TransactionKind.EXPENSE,
                frequency=Frequency.WEEKLY,
                start_date=date(2024, 1, 1),
                interval=0,
            )
        assert schedule_service.list_rules() == []

    def test_rule_on_missing_account(self, schedule_service):
        with pytest.raises(NotFoundError):
            _add_rent(schedule_service, 42)

    def test_get_missing_rule(self, schedule_service):
        with pytest.raises(NotFoundError):
            schedule_service.get_rule("17")

    def test_skip_requires_an_occurrence(self, schedule_service, checking_id):
        rule_id = _add_rent(schedule_service, checking_id)
        with pytest.raises(ValidationError, match="no occurrence"):
            schedule_service.skip_occurrence(rule_id, date(2024, 2, 16))

        schedule_service.skip_occurrence(rule_id, date(2024, 2, 15))
        overrides = schedule_service.list_overrides(rule_id=rule_id)
        assert len(overrides) == 1
        assert overrides[0].is_skipped

    def test_synthetic_rule_override_accepted(self, schedule_service):
        schedule_service.override_occurrence("loan-pmt-3", date(2024, 2, 1), amount=Decimal("700"))
        assert schedule_service.list_overrides(rule_id="loan-pmt-3")[0].amount == Decimal("700.00")

    def test_override_needs_a_change(self, schedule_service, checking_id):
        rule_id = _add_rent(schedule_service, checking_id)
        with pytest.raises(ValidationError):
            schedule_service.override_occurrence(rule_id, date(2024, 1, 15))

    def test_override_rejects_negative_amount(self, schedule_service, checking_id):
        rule_id = _add_rent(schedule_service, checking_id)
        with pytest.raises(ValidationError, match="positive magnitude"):
            schedule_service.override_occurrence(rule_id, date(2024, 1, 15), amount=Decimal("-5"))

    def test_clear_missing_override(self, schedule_service, checking_id):
        rule_id = _add_rent(schedule_service, checking_id)
        with pytest.raises(NotFoundError):
            schedule_service.clear_override(rule_id, date(2024, 1, 15))

    def test_bill_must_be_positive(self, schedule_service):
        with pytest.raises(ValidationError):
            schedule_service.add_bill("Repair", Decimal("0"), date(2024, 1, 20))

    def test_pay_missing_bill(self, schedule_service):
        with pytest.raises(NotFoundError):
            schedule_service.pay_bill(5)

    def test_goal_with_missing_rule(self, schedule_service):
        with pytest.raises(NotFoundError):
            schedule_service.add_goal("Car", Decimal("5000"), linked_rule_id="12")

    def test_installment_override_requires_loan(self, schedule_service, checking_id):
        with pytest.raises(ValidationError):
            schedule_service.override_installment(checking_id, 1, total_payment=Decimal("10"))

    def test_installment_out_of_range(self, account_service, schedule_service):
        loan_id = account_service.create_account(
            name="Loan", account_type=AccountType.LOAN, duration_months=12
        )
        with pytest.raises(ValidationError, match="out of range"):
            schedule_service.override_installment(loan_id, 13, total_payment=Decimal("10"))


class TestForecastService:
    def test_monthly_expense_drives_balance_negative(
        self, schedule_service, forecast_service, checking_id
    ):
        rule_id = _add_rent(schedule_service, checking_id)

        result = forecast_service.forecast(date(2024, 1, 1), date(2024, 3, 31))

        assert [e.date for e in result.events] == [
            date(2024, 1, 15),
            date(2024, 2, 15),
            date(2024, 3, 15),
        ]
        assert all(e.obligation_id == rule_id for e in result.events)
        assert result.first_shortfall == date(2024, 1, 15)
        assert result.lowest_point.balance == Decimal("-3500.00")
        assert result.lowest_point.date == date(2024, 3, 15)
        assert result.ending_total == Decimal("-3500.00")

    def test_skipped_occurrence_is_left_out(self, schedule_service, forecast_service, checking_id):
        rule_id = _add_rent(schedule_service, checking_id)
        schedule_service.skip_occurrence(rule_id, date(2024, 2, 15))

        result = forecast_service.forecast(date(2024, 1, 1), date(2024, 3, 31))

        assert [e.date for e in result.events] == [date(2024, 1, 15), date(2024, 3, 15)]
        assert result.ending_total == Decimal("-2000.00")

    def test_paid_bill_is_excluded(self, schedule_service, forecast_service, checking_id):
        bill_id = schedule_service.add_bill(
            "Repair", Decimal("300"), date(2024, 1, 10), account_id=checking_id
        )
        schedule_service.add_bill(
            "Refund",
            Decimal("50"),
            date(2024, 1, 12),
            direction=BillDirection.DEPOSIT,
            account_id=checking_id,
        )
        schedule_service.pay_bill(bill_id)

        result = forecast_service.forecast(date(2024, 1, 1), date(2024, 1, 31))

        assert [e.amount for e in result.events] == [Decimal("50.00")]
        assert result.events[0].origin == ObligationOrigin.ONE_OFF

    def test_horizon_before_today(self, forecast_service):
        with pytest.raises(ValidationError):
            forecast_service.forecast(date(2024, 2, 1), date(2024, 1, 1))

    def test_unknown_base_currency(self, forecast_service, checking_id):
        with pytest.raises(MissingConversionRateError):
            forecast_service.forecast(date(2024, 1, 1), date(2024, 1, 31), base_currency="XYZ")

    def test_unknown_selected_account(self, forecast_service, checking_id):
        with pytest.raises(NotFoundError):
            forecast_service.forecast(date(2024, 1, 1), date(2024, 1, 31), account_ids=[99])

    def test_loan_schedule(self, account_service, forecast_service, checking_id):
        loan_id = account_service.create_account(
            name="Car loan",
            account_type=AccountType.LOAN,
            balance=Decimal("-1200"),
            principal_amount=Decimal("1200"),
            interest_rate=Decimal("0"),
            duration_months=12,
            loan_start_date=date(2024, 1, 1),
            settlement_account_id=checking_id,
        )

        schedule = forecast_service.loan_schedule(loan_id, today=date(2024, 1, 1))

        assert len(schedule) == 12
        assert schedule[0].date == date(2024, 2, 1)
        assert all(p.total_payment == Decimal("100.00") for p in schedule)
        assert schedule[-1].outstanding_balance == Decimal("0.00")
        assert schedule[0].status == PaymentStatus.UPCOMING

    def test_loan_schedule_rejects_other_accounts(self, forecast_service, checking_id):
        with pytest.raises(ValidationError):
            forecast_service.loan_schedule(checking_id, today=date(2024, 1, 1))

    def test_statements(self, account_service, forecast_service, temp_db, checking_id):
        card_id = account_service.create_account(
            name="Visa",
            account_type=AccountType.CREDIT_CARD,
            statement_start_day=1,
            payment_day=20,
            settlement_account_id=checking_id,
        )
        temp_db.create_transaction(
            card_id, date(2024, 3, 5), Decimal("-50.00"), "EUR", TransactionKind.EXPENSE
        )

        reports = forecast_service.statements(card_id, today=date(2024, 3, 10))

        assert [r.label for r in reports] == ["previous", "current", "future"]
        current = reports[1]
        assert current.period.start == date(2024, 3, 1)
        assert current.period.end == date(2024, 3, 31)
        assert current.details.statement_balance == Decimal("-50.00")
        assert reports[0].period.end == date(2024, 2, 29)
        assert reports[0].details.statement_balance == Decimal("0")

    def test_statements_require_card_days(self, account_service, forecast_service):
        card_id = account_service.create_account(name="Visa", account_type=AccountType.CREDIT_CARD)
        with pytest.raises(ValidationError):
            forecast_service.statements(card_id, today=date(2024, 3, 10))

    def test_upcoming(self, schedule_service, forecast_service, checking_id):
        rule_id = _add_rent(schedule_service, checking_id)
        bill_id = schedule_service.add_bill(
            "Repair", Decimal("300"), date(2024, 1, 20), account_id=checking_id
        )

        items = forecast_service.upcoming(date(2024, 1, 1), days=30)

        assert [i.obligation_id for i in items] == [rule_id, f"bill-{bill_id}"]
        assert items[0].amount == Decimal("-1500.00")

    def test_upcoming_includes_loan_payments(self, account_service, forecast_service, checking_id):
        loan_id = account_service.create_account(
            name="Mortgage",
            account_type=AccountType.LOAN,
            monthly_payment=Decimal("800"),
            payment_day_of_month=5,
            settlement_account_id=checking_id,
        )

        items = forecast_service.upcoming(date(2024, 1, 1), days=10)

        assert [i.date for i in items if i.obligation_id == f"loan-pmt-{loan_id}"] == [
            date(2024, 1, 5),
            date(2024, 1, 5),
        ]
