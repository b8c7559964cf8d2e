"""Tests for the cash-flow simulator."""

import pytest
from datetime import date
from decimal import Decimal

from forecastit.domain.currency import ConversionTable
from forecastit.domain.entities import (
    AccountType,
    BillDirection,
    Goal,
    ObligationOrigin,
    OneOffObligation,
    Override,
    TransactionKind,
    WeekendAdjustment,
)
from forecastit.domain.simulator import forecast

TODAY = date(2024, 1, 1)
HORIZON = date(2024, 3, 31)


@pytest.fixture
def checking(make_account):
    return make_account(1, name="Checking", balance=Decimal("1000"))


@pytest.fixture
def rent(make_rule):
    return make_rule(rule_id="1", amount=Decimal("1500"), start_date=date(2024, 1, 15), description="Rent")


class TestForecast:
    """Tests for balance projection."""

    def test_lowest_point_and_first_shortfall(self, checking, rent):
        result = forecast([checking], rules=[rent], horizon_end=HORIZON, today=TODAY)
        assert [e.date for e in result.events] == [date(2024, 1, 15), date(2024, 2, 15), date(2024, 3, 15)]
        assert result.first_shortfall == date(2024, 1, 15)
        assert result.lowest_point.balance <= Decimal("-500")
        assert result.lowest_point.balance == Decimal("-3500")
        assert result.lowest_point.date == date(2024, 3, 15)
        assert result.ending_total == Decimal("-3500")

    def test_no_events_lowest_is_starting_balance(self, checking):
        result = forecast([checking], horizon_end=HORIZON, today=TODAY)
        assert result.lowest_point.balance == Decimal("1000")
        assert result.lowest_point.date == TODAY
        assert result.first_shortfall is None

    def test_outflows_applied_before_inflows_on_same_day(self, make_account, make_rule):
        account = make_account(1, balance=Decimal("400"))
        salary = make_rule(rule_id="1", kind=TransactionKind.INCOME, amount=Decimal("500"), start_date=date(2024, 1, 10))
        bill = make_rule(rule_id="2", amount=Decimal("800"), start_date=date(2024, 1, 10))
        result = forecast([account], rules=[salary, bill], horizon_end=date(2024, 1, 31), today=TODAY)
        assert [e.amount for e in result.events] == [Decimal("-800"), Decimal("500")]
        assert result.lowest_point.balance == Decimal("-400")

    def test_invalid_rule_is_isolated(self, checking, rent, make_rule):
        broken = make_rule(rule_id="2", interval=0)
        result = forecast([checking], rules=[rent, broken], horizon_end=HORIZON, today=TODAY)
        assert len(result.events) == 3
        assert [(i.subject_id, i.error_type) for i in result.issues] == [("2", "InvalidRuleError")]

    def test_missing_rate_excludes_only_affected_items(self, checking, rent, make_account, make_rule):
        yen = make_account(2, name="Yen", balance=Decimal("50000"), currency="JPY")
        odd = make_rule(rule_id="3", currency="XYZ")
        result = forecast([checking, yen], rules=[rent, odd], horizon_end=HORIZON, today=TODAY)
        assert 2 not in result.starting_balances
        subjects = {i.subject_id for i in result.issues}
        assert subjects == {"account-2", "3"}
        assert len(result.events) == 3

    def test_amounts_converted_to_base_currency(self, make_account, make_rule):
        dollars = make_account(1, balance=Decimal("100"), currency="USD")
        fee = make_rule(rule_id="1", amount=Decimal("10"), currency="USD", start_date=date(2024, 1, 5))
        result = forecast([dollars], rules=[fee], horizon_end=date(2024, 1, 31), today=TODAY)
        assert result.starting_total == Decimal("93.00")
        assert result.events[0].amount == Decimal("-9.30")
        assert result.base_currency == "EUR"

    def test_weekend_adjustment_moves_settlement_only(self, checking, make_rule):
        saturday_rule = make_rule(
            rule_id="1",
            start_date=date(2024, 6, 1),
            weekend_adjustment=WeekendAdjustment.AFTER,
        )
        today = date(2024, 5, 20)
        result = forecast([checking], rules=[saturday_rule], horizon_end=date(2024, 7, 31), today=today)
        assert [e.date for e in result.events] == [date(2024, 6, 3), date(2024, 7, 1)]

        unadjusted = forecast(
            [checking], rules=[saturday_rule], horizon_end=date(2024, 7, 31), today=today,
            apply_weekend_adjustment=False,
        )
        assert [e.date for e in unadjusted.events] == [date(2024, 6, 1), date(2024, 7, 1)]

    def test_weekend_adjustment_never_before_today(self, checking, make_rule):
        rule = make_rule(rule_id="1", start_date=date(2024, 6, 1), weekend_adjustment=WeekendAdjustment.BEFORE)
        result = forecast([checking], rules=[rule], horizon_end=date(2024, 6, 10), today=date(2024, 6, 1))
        assert result.events[0].date == date(2024, 6, 1)

    def test_overrides_applied(self, checking, rent):
        skip = Override(rule_id="1", original_date=date(2024, 2, 15), is_skipped=True)
        result = forecast([checking], rules=[rent], horizon_end=HORIZON, today=TODAY, overrides=[skip])
        assert [e.date for e in result.events] == [date(2024, 1, 15), date(2024, 3, 15)]

    def test_duplicate_overrides_reported(self, checking, rent):
        overrides = [
            Override(rule_id="1", original_date=date(2024, 2, 15), is_skipped=True),
            Override(rule_id="1", original_date=date(2024, 2, 15), amount=Decimal("10")),
        ]
        result = forecast([checking], rules=[rent], horizon_end=HORIZON, today=TODAY, overrides=overrides)
        assert [i.error_type for i in result.issues] == ["ConflictError"]
        assert len(result.events) == 2

    def test_transfer_between_selected_accounts_keeps_total(self, checking, make_account, make_rule):
        savings = make_account(2, name="Savings", balance=Decimal("0"))
        sweep = make_rule(
            rule_id="1", kind=TransactionKind.TRANSFER, destination_account_id=2,
            amount=Decimal("200"), start_date=date(2024, 1, 31),
        )
        result = forecast([checking, savings], rules=[sweep], horizon_end=date(2024, 2, 29), today=TODAY)
        assert result.ending_total == Decimal("1000")
        assert result.account_lowest_points[1].balance == Decimal("600")

        only_checking = forecast([checking], rules=[sweep], horizon_end=date(2024, 2, 29), today=TODAY)
        assert only_checking.ending_total == Decimal("600")

    def test_card_payment_does_not_dip_combined_balance(self, make_account, make_rule):
        checking = make_account(1, name="Checking", balance=Decimal("2000"))
        card = make_account(2, name="Visa", type=AccountType.CREDIT_CARD, balance=Decimal("-1500"))
        payment = make_rule(
            rule_id="cc-pmt-2-2024-01-10", kind=TransactionKind.TRANSFER, destination_account_id=2,
            amount=Decimal("1500"), start_date=date(2024, 1, 10), end_date=date(2024, 1, 10),
        )
        result = forecast([checking, card], rules=[payment], horizon_end=date(2024, 1, 31), today=TODAY)

        assert result.first_shortfall is None
        assert result.lowest_point.balance == Decimal("500")
        assert result.lowest_point.date == TODAY
        assert min(p.balance for p in result.trajectory) == result.lowest_point.balance
        assert all(e.total_balance == Decimal("500") for e in result.events)
        assert result.account_lowest_points[1].balance == Decimal("500")
        assert result.account_lowest_points[1].date == date(2024, 1, 10)

    def test_transfer_settles_between_outflows_and_inflows(self, make_account, make_rule):
        checking = make_account(1, name="Checking", balance=Decimal("100"))
        savings = make_account(2, name="Savings", balance=Decimal("0"))
        day = date(2024, 1, 10)
        salary = make_rule(rule_id="1", kind=TransactionKind.INCOME, amount=Decimal("500"), start_date=day)
        sweep = make_rule(
            rule_id="2", kind=TransactionKind.TRANSFER, destination_account_id=2,
            amount=Decimal("50"), start_date=day,
        )
        bill = make_rule(rule_id="3", amount=Decimal("300"), start_date=day)
        result = forecast(
            [checking, savings], rules=[salary, sweep, bill], horizon_end=date(2024, 1, 31), today=TODAY
        )

        assert [e.obligation_id for e in result.events] == ["3", "2", "2", "1"]
        assert result.lowest_point.balance == Decimal("-200")
        assert result.first_shortfall == day

    def test_weekend_settlement_pulled_inside_horizon(self, checking, make_rule):
        rule = make_rule(rule_id="1", start_date=date(2024, 6, 1), weekend_adjustment=WeekendAdjustment.BEFORE)
        result = forecast([checking], rules=[rule], horizon_end=date(2024, 5, 31), today=date(2024, 5, 20))
        assert [e.date for e in result.events] == [date(2024, 5, 31)]

        unadjusted = forecast(
            [checking], rules=[rule], horizon_end=date(2024, 5, 31), today=date(2024, 5, 20),
            apply_weekend_adjustment=False,
        )
        assert unadjusted.events == ()

    def test_weekend_settlement_pushed_onto_today(self, checking, make_rule):
        after = make_rule(rule_id="1", start_date=date(2024, 6, 1), weekend_adjustment=WeekendAdjustment.AFTER)
        on = make_rule(rule_id="2", start_date=date(2024, 6, 1), weekend_adjustment=WeekendAdjustment.ON)
        result = forecast([checking], rules=[after, on], horizon_end=date(2024, 6, 30), today=date(2024, 6, 3))
        assert [(e.obligation_id, e.date) for e in result.events] == [("1", date(2024, 6, 3))]

    def test_unpaid_bills_included(self, checking):
        bills = [
            OneOffObligation(id=1, description="Repair", amount=Decimal("300"), currency="EUR",
                             due_date=date(2024, 2, 10), account_id=1),
            OneOffObligation(id=2, description="Refund", amount=Decimal("50"), currency="EUR",
                             due_date=date(2024, 2, 12), direction=BillDirection.DEPOSIT),
        ]
        result = forecast([checking], one_offs=bills, horizon_end=HORIZON, today=TODAY)
        assert [e.amount for e in result.events] == [Decimal("-300"), Decimal("50")]
        assert result.unassigned_balance == Decimal("50")
        assert result.ending_total == Decimal("750")
        assert all(e.origin == ObligationOrigin.ONE_OFF for e in result.events)

    def test_goals(self, checking, make_rule):
        saving = make_rule(rule_id="5", amount=Decimal("100"), start_date=date(2024, 1, 20))
        goals = [
            Goal(id=1, name="Emergency fund", target_amount=Decimal("1000"), current_amount=Decimal("0"),
                 currency="EUR", payment_account_id=1, linked_rule_id="5"),
            Goal(id=2, name="Holiday", target_amount=Decimal("800"), current_amount=Decimal("300"),
                 currency="EUR", payment_account_id=1, target_date=date(2024, 3, 1)),
        ]
        result = forecast([checking], rules=[saving], goals=goals, horizon_end=HORIZON, today=TODAY)
        assert all(e.is_goal for e in result.events)
        holiday = [e for e in result.events if e.obligation_id == "goal-2"]
        assert [(e.date, e.amount) for e in holiday] == [(date(2024, 3, 1), Decimal("-500"))]

    def test_trajectory_is_daily_and_restartable(self, checking, rent):
        result = forecast([checking], rules=[rent], horizon_end=HORIZON, today=TODAY)
        points = list(result.trajectory)
        assert len(points) == len(result.trajectory) == (HORIZON - TODAY).days + 1
        assert points[0].balance == Decimal("1000")
        assert points[-1].balance == result.ending_total
        assert list(result.trajectory) == points
        assert min(p.balance for p in points) == result.lowest_point.balance

    def test_forecast_is_deterministic(self, checking, rent):
        first = forecast([checking], rules=[rent], horizon_end=HORIZON, today=TODAY)
        second = forecast([checking], rules=[rent], horizon_end=HORIZON, today=TODAY)
        assert first == second

    def test_requires_dates(self, checking):
        with pytest.raises(ValueError):
            forecast([checking])

    def test_custom_base_currency(self, make_account):
        euros = make_account(1, balance=Decimal("50"))
        table = ConversionTable({"EUR": Decimal("1"), "USD": Decimal("0.5")}, base_currency="USD")
        result = forecast([euros], horizon_end=HORIZON, today=TODAY, conversion=table)
        assert result.starting_total == Decimal("100")
        assert result.base_currency == "USD"
