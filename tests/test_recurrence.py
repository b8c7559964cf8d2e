"""Tests for the recurrence expander."""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from forecastit.domain.entities import Frequency, TransactionKind
from forecastit.domain.errors import InvalidRuleError, UnboundedExpansionError
from forecastit.domain.recurrence import expand, validate_rule


class TestExpand:
    """Tests for expanding rules into occurrences."""

    def test_monthly_month_end_sequence(self, make_rule):
        rule = make_rule(start_date=date(2024, 1, 31), pinned_day=31)
        dates = [o.date for o in expand(rule, date(2024, 1, 1), date(2024, 4, 30))]
        assert dates == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30)]

    def test_expansion_is_deterministic(self, make_rule):
        rule = make_rule(frequency=Frequency.WEEKLY)
        first = expand(rule, date(2024, 3, 1), date(2024, 9, 1))
        second = expand(rule, date(2024, 3, 1), date(2024, 9, 1))
        assert first == second

    def test_daily_two_year_window(self, make_rule):
        """A daily rule over two years yields one occurrence per day."""
        start, end = date(2024, 1, 1), date(2025, 12, 31)
        rule = make_rule(frequency=Frequency.DAILY, start_date=start)
        occurrences = expand(rule, start, end)
        assert len(occurrences) == (end - start).days + 1
        assert occurrences[-1].date == end

    def test_window_after_start_fast_forwards(self, make_rule):
        rule = make_rule(frequency=Frequency.WEEKLY, interval=2, start_date=date(2020, 1, 6))
        occurrences = expand(rule, date(2024, 1, 1), date(2024, 1, 31))
        assert [o.date for o in occurrences] == [date(2024, 1, 1), date(2024, 1, 15), date(2024, 1, 29)]

    def test_next_due_date_is_the_cursor(self, make_rule):
        rule = make_rule(start_date=date(2024, 1, 15), next_due_date=date(2024, 3, 15))
        dates = [o.date for o in expand(rule, date(2024, 1, 1), date(2024, 4, 30))]
        assert dates == [date(2024, 3, 15), date(2024, 4, 15)]

    def test_end_date_is_inclusive(self, make_rule):
        rule = make_rule(start_date=date(2024, 1, 10), end_date=date(2024, 3, 10))
        assert len(expand(rule, date(2024, 1, 1), date(2024, 12, 31))) == 3

    def test_empty_window(self, make_rule):
        assert expand(make_rule(), date(2024, 5, 1), date(2024, 4, 1)) == []

    def test_signs_follow_kind(self, make_rule):
        income = expand(make_rule(kind=TransactionKind.INCOME), date(2024, 1, 1), date(2024, 1, 1))
        expense = expand(make_rule(), date(2024, 1, 1), date(2024, 1, 1))
        assert income[0].amount == Decimal("100")
        assert expense[0].amount == Decimal("-100")

    def test_transfer_produces_two_legs(self, make_rule):
        rule = make_rule(kind=TransactionKind.TRANSFER, destination_account_id=2)
        legs = expand(rule, date(2024, 1, 1), date(2024, 1, 1))
        assert {(leg.account_id, leg.amount) for leg in legs} == {
            (1, Decimal("-100")),
            (2, Decimal("100")),
        }
        assert all(leg.original_date == date(2024, 1, 1) for leg in legs)

    def test_emission_cap(self, make_rule):
        rule = make_rule(frequency=Frequency.DAILY)
        with pytest.raises(UnboundedExpansionError):
            expand(rule, date(2024, 1, 1), date(2024, 12, 31), max_steps=100)

    def test_monthly_fast_forward_cap(self, make_rule):
        rule = make_rule(start_date=date(1900, 1, 1))
        with pytest.raises(UnboundedExpansionError):
            expand(rule, date(2024, 1, 1), date(2024, 2, 1), max_steps=50)


class TestValidateRule:
    """Tests for rule validation."""

    @pytest.mark.parametrize("interval", [0, -1])
    def test_non_positive_interval(self, make_rule, interval):
        with pytest.raises(InvalidRuleError, match="interval"):
            validate_rule(make_rule(interval=interval))

    def test_unknown_frequency(self, make_rule):
        with pytest.raises(InvalidRuleError, match="frequency"):
            validate_rule(make_rule(frequency="fortnightly"))

    def test_end_before_start(self, make_rule):
        with pytest.raises(InvalidRuleError):
            validate_rule(make_rule(end_date=date(2023, 12, 31)))

    def test_negative_amount(self, make_rule):
        with pytest.raises(InvalidRuleError, match="amount"):
            validate_rule(make_rule(amount=Decimal("-5")))

    def test_expand_validates(self, make_rule):
        with pytest.raises(InvalidRuleError):
            expand(make_rule(interval=0), date(2024, 1, 1), date(2024, 1, 1) + timedelta(days=30))
