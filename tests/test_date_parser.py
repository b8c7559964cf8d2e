"""Tests for date parsing utilities."""

import pytest
from datetime import date

from forecastit.utils.date_parser import get_forecast_end, parse_date

TODAY = date(2024, 5, 15)


class TestParseDate:
    """Tests for parse_date."""

    def test_iso_date(self):
        assert parse_date("2024-01-15") == date(2024, 1, 15)

    def test_long_form(self):
        assert parse_date("January 15, 2024") == date(2024, 1, 15)

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("today", date(2024, 5, 15)),
            ("Yesterday", date(2024, 5, 14)),
            ("tomorrow", date(2024, 5, 16)),
            ("this month", date(2024, 5, 1)),
            ("next month", date(2024, 6, 1)),
            ("next year", date(2025, 1, 1)),
        ],
    )
    def test_relative_dates(self, text, expected):
        assert parse_date(text, today=TODAY) == expected

    def test_invalid(self):
        with pytest.raises(ValueError, match="Could not parse date"):
            parse_date("not a date")


class TestForecastEnd:
    """Tests for named forecast horizons."""

    @pytest.mark.parametrize(
        "horizon,expected",
        [
            ("3M", date(2024, 8, 15)),
            ("6m", date(2024, 11, 15)),
            ("EOY", date(2024, 12, 31)),
            ("1Y", date(2025, 5, 15)),
            ("2024-07-01", date(2024, 7, 1)),
        ],
    )
    def test_horizons(self, horizon, expected):
        assert get_forecast_end(horizon, today=TODAY) == expected

    def test_month_end_clamps(self):
        assert get_forecast_end("3M", today=date(2024, 11, 30)) == date(2025, 2, 28)

    def test_unknown_horizon(self):
        with pytest.raises(ValueError, match="Unknown horizon"):
            get_forecast_end("forever", today=TODAY)
