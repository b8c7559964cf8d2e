"""Date parsing utilities."""

from datetime import date, timedelta
from typing import Optional
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

FORECAST_HORIZONS = ("3M", "6M", "EOY", "1Y")


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "tomorrow", "next month", etc.

    Args:
        date_str: Date string in various formats
        today: Reference date for relative dates (defaults to the wall clock)

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    if today is None:
        today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    if date_str.startswith("this "):
        period = date_str[5:]
        if period == "month":
            return today.replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1)
        elif period == "week":
            return today - timedelta(days=today.weekday())

    elif date_str.startswith("next "):
        period = date_str[5:]
        if period == "month":
            return (today + relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) + relativedelta(years=1)
        elif period == "week":
            return today + timedelta(days=(7 - today.weekday()))

    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def get_forecast_end(horizon: str, today: Optional[date] = None) -> date:
    """Get the last forecast date for a named horizon or explicit date.

    Args:
        horizon: One of 3M, 6M, EOY (end of year), 1Y, or any date parse_date accepts
        today: Reference date (defaults to the wall clock)

    Returns:
        Inclusive end date of the forecast window

    Raises:
        ValueError: If horizon is neither a named horizon nor a parseable date
    """
    if today is None:
        today = date.today()
    key = horizon.strip().upper()

    if key == "3M":
        return today + relativedelta(months=3)
    elif key == "6M":
        return today + relativedelta(months=6)
    elif key == "EOY":
        return today.replace(month=12, day=31)
    elif key == "1Y":
        return today + relativedelta(years=1)

    try:
        return parse_date(horizon, today=today)
    except ValueError:
        raise ValueError(
            f"Unknown horizon: '{horizon}'. Use {', '.join(FORECAST_HORIZONS)} or a date"
        )
