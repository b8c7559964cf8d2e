"""Month-end-safe calendar arithmetic.

All dates are plain ``datetime.date`` values, which carry no timezone, so
stepping is day-exact regardless of the host's local time.
"""

import calendar
from datetime import date, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

from forecastit.domain.entities import Frequency, WeekendAdjustment


def days_in_month(year: int, month: int) -> int:
    """Return the number of days in a month."""
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date, clamping ``day`` to the last day of the month."""
    return date(year, month, min(day, days_in_month(year, month)))


def step(
    current: date,
    frequency: Frequency,
    interval: int = 1,
    pinned_day: Optional[int] = None,
    anchor_month: Optional[int] = None,
) -> date:
    """Advance a date by one recurrence step.

    Monthly and yearly steps land on ``pinned_day`` clamped to the target
    month's length. Because the pinned day is re-applied on every step, a
    rule pinned to the 31st returns to the 31st after passing through a
    short month instead of drifting to the 28th.

    Args:
        current: Date to step from
        frequency: Recurrence frequency
        interval: Number of frequency units per step
        pinned_day: Day of month to land on (defaults to ``current.day``)
        anchor_month: Month to land on for yearly steps (defaults to ``current.month``)

    Returns:
        The next date

    Raises:
        ValueError: If interval is not positive or frequency is unknown
    """
    if interval < 1:
        raise ValueError(f"Interval must be a positive integer, got {interval}")

    if frequency == Frequency.DAILY:
        return current + timedelta(days=interval)
    if frequency == Frequency.WEEKLY:
        return current + timedelta(weeks=interval)

    day = pinned_day if pinned_day is not None else current.day
    if frequency == Frequency.MONTHLY:
        # relativedelta clamps an absolute day to the month length
        return current + relativedelta(months=interval, day=day)
    if frequency == Frequency.YEARLY:
        month = anchor_month if anchor_month is not None else current.month
        return current + relativedelta(years=interval, month=month, day=day)

    raise ValueError(f"Unknown frequency: {frequency!r}")


def adjust_for_weekend(value: date, policy: WeekendAdjustment) -> date:
    """Move a Saturday/Sunday settlement to the previous Friday or next Monday."""
    weekday = value.weekday()
    if weekday < 5 or policy == WeekendAdjustment.ON:
        return value
    if policy == WeekendAdjustment.BEFORE:
        return value - timedelta(days=weekday - 4)
    return value + timedelta(days=7 - weekday)


def month_start(value: date) -> date:
    return value.replace(day=1)
