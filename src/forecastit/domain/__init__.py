"""Domain layer for forecastit application."""

from forecastit.domain.account import AccountService
from forecastit.domain.schedule import ScheduleService
from forecastit.domain.forecast import ForecastService

__all__ = [
    "AccountService",
    "ScheduleService",
    "ForecastService",
]
