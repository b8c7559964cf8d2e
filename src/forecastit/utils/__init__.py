"""Utility functions for forecastit."""

from forecastit.utils.date_parser import parse_date, get_forecast_end
from forecastit.utils.amount_parser import parse_amount, parse_magnitude
from forecastit.utils.account_resolver import resolve_account

__all__ = ["parse_date", "get_forecast_end", "parse_amount", "parse_magnitude", "resolve_account"]
