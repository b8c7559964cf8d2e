"""Tests for the static conversion table."""

import pytest
from decimal import Decimal

from forecastit.domain.currency import DEFAULT_RATES, ConversionTable
from forecastit.domain.errors import MissingConversionRateError, ValidationError


def test_default_table_is_eur_based():
    table = ConversionTable()
    assert table.base_currency == "EUR"
    assert table.convert(Decimal("10"), "GBP") == Decimal("11.80")
    assert table.convert(Decimal("5"), "EUR") == Decimal("5")


def test_codes_are_case_insensitive():
    table = ConversionTable()
    assert table.rate("usd") == DEFAULT_RATES["USD"]
    assert table.supports("gbp")


def test_missing_rate():
    with pytest.raises(MissingConversionRateError, match="JPY"):
        ConversionTable().convert(Decimal("1"), "JPY")


def test_rebased_table():
    table = ConversionTable({"EUR": Decimal("1"), "RON": Decimal("0.20")}, base_currency="RON")
    assert table.rate("RON") == Decimal("1")
    assert table.convert(Decimal("1"), "EUR") == Decimal("5")


def test_non_positive_rate_rejected():
    with pytest.raises(ValidationError):
        ConversionTable({"EUR": Decimal("1"), "USD": Decimal("0")})
