"""Static currency conversion into a single base currency."""

from decimal import Decimal
from typing import Mapping, Optional

from forecastit.domain.errors import MissingConversionRateError, ValidationError

# Multipliers into EUR
DEFAULT_RATES: dict[str, Decimal] = {
    "EUR": Decimal("1"),
    "USD": Decimal("0.93"),
    "GBP": Decimal("1.18"),
    "RON": Decimal("0.20"),
    "BTC": Decimal("65000"),
}


class ConversionTable:
    """Currency code to multiplier table relative to a base currency.

    A rate ``r`` for code ``C`` means one unit of ``C`` is worth ``r`` units
    of the base currency. The base currency always converts at 1.
    """

    def __init__(self, rates: Optional[Mapping[str, Decimal]] = None, base_currency: str = "EUR"):
        """Initialize conversion table.

        Args:
            rates: Currency code to multiplier mapping (defaults to DEFAULT_RATES)
            base_currency: Currency every amount is converted into
        """
        rates = DEFAULT_RATES if rates is None else rates
        self.base_currency = base_currency.upper()
        normalized = {code.upper(): Decimal(str(rate)) for code, rate in rates.items()}
        for code, rate in normalized.items():
            if rate <= 0:
                raise ValidationError(f"Conversion rate for '{code}' must be positive")

        # Rebase a table quoted against another currency
        base_rate = normalized.get(self.base_currency, Decimal("1"))
        self.rates: dict[str, Decimal] = {
            code: rate / base_rate for code, rate in normalized.items()
        }
        self.rates[self.base_currency] = Decimal("1")

    def rate(self, currency: str) -> Decimal:
        """Return the multiplier for a currency.

        Raises:
            MissingConversionRateError: If the currency has no entry
        """
        try:
            return self.rates[currency.upper()]
        except KeyError:
            raise MissingConversionRateError(currency) from None

    def convert(self, amount: Decimal, currency: str) -> Decimal:
        """Convert an amount in ``currency`` to the base currency."""
        return Decimal(amount) * self.rate(currency)

    def supports(self, currency: str) -> bool:
        return currency.upper() in self.rates
