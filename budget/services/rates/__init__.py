"""Exchange rate services package."""

from budget.services.rates.exchange_rate_service import (
    ExchangeRateApiProvider,
    RateProviderUnavailable,
    RateService,
    default_rate_table,
)

__all__ = [
    "ExchangeRateApiProvider",
    "RateProviderUnavailable",
    "RateService",
    "default_rate_table",
]
