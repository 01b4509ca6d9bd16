"""
Exchange Rate Service

Fetches the reference-currency rate table from exchangerate-api.com
(v4 "latest" endpoint) and keeps it for the session.

Response shape:
    {"base": "EUR", "date": "2024-03-05", "rates": {"EUR": 1, "USD": 1.08, ...}}

The provider is queried at most once per session. Whatever happens,
the caller always ends up holding a usable table: on any failure the
previous table (the defaults, or a table restored from storage) stays
in place.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

import httpx
from tenacity import (
    RetryError,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from budget.activity import ActivityLogger
from budget.config import AppSettings, RateSettings, get_settings
from budget.models.ledger import Currency, RateTable


class RateProviderUnavailable(Exception):
    """The rate provider could not be reached or returned unusable data."""
    pass


def default_rate_table(app_settings: Optional[AppSettings] = None) -> RateTable:
    """The static table used until a refresh succeeds."""
    app = app_settings or get_settings().app
    return RateTable(
        base=app.reference_currency,
        rates=dict(app.default_rates),
        source="default",
    )


class ExchangeRateApiProvider:
    """HTTP client for the exchangerate-api.com v4 endpoint."""

    def __init__(
        self,
        settings: Optional[RateSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings or get_settings().rates
        self._transport = transport

    async def _get(self, url: str) -> dict:
        @retry(
            stop=stop_after_attempt(self._settings.retry_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=8),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )
        async def attempt() -> dict:
            async with httpx.AsyncClient(
                timeout=self._settings.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.json()

        return await attempt()

    async def fetch_rates(self, reference_currency: str) -> dict[str, Decimal]:
        """
        Fetch the rate of every currency against `reference_currency`.

        Raises:
            RateProviderUnavailable: On network errors, HTTP errors or
                a payload without a usable "rates" object
        """
        url = self._settings.api_url.format(base=reference_currency)
        try:
            data = await self._get(url)
        except (httpx.HTTPError, RetryError, ValueError) as e:
            raise RateProviderUnavailable(f"Rate request failed: {e}")

        raw_rates = data.get("rates") if isinstance(data, dict) else None
        if not isinstance(raw_rates, dict):
            raise RateProviderUnavailable("Rate response has no 'rates' object")

        rates = {}
        for code, value in raw_rates.items():
            try:
                rate = Decimal(str(value))
            except (InvalidOperation, ValueError):
                continue
            if rate.is_finite() and rate > 0:
                rates[str(code).upper()] = rate
        return rates


class RateService:
    """
    Session-scoped holder of the current rate table.

    `refresh()` asks the provider once; later calls return the table
    already held without touching the network.
    """

    def __init__(
        self,
        provider: Optional[ExchangeRateApiProvider] = None,
        app_settings: Optional[AppSettings] = None,
        activity_logger: Optional[ActivityLogger] = None,
        initial: Optional[RateTable] = None,
    ):
        self._app = app_settings or get_settings().app
        self._provider = provider or ExchangeRateApiProvider()
        self._activity = activity_logger or ActivityLogger()
        self._defaults = default_rate_table(self._app)
        self._table = initial or self._defaults
        self._refreshed = False

    @property
    def table(self) -> RateTable:
        return self._table

    @property
    def refreshed(self) -> bool:
        """True once a refresh has been attempted this session."""
        return self._refreshed

    def restore(self, table: RateTable) -> None:
        """Adopt a previously saved table (ignored once refreshed)."""
        if not self._refreshed and table.base == self._defaults.base:
            self._table = table

    def _merge(self, fetched: dict[str, Decimal]) -> RateTable:
        supported = {currency.value for currency in Currency} | set(self._defaults.rates)
        rates = dict(self._defaults.rates)
        for code in supported:
            if code in fetched:
                rates[code] = fetched[code]
        return RateTable(
            base=self._defaults.base,
            rates=rates,
            source="exchangerate-api",
            fetched_at=datetime.utcnow(),
        )

    async def refresh(self) -> RateTable:
        """
        Refresh the table from the provider, once per session.

        Only supported currencies are kept; any the provider left out
        are taken from the defaults. On failure the current table is
        kept and the failure is logged.
        """
        if self._refreshed:
            return self._table
        self._refreshed = True

        try:
            fetched = await self._provider.fetch_rates(self._defaults.base)
        except RateProviderUnavailable as e:
            self._activity.log_rates_unavailable(str(e))
            return self._table

        self._table = self._merge(fetched)
        self._activity.log_rates_refreshed(
            self._table.source,
            sorted(self._table.rates),
        )
        return self._table
