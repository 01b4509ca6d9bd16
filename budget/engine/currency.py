"""
Currency Conversion

All portfolio figures are expressed in the rate table's reference
currency. Conversion is a plain division by the currency's rate; a
currency missing from the table is treated as already being in the
reference currency.
"""

from decimal import Decimal
from typing import Union

from budget.models.ledger import CURRENCY_SYMBOLS, Currency, RateTable

Number = Union[Decimal, int, str]


def _coerce_amount(amount: Number) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def convert(amount: Number, from_currency: Union[Currency, str], rates: RateTable) -> Decimal:
    """
    Convert `amount` from `from_currency` into the reference currency.

    Exact for the reference currency itself, whatever the table says
    about it. Unknown currencies use rate 1 rather than raising.
    """
    value = _coerce_amount(amount)
    code = from_currency.value if isinstance(from_currency, Currency) else from_currency
    if code == rates.base:
        return value
    return value / rates.rate_for(code)


def format_money(amount: Number, currency: Union[Currency, str] = Currency.EUR) -> str:
    """Render an amount as e.g. '€12.50' or '-Rs3.00'."""
    value = _coerce_amount(amount)
    code = currency.value if isinstance(currency, Currency) else currency
    symbol = CURRENCY_SYMBOLS.get(code, CURRENCY_SYMBOLS[Currency.EUR.value])
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):.2f}"
