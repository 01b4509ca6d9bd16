"""
Derived-State Engine

Pure functions from accounts, transactions and rates to balances,
totals, recurring occurrences, chart series and receipt fields.
Nothing in this package performs I/O.
"""

from budget.engine.aggregation import (
    BALANCE_SERIES_POINTS,
    RECENT_TRANSACTIONS_LIMIT,
    Period,
    balance_series,
    category_breakdown,
    daily_series,
    filter_window,
    period_totals,
    recent_transactions,
    window_bounds,
)
from budget.engine.balances import account_balance, net_by_account, portfolio_total
from budget.engine.currency import convert, format_money
from budget.engine.receipt import UNAVAILABLE_TEXT, extract_receipt_fields
from budget.engine.recurrence import add_months, expand_recurring, occurrence_dates

__all__ = [
    # Currency
    "convert",
    "format_money",
    # Recurrence
    "add_months",
    "expand_recurring",
    "occurrence_dates",
    # Balances
    "account_balance",
    "net_by_account",
    "portfolio_total",
    # Aggregation
    "BALANCE_SERIES_POINTS",
    "RECENT_TRANSACTIONS_LIMIT",
    "Period",
    "balance_series",
    "category_breakdown",
    "daily_series",
    "filter_window",
    "period_totals",
    "recent_transactions",
    "window_bounds",
    # Receipts
    "UNAVAILABLE_TEXT",
    "extract_receipt_fields",
]
