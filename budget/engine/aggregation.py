"""
Aggregation Engine

Derived views for the statistics screen. Every function here is pure:
it reads the transactions (and, for the balance series, the accounts
and rates) it is given and returns fresh models.

Windows are trailing and inclusive at date granularity:
- DAY:   today only
- WEEK:  the 7 days before today, through today
- MONTH: the same day last month (clamped), through today
Transactions dated after today are outside every window.
"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable, Optional, Union

from budget.engine.currency import convert
from budget.engine.recurrence import add_months
from budget.models.ledger import (
    Account,
    RateTable,
    Transaction,
    TransactionType,
    resolve_category,
)
from budget.models.reports import (
    BalancePoint,
    CategoryTotal,
    DailyPoint,
    PeriodTotals,
)

CENT = Decimal("0.01")
BALANCE_SERIES_POINTS = 30
RECENT_TRANSACTIONS_LIMIT = 20


class Period(str, Enum):
    """Trailing windows offered by the statistics view."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


def _as_date(now: Union[datetime, date, None]) -> date:
    if now is None:
        return date.today()
    if isinstance(now, datetime):
        return now.date()
    return now


def window_bounds(
    period: Union[Period, str],
    now: Union[datetime, date, None] = None,
) -> tuple[date, date]:
    """First and last date (both inclusive) of the window ending at `now`."""
    today = _as_date(now)
    period = Period(period)
    if period == Period.DAY:
        start = today
    elif period == Period.WEEK:
        start = today - timedelta(days=7)
    else:
        start = add_months(today, -1)
    return start, today


def filter_window(
    transactions: Iterable[Transaction],
    period: Union[Period, str],
    now: Union[datetime, date, None] = None,
) -> list[Transaction]:
    """Transactions whose date falls inside the window."""
    start, end = window_bounds(period, now)
    return [tx for tx in transactions if start <= tx.date <= end]


def category_breakdown(
    transactions: Iterable[Transaction],
    period: Union[Period, str],
    now: Union[datetime, date, None] = None,
) -> list[CategoryTotal]:
    """
    Expense totals per category in the window, largest first.

    Unknown category ids are counted under "other" so the slices
    always add up to the window's total expense.
    """
    totals: dict[str, Decimal] = defaultdict(Decimal)
    categories = {}
    for tx in filter_window(transactions, period, now):
        if tx.type != TransactionType.EXPENSE:
            continue
        category = resolve_category(TransactionType.EXPENSE, tx.category)
        categories[category.id] = category
        totals[category.id] += tx.amount

    breakdown = [
        CategoryTotal(category=categories[cid], total=total)
        for cid, total in totals.items()
    ]
    breakdown.sort(key=lambda entry: entry.total, reverse=True)
    return breakdown


def daily_series(
    transactions: Iterable[Transaction],
    period: Union[Period, str],
    now: Union[datetime, date, None] = None,
) -> list[DailyPoint]:
    """Income and expense per date in the window, oldest first."""
    points: dict[date, DailyPoint] = {}
    for tx in filter_window(transactions, period, now):
        point = points.get(tx.date)
        if point is None:
            point = points[tx.date] = DailyPoint(date=tx.date)
        if tx.type == TransactionType.INCOME:
            point.income += tx.amount
        else:
            point.expense += tx.amount
    return [points[day] for day in sorted(points)]


def period_totals(
    transactions: Iterable[Transaction],
    period: Union[Period, str],
    now: Union[datetime, date, None] = None,
) -> PeriodTotals:
    """Income and expense sums for the window."""
    totals = PeriodTotals()
    for tx in filter_window(transactions, period, now):
        if tx.type == TransactionType.INCOME:
            totals.income += tx.amount
        else:
            totals.expense += tx.amount
    return totals


def balance_series(
    accounts: Iterable[Account],
    transactions: Iterable[Transaction],
    rates: RateTable,
    limit: Optional[int] = BALANCE_SERIES_POINTS,
) -> list[BalancePoint]:
    """
    Running portfolio balance over the whole history, one point per transaction.

    Starts from the converted opening balances of every account. Each
    transaction is converted with its own account's currency; one whose
    account is gone counts as reference currency. The running sum keeps
    full precision and only the emitted points are rounded to cents.

    Returns the most recent `limit` points (all of them if limit is None).
    """
    accounts = list(accounts)
    currency_by_account = {account.id: account.currency for account in accounts}

    running = sum(
        (convert(account.initial_balance, account.currency, rates) for account in accounts),
        Decimal("0"),
    )

    points: list[BalancePoint] = []
    for tx in sorted(transactions, key=lambda t: (t.date, t.created_at)):
        currency = currency_by_account.get(tx.account_id, rates.base)
        amount = convert(tx.amount, currency, rates)
        if tx.type == TransactionType.INCOME:
            running += amount
        else:
            running -= amount
        points.append(
            BalancePoint(
                date=tx.date,
                balance=running.quantize(CENT, rounding=ROUND_HALF_UP),
            )
        )

    if limit is None:
        return points
    return points[-limit:] if limit > 0 else []


def recent_transactions(
    transactions: Iterable[Transaction],
    limit: int = RECENT_TRANSACTIONS_LIMIT,
) -> list[Transaction]:
    """Newest transactions first; same-day entries by creation time."""
    ordered = sorted(
        transactions,
        key=lambda t: (t.date, t.created_at),
        reverse=True,
    )
    return ordered[:limit]
