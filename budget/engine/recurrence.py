"""
Recurring Transaction Expansion

A transaction with a weekly or monthly rule is a template. On every
load the expander materializes each scheduled occurrence that has come
due since the template's date and is not already stored.

Occurrence n of a template falls on:
- weekly:  template date + 7n days
- monthly: template date + n calendar months, with the day clamped to
  the length of the target month (Jan 31 -> Feb 28/29 -> Mar 31)

Monthly dates are always computed from the template date, not from the
previous occurrence, so a clamped February doesn't drag every later
month back to the 28th.
"""

from calendar import monthrange
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator, Union

from budget.models.ledger import Recurrence, Transaction, new_id

WEEKLY_DAYS = 7


def add_months(start: date, months: int) -> date:
    """`start` shifted by `months` calendar months, day clamped to month end."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, monthrange(year, month)[1])
    return date(year, month, day)


def occurrence_dates(template: Transaction, until: date) -> Iterator[date]:
    """
    Scheduled occurrence dates after the template date, up to `until` inclusive.

    The template's own date is not an occurrence; it is the template.
    """
    if template.recurring == Recurrence.NONE:
        return

    n = 1
    while True:
        if template.recurring == Recurrence.WEEKLY:
            candidate = template.date + timedelta(days=WEEKLY_DAYS * n)
        else:
            candidate = add_months(template.date, n)
        if candidate > until:
            return
        yield candidate
        n += 1


def expand_recurring(
    transactions: Iterable[Transaction],
    now: Union[datetime, date],
) -> list[Transaction]:
    """
    Generate the occurrences that are due but not yet materialized.

    Args:
        transactions: The full transaction set (templates and occurrences)
        now: Current moment; occurrences dated on or before its date are due

    Returns:
        Only the NEW occurrences, to be appended by the caller. Running
        again with them included returns an empty list.
    """
    until = now.date() if isinstance(now, datetime) else now
    transactions = list(transactions)

    existing = {
        (tx.recurring_parent, tx.date)
        for tx in transactions
        if tx.recurring_parent is not None
    }

    created: list[Transaction] = []
    for template in transactions:
        if not template.is_template:
            continue
        for occurrence_date in occurrence_dates(template, until):
            key = (template.id, occurrence_date)
            if key in existing:
                continue
            existing.add(key)
            created.append(
                template.model_copy(
                    update={
                        "id": new_id(),
                        "date": occurrence_date,
                        "recurring_parent": template.id,
                        "recurring": Recurrence.NONE,
                    }
                )
            )

    return created
