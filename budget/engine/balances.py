"""
Balance Calculation

An account's balance is never stored. It is its initial balance plus
every income and minus every expense that references it, recomputed
on each read from the current transaction set.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable

from budget.engine.currency import convert
from budget.models.ledger import Account, RateTable, Transaction


def net_by_account(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """Signed transaction sum per account id, in each account's own currency."""
    totals: dict[str, Decimal] = defaultdict(Decimal)
    for tx in transactions:
        if tx.account_id is not None:
            totals[tx.account_id] += tx.signed_amount
    return totals


def account_balance(account: Account, transactions: Iterable[Transaction]) -> Decimal:
    """Initial balance plus income minus expense for one account."""
    balance = account.initial_balance
    for tx in transactions:
        if tx.account_id == account.id:
            balance += tx.signed_amount
    return balance


def portfolio_total(
    accounts: Iterable[Account],
    transactions: Iterable[Transaction],
    rates: RateTable,
) -> Decimal:
    """
    Sum of every account balance, converted to the reference currency.

    Transactions whose account no longer exists don't belong to any
    balance and are left out.
    """
    net = net_by_account(transactions)
    total = Decimal("0")
    for account in accounts:
        balance = account.initial_balance + net.get(account.id, Decimal("0"))
        total += convert(balance, account.currency, rates)
    return total
