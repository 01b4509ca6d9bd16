"""
Data Models Package

This package contains all Pydantic models used in Budget Tracker.
Stored records live in `ledger`, derived and transient ones in `reports`.
"""

from budget.models.ledger import (
    CURRENCY_SYMBOLS,
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    OTHER_EXPENSE_CATEGORY,
    OTHER_INCOME_CATEGORY,
    Account,
    AccountType,
    Category,
    Currency,
    RateTable,
    Recurrence,
    Transaction,
    TransactionType,
    categories_for,
    default_category_id,
    new_id,
    resolve_category,
)
from budget.models.reports import (
    BalancePoint,
    CategoryTotal,
    DailyPoint,
    PeriodTotals,
    ReceiptScan,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    # Stored records
    "Account",
    "AccountType",
    "Category",
    "Currency",
    "CURRENCY_SYMBOLS",
    "EXPENSE_CATEGORIES",
    "INCOME_CATEGORIES",
    "OTHER_EXPENSE_CATEGORY",
    "OTHER_INCOME_CATEGORY",
    "RateTable",
    "Recurrence",
    "Transaction",
    "TransactionType",
    "categories_for",
    "default_category_id",
    "new_id",
    "resolve_category",
    # Derived models
    "BalancePoint",
    "CategoryTotal",
    "DailyPoint",
    "PeriodTotals",
    "ReceiptScan",
    "ValidationIssue",
    "ValidationResult",
]
