"""
Budget Tracker - Source Package

A personal finance tracker: accounts, income/expense transactions,
multi-currency totals and charting aggregates, with receipt scanning
as an optional shortcut for entering an amount.

DESIGN PRINCIPLES:
1. Stored records are the only source of truth
2. Every derived figure is a pure function of accounts, transactions and rates
3. State changes go through one update path
4. External services degrade to defaults, they never abort the app
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Budget Tracker Team"
