"""
Derived and Transient Models

Nothing in this module is stored. Chart points and totals are
recomputed from accounts, transactions and rates on every read;
receipt scans and validation results live only until the user acts
on them.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from budget.models.ledger import CalendarDate, Category


# =============================================================================
# AGGREGATES
# =============================================================================

class CategoryTotal(BaseModel):
    """One slice of the category breakdown."""

    category: Category
    total: Decimal = Field(ge=0)

    @property
    def category_id(self) -> str:
        return self.category.id

    def share_of(self, grand_total: Decimal) -> Decimal:
        """Percentage of grand_total, 0 when there is nothing to share."""
        if grand_total <= 0:
            return Decimal("0")
        return self.total / grand_total * 100


class DailyPoint(BaseModel):
    """Income and expense summed for one calendar date."""

    date: CalendarDate
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


class BalancePoint(BaseModel):
    """
    Portfolio balance right after one transaction.

    `balance` is rounded to cents; the running sum behind it is not.
    """

    date: CalendarDate
    balance: Decimal


class PeriodTotals(BaseModel):
    """Income and expense sums for one window, in the transactions' own amounts."""

    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


# =============================================================================
# RECEIPT SCANNING
# =============================================================================

class ReceiptScan(BaseModel):
    """
    Best-guess fields read from a receipt.

    CRITICAL: These are PROPOSED values. The user edits them before a
    transaction is created; nothing here is validated against the
    receipt.
    """

    amount: Decimal = Field(
        default=Decimal("0.00"),
        ge=0,
        description="Largest two-decimal figure found, or 0"
    )
    date: CalendarDate = Field(
        default_factory=date.today,
        description="First day/month/year date found, or today"
    )
    raw_text: str = Field(
        default="",
        description="Text the recognizer returned (or the placeholder)"
    )
    recognized: bool = Field(
        default=False,
        description="False when recognition failed or no amount was found"
    )
    scanned_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def amount_text(self) -> str:
        """Amount with exactly two decimals, as prefilled in the form."""
        return f"{self.amount:.2f}"

    @property
    def date_text(self) -> str:
        return self.date.isoformat()


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'unknown_reference')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of validating a form submission.

    Errors block the save; warnings are shown but don't.
    """

    form: str = Field(
        ...,
        description="Which form was validated ('account' or 'transaction')"
    )
    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
