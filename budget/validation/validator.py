"""
Input Validation

DESIGN DECISION: Forms are validated before any model is built or any
state is touched. The validator works on the raw form values (strings
straight from the input widgets, or already-typed values) and reports
every problem at once, so the user can fix them in one pass.

Two severities matter here:
- error:   the save is refused (InvalidInputError carries the result)
- warning: the save goes ahead; the message is shown alongside

IMPORTANT: Validation NEVER silently fixes errors. The only
normalizations applied are the documented ones (blank category goes to
the "other" bucket, unparseable opening balance counts as zero), and
both show up as non-blocking issues in the result.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from budget.config import AppSettings, get_settings
from budget.models.ledger import (
    Account,
    AccountType,
    Currency,
    Recurrence,
    Transaction,
    TransactionType,
    categories_for,
    default_category_id,
)
from budget.models.reports import ValidationIssue, ValidationResult


ACCOUNT_FORM = "account"
TRANSACTION_FORM = "transaction"

MAX_NAME_LENGTH = 100
MAX_NOTE_LENGTH = 500


class InvalidInputError(Exception):
    """A form was rejected. `result` lists every issue found."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(
            issue.message for issue in result.issues if issue.severity == "error"
        )
        super().__init__(f"Invalid {result.form}: {messages}")


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Parse a user-typed amount. Accepts a comma as decimal separator.

    Returns None for anything that isn't a finite number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        parsed = value
    else:
        text = str(value).strip().replace(" ", "").replace(",", ".")
        if not text:
            return None
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return None
    if not parsed.is_finite():
        return None
    return parsed


def parse_date(value: Any) -> Optional[date]:
    """Parse an ISO date (or pass a date through). None if unparseable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def _enum_value(enum_cls, value: Any):
    """Member of enum_cls for a value (case-insensitive), or None."""
    if isinstance(value, enum_cls):
        return value
    if value is None:
        return None
    text = str(value).strip()
    for member in enum_cls:
        if member.value.lower() == text.lower():
            return member
    return None


class InputValidator:
    """
    Validates account and transaction forms.

    `validate_*` report; `build_*` validate and then return a model,
    raising InvalidInputError when any error-level issue was found.
    """

    def __init__(self, app_settings: Optional[AppSettings] = None):
        self._app = app_settings or get_settings().app

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    def validate_account(self, form: dict) -> ValidationResult:
        issues = []

        name = str(form.get("name") or "").strip()
        if not name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Account name is required",
                severity="error",
                suggested_fix=f"Give the account a name, e.g. '{self._app.default_account_name}'",
            ))
        elif len(name) > MAX_NAME_LENGTH:
            issues.append(ValidationIssue(
                field="name",
                issue_type="too_long",
                message=f"Account name is longer than {MAX_NAME_LENGTH} characters",
                severity="error",
            ))

        if _enum_value(AccountType, form.get("type", AccountType.BANK.value)) is None:
            issues.append(ValidationIssue(
                field="type",
                issue_type="invalid_value",
                message=f"Unknown account type: {form.get('type')}",
                severity="error",
                suggested_fix="Use one of: " + ", ".join(t.value for t in AccountType),
            ))

        if _enum_value(Currency, form.get("currency", Currency.EUR.value)) is None:
            issues.append(ValidationIssue(
                field="currency",
                issue_type="invalid_value",
                message=f"Unsupported currency: {form.get('currency')}",
                severity="error",
                suggested_fix="Use one of: " + ", ".join(c.value for c in Currency),
            ))

        raw_balance = form.get("initial_balance")
        if raw_balance not in (None, "") and parse_amount(raw_balance) is None:
            issues.append(ValidationIssue(
                field="initial_balance",
                issue_type="unparseable",
                message=f"Opening balance '{raw_balance}' is not a number and counts as 0",
                severity="warning",
            ))

        return ValidationResult(form=ACCOUNT_FORM, issues=issues)

    def build_account(self, form: dict, existing: Optional[Account] = None) -> Account:
        """
        Validate an account form and return the account it describes.

        With `existing`, the returned account keeps its id and creation
        time (an edit); otherwise a new account is created.
        """
        result = self.validate_account(form)
        if result.has_errors:
            raise InvalidInputError(result)

        fields = {
            "name": str(form["name"]).strip(),
            "type": _enum_value(AccountType, form.get("type", AccountType.BANK.value)),
            "currency": _enum_value(Currency, form.get("currency", Currency.EUR.value)),
            "initial_balance": parse_amount(form.get("initial_balance")),
        }
        if existing is not None:
            fields["id"] = existing.id
            fields["created_at"] = existing.created_at
        return Account(**fields)

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def validate_transaction(
        self,
        form: dict,
        accounts: Optional[Iterable[Account]] = None,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Validate a transaction form.

        Args:
            form: Raw form values
            accounts: Known accounts. When given, account_id must be one of them.
            today: Reference date for the future-date warning
        """
        issues = []
        today = today or date.today()

        tx_type = _enum_value(TransactionType, form.get("type"))
        if tx_type is None:
            issues.append(ValidationIssue(
                field="type",
                issue_type="invalid_value",
                message=f"Unknown transaction type: {form.get('type')}",
                severity="error",
                suggested_fix="Use 'income' or 'expense'",
            ))

        amount = parse_amount(form.get("amount"))
        if amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required and must be a number",
                severity="error",
                suggested_fix="Enter the amount, e.g. 12.50",
            ))
        elif amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Enter a positive amount and pick income or expense",
            ))

        category = str(form.get("category") or "").strip()
        if tx_type is not None:
            if not category:
                issues.append(ValidationIssue(
                    field="category",
                    issue_type="defaulted",
                    message=f"No category chosen; filed under '{default_category_id(tx_type)}'",
                    severity="info",
                ))
            elif category not in {c.id for c in categories_for(tx_type)}:
                issues.append(ValidationIssue(
                    field="category",
                    issue_type="invalid_value",
                    message=f"Unknown {tx_type.value} category: {category}",
                    severity="error",
                ))

        account_id = form.get("account_id")
        if accounts is not None:
            known = {account.id for account in accounts}
            if not account_id:
                issues.append(ValidationIssue(
                    field="account_id",
                    issue_type="missing",
                    message="Choose the account this transaction belongs to",
                    severity="error",
                    suggested_fix=None if known else "Create an account first",
                ))
            elif account_id not in known:
                issues.append(ValidationIssue(
                    field="account_id",
                    issue_type="unknown_reference",
                    message=f"Account not found: {account_id}",
                    severity="error",
                ))

        raw_recurring = form.get("recurring") or Recurrence.NONE.value
        if _enum_value(Recurrence, raw_recurring) is None:
            issues.append(ValidationIssue(
                field="recurring",
                issue_type="invalid_value",
                message=f"Unknown recurrence: {raw_recurring}",
                severity="error",
                suggested_fix="Use 'none', 'weekly' or 'monthly'",
            ))

        raw_date = form.get("date")
        tx_date = today if raw_date in (None, "") else parse_date(raw_date)
        if tx_date is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="invalid_value",
                message=f"Invalid date: {raw_date}",
                severity="error",
                suggested_fix="Use the YYYY-MM-DD format",
            ))
        elif tx_date > today:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date {tx_date.isoformat()} is in the future; it won't count until then",
                severity="warning",
            ))

        note = form.get("note")
        if note and len(str(note)) > MAX_NOTE_LENGTH:
            issues.append(ValidationIssue(
                field="note",
                issue_type="too_long",
                message=f"Note is longer than {MAX_NOTE_LENGTH} characters",
                severity="error",
            ))

        return ValidationResult(form=TRANSACTION_FORM, issues=issues)

    def build_transaction(
        self,
        form: dict,
        accounts: Optional[Iterable[Account]] = None,
        today: Optional[date] = None,
    ) -> Transaction:
        """Validate a transaction form and return a new transaction."""
        if accounts is not None:
            accounts = list(accounts)
        today = today or date.today()

        result = self.validate_transaction(form, accounts=accounts, today=today)
        if result.has_errors:
            raise InvalidInputError(result)

        raw_date = form.get("date")
        note = str(form.get("note") or "").strip()
        return Transaction(
            type=_enum_value(TransactionType, form["type"]),
            amount=parse_amount(form["amount"]),
            category=str(form.get("category") or "").strip(),
            account_id=form.get("account_id") or None,
            note=note or None,
            date=today if raw_date in (None, "") else parse_date(raw_date),
            recurring=_enum_value(Recurrence, form.get("recurring") or Recurrence.NONE.value),
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Short text listing the problems, for display next to the form."""
        if not result.issues:
            return "✅ All good."

        lines = []
        errors = [issue for issue in result.issues if issue.severity == "error"]
        if errors:
            lines.append("❌ Please fix the following:")
            for issue in errors:
                lines.append(f"   • {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please note:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
