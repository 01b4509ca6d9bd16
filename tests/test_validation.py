"""Tests for the input validator."""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from budget.config import AppSettings
from budget.models import AccountType, Currency, Recurrence, TransactionType
from budget.validation import InputValidator, InvalidInputError, parse_amount, parse_date

from conftest import TODAY, make_account


@pytest.fixture
def validator() -> InputValidator:
    return InputValidator()


@pytest.fixture
def account():
    return make_account()


def transaction_form(account_id: str, **overrides) -> dict:
    form = {
        "type": "expense",
        "amount": "12.50",
        "category": "food",
        "account_id": account_id,
        "date": TODAY.isoformat(),
        "recurring": "none",
        "note": "",
    }
    form.update(overrides)
    return form


def fields_with_errors(result) -> set[str]:
    return {issue.field for issue in result.issues if issue.severity == "error"}


class TestParsing:
    """Tests for the form value parsers."""

    @pytest.mark.parametrize("raw, expected", [
        ("12.50", Decimal("12.50")),
        ("12,50", Decimal("12.50")),
        (" 1 000,00 ", Decimal("1000.00")),
        (7, Decimal("7")),
        (Decimal("3.3"), Decimal("3.3")),
    ])
    def test_parse_amount(self, raw, expected):
        """Test accepted amount spellings."""
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "abc", "NaN", "Infinity", True])
    def test_parse_amount_rejects(self, raw):
        """Test that non-numbers give None."""
        assert parse_amount(raw) is None

    def test_parse_date(self):
        """Test ISO strings and date objects."""
        assert parse_date("2024-03-05") == date(2024, 3, 5)
        assert parse_date(date(2024, 3, 5)) == date(2024, 3, 5)
        assert parse_date("05/03/2024") is None


class TestAccountValidation:
    """Tests for account forms."""

    def test_valid_account(self, validator):
        """Test that a complete form builds an account."""
        account = validator.build_account({
            "name": " Savings ",
            "type": "savings",
            "currency": "usd",
            "initial_balance": "1500,00",
        })

        assert account.name == "Savings"
        assert account.type == AccountType.SAVINGS
        assert account.currency == Currency.USD
        assert account.initial_balance == Decimal("1500.00")

    def test_empty_name_is_rejected(self, validator):
        """Test that a blank name blocks the save."""
        result = validator.validate_account({"name": "   "})
        assert fields_with_errors(result) == {"name"}

        with pytest.raises(InvalidInputError) as exc_info:
            validator.build_account({"name": ""})
        assert exc_info.value.result.form == "account"

    def test_blank_name_suggests_configured_default(self):
        """Test that the fix for a missing name offers the configured default name."""
        validator = InputValidator(AppSettings(default_account_name="Household"))

        [issue] = validator.validate_account({"name": ""}).issues

        assert issue.field == "name"
        assert "Household" in issue.suggested_fix

    def test_unknown_type_and_currency(self, validator):
        """Test that values outside the closed sets are rejected."""
        result = validator.validate_account({"name": "X", "type": "loan", "currency": "GBP"})
        assert fields_with_errors(result) == {"type", "currency"}

    def test_unparseable_balance_is_a_warning(self, validator):
        """Test that a garbage opening balance saves as 0 with a warning."""
        form = {"name": "Cash", "initial_balance": "lots"}

        result = validator.validate_account(form)
        account = validator.build_account(form)

        assert result.is_valid
        assert len(result.warnings) == 1
        assert account.initial_balance == Decimal("0")

    def test_edit_keeps_identity(self, validator, account):
        """Test that editing keeps the id and creation time."""
        edited = validator.build_account({"name": "Renamed"}, existing=account)

        assert edited.id == account.id
        assert edited.created_at == account.created_at
        assert edited.name == "Renamed"


class TestTransactionValidation:
    """Tests for transaction forms."""

    def test_valid_transaction(self, validator, account):
        """Test that a complete form builds a transaction."""
        tx = validator.build_transaction(transaction_form(account.id), accounts=[account], today=TODAY)

        assert tx.type == TransactionType.EXPENSE
        assert tx.amount == Decimal("12.50")
        assert tx.account_id == account.id
        assert tx.date == TODAY
        assert tx.note is None
        assert tx.recurring == Recurrence.NONE

    @pytest.mark.parametrize("amount", ["0", "-3", "abc", "", None])
    def test_bad_amount_is_rejected(self, validator, account, amount):
        """Test that non-positive and unparseable amounts block the save."""
        result = validator.validate_transaction(
            transaction_form(account.id, amount=amount),
            accounts=[account],
            today=TODAY,
        )
        assert fields_with_errors(result) == {"amount"}

    def test_unknown_type_and_recurrence(self, validator, account):
        """Test that type and recurrence must come from their closed sets."""
        result = validator.validate_transaction(
            transaction_form(account.id, type="transfer", recurring="daily"),
            accounts=[account],
            today=TODAY,
        )
        assert fields_with_errors(result) == {"type", "recurring"}

    def test_category_must_match_type(self, validator, account):
        """Test that an expense can't use an income category."""
        result = validator.validate_transaction(
            transaction_form(account.id, category="salary"),
            accounts=[account],
            today=TODAY,
        )
        assert fields_with_errors(result) == {"category"}

    def test_blank_category_defaults_to_other(self, validator, account):
        """Test that a missing category is filed under 'other'."""
        tx = validator.build_transaction(
            transaction_form(account.id, category="", type="income"),
            accounts=[account],
            today=TODAY,
        )
        assert tx.category == "other_income"

    def test_unknown_account(self, validator, account):
        """Test that the account must exist."""
        result = validator.validate_transaction(
            transaction_form("missing"),
            accounts=[account],
            today=TODAY,
        )
        assert fields_with_errors(result) == {"account_id"}

    def test_no_accounts_yet(self, validator):
        """Test the hint shown before any account exists."""
        result = validator.validate_transaction(transaction_form(None), accounts=[], today=TODAY)

        [issue] = result.issues
        assert issue.field == "account_id"
        assert issue.suggested_fix == "Create an account first"

    def test_future_date_is_a_warning(self, validator, account):
        """Test that a future date is allowed but flagged."""
        form = transaction_form(account.id, date=(TODAY + timedelta(days=2)).isoformat())

        result = validator.validate_transaction(form, accounts=[account], today=TODAY)

        assert result.is_valid
        assert result.warnings

    def test_invalid_date(self, validator, account):
        """Test that an unparseable date is rejected."""
        result = validator.validate_transaction(
            transaction_form(account.id, date="2024-02-31"),
            accounts=[account],
            today=TODAY,
        )
        assert fields_with_errors(result) == {"date"}

    def test_missing_date_means_today(self, validator, account):
        """Test that an empty date field defaults to today."""
        tx = validator.build_transaction(
            transaction_form(account.id, date=""),
            accounts=[account],
            today=TODAY,
        )
        assert tx.date == TODAY

    def test_rejection_carries_every_issue(self, validator, account):
        """Test that InvalidInputError reports all errors at once."""
        with pytest.raises(InvalidInputError) as exc_info:
            validator.build_transaction(
                transaction_form(account.id, amount="-1", type="gift"),
                accounts=[account],
                today=TODAY,
            )

        error = exc_info.value
        assert error.result.error_count == 2
        assert "Amount must be greater than zero" in str(error)

    def test_user_friendly_summary(self, validator, account):
        """Test the text shown next to a rejected form."""
        result = validator.validate_transaction(
            transaction_form(account.id, amount="0"),
            accounts=[account],
            today=TODAY,
        )

        summary = validator.get_user_friendly_summary(result)

        assert summary.startswith("❌")
        assert "Amount must be greater than zero" in summary


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
