"""Tests for settings loading and the activity logger."""

import logging
import pytest
from decimal import Decimal

from pydantic import ValidationError
from structlog.testing import capture_logs

from budget.activity import ActivityEventType, ActivityLogger
from budget.config import AppSettings, GoogleSheetsSettings, StorageSettings, validate_all_settings
from budget.engine import convert
from budget.services.rates import default_rate_table


class TestSettings:
    """Tests for the pydantic-settings classes."""

    def test_reference_currency_is_normalized(self, monkeypatch):
        """Test that the reference currency is read from the environment and uppercased."""
        monkeypatch.setenv("REFERENCE_CURRENCY", " usd ")
        assert AppSettings().reference_currency == "USD"

    def test_default_rates_follow_reference_currency(self, monkeypatch):
        """Test that the default table is expressed against a non-EUR reference."""
        monkeypatch.setenv("REFERENCE_CURRENCY", "USD")

        settings = AppSettings()
        table = default_rate_table(settings)

        assert settings.default_rates["USD"] == Decimal("1")
        assert settings.default_rates["EUR"] == Decimal("1") / Decimal("1.08")
        assert table.base == "USD"
        assert convert(Decimal("100"), "EUR", table).quantize(Decimal("0.01")) == Decimal("108.00")

    def test_default_rates_must_price_reference_currency(self):
        """Test that a reference currency missing from the defaults is rejected."""
        with pytest.raises(ValidationError):
            AppSettings(reference_currency="GBP")

    def test_storage_from_environment(self, tmp_path, monkeypatch):
        """Test the STORAGE_ prefix."""
        monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("STORAGE_USE_GOOGLE_SHEETS", "1")

        settings = StorageSettings()

        assert settings.data_dir == tmp_path
        assert settings.use_google_sheets is True

    def test_sheet_names(self, tmp_path):
        """Test the worksheet used for each collection."""
        credentials = tmp_path / "credentials.json"
        credentials.write_text("{}")
        settings = GoogleSheetsSettings(credentials_path=str(credentials), spreadsheet_id="sheet-1")

        assert settings.sheet_name_for("accounts") == "Accounts"
        assert settings.sheet_name_for("settings") == "Settings"
        assert settings.sheet_name_for("archive") == "Archive"

    def test_validate_all_settings_without_google(self, monkeypatch):
        """Test that missing Google settings are reported, not raised."""
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)

        results = validate_all_settings()

        assert results["google_sheets"] is False
        assert results["app"] is True


class TestActivityLogger:
    """Tests for ActivityLogger."""

    def test_events_carry_session_and_details(self):
        """Test that every event is bound to the session id."""
        with capture_logs() as logs:
            ActivityLogger(session_id="abc").log_account_deleted("acc-1", cascaded=3)

        [entry] = logs
        assert entry["event"] == ActivityEventType.ACCOUNT_DELETED.value
        assert entry["session_id"] == "abc"
        assert entry["cascaded_transactions"] == 3

    @pytest.mark.parametrize("level, expected", [
        (logging.DEBUG, "debug"),
        (logging.INFO, "info"),
        (logging.WARNING, "warning"),
        (logging.ERROR, "error"),
    ])
    def test_level_dispatch(self, level, expected):
        """Test that the level picks the logger method."""
        with capture_logs() as logs:
            ActivityLogger().log(ActivityEventType.LEDGER_RESET, level=level)

        assert logs[0]["log_level"] == expected

    def test_storage_fallback_is_a_warning(self):
        """Test the level of tier switches."""
        with capture_logs() as logs:
            ActivityLogger().log_storage_fallback("put", "quota exceeded")

        assert logs[0]["log_level"] == "warning"
        assert logs[0]["operation"] == "put"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
