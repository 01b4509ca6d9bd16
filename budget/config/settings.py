"""
Configuration Management for Budget Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every external dependency (rate API, Tesseract, Google Sheets, local
data directory) is declared in one place and validated at startup.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RateSettings(BaseSettings):
    """Exchange rate provider configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RATES_",
        extra="ignore"
    )

    api_url: str = Field(
        default="https://api.exchangerate-api.com/v4/latest/{base}",
        description="Rate endpoint; {base} is replaced by the reference currency"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=60,
        description="HTTP timeout for a single rate request"
    )
    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts before falling back to the default table"
    )


class OCRSettings(BaseSettings):
    """Tesseract text recognition configuration."""

    model_config = SettingsConfigDict(
        env_prefix="OCR_",
        extra="ignore"
    )

    languages: str = Field(
        default="fra+eng",
        description="Tesseract language packs, '+'-separated"
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Upper bound for one recognition run"
    )
    tesseract_cmd: Optional[str] = Field(
        default=None,
        description="Path to the tesseract binary if not on PATH"
    )


class StorageSettings(BaseSettings):
    """Local storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path.home() / ".budget-tracker",
        description="Directory holding the local JSON collections"
    )
    use_google_sheets: bool = Field(
        default=False,
        description="Use Google Sheets as the primary tier (local files stay as fallback)"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Worksheet names within the spreadsheet, one per collection
    accounts_sheet_name: str = Field(default="Accounts")
    transactions_sheet_name: str = Field(default="Transactions")
    settings_sheet_name: str = Field(default="Settings")

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v

    def sheet_name_for(self, collection: str) -> str:
        """Worksheet name for a storage collection."""
        names = {
            "accounts": self.accounts_sheet_name,
            "transactions": self.transactions_sheet_name,
            "settings": self.settings_sheet_name,
        }
        return names.get(collection, collection.capitalize())


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Currency
    reference_currency: str = Field(
        default="EUR",
        min_length=3,
        max_length=3,
        description="Currency every converted total is expressed in"
    )
    default_rates: dict[str, Decimal] = Field(
        default_factory=lambda: {
            "EUR": Decimal("1"),
            "USD": Decimal("1.08"),
            "MUR": Decimal("48.5"),
        },
        description="Rate table used until (or instead of) a live refresh"
    )

    # Views
    balance_series_points: int = Field(
        default=30,
        ge=1,
        le=1000,
        description="Number of most recent points kept in the balance chart"
    )
    recent_transactions_limit: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Number of transactions in the recent list"
    )

    # Form defaults
    default_account_name: str = Field(
        default="My Account",
        description="Name suggested to the form when the user leaves it blank"
    )

    @field_validator('reference_currency', mode='before')
    @classmethod
    def normalize_reference_currency(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @model_validator(mode='after')
    def rebase_default_rates(self) -> 'AppSettings':
        """Express the default rates against the reference currency."""
        rates = {code.upper(): rate for code, rate in self.default_rates.items()}
        base_rate = rates.get(self.reference_currency)
        if base_rate is None or base_rate <= 0:
            raise ValueError(
                f"default_rates has no positive rate for {self.reference_currency}"
            )
        self.default_rates = {code: rate / base_rate for code, rate in rates.items()}
        return self


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily so a missing optional service
    # (Google Sheets) doesn't prevent the rest from loading.

    @property
    def rates(self) -> RateSettings:
        return RateSettings()

    @property
    def ocr(self) -> OCRSettings:
        return OCRSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    "<name>_error" entry for each section that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("rates", "ocr", "storage", "google_sheets", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
