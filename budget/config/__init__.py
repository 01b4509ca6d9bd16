"""Configuration package."""

from budget.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    OCRSettings,
    RateSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "OCRSettings",
    "RateSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
