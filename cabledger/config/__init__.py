"""Configuration package."""

from cabledger.config.settings import (
    AppSettings,
    CompanySettings,
    GeminiSettings,
    GoogleSheetsSettings,
    LocalStoreSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "CompanySettings",
    "GeminiSettings",
    "GoogleSheetsSettings",
    "LocalStoreSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
