"""
Configuration Management for Cab Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets (remote table store) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
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

    # One worksheet per logical table
    drivers_sheet_name: str = Field(
        default="drivers",
        description="Name of the sheet holding driver profiles"
    )
    reports_sheet_name: str = Field(
        default="daily_reports",
        description="Name of the sheet holding daily reports"
    )
    settings_sheet_name: str = Field(
        default="app_settings",
        description="Name of the key/value sheet for app settings"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "The app will run against the local fallback store."
            )
        return v


class LocalStoreSettings(BaseSettings):
    """On-device fallback store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOCAL_STORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: str = Field(
        default=".cabledger",
        description="Directory holding one JSON blob per table"
    )
    seed_demo_drivers: bool = Field(
        default=True,
        description="Seed two demo drivers when the driver blob is missing"
    )


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Model temperature"
    )


class CompanySettings(BaseSettings):
    """Business details printed on statements."""

    model_config = SettingsConfigDict(
        env_prefix="COMPANY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    display_name: str = Field(default="Trusty Yellow Cab")
    statement_title: str = Field(default="TRUSTYYELLOWCAB - STATEMENT")
    legal_name: str = Field(default="Trustyyellowcabs -Taxi services")
    address_line: str = Field(default="Coimbatore, Tamil Nadu")
    postal_code: str = Field(default="641007")
    currency_prefix: str = Field(
        default="Rs.",
        description="Currency label used in PDF output (the rupee glyph is not in the base fonts)"
    )


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

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Credentials
    default_admin_password: str = Field(
        default="admin",
        description="Admin password used when none has been stored"
    )
    min_admin_password_length: int = Field(
        default=4,
        ge=1,
        description="Minimum length for a new admin password"
    )

    # Dashboards
    default_date_filter: str = Field(
        default="month",
        pattern="^(today|week|month|year|custom|all)$",
        description="Date filter selected when a dashboard opens"
    )
    trend_points: int = Field(
        default=14,
        ge=1,
        le=365,
        description="Number of reports shown on the admin trend chart"
    )


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

    # Sub-settings are loaded lazily so a missing Sheets or Gemini
    # configuration only fails the component that needs it.

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def local_store(self) -> LocalStoreSettings:
        return LocalStoreSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def company(self) -> CompanySettings:
        return CompanySettings()

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

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for the failures.
    Used by the connection status page.
    """
    results = {}

    settings = get_settings()

    checks = [
        ("google_sheets", lambda: settings.google_sheets),
        ("local_store", lambda: settings.local_store),
        ("gemini", lambda: settings.gemini),
        ("company", lambda: settings.company),
        ("app", lambda: settings.app),
    ]

    for name, load in checks:
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
