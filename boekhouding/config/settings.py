"""
Configuration Management for the Reporting Core

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class UnresolvedAccountPolicy(str, Enum):
    """
    What to do with a journal line whose account cannot be resolved
    (unknown id, or an inactive account).

    EXCLUDE: drop the line from totals and log it.
    FAIL: abort the report with UnresolvedAccountError.
    """
    EXCLUDE = "exclude"
    FAIL = "fail"


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets ledger store configuration."""

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
        description="ID of the spreadsheet holding the administration"
    )

    # Sheet names within the spreadsheet
    accounts_sheet_name: str = Field(
        default="Accounts",
        description="Chart of accounts"
    )
    journal_entries_sheet_name: str = Field(
        default="JournalEntries",
        description="Journal entry headers"
    )
    journal_lines_sheet_name: str = Field(
        default="JournalLines",
        description="Journal lines"
    )
    sales_invoices_sheet_name: str = Field(
        default="SalesInvoices",
        description="Current itemized sales invoices"
    )
    legacy_invoices_sheet_name: str = Field(
        default="Invoices",
        description="Legacy aggregate invoices"
    )
    purchase_invoices_sheet_name: str = Field(
        default="PurchaseInvoices",
        description="Purchase invoices"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

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


class ReportingSettings(BaseSettings):
    """Behaviour of the reporting core."""

    model_config = SettingsConfigDict(
        env_prefix="REPORTING_",
        extra="ignore"
    )

    unresolved_account_policy: UnresolvedAccountPolicy = Field(
        default=UnresolvedAccountPolicy.EXCLUDE,
        description="Handling of lines referencing unknown/inactive accounts"
    )
    match_private_account_names: bool = Field(
        default=True,
        description="Also treat accounts named 'privé'/'prive' as private accounts"
    )

    # Audit file identity
    software_description: str = Field(
        default="Boekhoudapplicatie",
        description="softwareDesc in the audit file header"
    )
    software_version: str = Field(
        default="1.0",
        description="softwareVersion in the audit file header"
    )
    country_code: str = Field(
        default="NL",
        min_length=2,
        max_length=2,
        description="Tax registration country"
    )
    default_company_name: str = Field(
        default="Mijn Onderneming",
        description="Company name used when none is configured"
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

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
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

    # Note: These are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def reporting(self) -> ReportingSettings:
        return ReportingSettings()

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

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("google_sheets", "reporting", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
