"""Configuration package."""

from boekhouding.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    ReportingSettings,
    Settings,
    UnresolvedAccountPolicy,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "ReportingSettings",
    "Settings",
    "UnresolvedAccountPolicy",
    "get_settings",
    "validate_all_settings",
]
