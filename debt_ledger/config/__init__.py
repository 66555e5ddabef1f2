"""Configuration package."""

from debt_ledger.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    LedgerSettings,
    ReminderClearPolicy,
    Settings,
    StorageBackend,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "LedgerSettings",
    "ReminderClearPolicy",
    "Settings",
    "StorageBackend",
    "get_settings",
    "validate_all_settings",
]
