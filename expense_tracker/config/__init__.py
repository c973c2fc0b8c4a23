"""Configuration package."""

from expense_tracker.config.settings import (
    AppSettings,
    AuthSettings,
    DatabaseSettings,
    Settings,
    SupabaseSettings,
    get_settings,
)

__all__ = [
    "AppSettings",
    "AuthSettings",
    "DatabaseSettings",
    "Settings",
    "SupabaseSettings",
    "get_settings",
]
