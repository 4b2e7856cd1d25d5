"""Configuration package."""

from finance_dashboard.config.settings import (
    AppSettings,
    FinanceApiSettings,
    QuerySettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "FinanceApiSettings",
    "QuerySettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
