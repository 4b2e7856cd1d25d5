"""
Data Models Package

This package contains all Pydantic models used by the finance dashboard.
Everything read from or sent to the finance API goes through these schemas.
"""

from finance_dashboard.models.finance import (
    EMPTY_HISTORY,
    FALLBACK_SUMMARY,
    DocumentUpload,
    FinanceCategory,
    FinanceDocument,
    FinanceHistory,
    FinanceSummary,
    Transaction,
    TransactionCreate,
    TransactionFilters,
    TransactionFormInput,
    TransactionUpdate,
)
from finance_dashboard.models.notification import (
    Notification,
    NotificationVariant,
)

__all__ = [
    # Finance models
    "EMPTY_HISTORY",
    "FALLBACK_SUMMARY",
    "DocumentUpload",
    "FinanceCategory",
    "FinanceDocument",
    "FinanceHistory",
    "FinanceSummary",
    "Transaction",
    "TransactionCreate",
    "TransactionFilters",
    "TransactionFormInput",
    "TransactionUpdate",
    # Notification models
    "Notification",
    "NotificationVariant",
]
