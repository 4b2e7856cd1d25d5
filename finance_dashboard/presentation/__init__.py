"""Formatting and view models for the finance page."""

from finance_dashboard.presentation.formatting import (
    format_rupiah,
    format_transaction_date,
    group_thousands,
)
from finance_dashboard.presentation.views import (
    DELETE_TRANSACTION_DIALOG,
    ConfirmDialog,
    StatCard,
    SummaryCard,
    TableState,
    Tone,
    TransactionRow,
    TransactionTable,
    build_balance_stat_card,
    build_summary_cards,
    build_transaction_table,
    resolve_summary,
    sort_transactions,
)

__all__ = [
    "DELETE_TRANSACTION_DIALOG",
    "ConfirmDialog",
    "StatCard",
    "SummaryCard",
    "TableState",
    "Tone",
    "TransactionRow",
    "TransactionTable",
    "build_balance_stat_card",
    "build_summary_cards",
    "build_transaction_table",
    "format_rupiah",
    "format_transaction_date",
    "group_thousands",
    "resolve_summary",
    "sort_transactions",
]
