"""
View Models for the Finance Page

Pure functions from query results to what the page renders. Nothing here
performs I/O, so any frontend (Streamlit today) can render the same views.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional

from finance_dashboard.models.finance import (
    EMPTY_HISTORY,
    FALLBACK_SUMMARY,
    FinanceHistory,
    FinanceSummary,
    Transaction,
)
from finance_dashboard.presentation.formatting import format_rupiah, format_transaction_date
from finance_dashboard.queries.finance import QueryResult

PAGE_TITLE = "Manajemen Keuangan"
ADD_BUTTON_LABEL = "Tambah Transaksi"
ADD_DIALOG_TITLE = "Tambah Transaksi Baru"
EDIT_DIALOG_TITLE = "Edit Transaksi"
HISTORY_TITLE = "Riwayat Transaksi"
EMPTY_MESSAGE = "Belum ada transaksi"
TABLE_HEADERS = ("Tanggal", "Deskripsi", "Kategori", "Jumlah", "Aksi")
SKELETON_ROWS = 3


class Tone(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class TableState(str, Enum):
    LOADING = "loading"
    EMPTY = "empty"
    READY = "ready"


# =============================================================================
# SUMMARY CARDS
# =============================================================================

@dataclass
class SummaryCard:
    """One of the three cards above the table. `value` is None while loading."""

    title: str
    value: Optional[str]
    tone: Tone
    is_loading: bool = False


def _pending(result: QueryResult) -> bool:
    return result.is_loading or result.status.value in ("idle", "cancelled")


def resolve_summary(summary: QueryResult[FinanceSummary]) -> FinanceSummary:
    """The summary to display: fetched data, or the fallback after a failure."""
    if summary.is_error:
        return FALLBACK_SUMMARY
    return summary.data_or(FALLBACK_SUMMARY)


def build_summary_cards(
    summary: QueryResult[FinanceSummary],
    history: QueryResult[FinanceHistory],
) -> list[SummaryCard]:
    """
    Income / expense / balance cards.

    Income and expense come from the summary query. The balance comes from
    the history's `current_balance`, except when the summary failed: then
    all three cards show the fallback summary so the figures stay
    consistent with each other.
    """
    summary_loading = _pending(summary)
    shown = resolve_summary(summary)

    if summary.is_error:
        balance: Optional[Decimal] = shown.current_balance
        balance_loading = False
    elif history.is_success and history.data is not None:
        balance = history.data.current_balance
        balance_loading = False
    elif _pending(history):
        balance = None
        balance_loading = True
    else:
        balance = shown.current_balance
        balance_loading = summary_loading

    return [
        SummaryCard(
            title="Total Pemasukan",
            value=None if summary_loading else format_rupiah(shown.total_income),
            tone=Tone.POSITIVE,
            is_loading=summary_loading,
        ),
        SummaryCard(
            title="Total Pengeluaran",
            value=None if summary_loading else format_rupiah(shown.total_expense),
            tone=Tone.NEGATIVE,
            is_loading=summary_loading,
        ),
        SummaryCard(
            title="Saldo Saat Ini",
            value=None if balance_loading or balance is None else format_rupiah(balance),
            tone=Tone.NEUTRAL,
            is_loading=balance_loading,
        ),
    ]


@dataclass
class StatCard:
    """The compact balance card on the main dashboard."""

    title: str
    value: Optional[str]
    description: str
    trend: str = "up"
    percentage: int = 0
    is_loading: bool = False


def build_balance_stat_card(summary: Optional[FinanceSummary], is_loading: bool = False) -> StatCard:
    shown = summary or FALLBACK_SUMMARY
    return StatCard(
        title="Keuangan",
        value=None if is_loading else format_rupiah(shown.current_balance),
        description="Saldo bersih",
        is_loading=is_loading,
    )


# =============================================================================
# TRANSACTION TABLE
# =============================================================================

SORT_FIELDS: dict[str, Callable[[Transaction], object]] = {
    "date": lambda t: t.date.replace(tzinfo=None),
    "description": lambda t: t.description.casefold(),
    "category": lambda t: t.category.value,
    "amount": lambda t: t.amount,
}


def sort_transactions(
    transactions: list[Transaction],
    sort_by: str = "date",
    descending: bool = True,
) -> list[Transaction]:
    """Stable sort on one column; ties keep id order."""
    if sort_by not in SORT_FIELDS:
        raise ValueError(f"Cannot sort by {sort_by!r}. Choose from: {sorted(SORT_FIELDS)}")
    by_id = sorted(transactions, key=lambda t: t.id)
    return sorted(by_id, key=SORT_FIELDS[sort_by], reverse=descending)


@dataclass
class TransactionRow:
    id: int
    date_label: str
    description: str
    category_label: str
    amount_label: str
    is_income: bool
    transaction: Transaction = field(repr=False)


@dataclass
class TransactionTable:
    state: TableState
    rows: list[TransactionRow] = field(default_factory=list)
    headers: tuple[str, ...] = TABLE_HEADERS
    empty_message: str = EMPTY_MESSAGE
    skeleton_rows: int = 0


def to_row(transaction: Transaction) -> TransactionRow:
    return TransactionRow(
        id=transaction.id,
        date_label=format_transaction_date(transaction.date),
        description=transaction.description,
        category_label=transaction.category.value,
        amount_label=format_rupiah(transaction.amount),
        is_income=transaction.is_income,
        transaction=transaction,
    )


def build_transaction_table(
    history: QueryResult[FinanceHistory],
    sort_by: str = "date",
    descending: bool = True,
) -> TransactionTable:
    """Loading -> skeleton rows; no transactions (or a failed load) -> empty."""
    if _pending(history):
        return TransactionTable(state=TableState.LOADING, skeleton_rows=SKELETON_ROWS)

    transactions = history.data_or(EMPTY_HISTORY).transactions
    if not transactions:
        return TransactionTable(state=TableState.EMPTY)

    rows = [to_row(t) for t in sort_transactions(transactions, sort_by, descending)]
    return TransactionTable(state=TableState.READY, rows=rows)


# =============================================================================
# DIALOGS
# =============================================================================

@dataclass(frozen=True)
class ConfirmDialog:
    title: str
    description: str
    confirm_label: str
    cancel_label: str = "Batal"
    destructive: bool = False


DELETE_TRANSACTION_DIALOG = ConfirmDialog(
    title="Hapus Transaksi",
    description=(
        "Apakah Anda yakin ingin menghapus transaksi ini? "
        "Tindakan ini tidak dapat dibatalkan."
    ),
    confirm_label="Hapus",
    destructive=True,
)
