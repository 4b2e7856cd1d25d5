"""Tests for the page view models."""

import pytest
from datetime import datetime
from decimal import Decimal

from finance_dashboard.models import (
    FinanceCategory,
    FinanceHistory,
    FinanceSummary,
    Transaction,
)
from finance_dashboard.presentation import (
    DELETE_TRANSACTION_DIALOG,
    TableState,
    build_balance_stat_card,
    build_summary_cards,
    build_transaction_table,
    sort_transactions,
)
from finance_dashboard.queries import QueryResult, QueryStatus
from finance_dashboard.services.api import NetworkError


def transaction(id, amount, category, day, description=None):
    return Transaction(
        id=id,
        date=datetime(2024, 3, day),
        description=description or f"Transaksi {id}",
        amount=Decimal(amount),
        category=category,
    )


TRANSACTIONS = [
    transaction(1, "20000", FinanceCategory.INCOME, 1, "Gaji"),
    transaction(2, "5000", FinanceCategory.EXPENSE, 5, "Makan"),
    transaction(3, "7500", FinanceCategory.EXPENSE, 3, "Bensin"),
]

SUMMARY = FinanceSummary(
    total_income=Decimal("30000"),
    total_expense=Decimal("10000"),
    current_balance=Decimal("20000"),
)


def ok(data):
    return QueryResult(status=QueryStatus.SUCCESS, data=data)


def loading():
    return QueryResult(status=QueryStatus.LOADING)


def failed():
    return QueryResult(status=QueryStatus.ERROR, error=NetworkError("down"))


def values(cards):
    return [card.value for card in cards]


class TestSummaryCards:
    """Tests for the three summary cards."""

    def test_titles(self):
        cards = build_summary_cards(ok(SUMMARY), ok(FinanceHistory()))
        assert [c.title for c in cards] == [
            "Total Pemasukan",
            "Total Pengeluaran",
            "Saldo Saat Ini",
        ]

    def test_balance_comes_from_history(self):
        history = FinanceHistory(transactions=TRANSACTIONS, current_balance=Decimal("12000"))
        cards = build_summary_cards(ok(SUMMARY), ok(history))
        assert values(cards) == ["Rp30.000", "Rp10.000", "Rp12.000"]

    def test_failed_summary_shows_fallback(self):
        history = FinanceHistory(transactions=TRANSACTIONS, current_balance=Decimal("12000"))
        cards = build_summary_cards(failed(), ok(history))
        assert values(cards) == ["Rp20.000", "Rp5.000", "Rp15.000"]

    def test_loading_renders_skeletons(self):
        cards = build_summary_cards(loading(), loading())
        assert all(card.is_loading for card in cards)
        assert values(cards) == [None, None, None]

    def test_balance_waits_for_history(self):
        cards = build_summary_cards(ok(SUMMARY), loading())
        assert cards[0].value == "Rp30.000"
        assert cards[2].is_loading

    def test_failed_history_uses_summary_balance(self):
        cards = build_summary_cards(ok(SUMMARY), failed())
        assert cards[2].value == "Rp20.000"


class TestTransactionTable:
    """Tests for the history table."""

    def test_loading_shows_skeleton_rows(self):
        table = build_transaction_table(loading())
        assert table.state is TableState.LOADING
        assert table.skeleton_rows == 3

    def test_empty(self):
        table = build_transaction_table(ok(FinanceHistory()))
        assert table.state is TableState.EMPTY
        assert table.empty_message == "Belum ada transaksi"

    def test_failed_load_shows_empty(self):
        assert build_transaction_table(failed()).state is TableState.EMPTY

    def test_rows_newest_first(self):
        table = build_transaction_table(ok(FinanceHistory(transactions=TRANSACTIONS)))
        assert table.state is TableState.READY
        assert table.headers == ("Tanggal", "Deskripsi", "Kategori", "Jumlah", "Aksi")
        assert [row.id for row in table.rows] == [2, 3, 1]

        first = table.rows[0]
        assert first.date_label == "05 Mar 2024"
        assert first.category_label == "Pengeluaran"
        assert first.amount_label == "Rp5.000"
        assert first.is_income is False

    def test_sort_by_amount_ascending(self):
        ordered = sort_transactions(TRANSACTIONS, "amount", descending=False)
        assert [t.id for t in ordered] == [2, 3, 1]

    def test_sort_by_description(self):
        ordered = sort_transactions(TRANSACTIONS, "description", descending=False)
        assert [t.description for t in ordered] == ["Bensin", "Gaji", "Makan"]

    def test_sort_ties_keep_id_order(self):
        same_day = [
            transaction(5, "1", FinanceCategory.INCOME, 2),
            transaction(4, "1", FinanceCategory.INCOME, 2),
        ]
        assert [t.id for t in sort_transactions(same_day, "date")] == [4, 5]

    def test_unknown_sort_column(self):
        with pytest.raises(ValueError):
            sort_transactions(TRANSACTIONS, "id")


class TestDashboardCard:
    """Tests for the dashboard stat card."""

    def test_shows_balance(self):
        card = build_balance_stat_card(SUMMARY)
        assert card.title == "Keuangan"
        assert card.description == "Saldo bersih"
        assert card.value == "Rp20.000"

    def test_without_summary_uses_fallback(self):
        assert build_balance_stat_card(None).value == "Rp15.000"

    def test_loading(self):
        assert build_balance_stat_card(SUMMARY, is_loading=True).value is None


class TestDialogs:
    """Tests for dialog copy."""

    def test_delete_confirmation(self):
        assert DELETE_TRANSACTION_DIALOG.title == "Hapus Transaksi"
        assert DELETE_TRANSACTION_DIALOG.description == (
            "Apakah Anda yakin ingin menghapus transaksi ini? "
            "Tindakan ini tidak dapat dibatalkan."
        )
        assert DELETE_TRANSACTION_DIALOG.cancel_label == "Batal"
        assert DELETE_TRANSACTION_DIALOG.confirm_label == "Hapus"
        assert DELETE_TRANSACTION_DIALOG.destructive is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
