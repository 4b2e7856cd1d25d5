"""
Tests for the Finance Dashboard

Test strategy:
1. Unit tests for individual components (models, formatting, policies)
2. Integration tests for flows (against an in-memory finance service)
3. No real API calls in tests (httpx.MockTransport)
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from pydantic import ValidationError

from finance_dashboard.models.finance import (
    FALLBACK_SUMMARY,
    DocumentUpload,
    FinanceCategory,
    FinanceHistory,
    FinanceSummary,
    Transaction,
    TransactionCreate,
    TransactionFilters,
    TransactionFormInput,
    TransactionUpdate,
)
from finance_dashboard.models.notification import Notification, NotificationVariant


def make_transaction(id=1, amount="1000", category=FinanceCategory.INCOME, day=1):
    return Transaction(
        id=id,
        date=datetime(2024, 3, day),
        description=f"Transaksi {id}",
        amount=Decimal(amount),
        category=category,
    )


class TestTransactionModels:
    """Tests for transaction Pydantic models."""

    def test_transaction_from_api_payload(self):
        """Test that loose API values are coerced."""
        transaction = Transaction.model_validate({
            "id": 7,
            "date": "2024-03-05T10:00:00Z",
            "amount": "15000",
            "category": "Pemasukan",
        })
        assert transaction.amount == Decimal("15000")
        assert transaction.date == datetime(2024, 3, 5, 10, 0, tzinfo=timezone.utc)
        assert transaction.description == ""
        assert transaction.is_income is True

    def test_transaction_rejects_unknown_category(self):
        """Test that only the two Indonesian categories are accepted."""
        with pytest.raises(ValidationError):
            Transaction.model_validate({
                "id": 1,
                "date": "2024-03-05",
                "amount": 1,
                "category": "income",
            })

    def test_create_payload_sends_numbers(self):
        """Test that the create payload matches the API's JSON shape."""
        payload = TransactionCreate(
            amount=Decimal("15000"),
            category=FinanceCategory.EXPENSE,
            date=datetime(2024, 3, 5),
            description="Belanja",
        ).to_payload()
        assert payload == {
            "amount": 15000,
            "category": "Pengeluaran",
            "date": "2024-03-05T00:00:00",
            "description": "Belanja",
        }

    def test_create_keeps_fractional_amounts(self):
        """Test that fractional amounts stay fractional in JSON."""
        payload = TransactionCreate(
            amount=Decimal("10.5"),
            category=FinanceCategory.INCOME,
            date="2024-03-05",
            description="Bunga",
        ).to_payload()
        assert payload["amount"] == 10.5

    def test_create_rejects_non_positive_amount(self):
        """Test that zero and negative amounts are rejected."""
        for amount in ("0", "-100"):
            with pytest.raises(ValidationError):
                TransactionCreate(
                    amount=Decimal(amount),
                    category=FinanceCategory.INCOME,
                    date=datetime(2024, 3, 5),
                    description="Test",
                )

    def test_create_requires_description(self):
        """Test that a blank description is rejected."""
        with pytest.raises(ValidationError):
            TransactionCreate(
                amount=Decimal("1"),
                category=FinanceCategory.INCOME,
                date=datetime(2024, 3, 5),
                description="   ",
            )

    def test_update_sends_only_set_fields(self):
        """Test that a partial update omits unset fields."""
        assert TransactionUpdate(description="Baru").to_payload() == {"description": "Baru"}
        assert TransactionUpdate(amount=Decimal("2500")).to_payload() == {"amount": 2500}


class TestFilters:
    """Tests for list filters."""

    def test_params_omit_unset_filters(self):
        filters = TransactionFilters(category=FinanceCategory.EXPENSE, limit=10)
        assert filters.to_params() == {"limit": 10, "category": "Pengeluaran"}

    def test_dates_serialize_as_iso(self):
        filters = TransactionFilters(start_date=date(2024, 3, 1), end_date=date(2024, 3, 31))
        assert filters.to_params() == {"start_date": "2024-03-01", "end_date": "2024-03-31"}

    def test_rejects_inverted_range(self):
        with pytest.raises(ValidationError):
            TransactionFilters(start_date=date(2024, 3, 2), end_date=date(2024, 3, 1))

    def test_equal_filters_share_a_cache_key(self):
        a = TransactionFilters(skip=0, limit=5)
        b = TransactionFilters(limit=5, skip=0)
        assert a.cache_key() == b.cache_key()
        assert a.cache_key() != TransactionFilters(limit=6).cache_key()


class TestSummary:
    """Tests for summary aggregation."""

    def test_balance_is_income_minus_expense(self):
        """Test client-side summary computation."""
        summary = FinanceSummary.from_transactions([
            make_transaction(1, "20000", FinanceCategory.INCOME),
            make_transaction(2, "5000", FinanceCategory.EXPENSE),
            make_transaction(3, "2500", FinanceCategory.EXPENSE),
        ])
        assert summary.total_income == Decimal("20000")
        assert summary.total_expense == Decimal("7500")
        assert summary.current_balance == Decimal("12500")

    def test_empty_list_sums_to_zero(self):
        summary = FinanceSummary.from_transactions([])
        assert summary.current_balance == Decimal("0")

    def test_fallback_values(self):
        assert FALLBACK_SUMMARY.total_income == Decimal("20000")
        assert FALLBACK_SUMMARY.total_expense == Decimal("5000")
        assert FALLBACK_SUMMARY.current_balance == Decimal("15000")

    def test_summary_coerces_string_amounts(self):
        summary = FinanceSummary.model_validate({
            "total_income": "100",
            "total_expense": None,
            "current_balance": 100,
        })
        assert summary.total_expense == Decimal("0")


class TestFinanceHistory:
    """Tests for normalizing the list endpoint's response shapes."""

    RECORDS = [
        {"id": 1, "date": "2024-03-01", "amount": 20000, "category": "Pemasukan"},
        {"id": 2, "date": "2024-03-02", "amount": 5000, "category": "Pengeluaran"},
    ]

    def test_bare_list_computes_balance(self):
        history = FinanceHistory.from_payload(self.RECORDS)
        assert len(history.transactions) == 2
        assert history.current_balance == Decimal("15000")

    def test_object_keeps_server_balance(self):
        history = FinanceHistory.from_payload({
            "transactions": self.RECORDS,
            "current_balance": "12000",
        })
        assert history.current_balance == Decimal("12000")

    def test_object_without_balance_computes_it(self):
        history = FinanceHistory.from_payload({"transactions": self.RECORDS})
        assert history.current_balance == Decimal("15000")

    def test_rejects_unexpected_payload(self):
        with pytest.raises(ValueError):
            FinanceHistory.from_payload("not a list")


class TestFormInput:
    """Tests for the add/edit dialog input."""

    def test_converts_to_create_payload(self):
        form = TransactionFormInput(
            date="2024-03-05",
            description="Listrik",
            amount="150000",
            type="expense",
        )
        create = form.to_create()
        assert create.category is FinanceCategory.EXPENSE
        assert create.amount == Decimal("150000")
        assert create.date == datetime(2024, 3, 5)

    @pytest.mark.parametrize("amount", ["abc", "0", "-5"])
    def test_rejects_bad_amounts(self, amount):
        with pytest.raises(ValidationError):
            TransactionFormInput(
                date="2024-03-05",
                description="Listrik",
                amount=amount,
                type="expense",
            )

    def test_rejects_unknown_type(self):
        with pytest.raises(ValidationError):
            TransactionFormInput(
                date="2024-03-05",
                description="Listrik",
                amount="10",
                type="transfer",
            )

    def test_edit_defaults_from_transaction(self):
        transaction = make_transaction(4, "7500", FinanceCategory.EXPENSE)
        form = TransactionFormInput.from_transaction(transaction)
        assert form.type == "expense"
        assert form.amount == "7500"
        assert form.to_update().to_payload()["category"] == "Pengeluaran"

    def test_form_type_mapping(self):
        assert FinanceCategory.from_form_type("Income") is FinanceCategory.INCOME
        assert FinanceCategory.EXPENSE.form_type == "expense"
        with pytest.raises(ValueError):
            FinanceCategory.from_form_type("transfer")


class TestDocumentUpload:
    """Tests for supporting document validation."""

    def test_accepts_pdf(self):
        upload = DocumentUpload(
            filename="receipt.pdf",
            content=b"%PDF-1.4",
            content_type="APPLICATION/PDF",
        )
        assert upload.content_type == "application/pdf"
        assert upload.size_bytes == 8

    def test_rejects_unsupported_type(self):
        with pytest.raises(ValidationError):
            DocumentUpload(filename="notes.txt", content=b"hello", content_type="text/plain")

    def test_rejects_empty_document(self):
        with pytest.raises(ValidationError):
            DocumentUpload(filename="receipt.pdf", content=b"", content_type="application/pdf")


class TestNotification:
    """Tests for toast notifications."""

    def test_default_variant(self):
        notification = Notification(title="Berhasil", description="Transaksi berhasil dibuat")
        assert notification.is_error is False

    def test_destructive_variant_is_error(self):
        notification = Notification(title="Error", variant=NotificationVariant.DESTRUCTIVE)
        assert notification.is_error is True
        assert notification.to_log_dict()["variant"] == "destructive"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
