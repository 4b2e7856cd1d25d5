"""Tests for settings and the toaster."""

import pytest

from finance_dashboard.config import get_settings, validate_all_settings
from finance_dashboard.models.notification import NotificationVariant
from finance_dashboard.notifications import Toaster


class TestSettings:
    """Tests for pydantic-settings configuration."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("QUERY_RETRY_BASE_DELAY_SECONDS", raising=False)
        settings = get_settings()

        assert settings.finance_api.base_url == "https://backend-project-pemuda.onrender.com/api/v1"
        assert settings.query.stale_time_seconds == 300
        assert settings.query.gc_time_seconds == 600
        assert settings.query.network_max_attempts == 3
        assert settings.app.token_key == "token"

    def test_rejects_non_http_base_url(self, monkeypatch):
        monkeypatch.setenv("FINANCE_API_BASE_URL", "ftp://example.com")
        with pytest.raises(ValueError):
            get_settings().finance_api

    def test_validate_all_settings_reports_errors(self, monkeypatch):
        monkeypatch.setenv("QUERY_NETWORK_MAX_ATTEMPTS", "0")
        status = validate_all_settings()

        assert status["finance_api"] is True
        assert status["query"] is False
        assert "query_error" in status

    def test_supported_types(self, monkeypatch):
        monkeypatch.setenv("SUPPORTED_DOCUMENT_TYPES", "application/pdf, IMAGE/PNG")
        monkeypatch.setenv("MAX_UPLOAD_SIZE_MB", "2")
        app = get_settings().app

        assert app.supported_types_list == ["application/pdf", "image/png"]
        assert app.max_upload_size_bytes == 2 * 1024 * 1024


class TestToaster:
    """Tests for the notification service."""

    def test_success_and_error(self):
        toaster = Toaster()
        toaster.success("Transaksi berhasil dibuat")
        toaster.error("Gagal memuat data keuangan", "Masalah jaringan.")

        first, second = toaster.history
        assert first.title == "Berhasil"
        assert first.variant is NotificationVariant.DEFAULT
        assert second.variant is NotificationVariant.DESTRUCTIVE

    def test_subscribers_receive_notifications(self):
        received = []
        toaster = Toaster(subscribers=[received.append])
        toaster.success("Dokumen berhasil diunggah")
        assert [n.description for n in received] == ["Dokumen berhasil diunggah"]

    def test_failing_subscriber_does_not_raise(self):
        def broken(notification):
            raise RuntimeError("render failed")

        received = []
        toaster = Toaster(subscribers=[broken, received.append])
        toaster.error("Error", "boom")
        assert len(received) == 1

    def test_timestamps_are_timezone_aware(self):
        notification = Toaster().success("Transaksi berhasil dibuat")
        assert notification.created_at.tzinfo is not None

    def test_drain(self):
        toaster = Toaster()
        toaster.success("a")
        assert len(toaster.drain()) == 1
        assert toaster.history == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
