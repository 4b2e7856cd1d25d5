"""
Finance API Errors

Every failure of the API client is one of these categories. Callers
branch on the class (retry policy, user message), never on message text.
"""

from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError


class FinanceApiError(Exception):
    """Base exception for finance API errors (also: unknown failures)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        detail: Any = None,
    ):
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class RequestCancelledError(FinanceApiError):
    """The request was aborted by its caller. Never shown to the user."""
    pass


class NetworkError(FinanceApiError):
    """The service could not be reached."""
    pass


class RequestTimeoutError(FinanceApiError):
    """The service did not answer in time."""
    pass


class AuthorizationError(FinanceApiError):
    """Missing, expired or insufficient credentials (401/403)."""
    pass


class RequestValidationError(FinanceApiError):
    """The service rejected the request payload (400/422)."""
    pass


class NotFoundError(FinanceApiError):
    """The requested record does not exist (404)."""
    pass


class ServerError(FinanceApiError):
    """The service failed while handling the request (5xx)."""
    pass


def is_cancelled(error: BaseException) -> bool:
    return isinstance(error, RequestCancelledError)


def is_transient(error: BaseException) -> bool:
    """Network and timeout failures: worth retrying a few times."""
    return isinstance(error, (NetworkError, RequestTimeoutError))


DEFAULT_ERROR_MESSAGE = "Terjadi kesalahan. Silakan coba lagi."


def _detail_message(detail: Any) -> Optional[str]:
    """Pull a readable message out of a server error body's `detail`."""
    if isinstance(detail, str) and detail.strip():
        return detail.strip()
    if isinstance(detail, list):
        messages = []
        for item in detail:
            if isinstance(item, dict) and item.get("msg"):
                location = item.get("loc") or []
                field = location[-1] if location else None
                messages.append(f"{field}: {item['msg']}" if field else str(item["msg"]))
            elif isinstance(item, str):
                messages.append(item)
        if messages:
            return "; ".join(messages)
    if isinstance(detail, dict):
        for key in ("message", "detail", "error"):
            nested = _detail_message(detail.get(key))
            if nested:
                return nested
    return None


def extract_error_message(error: BaseException) -> str:
    """
    Turn any error into a message fit for a toast.

    Prefers what the server said; falls back to a category message.
    """
    if isinstance(error, FinanceApiError):
        from_server = _detail_message(error.detail)
        if from_server:
            return from_server
        if isinstance(error, RequestTimeoutError):
            return "Waktu permintaan habis. Silakan coba lagi."
        if isinstance(error, NetworkError):
            return "Masalah jaringan. Periksa koneksi internet Anda."
        if isinstance(error, AuthorizationError):
            return "Sesi Anda telah berakhir. Silakan masuk kembali."
        if isinstance(error, NotFoundError):
            return "Transaksi tidak ditemukan."
        if isinstance(error, ServerError):
            return "Server sedang bermasalah. Silakan coba lagi nanti."
        return str(error) or DEFAULT_ERROR_MESSAGE

    if isinstance(error, PydanticValidationError):
        errors = error.errors()
        if errors:
            return str(errors[0].get("msg") or DEFAULT_ERROR_MESSAGE)

    return str(error) or DEFAULT_ERROR_MESSAGE
