"""Finance API client package."""

from finance_dashboard.services.api.cancellation import AbortSignal
from finance_dashboard.services.api.client import FinanceApiClient
from finance_dashboard.services.api.errors import (
    AuthorizationError,
    FinanceApiError,
    NetworkError,
    NotFoundError,
    RequestCancelledError,
    RequestTimeoutError,
    RequestValidationError,
    ServerError,
    extract_error_message,
    is_cancelled,
    is_transient,
)

__all__ = [
    "AbortSignal",
    "FinanceApiClient",
    # Errors
    "AuthorizationError",
    "FinanceApiError",
    "NetworkError",
    "NotFoundError",
    "RequestCancelledError",
    "RequestTimeoutError",
    "RequestValidationError",
    "ServerError",
    "extract_error_message",
    "is_cancelled",
    "is_transient",
]
