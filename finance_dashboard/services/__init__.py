"""Services package."""

from finance_dashboard.services.api import (
    AbortSignal,
    AuthorizationError,
    FinanceApiClient,
    FinanceApiError,
    NetworkError,
    NotFoundError,
    RequestCancelledError,
    RequestTimeoutError,
    RequestValidationError,
    ServerError,
    extract_error_message,
)
from finance_dashboard.services.storage import (
    CredentialStoreError,
    CredentialStoreInterface,
    FileCredentialStore,
    InMemoryCredentialStore,
)

__all__ = [
    # API client
    "AbortSignal",
    "AuthorizationError",
    "FinanceApiClient",
    "FinanceApiError",
    "NetworkError",
    "NotFoundError",
    "RequestCancelledError",
    "RequestTimeoutError",
    "RequestValidationError",
    "ServerError",
    "extract_error_message",
    # Storage
    "CredentialStoreError",
    "CredentialStoreInterface",
    "FileCredentialStore",
    "InMemoryCredentialStore",
]
