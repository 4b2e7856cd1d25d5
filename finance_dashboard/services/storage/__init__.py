"""
Storage Services Package

Provides the abstract credential store interface and its implementations.
"""

from finance_dashboard.services.storage.interface import (
    CredentialStoreError,
    CredentialStoreInterface,
)
from finance_dashboard.services.storage.credentials import (
    FileCredentialStore,
    InMemoryCredentialStore,
)

__all__ = [
    # Interfaces
    "CredentialStoreInterface",
    # Exceptions
    "CredentialStoreError",
    # Implementations
    "FileCredentialStore",
    "InMemoryCredentialStore",
]
