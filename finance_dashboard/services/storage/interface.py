"""
Abstract Credential Store Interface

DESIGN DECISION: The API client never knows where the bearer token lives.
This allows us to:
1. Keep the token in a local file for the desktop/Streamlit frontend
2. Use in-memory storage for testing
3. Swap in a keyring or session-backed store later

The interface is intentionally tiny: a string key/value store plus the
"clear user data" operation run on logout.
"""

from abc import ABC, abstractmethod
from typing import Optional


class CredentialStoreInterface(ABC):
    """
    Abstract interface for the local credential store.

    Any implementation (file, memory, keyring...) must implement these
    methods. Reads happen on every API request, so they must be cheap.
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """
        Read a stored value.

        Returns:
            The value if present, None otherwise
        """
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Store a value, replacing any previous one.

        Raises:
            CredentialStoreError: If the value cannot be persisted
        """
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove a value. Removing a missing key is not an error."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every stored value (logout / clear user data)."""
        pass


class CredentialStoreError(Exception):
    """Base exception for credential store operations."""
    pass
