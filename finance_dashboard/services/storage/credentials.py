"""
Credential Store Implementations

The file store keeps a small JSON object on disk, the same way the browser
dashboard keeps its token in localStorage. The in-memory store backs tests
and short-lived sessions.
"""

import json
from pathlib import Path
from typing import Optional, Union

import structlog

from finance_dashboard.services.storage.interface import (
    CredentialStoreError,
    CredentialStoreInterface,
)

logger = structlog.get_logger(__name__)


class InMemoryCredentialStore(CredentialStoreInterface):
    """Dictionary-backed store."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()


class FileCredentialStore(CredentialStoreInterface):
    """
    JSON-file-backed store.

    The file is re-read on every access so a token written by another
    process (e.g. a login script) is picked up without a restart.
    A missing file behaves like an empty store; an unreadable one is
    reported, not silently treated as empty.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise CredentialStoreError(f"Cannot read credential store {self._path}: {e}") from e
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CredentialStoreError(f"Credential store {self._path} is not valid JSON") from e
        if not isinstance(data, dict):
            raise CredentialStoreError(f"Credential store {self._path} must hold a JSON object")
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def _write(self, items: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(items, indent=2), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as e:
            raise CredentialStoreError(f"Cannot write credential store {self._path}: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read()
        items[key] = value
        self._write(items)
        logger.info("credential_stored", key=key, path=str(self._path))

    def remove_item(self, key: str) -> None:
        items = self._read()
        if key in items:
            del items[key]
            self._write(items)

    def clear(self) -> None:
        if self._path.exists():
            self._write({})
            logger.info("credential_store_cleared", path=str(self._path))
