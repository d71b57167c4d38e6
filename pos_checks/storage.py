"""Key-value storage used by the cache and offline checks."""

import json
import logging
from collections.abc import Sequence
from typing import Any, Protocol

log = logging.getLogger(__name__)


class StorageQuotaExceededError(Exception):
    """Raised when a write would exceed the storage quota."""


class KeyValueStorage(Protocol):
    """String key-value store with the shape of browser local storage."""

    def get_item(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""

    def set_item(self, key: str, value: str) -> None:
        """Store a value under the key."""

    def remove_item(self, key: str) -> None:
        """Delete the key if present."""

    def keys(self) -> Sequence[str]:
        """Return every stored key."""

    def clear(self) -> None:
        """Delete every key."""


def _entry_size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class MemoryStorage:
    """In-memory storage with an optional byte quota.

    The size of an entry is its UTF-8 encoded key plus value.
    """

    def __init__(self, quota_bytes: int | None = None) -> None:
        self.quota_bytes = quota_bytes
        self._items: dict[str, str] = {}

    @property
    def used_bytes(self) -> int:
        return sum(_entry_size(key, value) for key, value in self._items.items())

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            current = self._items.get(key)
            used = self.used_bytes
            if current is not None:
                used -= _entry_size(key, current)
            needed = used + _entry_size(key, value)
            if needed > self.quota_bytes:
                raise StorageQuotaExceededError(
                    f"Storage quota exceeded: {needed} > {self.quota_bytes} bytes"
                )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> Sequence[str]:
        return list(self._items)

    def clear(self) -> None:
        log.debug("Clearing %d storage key(s)", len(self._items))
        self._items.clear()


def read_json(storage: KeyValueStorage, key: str) -> Any:
    """Load a JSON value, purging the key when its content is corrupt.

    Returns:
        The decoded value, or None when the key is absent or was corrupt

    """
    raw = storage.get_item(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        log.warning("Removing corrupt cache entry %s", key)
        storage.remove_item(key)
        return None


def write_json(storage: KeyValueStorage, key: str, value: Any) -> None:
    """Store a value as compact JSON."""
    storage.set_item(key, json.dumps(value, separators=(",", ":")))


def remove_prefixed(storage: KeyValueStorage, prefix: str) -> int:
    """Delete every key starting with the prefix and return how many."""
    doomed = [key for key in storage.keys() if key.startswith(prefix)]
    for key in doomed:
        storage.remove_item(key)
    return len(doomed)
