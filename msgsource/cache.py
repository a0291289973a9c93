"""Cache collaborator used by the message source.

The message source only decides when a cached catalogue table is stale.
Storage and eviction belong to whatever implements ``MessageCache``.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from msgsource.config import CACHE_KEY_SEPARATOR


@runtime_checkable
class MessageCache(Protocol):
    """Key/value cache for loaded catalogue tables.

    Keys have the form ``"<catalogue>.<locale>:<locale>"``.
    """

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value for *key*, or ``None`` on miss."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Store *value* under *key*."""
        ...

    def remove(self, key: str) -> None:
        """Drop *key*; removing a missing key is not an error."""
        ...

    def get_last_modified(self, key: str) -> int:
        """Unix time *key* was last stored, ``0`` when absent."""
        ...


class NullCache:
    """A cache that stores nothing; every lookup misses."""

    def get(self, key: str) -> Optional[Any]:
        return None

    def set(self, key: str, value: Any) -> None:
        return None

    def remove(self, key: str) -> None:
        return None

    def get_last_modified(self, key: str) -> int:
        return 0


def cache_key(variant: str, locale: str) -> str:
    """Cache key for a catalogue variant loaded for *locale*."""
    return f"{variant}{CACHE_KEY_SEPARATOR}{locale}"
