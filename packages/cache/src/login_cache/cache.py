"""In-memory key/value store for the current user.

The authentication repository writes the latest User here every time the
identity provider reports a session change, and reads it back synchronously
for `current_user`. Reads always see the last write made in this process.

Usage:
    cache = CacheClient()
    cache.write("__user_cache_key__", user)
    user = cache.read("__user_cache_key__", User)
"""

from __future__ import annotations

from typing import Any, TypeVar

T = TypeVar("T")


class CacheClient:
    """Process-local key/value store."""

    def __init__(self) -> None:
        self._cache: dict[str, Any] = {}

    def write(self, key: str, value: Any) -> None:
        """Store `value` under `key`, replacing any previous value."""
        self._cache[key] = value

    def read(self, key: str, type_: type[T] | None = None) -> T | None:
        """Return the value stored under `key`.

        When `type_` is given, a value of a different type is treated as a miss.
        """
        value = self._cache.get(key)
        if value is None:
            return None
        if type_ is not None and not isinstance(value, type_):
            return None
        return value

    def delete(self, key: str) -> None:
        self._cache.pop(key, None)

    def clear(self) -> None:
        self._cache.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._cache

    def __len__(self) -> int:
        return len(self._cache)
