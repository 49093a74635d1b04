"""Small time-based cache.

Entries expire only by age; nothing invalidates them on content changes.
"""

import time
from typing import Any, Awaitable, Callable


class TTLCache:
    """Key/value cache whose entries expire ttl seconds after they were stored."""

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl
        self._clock = clock
        # key -> (expires_at, value)
        self._entries: dict[str, tuple[float, Any]] = {}

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return default
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (self._clock() + self._ttl, value)

    def has(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    async def get_or_load(self, key: str, loader: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached value of key, or await loader() and cache its result.

        Exceptions raised by loader propagate and nothing is cached.
        """
        value = self.get(key, _MISSING)
        if value is _MISSING:
            value = await loader()
            self.set(key, value)
        return value


_MISSING = object()
