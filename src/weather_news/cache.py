"""In-memory TTL cache used by the provider wrappers."""

import time
from collections.abc import Callable, Hashable
from typing import Any


class TTLCache:
    """Per-key expiring cache.

    Keys are any hashable value (the provider wrappers use query tuples).
    ``clock`` defaults to :func:`time.monotonic` and is injectable so tests
    can advance time without sleeping.
    """

    def __init__(self, default_ttl: float = 300.0, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[Hashable, tuple[Any, float]] = {}

    def get(self, key: Hashable) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: Hashable, value: Any, ttl: float | None = None) -> None:
        lifetime = self._default_ttl if ttl is None else ttl
        if lifetime <= 0:
            self._entries.pop(key, None)
            return
        self._entries[key] = (value, self._clock() + lifetime)

    def invalidate(self, predicate: Callable[[Hashable], bool] | None = None) -> int:
        """Drop every key matching ``predicate`` (all keys when omitted).

        Returns the number of entries removed.
        """
        if predicate is None:
            removed = len(self._entries)
            self._entries.clear()
            return removed
        doomed = [key for key in self._entries if predicate(key)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def __len__(self) -> int:
        return len(self._entries)
