"""In-memory result cache.

Used to keep parsed tenant sites between requests and to hold each user's
live preview session. Values are stored as-is; callers decide what is safe
to share between concurrent requests.
"""

import threading
from typing import Any, Protocol


class Cache(Protocol):
    """Key-value store for memoized results."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...

    def clear(self) -> None: ...


class MemoryCache:
    """Thread-safe dictionary cache.

    Rendering runs in executor threads while the event loop serves other
    requests, so every access takes the lock.
    """

    def __init__(self) -> None:
        self._store: dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        """Retrieve a cached value.

        Args:
            key: Cache key (e.g., a domain or user handle)

        Returns:
            Cached value, or None on a miss
        """
        with self._lock:
            return self._store.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._store[key] = value

    def delete(self, key: str) -> None:
        """Remove a key; missing keys are ignored."""
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
