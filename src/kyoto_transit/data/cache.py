"""Single-slot snapshot cache for the live vehicle feed."""

import asyncio
import time
from typing import Generic, TypeVar

T = TypeVar("T")


class FeedCache(Generic[T]):
    """Holds the most recent feed snapshot with a refresh interval.

    A refresh replaces the stored reference wholesale; readers that already
    hold the previous snapshot keep a consistent view. The async lock only
    coordinates fetchers so that one refresh runs at a time.
    """

    def __init__(self, ttl: float = 30.0):
        """Initialize the cache.

        Args:
            ttl: Seconds after which the snapshot is due for refresh.
        """
        self._ttl = ttl
        self._value: T | None = None
        self._stored_at: float = 0
        self._lock = asyncio.Lock()

    def get(self) -> T | None:
        """Return the snapshot if it is still fresh, else None."""
        if self._value is not None and not self.is_stale:
            return self._value
        return None

    def peek(self) -> T | None:
        """Return the last stored snapshot regardless of age."""
        return self._value

    @property
    def is_stale(self) -> bool:
        return time.monotonic() >= self._stored_at + self._ttl

    @property
    def age_seconds(self) -> float | None:
        if self._value is None:
            return None
        return time.monotonic() - self._stored_at

    def set(self, value: T) -> None:
        """Swap in a new snapshot."""
        self._value = value
        self._stored_at = time.monotonic()

    def clear(self) -> None:
        self._value = None
        self._stored_at = 0

    @property
    def lock(self) -> asyncio.Lock:
        """Get the async lock for coordinating fetches."""
        return self._lock
