"""Tests for the feed snapshot cache."""

import time

from kyoto_transit.data.cache import FeedCache


def test_cache_ttl_expiration():
    """Cache should return None after TTL expires."""
    cache: FeedCache[str] = FeedCache(ttl=0.1)

    cache.set("test_value")
    assert cache.get() == "test_value"

    time.sleep(0.15)

    assert cache.get() is None
    assert cache.is_stale


def test_peek_returns_stale_snapshot():
    """peek should keep serving the last snapshot after expiry."""
    cache: FeedCache[str] = FeedCache(ttl=0.1)

    cache.set("old")
    time.sleep(0.15)

    assert cache.get() is None
    assert cache.peek() == "old"
    assert cache.age_seconds >= 0.1


def test_empty_cache():
    cache: FeedCache[str] = FeedCache(ttl=10.0)
    assert cache.get() is None
    assert cache.peek() is None
    assert cache.age_seconds is None


def test_cache_clear():
    """Cache clear should remove the value."""
    cache: FeedCache[str] = FeedCache(ttl=10.0)

    cache.set("test_value")
    cache.clear()

    assert cache.get() is None
    assert cache.peek() is None


def test_cache_overwrite():
    """Setting a new value should replace the old one."""
    cache: FeedCache[str] = FeedCache(ttl=10.0)

    cache.set("first")
    first = cache.get()
    cache.set("second")

    assert cache.get() == "second"
    assert first == "first"
