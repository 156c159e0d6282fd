"""Real-time service for fetching vehicle positions with caching.

Provides cached access to the vehicle positions feed. Request paths read the
current snapshot through `get_current_vehicle_positions`, which never waits
on the network once a snapshot exists; stale snapshots are refreshed by a
single background task. All errors are caught and logged - functions return
the last good snapshot, or None, on failure.
"""

import asyncio
import logging

from kyoto_transit.data.cache import FeedCache
from kyoto_transit.data.config import TransitConfig, get_transit_config
from kyoto_transit.data.gtfsrt_client import GTFSRTClient
from kyoto_transit.models.realtime import VehiclePositionsData

logger = logging.getLogger(__name__)

# Module-level state (lazy-initialized)
_vehicle_positions_cache: FeedCache[VehiclePositionsData] | None = None
_config: TransitConfig | None = None
_refresh_task: asyncio.Task | None = None


def _get_config() -> TransitConfig:
    """Get or create the feed config singleton."""
    global _config
    if _config is None:
        _config = get_transit_config()
    return _config


def _get_vehicle_positions_cache() -> FeedCache[VehiclePositionsData]:
    """Get or create the vehicle positions cache singleton."""
    global _vehicle_positions_cache
    if _vehicle_positions_cache is None:
        config = _get_config()
        _vehicle_positions_cache = FeedCache[VehiclePositionsData](ttl=config.cache_ttl_seconds)
    return _vehicle_positions_cache


async def get_vehicle_positions(force_refresh: bool = False) -> VehiclePositionsData | None:
    """Fetch vehicle positions with caching.

    Waits for the network when the snapshot is stale. A failed refresh keeps
    serving the previous snapshot, however old.

    Args:
        force_refresh: If True, bypass cache and fetch fresh data.

    Returns:
        VehiclePositionsData if available, None if never fetched successfully.
    """
    config = _get_config()
    if not config.vehicle_positions_url:
        logger.debug("No realtime URL configured, cannot fetch vehicle positions")
        return None

    cache = _get_vehicle_positions_cache()

    # Check cache first (unless force refresh)
    if not force_refresh:
        cached = cache.get()
        if cached is not None:
            return cached

    # Acquire lock to prevent concurrent fetches
    async with cache.lock:
        # Double-check cache after acquiring lock
        if not force_refresh:
            cached = cache.get()
            if cached is not None:
                return cached

        try:
            async with GTFSRTClient(config) as client:
                data = await client.fetch_vehicle_positions()
                cache.set(data)
                logger.debug(f"Fetched {len(data.vehicles)} vehicle positions")
                return data
        except Exception as e:
            previous = cache.peek()
            if previous is not None:
                logger.warning(
                    f"Failed to refresh vehicle positions, serving snapshot "
                    f"{cache.age_seconds:.0f}s old: {e}"
                )
            else:
                logger.warning(f"Failed to fetch vehicle positions: {e}")
            return previous


def _schedule_refresh() -> None:
    """Start a background refresh unless one is already running."""
    global _refresh_task
    if _refresh_task is not None and not _refresh_task.done():
        return
    _refresh_task = asyncio.create_task(get_vehicle_positions())


async def get_current_vehicle_positions() -> VehiclePositionsData | None:
    """Return the snapshot available right now without waiting on the feed.

    A stale snapshot is returned as-is and a refresh is started in the
    background. Only the very first call, before any snapshot exists, fetches
    inline.
    """
    config = _get_config()
    if not config.vehicle_positions_url:
        return None

    cache = _get_vehicle_positions_cache()
    snapshot = cache.peek()
    if snapshot is None:
        return await get_vehicle_positions()

    if cache.is_stale:
        _schedule_refresh()
    return snapshot


def reset_service() -> None:
    """Reset the service state completely.

    Drops the cache, config and any pending refresh. Useful for testing.
    """
    global _vehicle_positions_cache, _config, _refresh_task
    if _refresh_task is not None and not _refresh_task.done():
        _refresh_task.cancel()
    _refresh_task = None
    _vehicle_positions_cache = None
    _config = None
    # hasattr check handles the case where the function is mocked in tests
    if hasattr(get_transit_config, "cache_clear"):
        get_transit_config.cache_clear()
