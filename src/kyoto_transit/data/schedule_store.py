"""Lazy-loaded in-memory snapshot of the static schedule."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import Any, TypeVar

import aiosqlite
from pydantic import BaseModel, ValidationError

from kyoto_transit.data.database import get_db, get_db_path
from kyoto_transit.models.gtfs import FareAttribute, FareRule, Route, Stop, StopTime, Trip
from kyoto_transit.services.schedule_index import ScheduleIndex

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

ROUTES_QUERY = """
    SELECT route_id, agency_id, route_short_name, route_long_name, route_type
    FROM routes
"""

STOPS_QUERY = """
    SELECT stop_id, stop_name, stop_lat, stop_lon, parent_station, wheelchair_boarding
    FROM stops
    WHERE location_type IS NULL OR location_type = 0
"""

TRIPS_QUERY = """
    SELECT trip_id, route_id, service_id, trip_headsign, direction_id
    FROM trips
"""

STOP_TIMES_QUERY = """
    SELECT trip_id, stop_id, arrival_time, departure_time, stop_sequence
    FROM stop_times
    ORDER BY trip_id, stop_sequence
"""

# rowid keeps the feed's row order, which decides which fare rule wins
FARE_RULES_QUERY = """
    SELECT fare_id, route_id, origin_id, destination_id
    FROM fare_rules
    WHERE route_id IS NOT NULL
    ORDER BY rowid
"""

FARE_ATTRIBUTES_QUERY = """
    SELECT fare_id, price, currency_type, payment_method, transfers
    FROM fare_attributes
    ORDER BY rowid
"""


def _drop_nulls(row: aiosqlite.Row) -> dict[str, Any]:
    """Row as a dict without NULL columns, so model defaults apply."""
    return {key: row[key] for key in row.keys() if row[key] is not None}


def _fill_stop_time(row: aiosqlite.Row) -> dict[str, Any]:
    """Timepoint rows may carry only one of arrival/departure; mirror it."""
    data = _drop_nulls(row)
    if "arrival_time" not in data and "departure_time" in data:
        data["arrival_time"] = data["departure_time"]
    elif "departure_time" not in data and "arrival_time" in data:
        data["departure_time"] = data["arrival_time"]
    return data


class ScheduleStore:
    """Singleton holder of the ScheduleIndex built from the SQLite cache.

    Usage:
        index = await ScheduleStore.get_index()

    After GTFS ingestion:
        await ScheduleStore.invalidate()
    """

    _instance: "ScheduleStore | None" = None
    _lock: asyncio.Lock = asyncio.Lock()

    def __init__(self, db_path: Path) -> None:
        """Initialize an empty store. Use get_index() instead."""
        self.db_path = db_path
        self.index = ScheduleIndex()

    @classmethod
    async def get_index(cls, db_path: Path | None = None) -> ScheduleIndex:
        """Get the schedule index, loading it on first use.

        Args:
            db_path: Optional database path. Uses default if not provided.

        Returns:
            The loaded ScheduleIndex.

        Raises:
            FileNotFoundError: If the database has not been ingested yet.
        """
        db_path = Path(db_path) if db_path is not None else get_db_path()
        async with cls._lock:
            if cls._instance is None or cls._instance.db_path != db_path:
                store = ScheduleStore(db_path)
                await store._load()
                cls._instance = store
            return cls._instance.index

    @classmethod
    async def invalidate(cls) -> None:
        """Drop the cached snapshot. Call after GTFS ingestion."""
        async with cls._lock:
            cls._instance = None
            logger.info("ScheduleStore invalidated")

    @classmethod
    async def reload(cls, db_path: Path | None = None) -> ScheduleIndex:
        """Force reload the snapshot from the database."""
        await cls.invalidate()
        return await cls.get_index(db_path)

    async def _load(self) -> None:
        logger.info(f"Loading schedule from {self.db_path}...")

        async with get_db(self.db_path) as db:
            routes = await self._fetch(db, ROUTES_QUERY, Route)
            stops = await self._fetch(db, STOPS_QUERY, Stop)
            trips = await self._fetch(db, TRIPS_QUERY, Trip)
            stop_times = await self._fetch(db, STOP_TIMES_QUERY, StopTime, _fill_stop_time)
            fare_rules = await self._fetch(db, FARE_RULES_QUERY, FareRule)
            fare_attributes = await self._fetch(db, FARE_ATTRIBUTES_QUERY, FareAttribute)

        self.index = ScheduleIndex(
            routes=routes,
            stops=stops,
            trips=trips,
            stop_times=stop_times,
            fare_rules=fare_rules,
            fare_attributes=fare_attributes,
        )
        logger.info(
            f"Schedule loaded: {len(routes)} routes, {len(stops)} stops, "
            f"{len(trips)} trips, {len(stop_times)} stop times, {len(fare_rules)} fare rules"
        )

    async def _fetch(
        self,
        db: aiosqlite.Connection,
        query: str,
        model: type[M],
        prepare: Callable[[aiosqlite.Row], dict[str, Any]] = _drop_nulls,
    ) -> list[M]:
        """Run a query and validate each row, skipping rows that don't fit the model."""
        records: list[M] = []
        skipped = 0
        async for row in self._rows(db, query):
            try:
                records.append(model.model_validate(prepare(row)))
            except ValidationError as e:
                skipped += 1
                logger.debug(f"Skipping {model.__name__} row: {e.errors()[0]['msg']}")
        if skipped:
            logger.warning(f"Skipped {skipped} invalid {model.__name__} rows")
        return records

    @staticmethod
    async def _rows(db: aiosqlite.Connection, query: str) -> AsyncIterator[aiosqlite.Row]:
        async with db.execute(query) as cursor:
            async for row in cursor:
                yield row
