"""Pydantic models for GTFS-RT vehicle position data.

Only the vehicle positions feed is consumed; each record is flattened to the
fields the planner and the vehicle tools need.
"""

from datetime import datetime
from enum import IntEnum

from pydantic import BaseModel


class OccupancyLevel(IntEnum):
    """Vehicle crowding level, ordered from least to most crowded.

    Values match the GTFS-RT OccupancyStatus enum numbers 0-6. Comparisons
    between levels must use the integer ordering.
    """

    EMPTY = 0
    MANY_SEATS_AVAILABLE = 1
    FEW_SEATS_AVAILABLE = 2
    STANDING_ROOM_ONLY = 3
    CRUSHED_STANDING_ROOM = 4
    FULL = 5
    NOT_ACCEPTING = 6

    @classmethod
    def from_feed_value(cls, value: int) -> "OccupancyLevel | None":
        """Map a GTFS-RT OccupancyStatus number to a level.

        NO_DATA_AVAILABLE (7), NOT_BOARDABLE (8) and unknown values map to None.
        """
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def label(self) -> str:
        """Japanese display label."""
        return OCCUPANCY_LABELS[self]


OCCUPANCY_LABELS: dict[OccupancyLevel, str] = {
    OccupancyLevel.EMPTY: "ほとんど空いています",
    OccupancyLevel.MANY_SEATS_AVAILABLE: "座席に余裕があります",
    OccupancyLevel.FEW_SEATS_AVAILABLE: "座席が少し残っています",
    OccupancyLevel.STANDING_ROOM_ONLY: "立ち乗りのみ可能です",
    OccupancyLevel.CRUSHED_STANDING_ROOM: "混雑しています",
    OccupancyLevel.FULL: "非常に混雑しています",
    OccupancyLevel.NOT_ACCEPTING: "乗車できない可能性があります",
}


class VehiclePosition(BaseModel):
    """Real-time position and load of a single vehicle."""

    vehicle_id: str | None = None
    vehicle_label: str | None = None
    trip_id: str | None = None
    route_id: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    bearing: float | None = None
    speed: float | None = None  # meters/second
    occupancy_level: OccupancyLevel | None = None
    timestamp: int | None = None


class FeedHeader(BaseModel):
    """Header information from GTFS-RT feed."""

    gtfs_realtime_version: str
    timestamp: int


class VehiclePositionsData(BaseModel):
    """Complete vehicle positions feed data."""

    header: FeedHeader
    vehicles: list[VehiclePosition] = []
    fetched_at: datetime
