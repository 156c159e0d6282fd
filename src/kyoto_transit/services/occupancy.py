"""Immutable trip -> occupancy view over one vehicle positions refresh."""

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from kyoto_transit.models.realtime import OccupancyLevel, VehiclePosition, VehiclePositionsData


class OccupancySnapshot:
    """Live occupancy level per trip id.

    Built from a complete feed refresh and never patched; the next refresh
    produces a new snapshot. Trips without a reporting vehicle default to EMPTY.
    """

    def __init__(self, levels: Mapping[str, OccupancyLevel] | None = None) -> None:
        self._levels = MappingProxyType(dict(levels or {}))

    @classmethod
    def from_vehicles(cls, vehicles: Iterable[VehiclePosition]) -> "OccupancySnapshot":
        """Build from vehicle records; the latest report wins when a trip has several."""
        latest: dict[str, tuple[int, OccupancyLevel]] = {}
        for vehicle in vehicles:
            if vehicle.trip_id is None or vehicle.occupancy_level is None:
                continue
            timestamp = vehicle.timestamp or 0
            current = latest.get(vehicle.trip_id)
            if current is None or timestamp >= current[0]:
                latest[vehicle.trip_id] = (timestamp, vehicle.occupancy_level)
        return cls({trip_id: level for trip_id, (_, level) in latest.items()})

    @classmethod
    def from_feed(cls, data: VehiclePositionsData | None) -> "OccupancySnapshot":
        if data is None:
            return cls()
        return cls.from_vehicles(data.vehicles)

    def level_for(self, trip_id: str) -> OccupancyLevel:
        return self._levels.get(trip_id, OccupancyLevel.EMPTY)

    def has_live_data(self, trip_id: str) -> bool:
        return trip_id in self._levels

    def __len__(self) -> int:
        return len(self._levels)
