from datetime import UTC, datetime

import httpx
from google.transit import gtfs_realtime_pb2

from kyoto_transit.data.config import TransitConfig
from kyoto_transit.models.realtime import (
    FeedHeader,
    OccupancyLevel,
    VehiclePosition,
    VehiclePositionsData,
)


class GTFSRTClient:
    """Async HTTP client for the GTFS-RT vehicle positions feed.

    Usage:
        async with GTFSRTClient(config) as client:
            positions = await client.fetch_vehicle_positions()
    """

    def __init__(self, config: TransitConfig):
        """Initialize the client.

        Args:
            config: Feed configuration with access token and URLs.
        """
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "GTFSRTClient":
        """Enter async context - create HTTP client."""
        self._client = httpx.AsyncClient(timeout=self._config.http_timeout_seconds)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context - close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch_vehicle_positions(self) -> VehiclePositionsData:
        """Fetch and parse the vehicle positions feed.

        Returns:
            VehiclePositionsData with parsed vehicle positions.

        Raises:
            RuntimeError: If client not initialized or no feed URL is configured.
            ValueError: If the URL needs an access token that is not configured.
            httpx.HTTPError: If the HTTP request fails.
        """
        if not self._client:
            raise RuntimeError("Client not initialized - use 'async with'")
        if not self._config.vehicle_positions_url:
            raise RuntimeError("No vehicle positions URL configured")

        url = self._config.resolve_url(self._config.vehicle_positions_url)
        response = await self._client.get(url)
        response.raise_for_status()

        feed = gtfs_realtime_pb2.FeedMessage()
        feed.ParseFromString(response.content)

        return self._parse_vehicle_positions(feed)

    def _parse_vehicle_positions(self, feed: gtfs_realtime_pb2.FeedMessage) -> VehiclePositionsData:
        """Parse protobuf feed message into VehiclePositionsData model."""
        header = FeedHeader(
            gtfs_realtime_version=feed.header.gtfs_realtime_version,
            timestamp=feed.header.timestamp,
        )

        vehicles: list[VehiclePosition] = []
        for entity in feed.entity:
            if entity.HasField("vehicle"):
                vehicles.append(self._parse_vehicle_position(entity.vehicle))

        return VehiclePositionsData(
            header=header,
            vehicles=vehicles,
            fetched_at=datetime.now(UTC),
        )

    def _parse_vehicle_position(self, vp: gtfs_realtime_pb2.VehiclePosition) -> VehiclePosition:
        """Flatten a single vehicle position entity."""
        record = VehiclePosition(timestamp=vp.timestamp if vp.timestamp else None)

        if vp.HasField("trip"):
            record.trip_id = vp.trip.trip_id or None
            record.route_id = vp.trip.route_id or None

        if vp.HasField("vehicle"):
            record.vehicle_id = vp.vehicle.id or None
            record.vehicle_label = vp.vehicle.label or None

        if vp.HasField("position"):
            record.latitude = vp.position.latitude
            record.longitude = vp.position.longitude
            record.bearing = vp.position.bearing if vp.position.bearing else None
            record.speed = vp.position.speed if vp.position.speed else None

        # absent and NO_DATA_AVAILABLE both leave the level unset
        if vp.HasField("occupancy_status"):
            record.occupancy_level = OccupancyLevel.from_feed_value(vp.occupancy_status)

        return record
