"""MCP tools for finding stops."""

from kyoto_transit.app import mcp
from kyoto_transit.models.responses import NearbyStopsResponse, StopDeparturesResponse
from kyoto_transit.services.planning_service import (
    find_nearby_stops as _find_nearby_stops,
)
from kyoto_transit.services.planning_service import (
    get_stop_departures as _get_stop_departures,
)


@mcp.tool()
async def find_nearby_stops(
    lat: float,
    lon: float,
    radius_meters: int = 1000,
    limit: int = 20,
) -> NearbyStopsResponse:
    """Find Kyoto bus stops near a point.

    Examples:
        find_nearby_stops(lat=34.9858, lon=135.7588)  # Around Kyoto Station
        find_nearby_stops(lat=35.0394, lon=135.7292, radius_meters=300)

    Args:
        lat: Latitude of the search point.
        lon: Longitude of the search point.
        radius_meters: Search radius (default 1000m, max 5000m).
        limit: Maximum number of results to return (default 20, max 100).

    Returns:
        NearbyStopsResponse with stops sorted by distance.
    """
    # Validate limit
    if limit < 1:
        limit = 1
    elif limit > 100:
        limit = 100

    # Validate radius
    if radius_meters < 1:
        radius_meters = 1
    elif radius_meters > 5000:
        radius_meters = 5000

    return await _find_nearby_stops(lat=lat, lon=lon, radius_meters=radius_meters, limit=limit)


@mcp.tool()
async def get_stop_departures(
    stop_id: str,
    after: str | None = None,
    route_id: int | None = None,
    limit: int = 10,
) -> StopDeparturesResponse:
    """Get the next scheduled departures from a Kyoto bus stop.

    Based on the static timetable only. Use find_nearby_stops() to find stop IDs.

    Examples:
        get_stop_departures(stop_id="KINKAKU")
        get_stop_departures(stop_id="KINKAKU", after="10:00", route_id=205)

    Args:
        stop_id: The stop to list departures for.
        after: Earliest departure in HH:MM or HH:MM:SS. Defaults to the current time.
        route_id: Optional route filter.
        limit: Maximum number of departures to return (default 10, max 100).

    Returns:
        StopDeparturesResponse with departures sorted by time.
    """
    # Validate limit
    if limit < 1:
        limit = 1
    elif limit > 100:
        limit = 100

    return await _get_stop_departures(stop_id=stop_id, after=after, route_id=route_id, limit=limit)
