"""MCP tools for route planning."""

from kyoto_transit.app import mcp
from kyoto_transit.models.responses import PlanRouteResponse, SortCriterion
from kyoto_transit.services.planning_service import plan_route as _plan_route


@mcp.tool()
async def plan_route(
    origin_lat: float,
    origin_lon: float,
    destination_lat: float,
    destination_lon: float,
    origin_name: str | None = None,
    destination_name: str | None = None,
    departure_time: str | None = None,
    has_luggage: bool = False,
    sort_by: SortCriterion = SortCriterion.SCORE,
) -> PlanRouteResponse:
    """Plan a bus trip between two points in Kyoto.

    Finds the nearest boarding and alighting stops (within 1 km walking) served
    by a single bus line, picks the next departing trip, and attaches the fare
    and the live crowding level. When that bus is too crowded, quieter
    alternatives are suggested: a later run of the same line, or another line
    nearby. Travelling with a suitcase (has_luggage=True) applies a stricter
    crowding limit.

    Examples:
        plan_route(origin_lat=35.0394, origin_lon=135.7292,
                   destination_lat=34.9858, destination_lon=135.7588)
        plan_route(..., departure_time="10:00", has_luggage=True, sort_by="fare")

    Args:
        origin_lat: Latitude of the starting point.
        origin_lon: Longitude of the starting point.
        destination_lat: Latitude of the destination.
        destination_lon: Longitude of the destination.
        origin_name: Optional display name of the starting point.
        destination_name: Optional display name of the destination.
        departure_time: Time to leave, HH:MM or HH:MM:SS (default: now).
        has_luggage: Whether the traveller carries large luggage.
        sort_by: Ordering of alternatives: "score", "time", "fare" or "transfers".

    Returns:
        PlanRouteResponse with main_route and alternative_routes, or an error of
        NO_NEARBY_STOP, NO_TRIP_FOUND or DATA_UNAVAILABLE.
    """
    return await _plan_route(
        origin_lat=origin_lat,
        origin_lon=origin_lon,
        destination_lat=destination_lat,
        destination_lon=destination_lon,
        origin_name=origin_name,
        destination_name=destination_name,
        departure_time=departure_time,
        has_luggage=has_luggage,
        sort_by=sort_by,
    )
