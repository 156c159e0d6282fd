"""MCP tools for live vehicle data."""

from kyoto_transit.app import mcp
from kyoto_transit.models.responses import VehiclePositionsResponse
from kyoto_transit.services.planning_service import get_vehicle_summaries


@mcp.tool()
async def get_vehicle_positions(route_id: str | None = None) -> VehiclePositionsResponse:
    """Get live positions and crowding of Kyoto city buses.

    Data is refreshed at most every 30 seconds. Returns an empty list with
    realtime_available=False when the live feed is not configured or unreachable.

    Args:
        route_id: Only return vehicles running this route (e.g. "205").

    Returns:
        VehiclePositionsResponse with one entry per reporting vehicle.
    """
    return await get_vehicle_summaries(route_id=route_id)
