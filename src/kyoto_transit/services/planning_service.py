"""Route planning facade: static schedule + live occupancy -> ranked itineraries.

`build_route_plan` is the pure core; `plan_route` wires it to the schedule
store and the realtime feed, capturing each snapshot once per request.
"""

import logging
from datetime import datetime
from pathlib import Path

from kyoto_transit.data.config import PlannerSettings, get_planner_settings
from kyoto_transit.data.schedule_store import ScheduleStore
from kyoto_transit.models.responses import (
    Endpoint,
    ErrorKind,
    NearbyStop,
    NearbyStopsResponse,
    PlanRouteResponse,
    SortCriterion,
    StopDeparture,
    StopDeparturesResponse,
    VehiclePositionsResponse,
    VehicleSummary,
)
from kyoto_transit.services.alternatives import AlternativeRouteGenerator
from kyoto_transit.services.occupancy import OccupancySnapshot
from kyoto_transit.services.realtime_service import get_current_vehicle_positions
from kyoto_transit.services.route_planner import RoutePlanner
from kyoto_transit.services.route_ranker import ScoreWeights, rank_routes
from kyoto_transit.services.schedule_index import ScheduleIndex
from kyoto_transit.services.stop_locator import nearby_stops
from kyoto_transit.services.time_utils import (
    gtfs_time_to_seconds,
    seconds_to_gtfs_time,
    time_to_gtfs_format,
)

logger = logging.getLogger(__name__)

DEFAULT_ORIGIN_ID = "origin"
DEFAULT_DESTINATION_ID = "destination"


def build_route_plan(
    index: ScheduleIndex,
    occupancy: OccupancySnapshot,
    origin: Endpoint,
    destination: Endpoint,
    reference_time: str,
    has_luggage: bool = False,
    sort_by: SortCriterion = SortCriterion.SCORE,
    settings: PlannerSettings | None = None,
    realtime_available: bool = False,
) -> PlanRouteResponse:
    """Plan the main route and ranked alternatives for one request.

    Args:
        index: Static schedule snapshot.
        occupancy: Live occupancy snapshot.
        origin: Starting point.
        destination: Target point.
        reference_time: Current time as HH:MM or HH:MM:SS.
        has_luggage: Use the stricter crowding threshold.
        sort_by: Ordering applied to the alternatives.
        settings: Planner policy; defaults to PlannerSettings().
        realtime_available: Reported back to the caller unchanged.

    Returns:
        PlanRouteResponse with either a main route or an error kind.

    Raises:
        ValueError: If reference_time is malformed.
    """
    settings = settings or PlannerSettings()
    reference_seconds = gtfs_time_to_seconds(reference_time)

    planner = RoutePlanner(index, occupancy, settings)
    outcome = planner.plan(origin, destination, reference_seconds)

    response = PlanRouteResponse(
        reference_time=seconds_to_gtfs_time(reference_seconds),
        has_luggage=has_luggage,
        sort_by=sort_by,
        realtime_available=realtime_available,
    )
    if outcome.route is None:
        logger.info(f"No route from {origin.name} to {destination.name}: {outcome.error}")
        response.error = outcome.error
        return response

    alternatives = AlternativeRouteGenerator(planner).generate(
        outcome.route,
        origin,
        destination,
        reference_seconds,
        has_luggage=has_luggage,
        origin_candidates=list(outcome.origin_candidates),
        destination_candidates=list(outcome.destination_candidates),
    )

    response.main_route = outcome.route
    response.alternative_routes = rank_routes(
        alternatives, sort_by, ScoreWeights.from_settings(settings)
    )
    return response


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
    db_path: Path | None = None,
) -> PlanRouteResponse:
    """Plan a route between two coordinates using the loaded schedule.

    Args:
        origin_lat, origin_lon: Starting point.
        destination_lat, destination_lon: Target point.
        origin_name, destination_name: Display names for the endpoints.
        departure_time: Reference time (HH:MM or HH:MM:SS). Defaults to now.
        has_luggage: Use the stricter crowding threshold.
        sort_by: Ordering applied to the alternatives.
        db_path: Optional database path.

    Returns:
        PlanRouteResponse. A missing database yields DATA_UNAVAILABLE.
    """
    reference_time = departure_time or time_to_gtfs_format(datetime.now())
    origin = Endpoint(
        id=DEFAULT_ORIGIN_ID,
        name=origin_name or "出発地",
        lat=origin_lat,
        lon=origin_lon,
    )
    destination = Endpoint(
        id=DEFAULT_DESTINATION_ID,
        name=destination_name or "目的地",
        lat=destination_lat,
        lon=destination_lon,
    )

    try:
        index = await ScheduleStore.get_index(db_path)
    except FileNotFoundError as e:
        logger.warning(f"Schedule unavailable: {e}")
        return PlanRouteResponse(
            error=ErrorKind.DATA_UNAVAILABLE,
            reference_time=reference_time,
            has_luggage=has_luggage,
            sort_by=sort_by,
            realtime_available=False,
        )

    feed = await get_current_vehicle_positions()
    occupancy = OccupancySnapshot.from_feed(feed)

    return build_route_plan(
        index,
        occupancy,
        origin,
        destination,
        reference_time,
        has_luggage=has_luggage,
        sort_by=sort_by,
        settings=get_planner_settings(),
        realtime_available=feed is not None,
    )


async def find_nearby_stops(
    lat: float,
    lon: float,
    radius_meters: float = 1000.0,
    limit: int = 20,
    db_path: Path | None = None,
) -> NearbyStopsResponse:
    """Stops within a radius of a point, nearest-first.

    Raises:
        FileNotFoundError: If the database has not been ingested yet.
    """
    index = await ScheduleStore.get_index(db_path)
    found = nearby_stops(lat, lon, index.stops, radius_meters)[:limit]
    stops = [NearbyStop(stop=stop, distance_meters=round(distance, 1)) for stop, distance in found]
    return NearbyStopsResponse(stops=stops, count=len(stops), radius_meters=radius_meters)


async def get_stop_departures(
    stop_id: str,
    after: str | None = None,
    route_id: int | None = None,
    limit: int = 10,
    db_path: Path | None = None,
) -> StopDeparturesResponse:
    """Upcoming scheduled departures from a stop, earliest first.

    A trip's final call is not a departure and is left out.

    Args:
        stop_id: Stop to list departures for.
        after: Earliest departure (HH:MM or HH:MM:SS). Defaults to now.
        route_id: Optional route filter.
        limit: Maximum number of departures.
        db_path: Optional database path.

    Raises:
        ValueError: If the stop is unknown or `after` is malformed.
        FileNotFoundError: If the database has not been ingested yet.
    """
    not_before = gtfs_time_to_seconds(after or time_to_gtfs_format(datetime.now()))
    index = await ScheduleStore.get_index(db_path)

    stop = index.get_stop(stop_id)
    if stop is None:
        raise ValueError(f"Stop not found: {stop_id}")

    found: list[tuple[int, StopDeparture]] = []
    for st in index.stop_times_at(stop_id):
        departure = gtfs_time_to_seconds(st.departure_time)
        if departure < not_before:
            continue
        trip = index.get_trip(st.trip_id)
        if trip is None or (route_id is not None and trip.route_id != route_id):
            continue
        if index.stop_times_for_trip(trip.trip_id)[-1] == st:
            continue
        route = index.get_route(trip.route_id)
        if route is None:
            continue
        found.append(
            (
                departure,
                StopDeparture(
                    trip_id=trip.trip_id,
                    route=route,
                    trip_headsign=trip.trip_headsign,
                    departure_time=st.departure_time,
                    stop_sequence=st.stop_sequence,
                ),
            )
        )

    found.sort(key=lambda item: (item[0], item[1].trip_id))
    departures = [d for _, d in found[:limit]]
    return StopDeparturesResponse(
        stop=stop,
        departures=departures,
        count=len(departures),
        query_time=seconds_to_gtfs_time(not_before),
    )

async def get_vehicle_summaries(route_id: str | None = None) -> VehiclePositionsResponse:
    """Current vehicles from the live feed, optionally for one route."""
    data = await get_current_vehicle_positions()
    if data is None:
        return VehiclePositionsResponse(vehicles=[], count=0, realtime_available=False)

    vehicles: list[VehicleSummary] = []
    for vehicle in data.vehicles:
        if route_id is not None and vehicle.route_id != route_id:
            continue
        level = vehicle.occupancy_level
        vehicles.append(
            VehicleSummary(
                vehicle_id=vehicle.vehicle_id,
                trip_id=vehicle.trip_id,
                route_id=vehicle.route_id,
                latitude=vehicle.latitude,
                longitude=vehicle.longitude,
                speed_kmh=round(vehicle.speed * 3.6, 1) if vehicle.speed is not None else None,
                occupancy_level=level,
                occupancy_label=level.label if level is not None else None,
                timestamp=vehicle.timestamp,
            )
        )

    return VehiclePositionsResponse(
        vehicles=vehicles,
        count=len(vehicles),
        realtime_available=True,
        fetched_at=data.fetched_at.isoformat(),
    )
