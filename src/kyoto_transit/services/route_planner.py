"""Single-line itinerary planning: walk to a stop, ride one trip, walk on.

The planner is a pure function of its inputs: a static ScheduleIndex, an
OccupancySnapshot and the request. It keeps no state between calls.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from kyoto_transit.data.config import PlannerSettings
from kyoto_transit.models.gtfs import Stop
from kyoto_transit.models.realtime import OccupancyLevel
from kyoto_transit.models.responses import (
    Endpoint,
    ErrorKind,
    RouteInfo,
    RouteStop,
    StopEvent,
    WalkingDistance,
)
from kyoto_transit.services.fare_resolver import FareResolver
from kyoto_transit.services.geo import walking_minutes
from kyoto_transit.services.occupancy import OccupancySnapshot
from kyoto_transit.services.schedule_index import ScheduleIndex
from kyoto_transit.services.stop_locator import nearby_stops
from kyoto_transit.services.time_utils import format_clock_time, format_duration, gtfs_time_to_seconds
from kyoto_transit.services.trip_matcher import TripMatch, TripMatcher

logger = logging.getLogger(__name__)

StopCandidate = tuple[Stop, float]  # (stop, distance in meters from the endpoint)


@dataclass(frozen=True)
class PlanOutcome:
    """Result of one planning attempt: a route, or the reason there is none."""

    route: RouteInfo | None = None
    error: ErrorKind | None = None
    origin_candidates: tuple[StopCandidate, ...] = field(default=())
    destination_candidates: tuple[StopCandidate, ...] = field(default=())

    @property
    def success(self) -> bool:
        return self.route is not None


class RoutePlanner:
    """Plans walk -> ride -> walk itineraries between two endpoints."""

    def __init__(
        self,
        index: ScheduleIndex,
        occupancy: OccupancySnapshot | None = None,
        settings: PlannerSettings | None = None,
    ) -> None:
        self.index = index
        self.occupancy = occupancy or OccupancySnapshot()
        self.settings = settings or PlannerSettings()
        self.matcher = TripMatcher(index)
        self.fares = FareResolver(index)

    def candidate_stops(self, endpoint: Endpoint) -> list[StopCandidate]:
        """Stops within walking radius of an endpoint, nearest-first."""
        return nearby_stops(
            endpoint.lat,
            endpoint.lon,
            self.index.stops,
            self.settings.search_radius_meters,
        )

    def plan(
        self,
        origin: Endpoint,
        destination: Endpoint,
        reference_seconds: int,
        not_before_seconds: int | None = None,
        route_ids: Iterable[int] | None = None,
        origin_candidates: list[StopCandidate] | None = None,
        destination_candidates: list[StopCandidate] | None = None,
    ) -> PlanOutcome:
        """Plan one itinerary from origin to destination.

        Stop pairs are tried nearest-first on both axes (origin outer,
        destination inner) until one yields a trip.

        Args:
            origin: Where the traveller starts.
            destination: Where the traveller wants to go.
            reference_seconds: "Now" in seconds since the start of the service day.
            not_before_seconds: Earliest acceptable departure; defaults to reference_seconds.
            route_ids: Optional restriction of the lines that may be ridden.
            origin_candidates: Precomputed origin stops (skips the radius search).
            destination_candidates: Precomputed destination stops.

        Returns:
            PlanOutcome with the route or an ErrorKind.
        """
        if self.index.is_empty:
            return PlanOutcome(error=ErrorKind.DATA_UNAVAILABLE)

        if origin_candidates is None:
            origin_candidates = self.candidate_stops(origin)
        if destination_candidates is None:
            destination_candidates = self.candidate_stops(destination)

        outcome_base = {
            "origin_candidates": tuple(origin_candidates),
            "destination_candidates": tuple(destination_candidates),
        }
        if not origin_candidates or not destination_candidates:
            logger.debug(
                f"No nearby stop: {len(origin_candidates)} near {origin.name}, "
                f"{len(destination_candidates)} near {destination.name}"
            )
            return PlanOutcome(error=ErrorKind.NO_NEARBY_STOP, **outcome_base)

        if not_before_seconds is None:
            not_before_seconds = reference_seconds
        allowed = list(route_ids) if route_ids is not None else None

        for origin_stop, walk_to in origin_candidates:
            for destination_stop, walk_from in destination_candidates:
                if origin_stop.stop_id == destination_stop.stop_id:
                    continue
                match = self.matcher.find_trip(
                    origin_stop.stop_id,
                    destination_stop.stop_id,
                    not_before_seconds,
                    route_ids=allowed,
                )
                if match is None:
                    continue
                route = self.build_route_info(match, reference_seconds, walk_to, walk_from)
                return PlanOutcome(route=route, **outcome_base)

        return PlanOutcome(error=ErrorKind.NO_TRIP_FOUND, **outcome_base)

    def build_route_info(
        self,
        match: TripMatch,
        reference_seconds: int,
        walk_to_meters: float | None = None,
        walk_from_meters: float | None = None,
    ) -> RouteInfo:
        """Assemble a RouteInfo for a matched trip.

        Raises:
            ValueError: If the trip references a stop absent from the stop table
                or carries a malformed time string.
        """
        trip_id = match.trip.trip_id
        occupancy_level = self.occupancy.level_for(trip_id)
        route_stops = build_route_stops(
            self.index, match, reference_seconds, occupancy_level
        )

        origin_stop = route_stops[0].stop
        destination_stop = route_stops[-1].stop
        fare = self.fares.resolve_fare(
            match.route.route_id, origin_stop.stop_id, destination_stop.stop_id
        )

        total_minutes = (match.arrival_seconds - match.departure_seconds) // 60

        walking_distance = None
        walk_minutes = 0
        if walk_to_meters is not None or walk_from_meters is not None:
            walking_distance = WalkingDistance(
                to_first_stop=walk_to_meters, from_last_stop=walk_from_meters
            )
            walk_minutes = walking_minutes(
                walk_to_meters or 0.0, self.settings.walking_speed_m_per_min
            ) + walking_minutes(walk_from_meters or 0.0, self.settings.walking_speed_m_per_min)

        return RouteInfo(
            id=f"route-{match.route.route_id}-{trip_id}",
            route=match.route,
            trip_id=trip_id,
            trip_headsign=match.trip.trip_headsign,
            stops=route_stops,
            fare_amount=fare.amount,
            fare_currency=fare.currency,
            fare_ambiguous=fare.ambiguous,
            total_time=format_duration(total_minutes),
            total_minutes=total_minutes,
            departure_stop=StopEvent(
                stop_id=origin_stop.stop_id,
                name=origin_stop.stop_name,
                time=format_clock_time(match.origin.departure_time),
            ),
            arrival_stop=StopEvent(
                stop_id=destination_stop.stop_id,
                name=destination_stop.stop_name,
                time=format_clock_time(match.destination.arrival_time),
            ),
            walking_distance=walking_distance,
            walking_minutes=walk_minutes,
            occupancy_level=occupancy_level,
        )


def build_route_stops(
    index: ScheduleIndex,
    match: TripMatch,
    reference_seconds: int,
    occupancy_level: OccupancyLevel,
) -> list[RouteStop]:
    """Build the ordered RouteStop list for a matched trip segment.

    A vehicle is "at" a stop while the reference time lies within the
    scheduled arrival..departure window there, and "travelling from" a stop
    between its departure and the next stop's arrival.
    """
    rows = match.stop_times
    arrivals = [gtfs_time_to_seconds(st.arrival_time) for st in rows]
    departures = [gtfs_time_to_seconds(st.departure_time) for st in rows]

    route_stops: list[RouteStop] = []
    for i, st in enumerate(rows):
        in_transit = i + 1 < len(rows) and departures[i] < reference_seconds < arrivals[i + 1]
        route_stops.append(
            RouteStop(
                stop=index.require_stop(st.stop_id, match.trip.trip_id),
                arrival_time=st.arrival_time,
                departure_time=st.departure_time,
                is_vehicle_at_stop=arrivals[i] <= reference_seconds <= departures[i],
                is_current_location=in_transit,
                occupancy_level=occupancy_level,
            )
        )
    return route_stops
