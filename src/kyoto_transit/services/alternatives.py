"""Alternative itineraries for a main route that is too crowded."""

import logging

from kyoto_transit.models.realtime import OccupancyLevel
from kyoto_transit.models.responses import (
    AlternativeReason,
    AlternativeReasonType,
    AlternativeRoute,
    Endpoint,
    RouteInfo,
)
from kyoto_transit.services.route_planner import RoutePlanner, StopCandidate
from kyoto_transit.services.time_utils import gtfs_time_to_seconds

logger = logging.getLogger(__name__)

NEXT_DEPARTURE_DESCRIPTION = "混雑を避けるため、次の便をお勧めします"
NEXT_DEPARTURE_LUGGAGE_DESCRIPTION = "トランクがあるため、より空いている便をお勧めします"
OTHER_LINE_DESCRIPTION = "少し歩きますが、混雑の少ない経路があります"


def should_suggest_alternative(level: OccupancyLevel, threshold: OccupancyLevel) -> bool:
    """True iff the level is strictly more crowded than the threshold."""
    return level > threshold


def _as_alternative(
    route: RouteInfo, reason_type: AlternativeReasonType, description: str
) -> AlternativeRoute:
    return AlternativeRoute.model_validate(
        {
            **route.model_dump(),
            "reason": AlternativeReason(type=reason_type, description=description),
        }
    )


class AlternativeRouteGenerator:
    """Proposes later runs of the same line or other lines within walking distance.

    Every alternative returned is at or below the active occupancy threshold.
    Other-line alternatives are de-duplicated by route id; the main route's
    own trip is never offered.
    """

    def __init__(self, planner: RoutePlanner) -> None:
        self._planner = planner
        self._settings = planner.settings

    def generate(
        self,
        primary: RouteInfo,
        origin: Endpoint,
        destination: Endpoint,
        reference_seconds: int,
        has_luggage: bool = False,
        origin_candidates: list[StopCandidate] | None = None,
        destination_candidates: list[StopCandidate] | None = None,
    ) -> list[AlternativeRoute]:
        threshold = self._settings.occupancy_threshold(has_luggage)
        if not should_suggest_alternative(primary.occupancy_level, threshold):
            return []

        logger.debug(
            f"Main route {primary.id} occupancy {primary.occupancy_level.name} "
            f"exceeds {threshold.name}; searching alternatives"
        )

        if origin_candidates is None:
            origin_candidates = self._planner.candidate_stops(origin)
        if destination_candidates is None:
            destination_candidates = self._planner.candidate_stops(destination)

        alternatives: list[AlternativeRoute] = []
        next_run = self._next_departure(primary, reference_seconds, threshold)
        if next_run is not None:
            description = (
                NEXT_DEPARTURE_LUGGAGE_DESCRIPTION if has_luggage else NEXT_DEPARTURE_DESCRIPTION
            )
            alternatives.append(
                _as_alternative(next_run, AlternativeReasonType.OCCUPANCY, description)
            )

        alternatives.extend(
            self._other_lines(
                primary,
                origin,
                destination,
                reference_seconds,
                threshold,
                origin_candidates,
                destination_candidates,
            )
        )
        return alternatives[: self._settings.max_alternatives]

    def _next_departure(
        self, primary: RouteInfo, reference_seconds: int, threshold: OccupancyLevel
    ) -> RouteInfo | None:
        """Earliest later run of the same line and stop pair within the threshold."""
        matcher = self._planner.matcher
        origin_id = primary.departure_stop.stop_id
        destination_id = primary.arrival_stop.stop_id
        walking = primary.walking_distance
        not_before = gtfs_time_to_seconds(primary.stops[0].departure_time)

        for _ in range(self._settings.max_next_departures):
            match = matcher.find_trip(
                origin_id,
                destination_id,
                not_before + 1,
                route_ids=[primary.route.route_id],
            )
            if match is None:
                return None
            not_before = match.departure_seconds
            if match.trip.trip_id == primary.trip_id:
                continue

            candidate = self._planner.build_route_info(
                match,
                reference_seconds,
                walking.to_first_stop if walking else None,
                walking.from_last_stop if walking else None,
            )
            if candidate.occupancy_level <= threshold:
                return candidate
        return None

    def _other_lines(
        self,
        primary: RouteInfo,
        origin: Endpoint,
        destination: Endpoint,
        reference_seconds: int,
        threshold: OccupancyLevel,
        origin_candidates: list[StopCandidate],
        destination_candidates: list[StopCandidate],
    ) -> list[AlternativeRoute]:
        index = self._planner.index
        origin_routes: set[int] = set()
        for stop, _ in origin_candidates:
            origin_routes |= index.routes_serving_stop(stop.stop_id)
        destination_routes: set[int] = set()
        for stop, _ in destination_candidates:
            destination_routes |= index.routes_serving_stop(stop.stop_id)

        route_ids = sorted((origin_routes & destination_routes) - {primary.route.route_id})

        alternatives: list[AlternativeRoute] = []
        for route_id in route_ids:
            outcome = self._planner.plan(
                origin,
                destination,
                reference_seconds,
                route_ids=[route_id],
                origin_candidates=origin_candidates,
                destination_candidates=destination_candidates,
            )
            if outcome.route is None:
                continue
            if outcome.route.occupancy_level > threshold:
                continue
            alternatives.append(
                _as_alternative(
                    outcome.route, AlternativeReasonType.LESS_WALKING, OTHER_LINE_DESCRIPTION
                )
            )
        return alternatives
