"""Ordering of candidate itineraries."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeVar

from kyoto_transit.data.config import PlannerSettings
from kyoto_transit.models.realtime import OccupancyLevel
from kyoto_transit.models.responses import RouteInfo, SortCriterion
from kyoto_transit.services.time_utils import gtfs_time_to_seconds

R = TypeVar("R", bound=RouteInfo)


@dataclass(frozen=True)
class ScoreWeights:
    """Constants of the composite desirability score.

    score = base - walking_m / walking_meters_per_point
                 - transfers * transfer_penalty
                 + (NOT_ACCEPTING - occupancy) * crowding_bonus_per_level
    """

    base: float = 100.0
    walking_meters_per_point: float = 100.0
    transfer_penalty: float = 10.0
    crowding_bonus_per_level: float = 5.0

    @classmethod
    def from_settings(cls, settings: PlannerSettings) -> "ScoreWeights":
        return cls(
            base=settings.score_base,
            walking_meters_per_point=settings.walking_meters_per_point,
            transfer_penalty=settings.transfer_penalty,
            crowding_bonus_per_level=settings.crowding_bonus_per_level,
        )


def route_score(route: RouteInfo, weights: ScoreWeights = ScoreWeights()) -> float:
    """Composite desirability; higher is better."""
    walking = route.walking_distance.total if route.walking_distance else 0.0
    crowding_bonus = (OccupancyLevel.NOT_ACCEPTING - route.occupancy_level) * (
        weights.crowding_bonus_per_level
    )
    return (
        weights.base
        - walking / weights.walking_meters_per_point
        - route.transfer_count * weights.transfer_penalty
        + crowding_bonus
    )


def _tie_break(route: RouteInfo) -> tuple[int, int, str]:
    return (
        gtfs_time_to_seconds(route.stops[0].departure_time) if route.stops else 0,
        route.route.route_id,
        route.id,
    )


def rank_routes(
    routes: Sequence[R],
    sort_by: SortCriterion = SortCriterion.SCORE,
    weights: ScoreWeights = ScoreWeights(),
) -> list[R]:
    """Return routes ordered by the criterion.

    Every criterion is a total order (ties fall back to departure time,
    route id, then itinerary id), so ranking an already ranked list is a no-op.
    """
    if sort_by == SortCriterion.TIME:
        return sorted(routes, key=lambda r: (r.total_minutes, *_tie_break(r)))
    if sort_by == SortCriterion.FARE:
        return sorted(routes, key=lambda r: (r.fare_amount, *_tie_break(r)))
    if sort_by == SortCriterion.TRANSFERS:
        return sorted(routes, key=lambda r: (r.transfer_count, *_tie_break(r)))
    return sorted(routes, key=lambda r: (-route_score(r, weights), *_tie_break(r)))
