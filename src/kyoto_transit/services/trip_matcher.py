"""Schedule-based matching of a single trip between two stops."""

from collections.abc import Iterable
from dataclasses import dataclass

from kyoto_transit.models.gtfs import Route, StopTime, Trip
from kyoto_transit.services.schedule_index import ScheduleIndex
from kyoto_transit.services.time_utils import gtfs_time_to_seconds


@dataclass(frozen=True)
class TripMatch:
    """A trip boarding at the origin stop and alighting at the destination stop."""

    trip: Trip
    route: Route
    stop_times: tuple[StopTime, ...]  # origin..destination inclusive

    @property
    def origin(self) -> StopTime:
        return self.stop_times[0]

    @property
    def destination(self) -> StopTime:
        return self.stop_times[-1]

    @property
    def departure_seconds(self) -> int:
        return gtfs_time_to_seconds(self.origin.departure_time)

    @property
    def arrival_seconds(self) -> int:
        return gtfs_time_to_seconds(self.destination.arrival_time)


def _slice_between(
    stop_times: tuple[StopTime, ...],
    origin_stop_id: str,
    destination_stop_id: str,
    not_before_seconds: int,
) -> tuple[StopTime, ...] | None:
    """Sub-sequence from the earliest origin visit departing at or after
    not_before_seconds to the next later visit of destination, or None.

    Loop trips may call at the origin more than once; every visit is tried.
    """
    for i, st in enumerate(stop_times):
        if st.stop_id != origin_stop_id:
            continue
        if gtfs_time_to_seconds(st.departure_time) < not_before_seconds:
            continue
        for j in range(i + 1, len(stop_times)):
            if stop_times[j].stop_id == destination_stop_id:
                return stop_times[i : j + 1]
    return None


class TripMatcher:
    """Finds the earliest scheduled trip connecting two stops in order."""

    def __init__(self, index: ScheduleIndex) -> None:
        self._index = index

    def find_trip(
        self,
        origin_stop_id: str,
        destination_stop_id: str,
        not_before_seconds: int,
        route_ids: Iterable[int] | None = None,
    ) -> TripMatch | None:
        """Find the earliest trip from origin to destination departing at or after a time.

        Args:
            origin_stop_id: Boarding stop.
            destination_stop_id: Alighting stop; must be visited after the origin.
            not_before_seconds: Earliest acceptable departure at the origin,
                in seconds since the start of the service day.
            route_ids: Optional restriction of candidate routes.

        Returns:
            TripMatch for the trip with the earliest origin departure, ties
            broken by earliest destination arrival then trip_id. None when no
            trip qualifies (e.g. service has ended for the day).
        """
        if origin_stop_id == destination_stop_id:
            return None

        candidates = self._index.routes_serving_both_stops(origin_stop_id, destination_stop_id)
        if route_ids is not None:
            allowed = set(route_ids)
            candidates = [r for r in candidates if r in allowed]

        best: tuple[tuple[int, int, str], TripMatch] | None = None
        for route_id in candidates:
            route = self._index.get_route(route_id)
            if route is None:
                continue
            for trip in self._index.trips_for_route(route_id):
                segment = _slice_between(
                    self._index.stop_times_for_trip(trip.trip_id),
                    origin_stop_id,
                    destination_stop_id,
                    not_before_seconds,
                )
                if segment is None:
                    continue

                departure = gtfs_time_to_seconds(segment[0].departure_time)
                arrival = gtfs_time_to_seconds(segment[-1].arrival_time)
                key = (departure, arrival, trip.trip_id)
                if best is None or key < best[0]:
                    best = (key, TripMatch(trip=trip, route=route, stop_times=segment))

        return best[1] if best else None
