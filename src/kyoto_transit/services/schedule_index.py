"""Read-only lookup surface over one static schedule snapshot.

All indexes are computed once in the constructor. The index never mutates
its input tables; a fresh static snapshot means a fresh ScheduleIndex.
"""

import logging
from collections.abc import Iterable

from kyoto_transit.models.gtfs import FareAttribute, FareRule, Route, Stop, StopTime, Trip

logger = logging.getLogger(__name__)


class ScheduleIndex:
    """Precomputed lookups over routes, stops, trips, stop-times and fares."""

    def __init__(
        self,
        routes: Iterable[Route] = (),
        stops: Iterable[Stop] = (),
        trips: Iterable[Trip] = (),
        stop_times: Iterable[StopTime] = (),
        fare_rules: Iterable[FareRule] = (),
        fare_attributes: Iterable[FareAttribute] = (),
    ) -> None:
        self.routes: tuple[Route, ...] = tuple(routes)
        self.stops: tuple[Stop, ...] = tuple(stops)
        self.trips: tuple[Trip, ...] = tuple(trips)
        self.fare_rules: tuple[FareRule, ...] = tuple(fare_rules)
        self.fare_attributes: tuple[FareAttribute, ...] = tuple(fare_attributes)

        self._routes_by_id: dict[int, Route] = {r.route_id: r for r in self.routes}
        self._stops_by_id: dict[str, Stop] = {s.stop_id: s for s in self.stops}
        self._trips_by_id: dict[str, Trip] = {t.trip_id: t for t in self.trips}

        self._trips_by_route: dict[int, list[Trip]] = {}
        for trip in self.trips:
            self._trips_by_route.setdefault(trip.route_id, []).append(trip)

        # stop_times grouped by trip, ordered by sequence
        stop_times_by_trip: dict[str, list[StopTime]] = {}
        self._stop_times_by_stop: dict[str, list[StopTime]] = {}
        count = 0
        for st in stop_times:
            count += 1
            stop_times_by_trip.setdefault(st.trip_id, []).append(st)
            self._stop_times_by_stop.setdefault(st.stop_id, []).append(st)
        self._stop_times_by_trip: dict[str, tuple[StopTime, ...]] = {
            trip_id: tuple(sorted(rows, key=lambda st: st.stop_sequence))
            for trip_id, rows in stop_times_by_trip.items()
        }
        self.stop_time_count = count

        # stop_id -> route ids of trips calling there; route_id -> stop set of each trip
        self._routes_by_stop: dict[str, set[int]] = {}
        self._trip_stop_sets_by_route: dict[int, list[frozenset[str]]] = {}
        for trip_id, rows in self._stop_times_by_trip.items():
            trip = self._trips_by_id.get(trip_id)
            if trip is None:
                continue
            for st in rows:
                self._routes_by_stop.setdefault(st.stop_id, set()).add(trip.route_id)
            self._trip_stop_sets_by_route.setdefault(trip.route_id, []).append(
                frozenset(st.stop_id for st in rows)
            )

        self._fare_rules_by_route: dict[int, list[FareRule]] = {}
        for rule in self.fare_rules:
            self._fare_rules_by_route.setdefault(rule.route_id, []).append(rule)
        self._fare_attributes_by_id: dict[str, FareAttribute] = {}
        for attr in self.fare_attributes:
            # first row wins for duplicated fare ids
            self._fare_attributes_by_id.setdefault(attr.fare_id, attr)

        orphans = len(self._stop_times_by_trip.keys() - self._trips_by_id.keys())
        if orphans:
            logger.warning(f"{orphans} trip ids in stop_times have no matching trip")

    @property
    def is_empty(self) -> bool:
        """True when the snapshot cannot support any planning."""
        return not self.stops or not self.routes or not self.trips or not self.stop_time_count

    def get_route(self, route_id: int) -> Route | None:
        return self._routes_by_id.get(route_id)

    def get_stop(self, stop_id: str) -> Stop | None:
        return self._stops_by_id.get(stop_id)

    def get_trip(self, trip_id: str) -> Trip | None:
        return self._trips_by_id.get(trip_id)

    def stop_times_at(self, stop_id: str) -> list[StopTime]:
        """All stop-time rows referencing a stop."""
        return list(self._stop_times_by_stop.get(stop_id, ()))

    def trips_for_route(self, route_id: int) -> list[Trip]:
        """All trips run on a route, in table order."""
        return list(self._trips_by_route.get(route_id, ()))

    def stop_times_for_trip(self, trip_id: str) -> tuple[StopTime, ...]:
        """Stop-time rows of a trip ordered by stop_sequence."""
        return self._stop_times_by_trip.get(trip_id, ())

    def stops_for_trip(self, trip_id: str) -> list[Stop]:
        """Stops visited by a trip, ordered by stop_sequence.

        Raises:
            ValueError: If a stop-time references a stop missing from the stop table.
        """
        return [self.require_stop(st.stop_id, trip_id) for st in self.stop_times_for_trip(trip_id)]

    def require_stop(self, stop_id: str, trip_id: str | None = None) -> Stop:
        """Look up a stop that the schedule references, failing loudly if absent."""
        stop = self._stops_by_id.get(stop_id)
        if stop is None:
            context = f" (referenced by trip {trip_id})" if trip_id else ""
            raise ValueError(f"Stop {stop_id} not found in stop table{context}")
        return stop

    def routes_serving_stop(self, stop_id: str) -> set[int]:
        return set(self._routes_by_stop.get(stop_id, ()))

    def routes_serving_both_stops(self, stop_a: str, stop_b: str) -> list[int]:
        """Route ids with a single trip calling at both stops (either order), sorted ascending."""
        common = self._routes_by_stop.get(stop_a, set()) & self._routes_by_stop.get(stop_b, set())
        return sorted(
            route_id
            for route_id in common
            if any(
                stop_a in stops and stop_b in stops
                for stops in self._trip_stop_sets_by_route[route_id]
            )
        )

    def fare_rules_for_route(self, route_id: int) -> list[FareRule]:
        """Fare rules for a route in table order."""
        return list(self._fare_rules_by_route.get(route_id, ()))

    def fare_attribute(self, fare_id: str) -> FareAttribute | None:
        return self._fare_attributes_by_id.get(fare_id)
