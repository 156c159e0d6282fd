"""Nearest-stop search over an in-memory stop table."""

from collections.abc import Iterable

from kyoto_transit.models.gtfs import Stop
from kyoto_transit.services.geo import haversine_distance

DEFAULT_SEARCH_RADIUS_METERS = 1000.0


def nearby_stops(
    lat: float,
    lon: float,
    stops: Iterable[Stop],
    max_distance: float = DEFAULT_SEARCH_RADIUS_METERS,
) -> list[tuple[Stop, float]]:
    """Find stops within a radius of a point.

    Args:
        lat: Latitude of the search point in degrees.
        lon: Longitude of the search point in degrees.
        stops: Stops to search.
        max_distance: Search radius in meters (inclusive).

    Returns:
        (stop, distance_meters) pairs sorted nearest-first, ties by stop_id.
        Empty when no stop qualifies.
    """
    stops_with_distance: list[tuple[Stop, float]] = []
    for stop in stops:
        distance = haversine_distance(lat, lon, stop.stop_lat, stop.stop_lon)
        if distance <= max_distance:
            stops_with_distance.append((stop, distance))

    stops_with_distance.sort(key=lambda x: (x[1], x[0].stop_id))
    return stops_with_distance


def nearest_stop(lat: float, lon: float, stops: Iterable[Stop]) -> Stop | None:
    """Return the single closest stop, or None if there are no stops."""
    best: tuple[float, str, Stop] | None = None
    for stop in stops:
        distance = haversine_distance(lat, lon, stop.stop_lat, stop.stop_lon)
        key = (distance, stop.stop_id, stop)
        if best is None or key[:2] < best[:2]:
            best = key
    return best[2] if best else None
