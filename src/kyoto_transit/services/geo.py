"""Great-circle distance helpers. All distances are in meters."""

import math

# Earth's radius in meters for haversine calculation
EARTH_RADIUS_METERS = 6_371_000

# Average walking pace used for walk legs
DEFAULT_WALKING_SPEED_M_PER_MIN = 80.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the great-circle distance between two points in meters.

    NaN inputs propagate to a NaN result; callers validate coordinates.

    Args:
        lat1, lon1: First point coordinates in degrees.
        lat2, lon2: Second point coordinates in degrees.

    Returns:
        Distance in meters.
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


def walking_minutes(
    distance_meters: float, speed_m_per_min: float = DEFAULT_WALKING_SPEED_M_PER_MIN
) -> int:
    """Walking time for a straight-line distance, rounded up to whole minutes."""
    if distance_meters <= 0:
        return 0
    return math.ceil(distance_meters / speed_m_per_min)
