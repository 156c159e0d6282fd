from enum import Enum

from pydantic import BaseModel, Field

from kyoto_transit.models.gtfs import Route, Stop
from kyoto_transit.models.realtime import OccupancyLevel


class ErrorKind(str, Enum):
    """Why a planning request produced no main route."""

    NO_NEARBY_STOP = "NO_NEARBY_STOP"
    NO_TRIP_FOUND = "NO_TRIP_FOUND"
    DATA_UNAVAILABLE = "DATA_UNAVAILABLE"


class SortCriterion(str, Enum):
    """Ordering applied to candidate itineraries."""

    TIME = "time"
    FARE = "fare"
    TRANSFERS = "transfers"
    SCORE = "score"


class Endpoint(BaseModel):
    """Origin or destination of a planning request (e.g. a tourist spot)."""

    id: str
    name: str
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class NearbyStop(BaseModel):
    stop: Stop
    distance_meters: float = Field(description="Straight-line distance from the search point")


class NearbyStopsResponse(BaseModel):
    stops: list[NearbyStop]
    count: int = Field(description="Number of stops returned")
    radius_meters: float


class StopDeparture(BaseModel):
    """A scheduled departure from a stop."""

    trip_id: str
    route: Route
    trip_headsign: str | None = None
    departure_time: str = Field(description="Scheduled departure, HH:MM:SS")
    stop_sequence: int


class StopDeparturesResponse(BaseModel):
    """Response from get_stop_departures tool."""

    stop: Stop
    departures: list[StopDeparture]
    count: int
    query_time: str = Field(description="HH:MM:SS from which departures are listed")


# Route Planning Models


class RouteStop(BaseModel):
    """One stop visited by the ridden trip, with its scheduled times."""

    stop: Stop
    arrival_time: str = Field(description="Scheduled arrival, HH:MM:SS")
    departure_time: str = Field(description="Scheduled departure, HH:MM:SS")
    is_vehicle_at_stop: bool = Field(
        description="Reference time falls within the scheduled dwell at this stop"
    )
    is_current_location: bool = Field(
        default=False, description="Vehicle is travelling from this stop to the next"
    )
    occupancy_level: OccupancyLevel


class StopEvent(BaseModel):
    """Boarding or alighting stop with its scheduled clock time."""

    stop_id: str
    name: str
    time: str = Field(description="HH:MM")


class WalkingDistance(BaseModel):
    to_first_stop: float | None = Field(default=None, description="Meters from origin to boarding stop")
    from_last_stop: float | None = Field(
        default=None, description="Meters from alighting stop to destination"
    )

    @property
    def total(self) -> float:
        return (self.to_first_stop or 0.0) + (self.from_last_stop or 0.0)


class RouteInfo(BaseModel):
    """A single walk -> ride -> walk itinerary."""

    id: str
    route: Route
    trip_id: str
    trip_headsign: str | None = None
    stops: list[RouteStop] = Field(description="Stops from boarding to alighting, inclusive")

    fare_amount: float = Field(ge=0)
    fare_currency: str | None = None
    fare_ambiguous: bool = Field(
        default=False, description="More than one fare rule matched; the first was used"
    )

    total_time: str = Field(description="Ride duration, e.g. '30分' or '1時間5分'")
    total_minutes: int
    departure_stop: StopEvent
    arrival_stop: StopEvent

    walking_distance: WalkingDistance | None = None
    walking_minutes: int = 0

    occupancy_level: OccupancyLevel
    transfer_count: int = 0


class AlternativeReasonType(str, Enum):
    OCCUPANCY = "OCCUPANCY"
    FASTER = "FASTER"
    LESS_WALKING = "LESS_WALKING"


class AlternativeReason(BaseModel):
    type: AlternativeReasonType
    description: str


class AlternativeRoute(RouteInfo):
    """An itinerary offered instead of a crowded main route."""

    reason: AlternativeReason


class PlanRouteResponse(BaseModel):
    """Response from plan_route tool."""

    main_route: RouteInfo | None = None
    alternative_routes: list[AlternativeRoute] = Field(default_factory=list)
    error: ErrorKind | None = None

    reference_time: str = Field(description="HH:MM:SS used for trip matching")
    has_luggage: bool = False
    sort_by: SortCriterion = SortCriterion.SCORE
    realtime_available: bool = Field(
        default=False, description="Whether live occupancy data was used"
    )


class VehiclePositionsResponse(BaseModel):
    """Response from get_vehicle_positions tool."""

    vehicles: list["VehicleSummary"]
    count: int
    realtime_available: bool
    fetched_at: str | None = Field(default=None, description="ISO timestamp of the feed fetch")


class VehicleSummary(BaseModel):
    vehicle_id: str | None = None
    trip_id: str | None = None
    route_id: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    speed_kmh: float | None = None
    occupancy_level: OccupancyLevel | None = None
    occupancy_label: str | None = None
    timestamp: int | None = None


VehiclePositionsResponse.model_rebuild()
