"""Pydantic models for GTFS static entities used by the route planner."""

from pydantic import BaseModel, ConfigDict, Field


class Route(BaseModel):
    """GTFS route entity."""

    model_config = ConfigDict(frozen=True)

    route_id: int
    agency_id: str | None = None
    route_short_name: str | None = None
    route_long_name: str | None = None
    route_type: int  # 3=bus


class Stop(BaseModel):
    """GTFS stop entity."""

    model_config = ConfigDict(frozen=True)

    stop_id: str
    stop_name: str
    stop_lat: float
    stop_lon: float
    parent_station: str | None = None
    wheelchair_boarding: int | None = None  # 0=no info, 1=accessible, 2=not accessible


class Trip(BaseModel):
    """GTFS trip entity."""

    model_config = ConfigDict(frozen=True)

    trip_id: str
    route_id: int
    service_id: str
    trip_headsign: str | None = None
    direction_id: int | None = None


class StopTime(BaseModel):
    """GTFS stop_times entity."""

    model_config = ConfigDict(frozen=True)

    trip_id: str
    stop_id: str
    arrival_time: str  # HH:MM:SS
    departure_time: str
    stop_sequence: int


class FareRule(BaseModel):
    """GTFS fare_rules entity.

    origin_id and destination_id, when present, scope the rule to a specific
    boarding/alighting stop pair.
    """

    model_config = ConfigDict(frozen=True)

    fare_id: str
    route_id: int
    origin_id: str | None = None
    destination_id: str | None = None


class FareAttribute(BaseModel):
    """GTFS fare_attributes entity."""

    model_config = ConfigDict(frozen=True)

    fare_id: str
    price: float = Field(ge=0)
    currency_type: str = "JPY"
    payment_method: int = 0  # 0=on board, 1=before boarding
    transfers: int | None = None  # None=unlimited
