from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from kyoto_transit.models.realtime import OccupancyLevel


class TransitConfig(BaseSettings):
    """Configuration for static GTFS and GTFS-RT feed access.

    Automatically loads from environment variables and .env file.
    Feed URLs may contain an ``{access_token}`` placeholder that is filled
    from KYOTO_ACCESS_TOKEN at request time.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    access_token: str | None = Field(default=None, alias="KYOTO_ACCESS_TOKEN")
    static_gtfs_url: str | None = Field(default=None, alias="KYOTO_GTFS_STATIC_URL")
    vehicle_positions_url: str | None = Field(default=None, alias="KYOTO_GTFS_REALTIME_URL")
    cache_ttl_seconds: int = Field(default=30, alias="KYOTO_REALTIME_TTL")
    http_timeout_seconds: float = Field(default=30.0, alias="KYOTO_HTTP_TIMEOUT")

    def resolve_url(self, url: str) -> str:
        """Substitute the access token into a feed URL template."""
        if "{access_token}" in url:
            if not self.access_token:
                raise ValueError("Feed URL requires KYOTO_ACCESS_TOKEN but none is configured")
            return url.replace("{access_token}", self.access_token)
        return url


class PlannerSettings(BaseSettings):
    """Tunable policy for route planning and ranking."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="KYOTO_PLANNER_", extra="ignore")

    search_radius_meters: float = 1000.0
    walking_speed_m_per_min: float = 80.0

    # Alternatives are offered when the main route is strictly above the threshold
    with_luggage_threshold: OccupancyLevel = OccupancyLevel.MANY_SEATS_AVAILABLE
    without_luggage_threshold: OccupancyLevel = OccupancyLevel.STANDING_ROOM_ONLY
    max_alternatives: int = 5
    max_next_departures: int = 3

    # Composite score weights
    score_base: float = 100.0
    walking_meters_per_point: float = 100.0
    transfer_penalty: float = 10.0
    crowding_bonus_per_level: float = 5.0

    def occupancy_threshold(self, has_luggage: bool) -> OccupancyLevel:
        return self.with_luggage_threshold if has_luggage else self.without_luggage_threshold


@lru_cache
def get_transit_config() -> TransitConfig:
    """Get feed configuration (cached singleton).

    Returns:
        TransitConfig with values from .env file or environment variables.
    """
    return TransitConfig()


@lru_cache
def get_planner_settings() -> PlannerSettings:
    """Get planner settings (cached singleton)."""
    return PlannerSettings()
