from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from optrip.models.location import Waypoint


class OptimizationParams(BaseModel):
    max_driving_hours: float = Field(..., gt=0, description="Maximum driving hours per day")
    departure_time: Optional[datetime] = Field(
        None, description="When the trip starts, defaults to now"
    )
    arrival_deadline: Optional[datetime] = Field(
        None, description="Desired arrival time, advisory only"
    )
    preferred_stop_duration: int = Field(
        60, ge=0, description="Rest stop duration in minutes"
    )

    @field_validator("departure_time", "arrival_deadline")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # Naive timestamps are read as UTC so they compare with aware ones
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class TripParameters(OptimizationParams):
    maps_link: Optional[str] = Field(None, description="Google Maps directions link")
    avoid_highways: bool = False
    avoid_tolls: bool = False

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "maps_link": "https://www.google.com/maps/dir/Denver,+CO/Salt+Lake+City,+UT/Reno,+NV",
                "max_driving_hours": 8,
                "departure_time": "2024-06-01T08:00:00Z",
                "preferred_stop_duration": 45,
                "avoid_tolls": True,
            }
        }
    )


class LinkLocation(BaseModel):
    """A location read from a maps link, before geocoding."""

    name: str
    query: str = Field(..., description="Raw text as it appeared in the link")
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class ParsedMapsLink(BaseModel):
    origin: Waypoint
    destination: Waypoint
    waypoints: List[Waypoint] = Field(
        default_factory=list, description="Intermediate stops"
    )
    raw_url: str

    @property
    def all_waypoints(self) -> List[Waypoint]:
        return [self.origin, *self.waypoints, self.destination]
