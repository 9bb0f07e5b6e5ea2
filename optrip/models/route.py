from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from optrip.models.location import Waypoint


class RouteSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_waypoint: Waypoint
    end_waypoint: Waypoint
    distance: int = Field(0, ge=0, description="Distance in meters")
    duration: int = Field(0, ge=0, description="Duration in seconds")
    polyline: str = Field("", description="Encoded polyline for the segment")

    @property
    def driving_time(self) -> float:
        """Driving time in minutes."""
        return self.duration / 60


class OptimizedStop(BaseModel):
    model_config = ConfigDict(frozen=True)

    waypoint: Waypoint
    arrival_time: datetime
    departure_time: datetime
    stop_duration: int = Field(0, ge=0, description="Dwell time in minutes")
    day_number: int = Field(1, ge=1)
    is_overnight: bool = False
    accommodation_needed: bool = Field(
        False, description="Whether a place to stay has to be booked at this stop"
    )


class OptimizedRoute(BaseModel):
    stops: List[OptimizedStop]
    segments: List[RouteSegment]
    total_distance: int = Field(..., description="Total distance in meters")
    total_duration: int = Field(..., description="Total driving duration in seconds")
    driving_days: int = Field(..., ge=1)
    original_waypoints: List[Waypoint]

    @property
    def overnight_stops(self) -> List[OptimizedStop]:
        return [stop for stop in self.stops if stop.is_overnight]


class DeadlineAdvisory(BaseModel):
    """Feasibility of an arrival deadline, reported after scheduling."""

    deadline: datetime
    estimated_arrival: datetime
    meets_deadline: bool


class TripPlan(BaseModel):
    route: OptimizedRoute
    deadline: Optional[DeadlineAdvisory] = None
