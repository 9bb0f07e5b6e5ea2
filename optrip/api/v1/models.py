from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from optrip.models.location import Waypoint
from optrip.models.route import OptimizedRoute, RouteSegment
from optrip.models.trip import OptimizationParams, TripParameters


# Request Models
class ScheduleRequest(BaseModel):
    waypoints: List[Waypoint] = Field(..., description="Ordered trip waypoints")
    segments: List[RouteSegment] = Field(
        ..., description="One segment per consecutive waypoint pair"
    )
    params: OptimizationParams


class PlanTripRequest(BaseModel):
    maps_link: Optional[str] = Field(None, description="Google Maps directions link")
    waypoints: Optional[List[Waypoint]] = Field(
        None, description="Explicit waypoints, used instead of the link"
    )
    max_driving_hours: Optional[float] = Field(
        None, gt=0, description="Maximum driving hours per day"
    )
    departure_time: Optional[datetime] = None
    arrival_deadline: Optional[datetime] = None
    preferred_stop_duration: Optional[int] = Field(
        None, ge=0, description="Rest stop duration in minutes"
    )
    avoid_highways: bool = False
    avoid_tolls: bool = False


class ExportRequest(BaseModel):
    route: OptimizedRoute
    trip_name: str = Field("Road Trip", min_length=1, max_length=200)


class ShareRequest(BaseModel):
    params: TripParameters
    base_url: Optional[str] = Field(None, description="Overrides the configured public URL")


class LinkRequest(BaseModel):
    url: str = Field(..., min_length=1, description="Google Maps link")


# Response Models
class ShareResponse(BaseModel):
    url: str
    token: str


class ExpandLinkResponse(BaseModel):
    expanded_url: str
