from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
import logging

from optrip.models.location import Waypoint
from optrip.models.route import DeadlineAdvisory, OptimizedRoute, OptimizedStop, RouteSegment
from optrip.models.trip import OptimizationParams
from optrip.services.scheduler import schedule_stops
from optrip.services.segments import (
    WaypointMismatchError,
    build_segments,
    extract_route_polyline,
)

logger = logging.getLogger(__name__)

OVERNIGHT_REST = timedelta(hours=12)

DirectionsResult = Union[List[Dict[str, Any]], Dict[str, Any], None]


class RoutePlanningError(Exception):
    """Base class for itinerary planning errors."""
    pass


class MissingRouteDataError(RoutePlanningError):
    """No route or segment data was supplied."""
    pass


def summarize_segments(segments: Sequence[RouteSegment]) -> Tuple[int, int]:
    """Total distance (meters) and driving duration (seconds)."""
    total_distance = sum(segment.distance for segment in segments)
    total_duration = sum(segment.duration for segment in segments)
    return total_distance, total_duration


def count_driving_days(stops: Sequence[OptimizedStop]) -> int:
    return sum(1 for stop in stops if stop.is_overnight) + 1


def calculate_arrival_time(
    departure_time: datetime, total_duration_seconds: float, overnight_stops: int
) -> datetime:
    """Rough arrival estimate: driving time plus 12 hours per night."""
    return departure_time + timedelta(seconds=total_duration_seconds) + overnight_stops * OVERNIGHT_REST


def meets_deadline(
    departure_time: datetime,
    arrival_deadline: datetime,
    total_duration_seconds: float,
    overnight_stops: int,
) -> bool:
    estimated_arrival = calculate_arrival_time(
        departure_time, total_duration_seconds, overnight_stops
    )
    return estimated_arrival <= arrival_deadline


def check_deadline(
    route: OptimizedRoute, params: OptimizationParams
) -> Optional[DeadlineAdvisory]:
    """Report whether the trip fits the requested deadline, if one was given.

    Advisory only: the schedule itself is never changed to meet it.
    """
    if params.arrival_deadline is None or not route.stops:
        return None
    departure_time = route.stops[0].departure_time
    overnight_count = route.driving_days - 1
    estimated_arrival = calculate_arrival_time(
        departure_time, route.total_duration, overnight_count
    )
    advisory = DeadlineAdvisory(
        deadline=params.arrival_deadline,
        estimated_arrival=estimated_arrival,
        meets_deadline=meets_deadline(
            departure_time, params.arrival_deadline, route.total_duration, overnight_count
        ),
    )
    if not advisory.meets_deadline:
        logger.info(
            f"Estimated arrival {estimated_arrival.isoformat()} misses deadline "
            f"{params.arrival_deadline.isoformat()}"
        )
    return advisory


def optimize_segments(
    segments: Sequence[RouteSegment],
    waypoints: Sequence[Waypoint],
    params: OptimizationParams,
) -> OptimizedRoute:
    """Schedule an already-built list of segments."""
    if not segments:
        raise MissingRouteDataError("No route found")
    if len(waypoints) != len(segments) + 1:
        raise WaypointMismatchError(
            f"Expected {len(segments) + 1} waypoints for {len(segments)} segments, got {len(waypoints)}"
        )

    total_distance, total_duration = summarize_segments(segments)
    stops = schedule_stops(waypoints, segments, params)
    driving_days = count_driving_days(stops)

    logger.info(
        f"Optimized route: {len(stops)} stops, distance={total_distance / 1000:.1f}km, "
        f"driving={total_duration / 3600:.1f}h, days={driving_days}"
    )
    return OptimizedRoute(
        stops=stops,
        segments=list(segments),
        total_distance=total_distance,
        total_duration=total_duration,
        driving_days=driving_days,
        original_waypoints=list(waypoints),
    )


def _first_route(directions: DirectionsResult) -> Optional[Dict[str, Any]]:
    if isinstance(directions, dict):
        # Either a single route or a full response with a "routes" list
        if "legs" in directions:
            return directions
        directions = directions.get("routes")
    if not directions:
        return None
    return directions[0]


def optimize_route(
    directions: DirectionsResult,
    waypoints: Sequence[Waypoint],
    params: OptimizationParams,
) -> OptimizedRoute:
    """Break a provider route into driving days.

    ``directions`` is the provider result: a list of routes, a response
    mapping with a ``routes`` list, or one route mapping. Only the first
    route is used.
    """
    route = _first_route(directions)
    if not route or not route.get("legs"):
        raise MissingRouteDataError("No route found")

    segments = build_segments(
        route["legs"], waypoints, route_polyline=extract_route_polyline(route)
    )
    return optimize_segments(segments, waypoints, params)
