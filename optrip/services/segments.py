"""Turn routing-provider legs into RouteSegment records.

Accepts both the Directions API leg shape (``distance.value``,
``duration.value``, ``steps[].polyline.points``) and the Routes API shape
(``distanceMeters``, ``duration: "3600s"``, ``steps[].polyline.encodedPolyline``).
Missing or malformed numbers become 0 instead of failing the whole trip.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging
import math

import polyline

from optrip.models.location import Waypoint
from optrip.models.route import RouteSegment

logger = logging.getLogger(__name__)


class WaypointMismatchError(ValueError):
    """Legs and waypoints do not pair up one-to-one."""
    pass


def _whole_number(value: Any) -> Optional[int]:
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    # NaN and infinity are valid JSON to Python's json module
    if not math.isfinite(number):
        return None
    return max(int(number), 0)


def parse_duration(value: Any) -> int:
    """Read a duration in whole seconds, falling back to 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, dict):
        return parse_duration(value.get("value", value.get("seconds")))
    if isinstance(value, str):
        value = value.strip().lower()
        if value.endswith("s"):
            value = value[:-1]
    elif not isinstance(value, (int, float)):
        logger.debug(f"Unsupported duration value {value!r}, using 0")
        return 0

    seconds = _whole_number(value)
    if seconds is None:
        logger.debug(f"Could not parse duration {value!r}, using 0")
        return 0
    return seconds


def parse_distance(leg: Dict[str, Any]) -> int:
    """Read a leg distance in meters, falling back to 0."""
    if "distanceMeters" in leg:
        raw = leg.get("distanceMeters")
    else:
        raw = leg.get("distance")
        if isinstance(raw, dict):
            raw = raw.get("value")
    if raw is None:
        return 0
    meters = _whole_number(raw)
    if meters is None:
        logger.debug(f"Could not parse distance {raw!r}, using 0")
        return 0
    return meters


def _encoded_points(polyline_data: Any) -> str:
    if isinstance(polyline_data, str):
        return polyline_data
    if isinstance(polyline_data, dict):
        return polyline_data.get("points") or polyline_data.get("encodedPolyline") or ""
    return ""


def extract_route_polyline(route: Dict[str, Any]) -> str:
    """Encoded polyline for the whole route, if the provider sent one."""
    return _encoded_points(route.get("overview_polyline")) or _encoded_points(
        route.get("polyline")
    )


def _leg_polyline(leg: Dict[str, Any]) -> Optional[str]:
    """Join step encodings into one leg encoding, or None without step detail."""
    path: List[Tuple[float, float]] = []
    for step in leg.get("steps") or []:
        encoded = _encoded_points(step.get("polyline"))
        if not encoded:
            continue
        try:
            points = polyline.decode(encoded)
        except (IndexError, ValueError):
            logger.debug(f"Skipping undecodable step polyline '{encoded[:20]}'")
            continue
        # Consecutive steps share their boundary point
        if path and points and tuple(points[0]) == tuple(path[-1]):
            points = points[1:]
        path.extend(points)
    if not path:
        return None
    return polyline.encode(path)


def build_segments(
    legs: Sequence[Dict[str, Any]],
    waypoints: Sequence[Waypoint],
    route_polyline: str = "",
) -> List[RouteSegment]:
    """Pair leg i with waypoint i -> waypoint i+1."""
    if len(waypoints) != len(legs) + 1:
        raise WaypointMismatchError(
            f"Expected {len(legs) + 1} waypoints for {len(legs)} legs, got {len(waypoints)}"
        )

    segments = []
    for index, leg in enumerate(legs):
        leg_polyline = _leg_polyline(leg)
        segments.append(
            RouteSegment(
                start_waypoint=waypoints[index],
                end_waypoint=waypoints[index + 1],
                distance=parse_distance(leg),
                duration=parse_duration(leg.get("duration")),
                polyline=leg_polyline if leg_polyline is not None else route_polyline,
            )
        )
    logger.debug(f"Built {len(segments)} segments from provider legs")
    return segments
