"""Split a drive into days and put clock times on every stop.

The scheduler walks the segments once, front to back, keeping a running
total of seconds driven since the last overnight stop. On arrival at an
interior waypoint it looks at the next leg: if that leg does not fit in what
is left of today's budget, the traveller stays here tonight.

Every overnight is decided on arrival, so a stop is never revisited once it
is emitted. When a leg starts, either the day is fresh or the leg is already
known to fit. A leg longer than a whole day's budget therefore always starts
on a fresh day, is driven in one go and is reported in the log.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional, Sequence
import logging

from optrip.models.location import Waypoint
from optrip.models.route import OptimizedStop, RouteSegment
from optrip.models.trip import OptimizationParams

logger = logging.getLogger(__name__)

# 8pm to 8am
OVERNIGHT_STOP_MINUTES = 720


class StopKind(str, Enum):
    CONTINUE = "continue"
    SHORT = "short"
    OVERNIGHT = "overnight"


@dataclass(frozen=True)
class StopDecision:
    kind: StopKind
    duration: int = 0  # minutes

    @property
    def is_overnight(self) -> bool:
        return self.kind == StopKind.OVERNIGHT


CONTINUE = StopDecision(StopKind.CONTINUE)
OVERNIGHT = StopDecision(StopKind.OVERNIGHT, OVERNIGHT_STOP_MINUTES)


def decide_stop(
    accumulated_seconds: float,
    next_segment_seconds: Optional[float],
    max_driving_seconds: float,
    preferred_stop_duration: int,
) -> StopDecision:
    """Look-ahead check made on arrival; ``None`` means the trip ends here."""
    if next_segment_seconds is None:
        return CONTINUE
    if next_segment_seconds > max_driving_seconds - accumulated_seconds:
        return OVERNIGHT
    return StopDecision(StopKind.SHORT, preferred_stop_duration)


def schedule_stops(
    waypoints: Sequence[Waypoint],
    segments: Sequence[RouteSegment],
    params: OptimizationParams,
) -> List[OptimizedStop]:
    """Produce one timestamped stop per waypoint.

    Expects ``len(segments) == len(waypoints) - 1`` and a positive
    ``max_driving_hours``; both are checked by the callers.
    """
    max_driving_seconds = params.max_driving_hours * 3600
    departure: datetime = params.departure_time or datetime.now(timezone.utc)

    # Origin: zero dwell, day 1
    stops: List[OptimizedStop] = [
        OptimizedStop(
            waypoint=waypoints[0],
            arrival_time=departure,
            departure_time=departure,
            stop_duration=0,
            day_number=1,
        )
    ]

    current_time = departure
    day_number = 1
    accumulated = 0
    last_index = len(segments) - 1

    for index, segment in enumerate(segments):
        if accumulated + segment.duration > max_driving_seconds:
            logger.warning(
                f"Segment {index} ({segment.start_waypoint.name} -> {segment.end_waypoint.name}) "
                f"takes {segment.duration / 3600:.1f}h, over the {params.max_driving_hours}h daily limit"
            )

        accumulated += segment.duration
        arrival_time = current_time + timedelta(seconds=segment.duration)

        next_duration = segments[index + 1].duration if index < last_index else None
        decision = decide_stop(
            accumulated, next_duration, max_driving_seconds, params.preferred_stop_duration
        )
        if decision.is_overnight:
            day_number += 1
            accumulated = 0

        departure_time = arrival_time + timedelta(minutes=decision.duration)
        stops.append(
            OptimizedStop(
                waypoint=waypoints[index + 1],
                arrival_time=arrival_time,
                departure_time=departure_time,
                stop_duration=decision.duration,
                day_number=day_number,
                is_overnight=decision.is_overnight,
                accommodation_needed=decision.is_overnight,
            )
        )
        current_time = departure_time

    return stops
