from datetime import datetime, timezone
from typing import List

import pytest

from optrip.models.location import Waypoint
from optrip.models.route import RouteSegment
from optrip.models.trip import OptimizationParams

HOUR = 3600


def _waypoint(index: int) -> Waypoint:
    return Waypoint(
        name=f"Town {index}",
        latitude=39.0 + index * 0.5,
        longitude=-105.0 + index,
        address=f"{index} Main St",
    )


def make_waypoints(count: int) -> List[Waypoint]:
    return [_waypoint(i) for i in range(count)]


def make_segments(waypoints: List[Waypoint], durations: List[int], distance: int = 100_000) -> List[RouteSegment]:
    return [
        RouteSegment(
            start_waypoint=waypoints[i],
            end_waypoint=waypoints[i + 1],
            distance=distance,
            duration=duration,
        )
        for i, duration in enumerate(durations)
    ]


@pytest.fixture
def departure() -> datetime:
    return datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def params(departure) -> OptimizationParams:
    return OptimizationParams(
        max_driving_hours=8,
        departure_time=departure,
        preferred_stop_duration=0,
    )


GEOCODE = {
    "Denver, CO": (39.7392, -104.9903),
    "Reno, NV": (39.5296, -119.8138),
}


class FakeGoogleClient:
    """Stands in for googlemaps.Client."""

    def __init__(self, leg_seconds=HOUR, error=None):
        self.leg_seconds = leg_seconds
        self.error = error
        self.directions_calls = []

    def geocode(self, address):
        if self.error:
            raise self.error
        if address not in GEOCODE:
            return []
        lat, lng = GEOCODE[address]
        return [
            {
                "geometry": {"location": {"lat": lat, "lng": lng}},
                "formatted_address": f"{address}, USA",
                "place_id": f"place-{address}",
            }
        ]

    def directions(self, **kwargs):
        if self.error:
            raise self.error
        self.directions_calls.append(kwargs)
        stops = len(kwargs.get("waypoints") or [])
        return [
            {
                "legs": [
                    {"distance": {"value": 80_000}, "duration": {"value": self.leg_seconds}}
                    for _ in range(stops + 1)
                ]
            }
        ]


class FakeExpander:
    def __init__(self, target):
        self.target = target
        self.expanded = []

    async def expand(self, url, session=None):
        self.expanded.append(url)
        return self.target


