import asyncio
from datetime import datetime, timezone

import googlemaps.exceptions
import pytest

from optrip.models.trip import TripParameters
from optrip.repositories.maps.google_maps import (
    AddressNotFoundError,
    DirectionsError,
    GeocodingError,
    GoogleMapsRepository,
)
from optrip.repositories.maps.links import LinkParseError
from optrip.services.trip import TripService
from tests.conftest import HOUR, FakeExpander, FakeGoogleClient, make_waypoints


def _service(client=None, target="https://www.google.com/maps/dir/Denver,+CO/Reno,+NV"):
    repository = GoogleMapsRepository(client=client or FakeGoogleClient())
    return TripService(maps_repository=repository, link_expander=FakeExpander(target))


def test_geocode_builds_waypoint():
    waypoint = asyncio.run(GoogleMapsRepository(client=FakeGoogleClient()).geocode("Reno, NV"))

    assert waypoint.name == "Reno, NV"
    assert (waypoint.latitude, waypoint.longitude) == (39.5296, -119.8138)
    assert waypoint.address == "Reno, NV, USA"
    assert waypoint.place_id == "place-Reno, NV"


def test_geocode_errors():
    repository = GoogleMapsRepository(client=FakeGoogleClient())
    with pytest.raises(AddressNotFoundError):
        asyncio.run(repository.geocode("Atlantis"))

    failing = GoogleMapsRepository(client=FakeGoogleClient(error=googlemaps.exceptions.ApiError("OVER_QUERY_LIMIT")))
    with pytest.raises(GeocodingError):
        asyncio.run(failing.geocode("Reno, NV"))


def test_get_directions_keeps_waypoint_order_and_avoid_flags():
    client = FakeGoogleClient()
    repository = GoogleMapsRepository(client=client)
    waypoints = make_waypoints(4)

    asyncio.run(repository.get_directions(waypoints, avoid_highways=True, avoid_tolls=True))

    call = client.directions_calls[0]
    assert call["optimize_waypoints"] is False
    assert call["avoid"] == ["highways", "tolls"]
    assert call["origin"] == waypoints[0].as_latlng()
    assert call["destination"] == waypoints[-1].as_latlng()
    assert call["waypoints"] == [w.as_latlng() for w in waypoints[1:-1]]


def test_get_directions_wraps_api_errors():
    client = FakeGoogleClient(error=googlemaps.exceptions.ApiError("NOT_FOUND"))
    with pytest.raises(DirectionsError):
        asyncio.run(GoogleMapsRepository(client=client).get_directions(make_waypoints(2)))


def test_resolve_short_link_geocodes_place_names():
    service = _service(target="https://www.google.com/maps/dir/Denver,+CO/39.1,-108.5/Reno,+NV/@39,-110,6z")

    parsed = asyncio.run(service.resolve_link("https://maps.app.goo.gl/abc"))

    assert service.link_expander.expanded == ["https://maps.app.goo.gl/abc"]
    assert parsed.raw_url == "https://maps.app.goo.gl/abc"
    assert parsed.origin.name == "Denver, CO"
    assert parsed.origin.latitude == 39.7392
    assert [w.name for w in parsed.waypoints] == ["Point 2"]
    assert parsed.destination.address == "Reno, NV, USA"


def test_resolve_link_skips_unknown_places():
    service = _service()

    parsed = asyncio.run(
        service.resolve_link("https://www.google.com/maps/dir/Denver,+CO/Atlantis/Reno,+NV")
    )

    assert [w.name for w in parsed.all_waypoints] == ["Denver, CO", "Reno, NV"]


def test_resolve_link_needs_two_resolvable_places():
    with pytest.raises(LinkParseError):
        asyncio.run(_service().resolve_link("https://www.google.com/maps/dir/Atlantis/Reno,+NV"))


def test_plan_trip_from_link():
    service = _service(client=FakeGoogleClient(leg_seconds=10 * HOUR))
    params = TripParameters(
        maps_link="https://www.google.com/maps/dir/Denver,+CO/Reno,+NV",
        max_driving_hours=8,
        departure_time=datetime(2024, 5, 1, 7, 0, tzinfo=timezone.utc),
        arrival_deadline=datetime(2024, 5, 1, 18, 0, tzinfo=timezone.utc),
    )

    plan = asyncio.run(service.plan_trip(params))

    assert [stop.waypoint.name for stop in plan.route.stops] == ["Denver, CO", "Reno, NV"]
    assert plan.route.driving_days == 1
    assert plan.deadline.meets_deadline


def test_plan_trip_with_explicit_waypoints():
    service = _service(client=FakeGoogleClient(leg_seconds=5 * HOUR))
    params = TripParameters(max_driving_hours=8, departure_time=datetime(2024, 5, 1, tzinfo=timezone.utc))

    plan = asyncio.run(service.plan_trip(params, waypoints=make_waypoints(3)))

    assert len(plan.route.stops) == 3
    assert plan.route.stops[1].is_overnight
    assert plan.deadline is None


def test_plan_trip_needs_link_or_waypoints():
    with pytest.raises(LinkParseError):
        asyncio.run(_service().plan_trip(TripParameters(max_driving_hours=8)))
