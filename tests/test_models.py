from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from optrip.models.location import Waypoint
from optrip.models.trip import OptimizationParams, TripParameters


def test_trip_parameters_schema_example():
    schema = TripParameters.model_json_schema()

    example = schema["example"]
    assert example["max_driving_hours"] == 8
    assert TripParameters.model_validate(example).avoid_tolls


def test_naive_datetimes_become_utc():
    params = OptimizationParams(max_driving_hours=8, departure_time=datetime(2024, 1, 1, 8, 0))
    assert params.departure_time.tzinfo == timezone.utc


@pytest.mark.parametrize("latitude, longitude", [(91, 0), (0, 181), (-90.5, 10)])
def test_waypoint_rejects_out_of_range_coordinates(latitude, longitude):
    with pytest.raises(ValidationError):
        Waypoint(name="Nowhere", latitude=latitude, longitude=longitude)
