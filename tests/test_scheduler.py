from datetime import timedelta

import pytest

from optrip.models.trip import OptimizationParams
from optrip.services.scheduler import (
    OVERNIGHT_STOP_MINUTES,
    StopKind,
    decide_stop,
    schedule_stops,
)
from tests.conftest import HOUR, make_segments, make_waypoints


def _schedule(durations, params):
    waypoints = make_waypoints(len(durations) + 1)
    return schedule_stops(waypoints, make_segments(waypoints, durations), params)


def test_decide_stop_final_destination_has_no_dwell():
    decision = decide_stop(2 * HOUR, None, 8 * HOUR, 45)
    assert decision.kind == StopKind.CONTINUE
    assert decision.duration == 0


def test_decide_stop_short_rest_when_next_leg_fits():
    decision = decide_stop(2 * HOUR, 6 * HOUR, 8 * HOUR, 45)
    assert decision.kind == StopKind.SHORT
    assert decision.duration == 45


def test_decide_stop_overnight_when_next_leg_does_not_fit():
    decision = decide_stop(6 * HOUR, 6 * HOUR, 8 * HOUR, 45)
    assert decision.is_overnight
    assert decision.duration == OVERNIGHT_STOP_MINUTES


def test_overnight_is_decided_on_arrival(params):
    durations = [3 * HOUR, 4 * HOUR, 2 * HOUR, 9 * HOUR, 30 * 60, 7 * HOUR, HOUR]
    budget = params.max_driving_hours * HOUR
    stops = _schedule(durations, params)

    driven = 0
    for stop, leg, next_leg in zip(stops[1:], durations, durations[1:]):
        driven += leg
        assert stop.is_overnight == (next_leg > budget - driven)
        if stop.is_overnight:
            driven = 0


def test_over_budget_leg_is_logged_not_rescheduled(params, caplog):
    with caplog.at_level("WARNING", logger="optrip.services.scheduler"):
        stops = _schedule([10 * HOUR, HOUR], params)

    assert "over the 8.0h daily limit" in caplog.text
    assert not stops[0].is_overnight
    assert stops[1].is_overnight
    assert [stop.day_number for stop in stops] == [1, 2, 2]


def test_single_short_segment(params, departure):
    stops = _schedule([HOUR], params)

    assert len(stops) == 2
    assert [stop.day_number for stop in stops] == [1, 1]
    assert not any(stop.is_overnight for stop in stops)
    assert stops[1].arrival_time == departure + timedelta(hours=1)


def test_next_leg_overflow_makes_middle_stop_overnight(params, departure):
    stops = _schedule([6 * HOUR, 6 * HOUR], params)

    middle = stops[1]
    assert middle.is_overnight
    assert middle.accommodation_needed
    assert middle.stop_duration == OVERNIGHT_STOP_MINUTES
    assert middle.day_number == 2
    assert middle.arrival_time == departure + timedelta(hours=6)
    assert middle.departure_time == middle.arrival_time + timedelta(hours=12)

    last = stops[2]
    assert last.day_number == 2
    assert last.arrival_time == departure + timedelta(hours=6 + 12 + 6)
    assert sum(stop.is_overnight for stop in stops) + 1 == 2


def test_segment_longer_than_daily_budget_is_driven_in_one_day(params, departure):
    stops = _schedule([10 * HOUR], params)

    assert len(stops) == 2
    origin, destination = stops
    assert not origin.is_overnight
    assert origin.arrival_time == origin.departure_time == departure
    assert destination.arrival_time == departure + timedelta(hours=10)
    assert destination.stop_duration == 0
    assert not destination.is_overnight
    assert destination.day_number == 1


def test_overlong_segment_in_middle_of_trip(params, departure):
    # The look-ahead check already puts the night before the 10h leg,
    # and the over-budget day forces another night after it
    stops = _schedule([2 * HOUR, 10 * HOUR, HOUR], params)

    assert [stop.is_overnight for stop in stops] == [False, True, True, False]
    assert [stop.day_number for stop in stops] == [1, 2, 3, 3]
    assert stops[1].departure_time == stops[1].arrival_time + timedelta(hours=12)
    assert stops[2].arrival_time == departure + timedelta(hours=2 + 12 + 10)


def test_rest_stops_within_one_day(departure):
    params = OptimizationParams(
        max_driving_hours=8, departure_time=departure, preferred_stop_duration=45
    )
    stops = _schedule([HOUR, 2 * HOUR, HOUR], params)

    assert [stop.stop_duration for stop in stops] == [0, 45, 45, 0]
    assert not any(stop.is_overnight for stop in stops)
    assert all(stop.day_number == 1 for stop in stops)
    assert stops[-1].arrival_time == departure + timedelta(hours=4, minutes=90)


@pytest.mark.parametrize(
    "durations",
    [
        [HOUR],
        [5 * HOUR, 5 * HOUR, 5 * HOUR, 5 * HOUR],
        [7 * HOUR, HOUR, 30 * 60, 9 * HOUR, 2 * HOUR],
        [0, 0, 3 * HOUR],
        [12 * HOUR, 12 * HOUR],
    ],
)
def test_schedule_invariants(durations, departure):
    params = OptimizationParams(
        max_driving_hours=8, departure_time=departure, preferred_stop_duration=30
    )
    stops = _schedule(durations, params)

    assert len(stops) == len(durations) + 1
    assert stops[0].arrival_time == stops[0].departure_time == departure
    assert stops[-1].stop_duration == 0
    assert not stops[-1].is_overnight

    for previous, current in zip(stops, stops[1:]):
        assert current.arrival_time >= previous.departure_time
        assert current.day_number - previous.day_number == int(current.is_overnight)
    for stop in stops:
        assert stop.departure_time - stop.arrival_time == timedelta(minutes=stop.stop_duration)
        assert stop.accommodation_needed == stop.is_overnight

    overnight = sum(stop.is_overnight for stop in stops)
    assert stops[-1].day_number == overnight + 1


def test_identical_inputs_give_identical_schedules(params):
    first = _schedule([6 * HOUR, 3 * HOUR, 4 * HOUR], params)
    second = _schedule([6 * HOUR, 3 * HOUR, 4 * HOUR], params)
    assert first == second


def test_missing_departure_defaults_to_now():
    params = OptimizationParams(max_driving_hours=8)
    stops = _schedule([HOUR], params)
    assert stops[0].arrival_time.tzinfo is not None
    assert stops[1].arrival_time - stops[0].departure_time == timedelta(hours=1)
