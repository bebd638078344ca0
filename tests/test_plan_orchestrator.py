from datetime import datetime

import pytest

from models import PlanOptions
from services.errors import ValidationError
from services.plan_orchestrator import generate_plan, simplify_plan
from utils.time_format import eta_clock, format_travel_time
from utils.zone_labels import urgency_category, zone_location


@pytest.mark.parametrize(
    "minutes, expected",
    [(0, "0m"), (45, "45m"), (59.6, "1h 0m"), (60, "1h 0m"), (85, "1h 25m"), (133.43, "2h 13m")],
)
def test_format_travel_time(minutes, expected):
    assert format_travel_time(minutes) == expected


def test_eta_clock_adds_minutes_to_now():
    assert eta_clock(90, datetime(2025, 1, 15, 23, 0)) == "00:30"
    assert eta_clock(0.4, datetime(2025, 1, 15, 8, 5)) == "08:05"


@pytest.mark.parametrize(
    "level, label, expected",
    [(5, None, "high"), (4, None, "high"), (3, None, "medium"), (2, None, "low"), (1, "high", "low"), (None, "High", "high"), (None, None, "medium")],
)
def test_urgency_category(level, label, expected):
    assert urgency_category(level, label) == expected


def test_zone_location_falls_back_to_coordinates(make_zone):
    zone = make_zone("Z1", 13.75, 100.5, 10, 3)
    assert zone_location(zone) == "13.75,100.5"
    assert zone_location(make_zone("Z2", None, None, 10, 3)) == "Unknown location"


def test_enriched_assignment_fields(make_zone, make_vehicle, fixed_now):
    zones = [make_zone("Z1", 0.0, 0.0, 30, 4)]
    vehicles = [make_vehicle("V1", 1.0, 0.0, 30, speed=50.0, vtype="truck")]

    plan = generate_plan(zones, vehicles, "greedy", PlanOptions(max_distance_km=200), now=fixed_now)

    assert len(plan.assignments) == 1
    a = plan.assignments[0]
    assert a.zone_id == "Z1"
    assert a.vehicle_id == "V1"
    assert a.vehicle_type == "truck"
    assert a.vehicle_capacity == 30
    assert a.assigned_zone == "0.0,0.0"
    assert a.urgency_level == 4
    assert a.urgency_category == "high"
    assert a.priority == 2
    assert a.people_to_evacuate == 30
    assert a.distance_km == 111.19
    assert a.travel_time_minutes == 133
    assert a.travel_time_hours == 2.22
    assert a.travel_time_formatted == "2h 13m"
    assert a.eta == "12:13"
    assert a.speed_kmh == 50.0
    assert a.eta_minutes == pytest.approx(133.43, abs=0.01)


def test_default_max_distance_drops_far_vehicle(make_zone, make_vehicle, fixed_now):
    zones = [make_zone("Z1", 0.0, 0.0, 30, 4)]
    vehicles = [make_vehicle("V1", 1.0, 0.0, 30, speed=50.0)]

    plan = generate_plan(zones, vehicles, "greedy", now=fixed_now)

    assert plan.assignments == []
    assert plan.summary.total_people_remaining == 30
    assert plan.summary.coverage_percent == 0.0


def test_no_vehicles_still_reports_registry_totals(make_zone, fixed_now):
    zones = [
        make_zone("Z1", 13.75, 100.5, 20, 5),
        make_zone("Z2", 13.8, 100.5, 20, 4),
        make_zone("Z3", 13.7, 100.5, 20, 2),
    ]

    plan = generate_plan(zones, [], "weighted", now=fixed_now)

    assert plan.assignments == []
    s = plan.summary
    assert s.high_priority_zones == 2
    assert s.total_vehicles_used == 0
    assert s.total_people_to_evacuate == 0
    assert s.total_people_remaining == 60
    assert s.average_distance_km == 0.0
    assert s.median_eta_minutes == 0.0
    assert s.zones_fully_covered == 0
    assert s.zones_partially_covered == 0


def test_empty_registry_has_zero_coverage(fixed_now):
    plan = generate_plan([], [], now=fixed_now)
    assert plan.summary.coverage_percent == 0.0
    assert plan.summary.total_people_remaining == 0


def test_unknown_strategy_is_rejected(make_zone, make_vehicle):
    with pytest.raises(ValidationError) as exc_info:
        generate_plan([make_zone("Z1", 13.75, 100.5, 10, 5)], [make_vehicle("V1", 13.75, 100.5, 10)], "fastest")

    assert exc_info.value.errors[0]["field"] == "strategy"


def test_strategy_name_is_case_insensitive(make_zone, make_vehicle, fixed_now):
    plan = generate_plan([make_zone("Z1", 13.75, 100.5, 10, 5)], [make_vehicle("V1", 13.75, 100.5, 10)], "Weighted", now=fixed_now)
    assert plan.strategy == "weighted"


def _two_zone_scenario(make_zone, make_vehicle):
    zones = [
        make_zone("A", 13.75, 100.5, 70, 5),
        make_zone("B", 13.8, 100.5, 10, 2),
    ]
    vehicles = [
        make_vehicle("V1", 13.75, 100.5, 40),
        make_vehicle("V2", 13.8, 100.5, 10),
    ]
    return zones, vehicles


def test_weighted_summary(make_zone, make_vehicle, fixed_now):
    zones, vehicles = _two_zone_scenario(make_zone, make_vehicle)

    plan = generate_plan(zones, vehicles, "weighted", now=fixed_now)

    assert [(a.zone_id, a.vehicle_id, a.people_to_evacuate) for a in plan.assignments] == [("A", "V1", 40), ("B", "V2", 10)]
    s = plan.summary
    assert s.total_vehicles_used == 2
    assert s.total_people_to_evacuate == 50
    assert s.total_people_remaining == 80
    assert s.coverage_percent == 62.5
    assert s.high_priority_zones == 1
    assert s.zones_fully_covered == 1
    assert s.zones_partially_covered == 1
    assert s.total_distance_km == 0.0


def test_greedy_summary(make_zone, make_vehicle, fixed_now):
    zones, vehicles = _two_zone_scenario(make_zone, make_vehicle)

    plan = generate_plan(zones, vehicles, "greedy", now=fixed_now)

    assert [(a.zone_id, a.vehicle_id, a.people_to_evacuate) for a in plan.assignments] == [("A", "V1", 40), ("A", "V2", 10)]
    s = plan.summary
    assert s.total_people_to_evacuate == 50
    assert s.coverage_percent == 62.5
    assert s.zones_fully_covered == 0
    assert s.zones_partially_covered == 1
    assert s.total_distance_km == pytest.approx(5.56, abs=0.01)
    assert s.average_distance_km == pytest.approx(2.78, abs=0.01)


def test_summary_excludes_already_evacuated_people(make_zone, make_vehicle, fixed_now):
    zones = [make_zone("A", 13.75, 100.5, 70, 5, evacuated=30)]
    vehicles = [make_vehicle("V1", 13.75, 100.5, 40)]

    plan = generate_plan(zones, vehicles, "greedy", now=fixed_now)

    assert plan.summary.total_people_remaining == 40
    assert plan.summary.coverage_percent == 100.0
    assert plan.summary.zones_fully_covered == 1


def test_plan_is_deterministic_for_fixed_clock(make_zone, make_vehicle, fixed_now):
    zones, vehicles = _two_zone_scenario(make_zone, make_vehicle)

    first = generate_plan(zones, vehicles, "greedy", now=fixed_now)
    second = generate_plan(zones, vehicles, "greedy", now=fixed_now)

    assert first.model_dump() == second.model_dump()


@pytest.mark.parametrize("strategy", ["greedy", "weighted"])
def test_assignments_never_go_to_a_less_urgent_zone_first(make_zone, make_vehicle, fixed_now, strategy):
    zones = [
        make_zone("Z1", 13.75, 100.5, 15, 2),
        make_zone("Z2", 13.78, 100.52, 25, 5),
        make_zone("Z3", 13.72, 100.48, 10, 3),
        make_zone("Z4", 13.74, 100.55, 30, 5),
    ]
    vehicles = [
        make_vehicle("V1", 13.76, 100.51, 20),
        make_vehicle("V2", 13.73, 100.49, 35),
        make_vehicle("V3", 13.77, 100.53, 15),
    ]

    plan = generate_plan(zones, vehicles, strategy, now=fixed_now)

    levels = [a.urgency_level for a in plan.assignments]
    assert levels == sorted(levels, reverse=True)


def test_plan_echoes_options(make_zone, make_vehicle, fixed_now):
    options = PlanOptions(max_distance_km=25.0, prefer_fewer_trips=False)
    plan = generate_plan([make_zone("Z1", 13.75, 100.5, 10, 5)], [make_vehicle("V1", 13.75, 100.5, 10)], options=options, now=fixed_now)

    assert plan.options.max_distance_km == 25.0
    assert plan.options.prefer_fewer_trips is False


def test_simplify_plan(make_zone, make_vehicle, fixed_now):
    zones = [make_zone("Z1", 0.0, 0.0, 30, 4)]
    vehicles = [make_vehicle("V1", 1.0, 0.0, 30, speed=50.0)]
    plan = generate_plan(zones, vehicles, "greedy", PlanOptions(max_distance_km=200), now=fixed_now)

    assert simplify_plan(plan) == [{"ZoneID": "Z1", "VehicleID": "V1", "ETA": "2h 13m", "NumberOfPeople": 30}]
