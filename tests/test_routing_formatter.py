import csv
import io

from itinerary_engine.models.domain import RouteType
from itinerary_engine.services.outputs.routing_formatter import route_plans_to_csv, route_plans_to_json
from itinerary_engine.services.routing.models import RoutePlan, StopPlan


def _plan() -> RoutePlan:
    return RoutePlan(
        route_type=RouteType.RELAXED,
        total_duration_minutes=125,
        total_distance_meters=900,
        total_travel_time_minutes=8,
        place_count=2,
        score=64.2,
        stops=[
            StopPlan(
                point_id="A",
                stop_id="tp-A",
                stop_order=0,
                stay_duration_minutes=59,
                travel_time_from_prev_seconds=0,
                travel_dist_from_prev_meters=0,
                arrival_minutes=540,
                departure_minutes=599,
            ),
            StopPlan(
                point_id="B",
                stop_id="tp-B",
                stop_order=1,
                stay_duration_minutes=58,
                travel_time_from_prev_seconds=450,
                travel_dist_from_prev_meters=900,
                arrival_minutes=607,
                departure_minutes=665,
            ),
        ],
    )


def test_json_output_adds_clock_times():
    (route,) = route_plans_to_json([_plan()])

    assert route["route_type"] == "RELAXED"
    assert route["score"] == 64.2
    assert [(s["arrival_time"], s["departure_time"]) for s in route["stops"]] == [("09:00", "09:59"), ("10:07", "11:05")]
    assert route["stops"][1]["travel_time_from_prev_seconds"] == 450


def test_csv_output_has_one_row_per_stop():
    rows = list(csv.DictReader(io.StringIO(route_plans_to_csv([_plan()]))))

    assert len(rows) == 2
    assert rows[1]["stop_id"] == "tp-B"
    assert rows[1]["arrival_time"] == "10:07"
    assert rows[1]["travel_dist_from_prev_meters"] == "900"
    assert all(row["score"] == "64.2" for row in rows)


def test_csv_output_for_no_plans_is_header_only():
    assert route_plans_to_csv([]).strip().startswith("route_type,stop_order,point_id")
    assert len(route_plans_to_csv([]).strip().splitlines()) == 1
