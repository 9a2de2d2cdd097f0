"""Serializers for routing outputs."""

from __future__ import annotations

import csv
import io
from dataclasses import asdict
from typing import Sequence

from ..routing.models import RoutePlan
from ..routing.stay_duration import format_minutes


def route_plans_to_json(plans: Sequence[RoutePlan]) -> list[dict]:
    return [
        {
            "route_type": plan.route_type.value,
            "total_duration_minutes": plan.total_duration_minutes,
            "total_distance_meters": plan.total_distance_meters,
            "total_travel_time_minutes": plan.total_travel_time_minutes,
            "place_count": plan.place_count,
            "score": plan.score,
            "stops": [
                {
                    **asdict(stop),
                    "arrival_time": format_minutes(stop.arrival_minutes),
                    "departure_time": format_minutes(stop.departure_minutes),
                }
                for stop in plan.stops
            ],
        }
        for plan in plans
    ]


def route_plans_to_csv(plans: Sequence[RoutePlan]) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "route_type",
        "stop_order",
        "point_id",
        "stop_id",
        "arrival_time",
        "departure_time",
        "stay_duration_minutes",
        "travel_time_from_prev_seconds",
        "travel_dist_from_prev_meters",
        "score",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for plan in plans:
        for stop in plan.stops:
            writer.writerow(
                {
                    "route_type": plan.route_type.value,
                    "stop_order": stop.stop_order,
                    "point_id": stop.point_id,
                    "stop_id": stop.stop_id,
                    "arrival_time": format_minutes(stop.arrival_minutes),
                    "departure_time": format_minutes(stop.departure_minutes),
                    "stay_duration_minutes": stop.stay_duration_minutes,
                    "travel_time_from_prev_seconds": stop.travel_time_from_prev_seconds,
                    "travel_dist_from_prev_meters": stop.travel_dist_from_prev_meters,
                    "score": plan.score,
                }
            )
    return buffer.getvalue()
