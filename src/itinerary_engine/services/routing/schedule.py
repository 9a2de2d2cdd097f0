"""Turn a visiting order into a timed itinerary and score it."""

from __future__ import annotations

import math
from typing import Mapping, Sequence

from ...models.domain import CandidateStop, Priority, RouteType
from ..geospatial import round_half_up
from .models import DistanceEntry, RoutePlan, StopPlan
from .stay_duration import stay_duration

PRIORITY_POINTS: dict[Priority, float] = {
    Priority.MUST: 3.0,
    Priority.WANT: 1.5,
    Priority.OPTIONAL: 0.5,
}

# An itinerary always keeps its first two stops even if they overrun the window.
MIN_COMMITTED_STOPS = 2

DistanceLookup = Mapping[tuple[str, str], DistanceEntry]


def score_route(
    *,
    total_duration_minutes: int,
    total_travel_seconds: int,
    committed: Sequence[CandidateStop],
    candidate_count: int,
) -> float:
    travel_efficiency = (
        1 - math.ceil(total_travel_seconds / 60) / total_duration_minutes
        if total_duration_minutes > 0
        else 0.0
    )
    priority_score = sum(PRIORITY_POINTS[stop.priority] for stop in committed)
    coverage = len(committed) / candidate_count if candidate_count else 0.0
    raw = travel_efficiency * 30 + coverage * 30 + priority_score * 5
    return max(0.0, round_half_up(raw * 10) / 10)


def build_schedule(
    *,
    route_type: RouteType,
    order: Sequence[int],
    stops: Sequence[CandidateStop],
    distances: DistanceLookup,
    daily_start_minutes: int,
    daily_window_minutes: int,
    buffer_factor: float = 1.0,
) -> RoutePlan:
    """Walk ``order`` against the daily window and produce a scored plan.

    Travel legs come from ``distances`` keyed by ``(origin_point_id, dest_point_id)``;
    a missing leg counts as zero travel. Once a stop would depart after the window
    closes and at least two stops are committed, the remaining stops are dropped.
    """
    window_end = daily_start_minutes + daily_window_minutes
    planned: list[StopPlan] = []
    committed: list[CandidateStop] = []
    clock = daily_start_minutes
    total_distance = 0
    total_travel_seconds = 0

    for position, stop_index in enumerate(order):
        stop = stops[stop_index]
        stay = round_half_up(stay_duration(stop) * buffer_factor)

        travel_seconds = 0
        travel_meters = 0
        if position > 0:
            previous = stops[order[position - 1]]
            entry = distances.get((previous.point.id, stop.point.id))
            if entry is not None:
                travel_seconds = entry.duration_seconds
                travel_meters = entry.distance_meters
            total_travel_seconds += travel_seconds
            total_distance += travel_meters

        arrival = clock + math.ceil(travel_seconds / 60)
        departure = arrival + stay

        if departure > window_end and len(planned) >= MIN_COMMITTED_STOPS:
            break

        planned.append(
            StopPlan(
                point_id=stop.point.id,
                stop_id=stop.id,
                stop_order=len(planned),
                stay_duration_minutes=stay,
                travel_time_from_prev_seconds=travel_seconds,
                travel_dist_from_prev_meters=travel_meters,
                arrival_minutes=arrival,
                departure_minutes=departure,
            )
        )
        committed.append(stop)
        clock = departure

    total_duration = planned[-1].departure_minutes - daily_start_minutes if planned else 0

    return RoutePlan(
        route_type=route_type,
        stops=planned,
        total_duration_minutes=total_duration,
        total_distance_meters=total_distance,
        total_travel_time_minutes=math.ceil(total_travel_seconds / 60),
        place_count=len(planned),
        score=score_route(
            total_duration_minutes=total_duration,
            total_travel_seconds=total_travel_seconds,
            committed=committed,
            candidate_count=len(stops),
        ),
    )
