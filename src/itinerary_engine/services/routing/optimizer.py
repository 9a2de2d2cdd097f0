"""Generate the EFFICIENT, RELAXED and CUSTOM itinerary variants."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from ...models.domain import CandidateStop, Priority, RouteType, TravelMode
from .distance_provider import DistanceProvider
from .models import DistanceEntry, RoutePlan
from .schedule import DistanceLookup, build_schedule
from .stay_duration import daily_minutes, parse_time
from .tsp_solver import solve_tsp

logger = logging.getLogger(__name__)

MIN_STOPS = 2
MISSING_LEG_COST = 99999
RELAXED_BUFFER_FACTOR = 1.3

PRIORITY_COST_WEIGHTS: dict[Priority, float] = {
    Priority.MUST: 0.33,
    Priority.WANT: 0.67,
    Priority.OPTIONAL: 1.5,
}


class InsufficientStopsError(ValueError):
    def __init__(self, count: int) -> None:
        super().__init__(f"insufficient stops: at least {MIN_STOPS} candidate stops are required, got {count}")
        self.count = count


def build_distance_lookup(entries: Iterable[DistanceEntry]) -> dict[tuple[str, str], DistanceEntry]:
    return {(entry.origin_id, entry.dest_id): entry for entry in entries}


def build_cost_matrix(
    stops: Sequence[CandidateStop],
    distances: DistanceLookup,
    *,
    priority_weighted: bool = False,
) -> list[list[float]]:
    """Travel seconds between stops, optionally scaled by the destination's priority.

    Two stops at the same place cost nothing to move between.
    """
    n = len(stops)
    matrix: list[list[float]] = [[0] * n for _ in range(n)]
    for i in range(n):
        for j in range(n):
            if i == j or stops[i].point.id == stops[j].point.id:
                continue
            entry = distances.get((stops[i].point.id, stops[j].point.id))
            cost: float = entry.duration_seconds if entry is not None else MISSING_LEG_COST
            if priority_weighted:
                cost *= PRIORITY_COST_WEIGHTS[stops[j].priority]
            matrix[i][j] = cost
    return matrix


def select_relaxed_stops(stops: Sequence[CandidateStop]) -> list[CandidateStop]:
    """MUST stops, widened to MUST+WANT and then to everything until at least two remain."""
    must = [stop for stop in stops if stop.priority == Priority.MUST]
    if len(must) >= MIN_STOPS:
        return must
    must_or_want = [stop for stop in stops if stop.priority in (Priority.MUST, Priority.WANT)]
    if len(must_or_want) >= MIN_STOPS:
        return must_or_want
    return list(stops)


def rank_routes(plans: Iterable[RoutePlan]) -> list[RoutePlan]:
    """Plans ordered best score first; equal scores keep their original order."""
    return sorted(plans, key=lambda plan: plan.score, reverse=True)


class RouteOptimizer:
    def __init__(self, distance_provider: DistanceProvider) -> None:
        self.distance_provider = distance_provider

    async def optimize(
        self,
        stops: Sequence[CandidateStop],
        travel_mode: TravelMode,
        daily_start: str,
        daily_end: str,
        *,
        timeout: float | None = None,
    ) -> list[RoutePlan]:
        """Return one plan per route type, in EFFICIENT, RELAXED, CUSTOM order.

        ``daily_start`` and ``daily_end`` must be ``HH:mm`` strings.
        """
        if len(stops) < MIN_STOPS:
            raise InsufficientStopsError(len(stops))

        entries = await self.distance_provider.get_matrix(
            [stop.point for stop in stops], travel_mode, timeout=timeout
        )
        distances = build_distance_lookup(entries)
        start_minutes = parse_time(daily_start)
        window_minutes = daily_minutes(daily_start, daily_end)

        variants = [
            (RouteType.EFFICIENT, list(stops), 1.0, False),
            (RouteType.RELAXED, select_relaxed_stops(stops), RELAXED_BUFFER_FACTOR, False),
            (RouteType.CUSTOM, list(stops), 1.0, True),
        ]
        plans = [
            self._build_variant(
                route_type,
                variant_stops,
                distances,
                start_minutes,
                window_minutes,
                buffer_factor,
                priority_weighted,
            )
            for route_type, variant_stops, buffer_factor, priority_weighted in variants
        ]
        for plan in plans:
            logger.info(
                f"{plan.route_type.value}: {plan.place_count} stops, "
                f"{plan.total_travel_time_minutes} min travel, score {plan.score}"
            )
        return plans

    def _build_variant(
        self,
        route_type: RouteType,
        stops: Sequence[CandidateStop],
        distances: DistanceLookup,
        start_minutes: int,
        window_minutes: int,
        buffer_factor: float,
        priority_weighted: bool,
    ) -> RoutePlan:
        matrix = build_cost_matrix(stops, distances, priority_weighted=priority_weighted)
        ordering = solve_tsp(matrix)
        return build_schedule(
            route_type=route_type,
            order=ordering.order,
            stops=stops,
            distances=distances,
            daily_start_minutes=start_minutes,
            daily_window_minutes=window_minutes,
            buffer_factor=buffer_factor,
        )
