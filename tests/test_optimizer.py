import asyncio
from dataclasses import asdict

import pytest

from itinerary_engine.models.domain import CandidateStop, PlaceCategory, Point, Priority, RouteType, TravelMode
from itinerary_engine.services.routing.cache import InMemoryDistanceCache
from itinerary_engine.services.routing.distance_provider import DistanceProvider
from itinerary_engine.services.routing.distance_source import DistanceSourceError, DistanceSourceResult, PairResult
from itinerary_engine.services.routing.models import DistanceEntry, RoutePlan
from itinerary_engine.services.routing.optimizer import (
    MISSING_LEG_COST,
    InsufficientStopsError,
    RouteOptimizer,
    build_cost_matrix,
    rank_routes,
    select_relaxed_stops,
)


class ScriptedSource:
    """Symmetric source answering from a ``{(a, b): (seconds, meters)}`` table."""

    def __init__(self, legs: dict[tuple[str, str], tuple[int, int]]) -> None:
        self.legs = {**legs, **{(b, a): value for (a, b), value in legs.items()}}
        self.calls = 0

    async def fetch(self, points, travel_mode):
        self.calls += 1
        result = DistanceSourceResult()
        for origin in points:
            for dest in points:
                leg = self.legs.get((origin.id, dest.id))
                if leg is not None:
                    result.pairs[(origin.id, dest.id)] = PairResult(
                        ok=True, duration_seconds=leg[0], distance_meters=leg[1]
                    )
        return result


class FailingSource:
    def __init__(self) -> None:
        self.calls = 0

    async def fetch(self, points, travel_mode):
        self.calls += 1
        raise DistanceSourceError("Distance Matrix API error: UNKNOWN_ERROR")


def _stop(pid: str, priority: Priority = Priority.WANT, lat: float = 37.55, lng: float = 126.97) -> CandidateStop:
    return CandidateStop(
        id=f"tp-{pid}",
        point=Point(id=pid, latitude=lat, longitude=lng, category=PlaceCategory.ATTRACTION),
        priority=priority,
    )


def _optimizer(source) -> RouteOptimizer:
    provider = DistanceProvider(cache=InMemoryDistanceCache(), source=source, ttl_seconds=86400, timeout_seconds=2.0)
    return RouteOptimizer(provider)


SQUARE_LEGS = {
    ("A", "B"): (600, 1000),
    ("B", "C"): (600, 1000),
    ("C", "D"): (600, 1000),
    ("D", "A"): (600, 1000),
    ("A", "C"): (850, 1400),
    ("B", "D"): (850, 1400),
}


def _square_stops() -> list[CandidateStop]:
    return [_stop(pid) for pid in ["A", "B", "C", "D"]]


def test_optimize_square_produces_three_plans():
    plans = asyncio.run(_optimizer(ScriptedSource(SQUARE_LEGS)).optimize(
        _square_stops(), TravelMode.WALKING, "10:00", "21:00"
    ))

    assert [plan.route_type for plan in plans] == [RouteType.EFFICIENT, RouteType.RELAXED, RouteType.CUSTOM]

    efficient = plans[0]
    assert [s.point_id for s in efficient.stops] == ["A", "B", "C", "D"]
    assert efficient.place_count == 4
    assert efficient.total_travel_time_minutes == 30
    assert efficient.total_distance_meters == 3000
    assert efficient.total_duration_minutes == 390
    assert efficient.score == 87.7

    relaxed = plans[1]
    assert relaxed.place_count == 4
    assert all(s.stay_duration_minutes == 117 for s in relaxed.stops)


def test_custom_route_moves_must_stop_forward():
    stops = [
        _stop("S0", Priority.OPTIONAL),
        _stop("S1", Priority.WANT),
        _stop("S2", Priority.MUST),
    ]
    legs = {
        ("S0", "S1"): (100, 150),
        ("S1", "S2"): (50, 80),
        ("S0", "S2"): (110, 160),
    }

    plans = asyncio.run(_optimizer(ScriptedSource(legs)).optimize(stops, TravelMode.WALKING, "10:00", "21:00"))
    efficient, _, custom = plans

    assert [s.point_id for s in efficient.stops] == ["S0", "S1", "S2"]
    assert [s.point_id for s in custom.stops] == ["S0", "S2", "S1"]


@pytest.mark.parametrize("count", [0, 1])
def test_optimize_rejects_too_few_stops(count):
    source = ScriptedSource({})
    stops = _square_stops()[:count]

    with pytest.raises(InsufficientStopsError, match="insufficient stops"):
        asyncio.run(_optimizer(source).optimize(stops, TravelMode.WALKING, "10:00", "21:00"))
    assert source.calls == 0


def test_optimize_is_idempotent_with_warm_cache():
    source = ScriptedSource(SQUARE_LEGS)
    optimizer = _optimizer(source)

    async def run():
        first = await optimizer.optimize(_square_stops(), TravelMode.WALKING, "10:00", "21:00")
        await optimizer.distance_provider.wait_for_pending_writes()
        second = await optimizer.optimize(_square_stops(), TravelMode.WALKING, "10:00", "21:00")
        return first, second

    first, second = asyncio.run(run())

    assert source.calls == 1
    assert [asdict(plan) for plan in first] == [asdict(plan) for plan in second]


def test_optimize_survives_source_failure():
    source = FailingSource()
    stops = [_stop(f"P{i}", lat=37.55 + i * 0.01, lng=126.97 + i * 0.005) for i in range(4)]

    plans = asyncio.run(_optimizer(source).optimize(stops, TravelMode.DRIVING, "09:00", "18:00"))

    assert source.calls == 1
    assert len(plans) == 3
    assert all(plan.place_count >= 2 for plan in plans)
    assert all(plan.total_travel_time_minutes > 0 for plan in plans)


def test_select_relaxed_stops_widens_priorities():
    must_a = _stop("A", Priority.MUST)
    must_b = _stop("B", Priority.MUST)
    want = _stop("C", Priority.WANT)
    optional = _stop("D", Priority.OPTIONAL)

    assert select_relaxed_stops([must_a, want, must_b, optional]) == [must_a, must_b]
    assert select_relaxed_stops([must_a, want, optional]) == [must_a, want]
    assert select_relaxed_stops([optional, want]) == [optional, want]
    assert select_relaxed_stops([optional, _stop("E", Priority.OPTIONAL)]) == [optional, _stop("E", Priority.OPTIONAL)]


def test_build_cost_matrix_weights_by_destination_priority():
    stops = [_stop("A", Priority.OPTIONAL), _stop("B", Priority.MUST)]
    distances = {
        ("A", "B"): DistanceEntry(origin_id="A", dest_id="B", duration_seconds=100, distance_meters=0),
        ("B", "A"): DistanceEntry(origin_id="B", dest_id="A", duration_seconds=100, distance_meters=0),
    }

    plain = build_cost_matrix(stops, distances)
    weighted = build_cost_matrix(stops, distances, priority_weighted=True)

    assert plain == [[0, 100], [100, 0]]
    assert weighted[0][1] == pytest.approx(33.0)
    assert weighted[1][0] == pytest.approx(150.0)


def test_build_cost_matrix_marks_missing_legs():
    stops = [_stop("A"), _stop("B")]

    assert build_cost_matrix(stops, {}) == [[0, MISSING_LEG_COST], [MISSING_LEG_COST, 0]]


def test_rank_routes_orders_by_score_and_keeps_ties_stable():
    def plan(route_type: RouteType, score: float) -> RoutePlan:
        return RoutePlan(
            route_type=route_type,
            total_duration_minutes=0,
            total_distance_meters=0,
            total_travel_time_minutes=0,
            place_count=0,
            score=score,
        )

    ranked = rank_routes([plan(RouteType.EFFICIENT, 50.0), plan(RouteType.RELAXED, 72.5), plan(RouteType.CUSTOM, 50.0)])

    assert [p.route_type for p in ranked] == [RouteType.RELAXED, RouteType.EFFICIENT, RouteType.CUSTOM]


def _visit(stop_id: str, place_id: str, lat: float, lng: float) -> CandidateStop:
    return CandidateStop(
        id=stop_id,
        point=Point(id=place_id, latitude=lat, longitude=lng, category=PlaceCategory.ATTRACTION),
    )


def test_build_cost_matrix_same_place_is_free():
    stops = [_visit("t1", "X", 37.55, 126.97), _visit("t2", "Y", 37.56, 126.98), _visit("t3", "X", 37.55, 126.97)]

    matrix = build_cost_matrix(stops, {})

    assert matrix[0][2] == 0
    assert matrix[2][0] == 0
    assert matrix[0][1] == MISSING_LEG_COST


def test_stops_sharing_a_place_are_visited_back_to_back():
    stops = [_visit("t1", "X", 37.55, 126.97), _visit("t2", "Y", 37.56, 126.98), _visit("t3", "X", 37.55, 126.97)]

    plans = asyncio.run(_optimizer(None).optimize(stops, TravelMode.WALKING, "10:00", "21:00"))
    efficient = plans[0]

    assert [s.stop_id for s in efficient.stops] == ["t1", "t3", "t2"]
    assert efficient.stops[1].travel_time_from_prev_seconds == 0
