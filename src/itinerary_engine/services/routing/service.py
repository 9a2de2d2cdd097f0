"""Routing orchestration service."""

from __future__ import annotations

import logging
from typing import Sequence

from ...config import settings
from ...models.domain import CandidateStop, Point
from ...schemas.routing import CandidateStopModel, OptimizeRequest, OptimizeResponse, RoutePlanModel
from ..outputs.routing_formatter import route_plans_to_csv, route_plans_to_json
from .cache import build_distance_cache
from .distance_provider import DistanceProvider
from .distance_source import DistanceSource
from .google_client import GoogleDistanceMatrixClient
from .models import RoutePlan
from .optimizer import RouteOptimizer, rank_routes
from .osrm_client import OSRMDistanceClient

_provider: DistanceProvider | None = None


def build_distance_source(kind: str | None = None) -> DistanceSource | None:
    kind = kind or settings.distance_source
    try:
        if kind == "google":
            return GoogleDistanceMatrixClient(timeout=settings.distance_request_timeout_seconds)
        if kind == "osrm":
            return OSRMDistanceClient(timeout=settings.distance_request_timeout_seconds)
    except ValueError as e:
        logging.error(f"Distance source '{kind}' could not be initialised: {e}. Using haversine estimates only.")
    return None


def get_distance_provider() -> DistanceProvider:
    """Process-wide provider so the in-memory cache stays warm between requests."""
    global _provider
    if _provider is None:
        _provider = DistanceProvider(cache=build_distance_cache(), source=build_distance_source())
    return _provider


async def drain_distance_writes() -> None:
    if _provider is not None:
        await _provider.wait_for_pending_writes()


def to_candidate_stops(stops: Sequence[CandidateStopModel]) -> list[CandidateStop]:
    return [
        CandidateStop(
            id=stop.id,
            point=Point(
                id=stop.place_id,
                latitude=stop.latitude,
                longitude=stop.longitude,
                category=stop.category,
            ),
            priority=stop.priority,
            custom_duration=stop.custom_duration,
            average_duration=stop.average_duration,
            preferred_time=stop.preferred_time,
        )
        for stop in stops
    ]


async def compute_route_plans(payload: OptimizeRequest, provider: DistanceProvider | None = None) -> list[RoutePlan]:
    """Plans for the request, best score first."""
    optimizer = RouteOptimizer(provider or get_distance_provider())
    plans = await optimizer.optimize(
        to_candidate_stops(payload.stops),
        payload.travel_mode,
        payload.daily_start,
        payload.daily_end,
    )
    return rank_routes(plans)


async def optimize_routes(payload: OptimizeRequest, provider: DistanceProvider | None = None) -> OptimizeResponse:
    plans = await compute_route_plans(payload, provider)
    return OptimizeResponse(
        travel_mode=payload.travel_mode,
        daily_start=payload.daily_start,
        daily_end=payload.daily_end,
        routes=[RoutePlanModel.model_validate(plan) for plan in route_plans_to_json(plans)],
    )


async def export_routes_csv(payload: OptimizeRequest, provider: DistanceProvider | None = None) -> str:
    plans = await compute_route_plans(payload, provider)
    return route_plans_to_csv(plans)
