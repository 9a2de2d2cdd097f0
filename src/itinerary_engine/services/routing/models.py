"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from ...models.domain import RouteType, TravelMode


@dataclass(slots=True)
class DistanceEntry:
    origin_id: str
    dest_id: str
    duration_seconds: int
    distance_meters: int


@dataclass(slots=True)
class DistanceCacheRecord:
    origin_id: str
    dest_id: str
    travel_mode: TravelMode
    duration_seconds: int
    distance_meters: int
    expires_at: datetime
    cached_at: datetime | None = None

    def is_fresh(self, now: datetime) -> bool:
        return self.expires_at > now

    def to_entry(self) -> DistanceEntry:
        return DistanceEntry(
            origin_id=self.origin_id,
            dest_id=self.dest_id,
            duration_seconds=self.duration_seconds,
            distance_meters=self.distance_meters,
        )


@dataclass(slots=True)
class OrderingResult:
    order: List[int]
    total_cost: float


@dataclass(slots=True)
class StopPlan:
    point_id: str
    stop_id: str
    stop_order: int
    stay_duration_minutes: int
    travel_time_from_prev_seconds: int
    travel_dist_from_prev_meters: int
    arrival_minutes: int
    departure_minutes: int


@dataclass(slots=True)
class RoutePlan:
    route_type: RouteType
    total_duration_minutes: int
    total_distance_meters: int
    total_travel_time_minutes: int
    place_count: int
    score: float
    stops: List[StopPlan] = field(default_factory=list)
