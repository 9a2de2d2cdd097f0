"""Routing request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import PlaceCategory, Priority, RouteType, TravelMode

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class CandidateStopModel(BaseModel):
    id: str = Field(..., description="Trip-level identifier of the stop.")
    place_id: str = Field(..., description="Identifier of the physical place; used for distance lookups.")
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    category: PlaceCategory = PlaceCategory.OTHER
    priority: Priority = Priority.WANT
    custom_duration: Optional[int] = Field(default=None, ge=0, description="Stay override in minutes.")
    average_duration: Optional[int] = Field(
        default=None,
        ge=0,
        description="Observed average stay in minutes from enrichment data.",
    )
    preferred_time: Optional[str] = Field(default=None, pattern=HHMM_PATTERN)


class OptimizeRequest(BaseModel):
    travel_mode: TravelMode = TravelMode.PUBLIC_TRANSIT
    daily_start: str = Field(default="10:00", pattern=HHMM_PATTERN)
    daily_end: str = Field(default="21:00", pattern=HHMM_PATTERN)
    stops: List[CandidateStopModel]


class StopPlanModel(BaseModel):
    point_id: str
    stop_id: str
    stop_order: int
    stay_duration_minutes: int
    travel_time_from_prev_seconds: int
    travel_dist_from_prev_meters: int
    arrival_minutes: int
    departure_minutes: int
    arrival_time: str
    departure_time: str


class RoutePlanModel(BaseModel):
    route_type: RouteType
    total_duration_minutes: int
    total_distance_meters: int
    total_travel_time_minutes: int
    place_count: int
    score: float
    stops: List[StopPlanModel]


class OptimizeResponse(BaseModel):
    travel_mode: TravelMode
    daily_start: str
    daily_end: str
    routes: List[RoutePlanModel]
