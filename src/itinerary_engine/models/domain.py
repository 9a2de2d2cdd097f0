"""Domain models for points of interest and candidate stops."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Priority(str, Enum):
    MUST = "MUST"
    WANT = "WANT"
    OPTIONAL = "OPTIONAL"


class PlaceCategory(str, Enum):
    RESTAURANT = "RESTAURANT"
    CAFE = "CAFE"
    BAR = "BAR"
    ATTRACTION = "ATTRACTION"
    SHOPPING = "SHOPPING"
    SPA_MASSAGE = "SPA_MASSAGE"
    ENTERTAINMENT = "ENTERTAINMENT"
    ACCOMMODATION = "ACCOMMODATION"
    TRANSPORT_HUB = "TRANSPORT_HUB"
    OTHER = "OTHER"

    @classmethod
    def _missing_(cls, value: object) -> "PlaceCategory":
        if isinstance(value, str):
            normalized = value.strip().upper()
            for member in cls:
                if member.value == normalized:
                    return member
        return cls.OTHER


class TravelMode(str, Enum):
    WALKING = "WALKING"
    PUBLIC_TRANSIT = "PUBLIC_TRANSIT"
    DRIVING = "DRIVING"
    TAXI = "TAXI"


class RouteType(str, Enum):
    EFFICIENT = "EFFICIENT"
    RELAXED = "RELAXED"
    CUSTOM = "CUSTOM"


@dataclass(frozen=True, slots=True)
class Point:
    """A physical location identified by its place id."""

    id: str
    latitude: float
    longitude: float
    category: PlaceCategory = PlaceCategory.OTHER


@dataclass(frozen=True, slots=True)
class CandidateStop:
    """A point under consideration for one day's plan.

    ``custom_duration`` and ``average_duration`` are minutes. The first is a
    user override, the second comes from historical/enrichment data.
    """

    id: str
    point: Point
    priority: Priority = Priority.WANT
    custom_duration: Optional[int] = None
    average_duration: Optional[int] = None
    preferred_time: Optional[str] = None
