"""Stay duration policy and ``HH:mm`` time arithmetic.

Times of day are handled as minutes since midnight. Inputs are expected to be
well-formed ``HH:mm`` strings; the request schema validates them upstream.
"""

from __future__ import annotations

from ...models.domain import CandidateStop, PlaceCategory

DEFAULT_STAY_MINUTES = 60

CATEGORY_STAY_MINUTES: dict[PlaceCategory, int] = {
    PlaceCategory.RESTAURANT: 60,
    PlaceCategory.CAFE: 45,
    PlaceCategory.BAR: 60,
    PlaceCategory.ATTRACTION: 90,
    PlaceCategory.SHOPPING: 60,
    PlaceCategory.SPA_MASSAGE: 90,
    PlaceCategory.ENTERTAINMENT: 120,
    PlaceCategory.ACCOMMODATION: 0,
    PlaceCategory.TRANSPORT_HUB: 15,
    PlaceCategory.OTHER: 60,
}


def stay_duration(stop: CandidateStop) -> int:
    """Minutes spent at a stop: custom override, then observed average, then category default."""
    if stop.custom_duration:
        return stop.custom_duration
    if stop.average_duration:
        return stop.average_duration
    return CATEGORY_STAY_MINUTES.get(stop.point.category, DEFAULT_STAY_MINUTES)


def parse_time(value: str) -> int:
    hours, _, minutes = value.partition(":")
    return int(hours or 0) * 60 + int(minutes or 0)


def format_minutes(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def daily_minutes(start: str, end: str) -> int:
    """Length of the daily activity window in minutes."""
    return parse_time(end) - parse_time(start)
