"""Contract shared by external travel-time sources."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence

from ...models.domain import Point, TravelMode


class DistanceSourceError(RuntimeError):
    """Raised when a source cannot answer the batched request at all."""


@dataclass(slots=True)
class PairResult:
    ok: bool
    duration_seconds: int = 0
    distance_meters: int = 0


UNUSABLE = PairResult(ok=False)


@dataclass(slots=True)
class DistanceSourceResult:
    """Per-pair answers keyed by ``(origin_id, dest_id)``.

    Pairs absent from ``pairs`` are treated the same as unusable ones.
    """

    pairs: dict[tuple[str, str], PairResult] = field(default_factory=dict)

    def get(self, origin_id: str, dest_id: str) -> PairResult:
        return self.pairs.get((origin_id, dest_id), UNUSABLE)

    @property
    def usable_count(self) -> int:
        return sum(1 for result in self.pairs.values() if result.ok)


class DistanceSource(Protocol):
    async def fetch(self, points: Sequence[Point], travel_mode: TravelMode) -> DistanceSourceResult:
        ...


def pair_keys(points: Sequence[Point]) -> list[tuple[int, int]]:
    """Every ordered index pair ``(i, j)`` with ``i != j``."""
    return [(i, j) for i in range(len(points)) for j in range(len(points)) if i != j]
