"""Pairwise travel time resolution with caching and a straight-line fallback."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Sequence

import httpx

from ...config import settings
from ...models.domain import Point, TravelMode
from ..geospatial import estimate_travel
from .cache import DistanceCache
from .distance_source import UNUSABLE, DistanceSource, DistanceSourceError, DistanceSourceResult, pair_keys
from .models import DistanceCacheRecord, DistanceEntry

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def fallback_entry(origin: Point, dest: Point) -> DistanceEntry:
    duration, distance = estimate_travel(origin.latitude, origin.longitude, dest.latitude, dest.longitude)
    return DistanceEntry(
        origin_id=origin.id,
        dest_id=dest.id,
        duration_seconds=duration,
        distance_meters=distance,
    )


def _unique_points(points: Sequence[Point]) -> list[Point]:
    seen: set[str] = set()
    unique: list[Point] = []
    for point in points:
        if point.id in seen:
            continue
        seen.add(point.id)
        unique.append(point)
    return unique


class DistanceProvider:
    """Resolve every ordered pair among a set of points.

    Lookup order per pair: fresh cache record, then the external source, then
    the haversine estimate. Only source-provided values are written back to the
    cache, and those writes run as background tasks that never block or fail
    the caller.
    """

    def __init__(
        self,
        cache: DistanceCache,
        source: DistanceSource | None = None,
        *,
        ttl_seconds: int | None = None,
        timeout_seconds: float | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.cache = cache
        self.source = source
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.distance_cache_ttl_seconds
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.distance_request_timeout_seconds
        )
        self._clock = clock
        self._pending_writes: set[asyncio.Task] = set()

    async def get_matrix(
        self,
        points: Sequence[Point],
        travel_mode: TravelMode,
        *,
        timeout: float | None = None,
    ) -> list[DistanceEntry]:
        """One entry per ordered pair of distinct place ids, in ``pair_keys`` order.

        Points sharing an id are collapsed first (the first occurrence wins), so
        repeated places yield fewer than ``n * (n - 1)`` entries for ``n`` inputs.
        """
        points = _unique_points(points)
        pairs = pair_keys(points)
        resolved = await self._read_cache(points, travel_mode)
        missing = [(i, j) for i, j in pairs if (points[i].id, points[j].id) not in resolved]

        if not missing:
            logger.info(f"Distance matrix served from cache ({len(pairs)} pairs, mode={travel_mode.value})")
            return [resolved[(points[i].id, points[j].id)] for i, j in pairs]

        logger.info(
            f"Distance cache: {len(pairs) - len(missing)} hits, {len(missing)} misses (mode={travel_mode.value})"
        )
        answer = await self._fetch(points, travel_mode, timeout if timeout is not None else self.timeout_seconds)
        if answer is not None:
            logger.info(f"Distance source returned {answer.usable_count} usable pairs for {len(missing)} misses")

        expires_at = self._clock() + timedelta(seconds=self.ttl_seconds)
        new_records: list[DistanceCacheRecord] = []
        fallback_count = 0
        for i, j in missing:
            origin, dest = points[i], points[j]
            pair = answer.get(origin.id, dest.id) if answer is not None else UNUSABLE
            if pair.ok:
                entry = DistanceEntry(
                    origin_id=origin.id,
                    dest_id=dest.id,
                    duration_seconds=pair.duration_seconds,
                    distance_meters=pair.distance_meters,
                )
                new_records.append(
                    DistanceCacheRecord(
                        origin_id=origin.id,
                        dest_id=dest.id,
                        travel_mode=travel_mode,
                        duration_seconds=entry.duration_seconds,
                        distance_meters=entry.distance_meters,
                        expires_at=expires_at,
                    )
                )
            else:
                entry = fallback_entry(origin, dest)
                fallback_count += 1
            resolved[(origin.id, dest.id)] = entry

        if fallback_count:
            logger.warning(f"Using haversine estimate for {fallback_count}/{len(missing)} unresolved pairs")
        if new_records:
            self._schedule_cache_writes(new_records)

        return [resolved[(points[i].id, points[j].id)] for i, j in pairs]

    async def _read_cache(self, points: Sequence[Point], travel_mode: TravelMode) -> dict[tuple[str, str], DistanceEntry]:
        ids = [point.id for point in points]
        now = self._clock()
        try:
            records = await self.cache.get_many(ids, ids, travel_mode, now)
        except Exception as e:
            logger.warning(f"Distance cache read failed, treating every pair as a miss: {e}")
            return {}
        return {
            (record.origin_id, record.dest_id): record.to_entry()
            for record in records
            if record.origin_id != record.dest_id and record.is_fresh(now)
        }

    async def _fetch(
        self,
        points: Sequence[Point],
        travel_mode: TravelMode,
        timeout: float,
    ) -> DistanceSourceResult | None:
        if self.source is None:
            logger.info("No external distance source configured")
            return None
        try:
            return await asyncio.wait_for(self.source.fetch(points, travel_mode), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Distance source timed out after {timeout:.1f}s. Using haversine fallback.")
        except (DistanceSourceError, httpx.HTTPError, ValueError) as e:
            logger.warning(f"Distance source request failed: {e}. Using haversine fallback.")
        except Exception as e:
            logger.error(f"Unexpected error from distance source: {e}. Using haversine fallback.")
        return None

    def _schedule_cache_writes(self, records: list[DistanceCacheRecord]) -> None:
        task = asyncio.create_task(self._write_records(records))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def _write_records(self, records: list[DistanceCacheRecord]) -> None:
        results = await asyncio.gather(*(self.cache.upsert(record) for record in records), return_exceptions=True)
        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            logger.debug(f"{len(failures)}/{len(records)} distance cache writes failed: {failures[0]}")

    async def wait_for_pending_writes(self) -> None:
        """Block until background cache writes started so far have finished."""
        if self._pending_writes:
            await asyncio.gather(*list(self._pending_writes), return_exceptions=True)
