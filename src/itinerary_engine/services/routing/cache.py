"""Time-bounded storage for resolved travel legs.

Records are keyed by ``(origin_id, dest_id, travel_mode)``. Reads only ever
return records whose ``expires_at`` lies after the supplied ``now``.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Protocol, Sequence

from ...config import settings
from ...db.supabase import get_supabase_client
from ...models.domain import TravelMode
from .models import DistanceCacheRecord

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str, TravelMode]


class DistanceCache(Protocol):
    async def get_many(
        self,
        origin_ids: Sequence[str],
        dest_ids: Sequence[str],
        travel_mode: TravelMode,
        now: datetime,
    ) -> list[DistanceCacheRecord]:
        ...

    async def upsert(self, record: DistanceCacheRecord) -> None:
        ...


class InMemoryDistanceCache:
    """Process-local cache; last write wins per key."""

    def __init__(self) -> None:
        self._records: dict[CacheKey, DistanceCacheRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    async def get_many(
        self,
        origin_ids: Sequence[str],
        dest_ids: Sequence[str],
        travel_mode: TravelMode,
        now: datetime,
    ) -> list[DistanceCacheRecord]:
        self.purge_expired(now)
        origins = set(origin_ids)
        dests = set(dest_ids)
        return [
            record
            for (origin_id, dest_id, mode), record in self._records.items()
            if mode == travel_mode and origin_id in origins and dest_id in dests and record.is_fresh(now)
        ]

    async def upsert(self, record: DistanceCacheRecord) -> None:
        if record.cached_at is None:
            record.cached_at = datetime.now(timezone.utc)
        self._records[(record.origin_id, record.dest_id, record.travel_mode)] = record

    def purge_expired(self, now: datetime) -> int:
        stale = [key for key, record in self._records.items() if not record.is_fresh(now)]
        for key in stale:
            del self._records[key]
        return len(stale)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _record_from_row(row: dict[str, Any]) -> DistanceCacheRecord:
    return DistanceCacheRecord(
        origin_id=row["origin_place_id"],
        dest_id=row["dest_place_id"],
        travel_mode=TravelMode(row["travel_mode"]),
        duration_seconds=int(row["duration"]),
        distance_meters=int(row["distance"]),
        expires_at=_parse_timestamp(row["expires_at"]),
        cached_at=_parse_timestamp(row["cached_at"]) if row.get("cached_at") else None,
    )


class SupabaseDistanceCache:
    """Distance cache persisted in a Supabase table.

    The supabase client is synchronous, so each call runs in a worker thread.
    """

    def __init__(self, client: Any | None = None, table: str | None = None) -> None:
        self.client = client if client is not None else get_supabase_client()
        if self.client is None:
            raise ValueError("Supabase is not configured; cannot use the supabase distance cache.")
        self.table = table or settings.supabase_distance_cache_table

    def _select(
        self,
        origin_ids: Sequence[str],
        dest_ids: Sequence[str],
        travel_mode: TravelMode,
        now: datetime,
    ) -> list[DistanceCacheRecord]:
        response = (
            self.client.table(self.table)
            .select("*")
            .in_("origin_place_id", list(origin_ids))
            .in_("dest_place_id", list(dest_ids))
            .eq("travel_mode", travel_mode.value)
            .gt("expires_at", now.isoformat())
            .execute()
        )
        records = [_record_from_row(row) for row in (response.data or [])]
        # Re-check freshness locally; the table may hold rows written with a skewed clock.
        return [record for record in records if record.is_fresh(now)]

    def _upsert(self, record: DistanceCacheRecord) -> None:
        cached_at = record.cached_at or datetime.now(timezone.utc)
        self.client.table(self.table).upsert(
            {
                "origin_place_id": record.origin_id,
                "dest_place_id": record.dest_id,
                "travel_mode": record.travel_mode.value,
                "duration": record.duration_seconds,
                "distance": record.distance_meters,
                "expires_at": record.expires_at.isoformat(),
                "cached_at": cached_at.isoformat(),
            },
            on_conflict="origin_place_id,dest_place_id,travel_mode",
        ).execute()

    async def get_many(
        self,
        origin_ids: Sequence[str],
        dest_ids: Sequence[str],
        travel_mode: TravelMode,
        now: datetime,
    ) -> list[DistanceCacheRecord]:
        return await asyncio.to_thread(self._select, origin_ids, dest_ids, travel_mode, now)

    async def upsert(self, record: DistanceCacheRecord) -> None:
        await asyncio.to_thread(self._upsert, record)


def build_distance_cache(backend: str | None = None) -> DistanceCache:
    """Create the configured cache backend, falling back to memory when Supabase is unavailable."""
    backend = backend or settings.distance_cache_backend
    if backend == "supabase":
        try:
            return SupabaseDistanceCache()
        except ValueError as e:
            logger.warning(f"{e} Using in-memory distance cache instead.")
    return InMemoryDistanceCache()
