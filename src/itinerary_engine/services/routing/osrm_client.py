"""HTTP client for interacting with OSRM services."""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

import httpx

from ...config import settings
from ...models.domain import Point, TravelMode
from .distance_source import DistanceSourceError, DistanceSourceResult, PairResult, pair_keys

logger = logging.getLogger(__name__)

# OSRM has no transit profile; those requests fall back to the straight-line estimate.
OSRM_PROFILES: dict[TravelMode, str] = {
    TravelMode.WALKING: "foot",
    TravelMode.DRIVING: "driving",
    TravelMode.TAXI: "driving",
}


class OSRMDistanceClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30.0,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.osrm_base_url
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.base_url = self.base_url.rstrip("/")
        self.max_retries = max_retries if max_retries is not None else settings.osrm_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.osrm_backoff_seconds
        self.timeout = timeout
        self._transport = transport

    def _get_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self._transport,
        )

    async def _table_request(self, points: Sequence[Point], profile: str) -> dict:
        coordinate_str = ";".join(f"{point.longitude},{point.latitude}" for point in points)
        url = f"{self.base_url}/table/v1/{profile}/{coordinate_str}"
        params = {"annotations": "duration,distance"}

        async with self._get_client() as client:
            attempt = 0
            while True:
                try:
                    response = await client.get(url, params=params)
                    response.raise_for_status()
                    data = response.json()
                    if data.get("code", "Ok") != "Ok":
                        raise DistanceSourceError(f"OSRM table request failed: {data.get('message', data.get('code'))}")
                    if "durations" not in data or "distances" not in data:
                        raise DistanceSourceError("OSRM response missing durations/distances.")
                    return data
                except httpx.HTTPStatusError as e:
                    # 4xx means the request itself is wrong; retrying will not help
                    if e.response.status_code < 500:
                        raise DistanceSourceError(f"OSRM rejected table request: HTTP {e.response.status_code}") from e
                    attempt += 1
                    if attempt > self.max_retries:
                        raise
                    await asyncio.sleep(self.backoff_seconds * attempt)
                except (httpx.TimeoutException, httpx.NetworkError) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"OSRM request failed after {self.max_retries} retries: {e}")
                        raise
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}")
                    await asyncio.sleep(wait_time)

    async def fetch(self, points: Sequence[Point], travel_mode: TravelMode) -> DistanceSourceResult:
        profile = OSRM_PROFILES.get(travel_mode)
        if profile is None:
            logger.warning(f"Travel mode {travel_mode.value} has no OSRM profile")
            return DistanceSourceResult()

        data = await self._table_request(points, profile)
        durations = data["durations"]
        distances = data["distances"]

        result = DistanceSourceResult()
        for i, j in pair_keys(points):
            try:
                duration = durations[i][j]
                distance = distances[i][j]
            except (IndexError, TypeError):
                continue
            if duration is None or distance is None:
                continue
            result.pairs[(points[i].id, points[j].id)] = PairResult(
                ok=True,
                duration_seconds=round(duration),
                distance_meters=round(distance),
            )
        return result


def check_health(base_url: str | None = None) -> bool:
    """Check OSRM service health by making a simple table request.

    Public OSRM endpoints may not have a /health endpoint, so we test
    connectivity by making a minimal table request with two coordinates.
    """
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    try:
        test_coords = "126.9780,37.5665;126.9882,37.5512"
        url = f"{base}/table/v1/driving/{test_coords}"
        response = httpx.get(url, params={"annotations": "duration"}, timeout=5.0)
        response.raise_for_status()
        data = response.json()
        return "durations" in data and isinstance(data.get("durations"), list)
    except httpx.HTTPError:
        return False
    except ValueError:
        return False
