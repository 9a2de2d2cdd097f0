"""HTTP client for the Google Distance Matrix API."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from ...config import settings
from ...models.domain import Point, TravelMode
from .distance_source import DistanceSourceError, DistanceSourceResult, PairResult, pair_keys

logger = logging.getLogger(__name__)

# TAXI has no Distance Matrix equivalent; every pair for it falls back to the estimate.
GOOGLE_TRAVEL_MODES: dict[TravelMode, str] = {
    TravelMode.WALKING: "walking",
    TravelMode.DRIVING: "driving",
    TravelMode.PUBLIC_TRANSIT: "transit",
}


class GoogleDistanceMatrixClient:
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        language: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or settings.google_maps_api_key
        if not self.api_key:
            raise ValueError("Google Maps API key is not configured.")
        self.base_url = (base_url or settings.google_maps_base_url).rstrip("/")
        self.language = language if language is not None else settings.google_maps_language
        self.timeout = timeout
        self._transport = transport

    def _get_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self._transport,
        )

    def _build_params(self, points: Sequence[Point], mode: str) -> dict[str, str]:
        locations = "|".join(f"{point.latitude},{point.longitude}" for point in points)
        params = {
            "origins": locations,
            "destinations": locations,
            "mode": mode,
            "key": self.api_key,
        }
        if self.language:
            params["language"] = self.language
        return params

    async def fetch(self, points: Sequence[Point], travel_mode: TravelMode) -> DistanceSourceResult:
        """Request the full origin x destination matrix in one call."""
        mode = GOOGLE_TRAVEL_MODES.get(travel_mode)
        if mode is None:
            logger.warning(f"Travel mode {travel_mode.value} is not supported by the Distance Matrix API")
            return DistanceSourceResult()

        url = f"{self.base_url}/distancematrix/json"
        async with self._get_client() as client:
            response = await client.get(url, params=self._build_params(points, mode))
            response.raise_for_status()
            data = response.json()

        status = data.get("status")
        if status != "OK":
            raise DistanceSourceError(f"Distance Matrix API error: {status}")

        rows = data.get("rows") or []
        result = DistanceSourceResult()
        for i, j in pair_keys(points):
            try:
                element = rows[i]["elements"][j]
            except (IndexError, KeyError, TypeError):
                continue
            if element.get("status") != "OK":
                continue
            result.pairs[(points[i].id, points[j].id)] = PairResult(
                ok=True,
                duration_seconds=int(element["duration"]["value"]),
                distance_meters=int(element["distance"]["value"]),
            )
        return result


def check_health(api_key: str | None = None) -> bool:
    """Check Distance Matrix availability with a minimal two-point request."""
    key = api_key or settings.google_maps_api_key
    if not key:
        return False
    try:
        params = {
            "origins": "37.5665,126.9780",
            "destinations": "37.5512,126.9882",
            "mode": "walking",
            "key": key,
        }
        response = httpx.get(f"{settings.google_maps_base_url}/distancematrix/json", params=params, timeout=5.0)
        response.raise_for_status()
        return response.json().get("status") == "OK"
    except httpx.HTTPError:
        return False
    except ValueError:
        return False
