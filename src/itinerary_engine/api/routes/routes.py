"""Routing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import Response

from ...schemas.routing import OptimizeRequest, OptimizeResponse
from ...services.routing.optimizer import InsufficientStopsError
from ...services.routing.service import export_routes_csv, optimize_routes

router = APIRouter(prefix="/routes", tags=["routes"])


@router.post("/optimize", response_model=OptimizeResponse, status_code=status.HTTP_200_OK)
async def optimize(payload: OptimizeRequest) -> OptimizeResponse:
    """Compute the EFFICIENT, RELAXED and CUSTOM itineraries for a set of stops.

    Nothing is stored; callers replace any earlier plans for the trip with the result.
    """
    try:
        return await optimize_routes(payload)
    except InsufficientStopsError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error optimizing routes: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize routes: {str(exc)}",
        ) from exc


@router.post("/optimize/export", status_code=status.HTTP_200_OK)
async def optimize_export(payload: OptimizeRequest) -> Response:
    """Same computation as ``/optimize``, rendered as one CSV row per stop."""
    try:
        content = await export_routes_csv(payload)
    except InsufficientStopsError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error exporting routes: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to export routes: {str(exc)}",
        ) from exc
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="routes.csv"'},
    )
