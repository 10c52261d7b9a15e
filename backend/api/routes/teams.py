"""
Teams endpoint.

GET /api/teams?sport&league
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from api.dependencies import get_pipeline
from ingest.aggregator import AggregationPipeline
from shared.errors import UnknownSport
from shared.models.domain import TeamsResponse
from shared.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["teams"])


@router.get("/teams", response_model=TeamsResponse, response_model_exclude_none=True)
async def teams(
    sport: str = Query("basketball"),
    league: Optional[str] = Query(None),
    pipeline: AggregationPipeline = Depends(get_pipeline),
) -> TeamsResponse | JSONResponse:
    try:
        return await pipeline.get_teams(sport, league or None)
    except UnknownSport:
        return JSONResponse(status_code=400, content={"error": "Unknown sport"})
    except Exception as exc:
        logger.error("teams_failed", sport=sport, league=league, error=str(exc), exc_info=True)
        return JSONResponse(status_code=500, content={"error": "internal_error", "message": str(exc)})
