"""
Scoreboard endpoint.

GET /api/scoreboard?sport&league&team&status&date
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from api.dependencies import get_pipeline
from ingest.aggregator import AggregationPipeline
from shared.errors import UnknownSport
from shared.models.domain import ScoreboardResponse
from shared.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["scoreboard"])


@router.get(
    "/scoreboard",
    response_model=ScoreboardResponse,
    response_model_exclude_none=True,
)
async def scoreboard(
    sport: str = Query("basketball"),
    league: Optional[str] = Query(None),
    team: Optional[str] = Query(None),
    status: str = Query("all", description="all, ongoing, upcoming or done"),
    date: Optional[str] = Query(None, description="YYYYMMDD or YYYY-MM-DD"),
    pipeline: AggregationPipeline = Depends(get_pipeline),
) -> ScoreboardResponse | JSONResponse:
    """
    Live and recent matches for a sport, merged across its leagues.

    Ongoing matches sort first, then upcoming, then finished. A league that
    fails or times out contributes no matches instead of failing the request.
    """
    try:
        return await pipeline.get_scoreboard(sport, league or None, team or None, status, date or None)
    except UnknownSport:
        return JSONResponse(status_code=400, content={"error": "Unknown sport"})
    except Exception as exc:
        logger.error("scoreboard_failed", sport=sport, league=league, error=str(exc), exc_info=True)
        return JSONResponse(status_code=500, content={"error": "internal_error", "message": str(exc)})
