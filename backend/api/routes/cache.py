"""
Team cache admin endpoints.

POST /api/cache/refresh  Force a full SportMonks fetch and rewrite the record.
GET  /api/cache/status   Read-only view of the stored record.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_team_cache
from ingest.team_cache import TeamCacheProvider
from shared.models.domain import CacheStatus
from shared.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/api/cache", tags=["cache"])


@router.post("/refresh")
async def refresh_cache(team_cache: TeamCacheProvider = Depends(get_team_cache)) -> JSONResponse:
    result = await team_cache.refresh()
    logger.info("team_cache_refresh_requested", success=result.success, count=result.count)
    return JSONResponse(
        status_code=200 if result.success else 503,
        content=result.model_dump(exclude_none=True),
    )


@router.get("/status", response_model=CacheStatus)
async def cache_status(team_cache: TeamCacheProvider = Depends(get_team_cache)) -> CacheStatus:
    return await team_cache.status()
