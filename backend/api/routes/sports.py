"""
Sports catalog endpoints.

GET /api/sports         List every sport with its leagues.
GET /api/sports/{slug}  Leagues for one sport.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from shared.catalog import SPORTS, SportConfig, get_sport

router = APIRouter(prefix="/api/sports", tags=["sports"])


def _leagues(sport: SportConfig) -> list[dict[str, str]]:
    return [{"name": lg.name, "slug": lg.slug} for lg in sport.leagues]


def _sport_summary(sport: SportConfig) -> dict[str, Any]:
    return {
        "name": sport.name,
        "slug": sport.slug,
        "source": sport.source.value,
        "leagues": _leagues(sport),
    }


@router.get("")
async def list_sports() -> list[dict[str, Any]]:
    return [_sport_summary(s) for s in SPORTS]


@router.get("/{slug}", response_model=None)
async def sport_leagues(slug: str) -> dict[str, Any] | JSONResponse:
    sport = get_sport(slug)
    if sport is None:
        return JSONResponse(status_code=404, content={"error": "Unknown sport"})
    return {"sport": sport.name, "slug": sport.slug, "leagues": _leagues(sport)}
