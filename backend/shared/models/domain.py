"""
Pydantic v2 domain models for the Live Score Gateway.
These are the canonical wire representations; field aliases give the camelCase JSON shape.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shared.models.enums import MatchStatus


# ── Base ────────────────────────────────────────────────────────────────
class DomainModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


# ── Teams ───────────────────────────────────────────────────────────────
class Team(DomainModel):
    """One side of a match. Score is a string so cricket formats like "166/2" survive."""
    id: str
    name: str
    abbrev: str
    logo: Optional[str] = None
    score: Optional[str] = None
    turn: Optional[bool] = None


class NormalizedTeam(DomainModel):
    id: str
    name: str
    abbrev: str
    logo: Optional[str] = None


class DirectoryTeam(DomainModel):
    """Team scraped from an HTML team directory."""
    id: str
    name: str
    abbrev: str
    slug: str
    logo: Optional[str] = None


# ── Matches ─────────────────────────────────────────────────────────────
class Match(DomainModel):
    id: str
    home: Team
    away: Team
    status: MatchStatus
    status_detail: str = Field(default="", alias="statusDetail")
    time: Optional[str] = None
    venue: Optional[str] = None
    broadcast: Optional[str] = None
    league: Optional[str] = None


# ── Responses ───────────────────────────────────────────────────────────
class ScoreboardMeta(DomainModel):
    sport: str
    league: str
    time: str
    count: int
    status: Optional[str] = None


class ScoreboardResponse(DomainModel):
    meta: ScoreboardMeta
    matches: list[Match] = Field(default_factory=list)


class TeamsResponse(DomainModel):
    sport: str
    league: str
    teams: list[NormalizedTeam] = Field(default_factory=list)


class RateDecision(DomainModel):
    allowed: bool
    reason: Optional[str] = None


class CacheRefreshResult(DomainModel):
    success: bool
    count: int = 0
    error: Optional[str] = None


class CacheStatus(DomainModel):
    exists: bool
    team_count: int = Field(default=0, alias="teamCount")
    cached_at: Optional[str] = Field(default=None, alias="cachedAt")
    age_minutes: Optional[int] = Field(default=None, alias="ageMinutes")
    is_stale: bool = Field(default=True, alias="isStale")
