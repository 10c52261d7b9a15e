"""
Scoreboard aggregation: per-league fan-out, merge, filter, sort, envelope.
"""
from __future__ import annotations

import asyncio
import re
from datetime import datetime, timezone
from typing import Optional

from ingest.providers.base import ScoreboardSource
from ingest.team_cache import TeamCacheProvider
from shared.catalog import LeagueConfig, SportConfig, get_sport, select_leagues
from shared.errors import UnknownSport
from shared.models.domain import Match, ScoreboardMeta, ScoreboardResponse, TeamsResponse
from shared.models.enums import MatchStatus, SourceKind
from shared.utils.logging import get_logger
from shared.utils.metrics import LEAGUE_FETCH_FAILURES

logger = get_logger(__name__)

ALL_STATUSES = "all"
DEFAULT_CRICKET_TEAMS = "international"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def filter_by_team(matches: list[Match], team_query: str) -> list[Match]:
    """
    Keep matches where any comma-separated term is a whole word of either
    side's name or abbreviation (case-insensitive).
    """
    terms = [t.strip() for t in (team_query or "").split(",") if t.strip()]
    if not terms:
        return list(matches)
    patterns = [re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE) for term in terms]

    def hit(match: Match) -> bool:
        fields = (match.home.name, match.home.abbrev, match.away.name, match.away.abbrev)
        return any(p.search(f) for p in patterns for f in fields if f)

    return [m for m in matches if hit(m)]


def filter_by_status(matches: list[Match], status: Optional[str]) -> list[Match]:
    if not status or status == ALL_STATUSES:
        return list(matches)
    return [m for m in matches if m.status.value == status]


def sort_by_status(matches: list[Match]) -> list[Match]:
    """Ongoing, then upcoming, then done; upstream order kept within each group."""
    return sorted(matches, key=lambda m: m.status.sort_rank)


class AggregationPipeline:
    def __init__(
        self,
        sources: dict[SourceKind, ScoreboardSource],
        team_cache: TeamCacheProvider,
        *,
        league_timeout_s: float = 15.0,
    ) -> None:
        self._sources = sources
        self._team_cache = team_cache
        self._league_timeout_s = league_timeout_s

    def _sport(self, slug: str) -> SportConfig:
        sport = get_sport(slug)
        if sport is None:
            raise UnknownSport(slug)
        return sport

    async def _fetch_one(
        self,
        source: ScoreboardSource,
        sport: SportConfig,
        league: LeagueConfig,
        date: Optional[str],
    ) -> list[Match]:
        try:
            return await asyncio.wait_for(
                source.fetch_league(sport, league, date),
                timeout=self._league_timeout_s,
            )
        except asyncio.TimeoutError:
            reason = "timeout"
            error = f"no response within {self._league_timeout_s}s"
        except Exception as exc:
            reason = type(exc).__name__
            error = str(exc)
        LEAGUE_FETCH_FAILURES.labels(sport=sport.slug, league=league.slug, reason=reason).inc()
        logger.warning(
            "league_fetch_failed",
            sport=sport.slug,
            league=league.slug,
            reason=reason,
            error=error,
        )
        return []

    async def fetch_matches(
        self,
        sport_slug: str,
        league_slug: Optional[str] = None,
        date: Optional[str] = None,
    ) -> list[Match]:
        """
        Merged matches for the selected leagues, in catalog order.

        Raises:
            UnknownSport: The sport slug is not in the catalog.
        """
        sport = self._sport(sport_slug)
        source = self._sources[sport.source]
        leagues = select_leagues(sport, league_slug)

        results = await asyncio.gather(
            *(self._fetch_one(source, sport, league, date) for league in leagues)
        )
        matches = [m for league_matches in results for m in league_matches]
        logger.debug(
            "scoreboard_fetched",
            sport=sport.slug,
            leagues=[lg.slug for lg in leagues],
            matches=len(matches),
        )
        return matches

    async def get_scoreboard(
        self,
        sport_slug: str,
        league_slug: Optional[str] = None,
        team: Optional[str] = None,
        status: Optional[str] = None,
        date: Optional[str] = None,
    ) -> ScoreboardResponse:
        sport = self._sport(sport_slug)
        status = status or ALL_STATUSES
        matches = await self.fetch_matches(sport.slug, league_slug, date)

        if team:
            filtered = filter_by_team(matches, team)
            if sport.is_feed and not filtered and matches:
                # Feed titles rarely carry the exact team name asked for
                filtered = [matches[0]]
            matches = filtered

        matches = sort_by_status(filter_by_status(matches, status))

        return ScoreboardResponse(
            meta=ScoreboardMeta(
                sport=sport.name,
                league=sport.league_names,
                time=_now_iso(),
                count=len(matches),
                status=status,
            ),
            matches=matches,
        )

    async def get_teams(self, sport_slug: str, league_slug: Optional[str] = None) -> TeamsResponse:
        sport = self._sport(sport_slug)

        if sport.is_feed:
            league_flag = league_slug or DEFAULT_CRICKET_TEAMS
            teams = await self._team_cache.get_teams(league_flag)
            league = sport.league_by_slug(league_flag)
            return TeamsResponse(
                sport=sport.name,
                league=league.name if league else league_flag,
                teams=teams,
            )

        league = (league_slug and sport.league_by_slug(league_slug)) or sport.default_league
        source = self._sources[SourceKind.STRUCTURED]
        try:
            teams = await source.fetch_teams(sport, league)
        except Exception as exc:
            logger.warning("teams_fetch_failed", sport=sport.slug, league=league.slug, error=str(exc))
            teams = []
        return TeamsResponse(sport=sport.name, league=league.name, teams=teams)
