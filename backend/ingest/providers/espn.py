"""
ESPN provider connector.
Fetches scoreboards and team lists from ESPN's public site API and maps them
onto the gateway's Match and NormalizedTeam models.
"""
from __future__ import annotations

from typing import Any, Optional

from ingest.normalization.normalizer import classify_status
from ingest.providers.base import ScoreboardSource
from shared.catalog import LeagueConfig, SportConfig
from shared.models.domain import Match, NormalizedTeam, Team
from shared.models.enums import MatchStatus, SourceKind
from shared.utils.http_client import UpstreamHTTPClient
from shared.utils.logging import get_logger

logger = get_logger(__name__)

UPSTREAM = "espn"


def _scoreboard_date(date: Optional[str]) -> Optional[str]:
    """ESPN wants YYYYMMDD; accept ISO dates as well."""
    if not date:
        return None
    return date.replace("-", "")


def _parse_team(competitor: dict[str, Any], status: MatchStatus) -> Team:
    team = competitor.get("team") or {}
    team_id = team.get("id") or competitor.get("id")
    name = team.get("displayName") or team.get("name")
    if not team_id or not name:
        raise ValueError("competitor missing team id or name")

    score = competitor.get("score")
    if status is MatchStatus.UPCOMING or score in (None, ""):
        score = None

    return Team(
        id=str(team_id),
        name=name,
        abbrev=team.get("abbreviation") or name[:3].upper(),
        logo=team.get("logo") or None,
        score=str(score) if score is not None else None,
    )


def _status_detail(status_type: dict[str, Any]) -> str:
    return (
        status_type.get("shortDetail")
        or status_type.get("detail")
        or status_type.get("description")
        or ""
    )


def _broadcast(competition: dict[str, Any]) -> Optional[str]:
    names: list[str] = []
    for broadcast in competition.get("broadcasts") or []:
        names.extend(n for n in broadcast.get("names") or [] if n)
    return ", ".join(names) or None


def parse_scoreboard_event(event: dict[str, Any], league_name: str) -> Match:
    """
    Parse a single ESPN scoreboard event.

    Raises:
        ValueError: When the event lacks an id, a competition, or either side.
    """
    event_id = event.get("id")
    competitions = event.get("competitions") or []
    if not event_id or not competitions:
        raise ValueError("event missing id or competition")

    comp = competitions[0]
    competitors = comp.get("competitors") or []
    home = next((c for c in competitors if c.get("homeAway") == "home"), None)
    away = next((c for c in competitors if c.get("homeAway") == "away"), None)
    if home is None or away is None:
        raise ValueError("event missing home or away competitor")

    status_type = (comp.get("status") or event.get("status") or {}).get("type") or {}
    status = classify_status(status_type.get("name"))

    return Match(
        id=str(event_id),
        home=_parse_team(home, status),
        away=_parse_team(away, status),
        status=status,
        status_detail=_status_detail(status_type),
        time=event.get("date"),
        venue=(comp.get("venue") or {}).get("fullName"),
        broadcast=_broadcast(comp),
        league=league_name,
    )


def parse_teams(data: dict[str, Any]) -> list[NormalizedTeam]:
    """Parse the ESPN ``/teams`` payload (sports → leagues → teams → team)."""
    teams: list[NormalizedTeam] = []
    for sport in data.get("sports") or []:
        for league in sport.get("leagues") or []:
            for entry in league.get("teams") or []:
                team = entry.get("team") or {}
                team_id, name = team.get("id"), team.get("displayName")
                if not team_id or not name:
                    continue
                logos = team.get("logos") or []
                teams.append(
                    NormalizedTeam(
                        id=str(team_id),
                        name=name,
                        abbrev=team.get("abbreviation") or name[:3].upper(),
                        logo=logos[0].get("href") if logos else None,
                    )
                )
    return teams


class EspnScoreboardSource(ScoreboardSource):
    """ESPN data provider for every structured sport in the catalog."""

    kind = SourceKind.STRUCTURED

    def __init__(self, http: UpstreamHTTPClient, base_url: str) -> None:
        super().__init__(http)
        self._base_url = base_url.rstrip("/")

    def _url(self, sport: SportConfig, league: LeagueConfig, suffix: str) -> str:
        return f"{self._base_url}/{sport.sport}/{league.league}/{suffix}"

    async def fetch_league(
        self,
        sport: SportConfig,
        league: LeagueConfig,
        date: Optional[str] = None,
    ) -> list[Match]:
        params: dict[str, Any] = {}
        day = _scoreboard_date(date)
        if day:
            params["dates"] = day

        data = await self._http.get_json(
            self._url(sport, league, "scoreboard"),
            upstream=UPSTREAM,
            params=params or None,
        )

        matches: list[Match] = []
        for event in data.get("events") or []:
            try:
                matches.append(parse_scoreboard_event(event, league.name))
            except (ValueError, TypeError, AttributeError) as exc:
                logger.warning(
                    "espn_event_skipped",
                    sport=sport.slug,
                    league=league.slug,
                    event_id=event.get("id") if isinstance(event, dict) else None,
                    error=str(exc),
                )
        return matches

    async def fetch_teams(self, sport: SportConfig, league: LeagueConfig) -> list[NormalizedTeam]:
        data = await self._http.get_json(self._url(sport, league, "teams"), upstream=UPSTREAM)
        return parse_teams(data)
