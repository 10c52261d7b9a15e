"""
Static sports → leagues catalog.

Structured sports map each league slug to an ESPN league code; the cricket feed
serves every cricket league from one RSS document, so it is marked as a feed
source and is not fanned out per league.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from shared.models.enums import SourceKind


@dataclass(frozen=True)
class LeagueConfig:
    name: str
    league: str  # upstream league code
    slug: str


@dataclass(frozen=True)
class SportConfig:
    name: str
    sport: str  # upstream sport path
    slug: str
    source: SourceKind = SourceKind.STRUCTURED
    leagues: tuple[LeagueConfig, ...] = field(default_factory=tuple)

    @property
    def is_feed(self) -> bool:
        return self.source is SourceKind.FEED

    def league_by_slug(self, slug: str) -> Optional[LeagueConfig]:
        return next((lg for lg in self.leagues if lg.slug == slug), None)

    @property
    def default_league(self) -> LeagueConfig:
        return self.leagues[0]

    @property
    def league_names(self) -> str:
        return ", ".join(lg.name for lg in self.leagues)


SPORTS: tuple[SportConfig, ...] = (
    SportConfig(
        name="Basketball",
        sport="basketball",
        slug="basketball",
        leagues=(
            LeagueConfig("NBA", "nba", "nba"),
            LeagueConfig("WNBA", "wnba", "wnba"),
            LeagueConfig("NCAA Men's", "mens-college-basketball", "ncaam"),
        ),
    ),
    SportConfig(
        name="Soccer",
        sport="soccer",
        slug="soccer",
        leagues=(
            LeagueConfig("Premier League", "eng.1", "epl"),
            LeagueConfig("La Liga", "esp.1", "laliga"),
            LeagueConfig("Bundesliga", "ger.1", "bundesliga"),
            LeagueConfig("Serie A", "ita.1", "seriea"),
            LeagueConfig("Ligue 1", "fra.1", "ligue1"),
            LeagueConfig("MLS", "usa.1", "mls"),
            LeagueConfig("Champions League", "uefa.champions", "ucl"),
        ),
    ),
    SportConfig(
        name="Football",
        sport="football",
        slug="football",
        leagues=(
            LeagueConfig("NFL", "nfl", "nfl"),
            LeagueConfig("College Football", "college-football", "ncaaf"),
        ),
    ),
    SportConfig(
        name="Hockey",
        sport="hockey",
        slug="hockey",
        leagues=(LeagueConfig("NHL", "nhl", "nhl"),),
    ),
    SportConfig(
        name="Baseball",
        sport="baseball",
        slug="baseball",
        leagues=(LeagueConfig("MLB", "mlb", "mlb"),),
    ),
    SportConfig(
        name="Cricket",
        sport="cricket",
        slug="cricket",
        source=SourceKind.FEED,
        leagues=(
            LeagueConfig("International", "international", "international"),
            LeagueConfig("Other League", "other", "other"),
        ),
    ),
)

_BY_SLUG: dict[str, SportConfig] = {s.slug: s for s in SPORTS}


def get_sport(slug: str) -> Optional[SportConfig]:
    return _BY_SLUG.get((slug or "").strip().lower())


def select_leagues(sport: SportConfig, league_slug: Optional[str]) -> list[LeagueConfig]:
    """
    Leagues to fetch for a request.

    A known slug selects that league. Otherwise structured sports fan out to
    every league and feed sports use their default league.
    """
    if league_slug:
        specific = sport.league_by_slug(league_slug)
        if specific:
            return [specific]
    if sport.is_feed:
        return [sport.default_league]
    return list(sport.leagues)
