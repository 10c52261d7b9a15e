"""
Abstract base class for scoreboard sources.
Defines the contract the aggregation pipeline fans out over.
"""
from __future__ import annotations

import abc
from typing import Optional

from shared.catalog import LeagueConfig, SportConfig
from shared.models.domain import Match, NormalizedTeam
from shared.models.enums import SourceKind
from shared.utils.http_client import UpstreamHTTPClient
from shared.utils.logging import get_logger

logger = get_logger(__name__)


class ScoreboardSource(abc.ABC):
    """
    One upstream that can produce matches for a (sport, league) pair.

    Implementations may raise; the pipeline isolates each league fetch and
    turns any failure into an empty result for that league alone.
    """

    kind: SourceKind = SourceKind.STRUCTURED

    def __init__(self, http: UpstreamHTTPClient) -> None:
        self._http = http

    @property
    def is_feed(self) -> bool:
        return self.kind is SourceKind.FEED

    @abc.abstractmethod
    async def fetch_league(
        self,
        sport: SportConfig,
        league: LeagueConfig,
        date: Optional[str] = None,
    ) -> list[Match]:
        """
        Fetch every match for one league.

        Args:
            sport: Catalog entry for the sport.
            league: Catalog entry for the league being fetched.
            date: Optional day filter, ``YYYYMMDD`` or ``YYYY-MM-DD``.
        """
        ...

    async def fetch_teams(self, sport: SportConfig, league: LeagueConfig) -> list[NormalizedTeam]:
        """Team listing for one league. Sources without a team endpoint list nothing."""
        return []
