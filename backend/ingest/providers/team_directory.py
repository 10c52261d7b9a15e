"""
Cricket team directory scraper.
Unions every configured directory page into one team list; used to build the
logo index for teams that have no national flag.
"""
from __future__ import annotations

import asyncio

from ingest.feeds.parser import parse_team_directory
from shared.errors import UpstreamUnavailable
from shared.models.domain import DirectoryTeam
from shared.models.enums import ParseOutcome
from shared.utils.http_client import UpstreamHTTPClient
from shared.utils.logging import get_logger
from shared.utils.metrics import FEED_ITEMS_SKIPPED, FEED_PARSE_OUTCOMES

logger = get_logger(__name__)

UPSTREAM = "team_directory"
PARSER = "team_directory"


class TeamDirectoryProvider:
    def __init__(self, http: UpstreamHTTPClient, urls: list[str], base_url: str) -> None:
        self._http = http
        self._urls = list(urls)
        self._base_url = base_url

    async def fetch_directory(self, url: str) -> list[DirectoryTeam]:
        """One directory page; an unreachable page yields no teams."""
        try:
            html = await self._http.get_text(url, upstream=UPSTREAM)
        except UpstreamUnavailable as exc:
            logger.warning("team_directory_fetch_failed", url=url, error=str(exc))
            return []

        result = parse_team_directory(html, self._base_url)
        FEED_PARSE_OUTCOMES.labels(parser=PARSER, outcome=result.outcome.value).inc()
        if result.skipped:
            FEED_ITEMS_SKIPPED.labels(parser=PARSER).inc(result.skipped)
        if result.outcome is not ParseOutcome.SUCCESS:
            logger.warning(
                "team_directory_parse_degraded",
                url=url,
                outcome=result.outcome.value,
                teams=len(result.items),
                skipped=result.skipped,
            )
        return result.items

    async def fetch_all(self) -> list[DirectoryTeam]:
        """Every configured page fetched concurrently, deduplicated by team id in page order."""
        pages = await asyncio.gather(*(self.fetch_directory(url) for url in self._urls))
        seen: set[str] = set()
        teams: list[DirectoryTeam] = []
        for page in pages:
            for team in page:
                if team.id in seen:
                    continue
                seen.add(team.id)
                teams.append(team)
        logger.info("team_directory_loaded", pages=len(self._urls), teams=len(teams))
        return teams
