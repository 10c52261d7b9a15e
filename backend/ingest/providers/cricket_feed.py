"""
Cricket live-score RSS connector.
A single feed document carries every cricket match; the league only decides
which of those matches are kept.
"""
from __future__ import annotations

from typing import Optional

from ingest.feeds.parser import flag_for, parse_rss_matches
from ingest.normalization.normalizer import ScoreNormalizer
from ingest.providers.base import ScoreboardSource
from shared.catalog import LeagueConfig, SportConfig
from shared.models.domain import Match
from shared.models.enums import FeedClassification, ParseOutcome, SourceKind
from shared.utils.http_client import UpstreamHTTPClient
from shared.utils.logging import get_logger
from shared.utils.metrics import FEED_ITEMS_SKIPPED, FEED_PARSE_OUTCOMES

logger = get_logger(__name__)

UPSTREAM = "cricket_feed"
PARSER = "rss"
INTERNATIONAL = "international"


def is_international(match: Match) -> bool:
    """At least one side is a national team (has a flag)."""
    return flag_for(match.home.name) is not None or flag_for(match.away.name) is not None


class CricketFeedSource(ScoreboardSource):
    """Parses the cricket RSS feed. The date argument is ignored; the feed has no history."""

    kind = SourceKind.FEED

    def __init__(
        self,
        http: UpstreamHTTPClient,
        normalizer: ScoreNormalizer,
        feed_url: str,
        classification: FeedClassification = FeedClassification.LIVE,
    ) -> None:
        super().__init__(http)
        self._normalizer = normalizer
        self._feed_url = feed_url
        self._classification = classification

    async def fetch_league(
        self,
        sport: SportConfig,
        league: LeagueConfig,
        date: Optional[str] = None,
    ) -> list[Match]:
        xml = await self._http.get_text(self._feed_url, upstream=UPSTREAM)
        result = parse_rss_matches(xml, self._classification, league=sport.name)

        FEED_PARSE_OUTCOMES.labels(parser=PARSER, outcome=result.outcome.value).inc()
        if result.skipped:
            FEED_ITEMS_SKIPPED.labels(parser=PARSER).inc(result.skipped)
        if result.outcome is not ParseOutcome.SUCCESS:
            logger.warning(
                "cricket_feed_parse_degraded",
                outcome=result.outcome.value,
                matches=len(result.items),
                skipped=result.skipped,
            )

        matches = result.items
        if league.slug == INTERNATIONAL:
            matches = [m for m in matches if is_international(m)]

        return [await self._normalizer.fill_logos(m) for m in matches]
