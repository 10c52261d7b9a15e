"""Domain enumerations for the Live Score Gateway."""
from __future__ import annotations

from enum import Enum


class MatchStatus(str, Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    DONE = "done"

    @property
    def sort_rank(self) -> int:
        return _STATUS_RANK[self]


_STATUS_RANK: dict[MatchStatus, int] = {
    MatchStatus.ONGOING: 0,
    MatchStatus.UPCOMING: 1,
    MatchStatus.DONE: 2,
}


class FeedClassification(str, Enum):
    """How the caller labels an RSS feed; decides the status of every item in it."""
    LIVE = "live"
    RECENT = "recent"
    UPCOMING = "upcoming"

    @property
    def match_status(self) -> MatchStatus:
        if self is FeedClassification.LIVE:
            return MatchStatus.ONGOING
        if self is FeedClassification.UPCOMING:
            return MatchStatus.UPCOMING
        return MatchStatus.DONE


class SourceKind(str, Enum):
    STRUCTURED = "structured"
    FEED = "feed"


class ParseOutcome(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"


class IndexState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
