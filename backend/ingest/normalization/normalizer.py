"""
Normalization layer for the ingest side.
Maps upstream status text onto MatchStatus and resolves team logos from the
national flag table or a lazily built team-directory index.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from ingest.feeds.parser import flag_for
from shared.models.domain import DirectoryTeam, Match, Team
from shared.models.enums import IndexState, MatchStatus
from shared.utils.logging import get_logger
from shared.utils.metrics import LOGO_INDEX_SIZE

logger = get_logger(__name__)

_DONE_MARKERS = ("final", "end", "ft", "post")
_ONGOING_MARKERS = ("progress", "live", "halftime", "in ")


def classify_status(text: Optional[str]) -> MatchStatus:
    """
    Map free-form upstream status text to MatchStatus.

    Done markers are checked first, so "STATUS_HALFTIME" reads as done
    (it contains "ft").
    """
    lowered = (text or "").lower()
    if any(marker in lowered for marker in _DONE_MARKERS):
        return MatchStatus.DONE
    if any(marker in lowered for marker in _ONGOING_MARKERS):
        return MatchStatus.ONGOING
    return MatchStatus.UPCOMING


DirectoryLoader = Callable[[], Awaitable[list[DirectoryTeam]]]


class LogoIndex:
    """
    Process-lifetime name → logo index, built once on first use.

    States:
        UNINITIALIZED → INITIALIZING (first caller runs the loader)
        INITIALIZING  → READY         (loader returned, even with no teams)
        INITIALIZING  → UNINITIALIZED (loader raised or was cancelled)

    Callers arriving during INITIALIZING wait on the build event instead of
    starting a second build.
    """

    def __init__(self, loader: DirectoryLoader) -> None:
        self._loader = loader
        self._state = IndexState.UNINITIALIZED
        self._built: Optional[asyncio.Event] = None
        self._logos: dict[str, str] = {}
        self.build_count = 0

    @property
    def state(self) -> IndexState:
        return self._state

    def __len__(self) -> int:
        return len(self._logos)

    async def ensure_built(self) -> None:
        if self._state is IndexState.READY:
            return
        if self._state is IndexState.INITIALIZING and self._built is not None:
            await self._built.wait()
            return

        self._state = IndexState.INITIALIZING
        built = self._built = asyncio.Event()
        self.build_count += 1
        try:
            teams = await self._loader()
            self._logos = self._index(teams)
            self._state = IndexState.READY
            LOGO_INDEX_SIZE.set(len(self._logos))
            logger.info("logo_index_built", entries=len(self._logos), teams=len(teams))
        except Exception as exc:
            logger.warning("logo_index_build_failed", error=str(exc))
        finally:
            if self._state is not IndexState.READY:
                self._state = IndexState.UNINITIALIZED
            built.set()

    async def lookup(self, name: str) -> Optional[str]:
        """Exact case-insensitive match first, then substring containment either way."""
        if not name:
            return None
        await self.ensure_built()
        key = name.strip().lower()
        if key in self._logos:
            return self._logos[key]
        for indexed, logo in self._logos.items():
            if indexed in key or key in indexed:
                return logo
        return None

    @staticmethod
    def _index(teams: list[DirectoryTeam]) -> dict[str, str]:
        logos: dict[str, str] = {}
        for team in teams:
            if not team.logo:
                continue
            for key in (team.name.strip().lower(), team.slug.strip().lower()):
                if key and key not in logos:
                    logos[key] = team.logo
        return logos


class ScoreNormalizer:
    """Fills in presentation fields that feeds leave empty."""

    def __init__(self, logo_index: Optional[LogoIndex] = None) -> None:
        self._logo_index = logo_index

    @property
    def logo_index(self) -> Optional[LogoIndex]:
        return self._logo_index

    async def resolve_logo(self, name: str) -> Optional[str]:
        flag = flag_for(name)
        if flag:
            return flag
        if self._logo_index is None:
            return None
        return await self._logo_index.lookup(name)

    async def _with_logo(self, team: Team) -> Team:
        if team.logo:
            return team
        logo = await self.resolve_logo(team.name)
        return team.model_copy(update={"logo": logo}) if logo else team

    async def fill_logos(self, match: Match) -> Match:
        home = await self._with_logo(match.home)
        away = await self._with_logo(match.away)
        if home is match.home and away is match.away:
            return match
        return match.model_copy(update={"home": home, "away": away})
