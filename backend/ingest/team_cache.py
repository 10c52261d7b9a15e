"""
Cricket team list backed by SportMonks with a weekly refresh.

Read path, in order:
  1. no API key          → static fallback (no network)
  2. no cache store      → direct fetch, static fallback on failure
  3. fresh cached record → served without network
  4. missing or stale    → full fetch, written back
  5. fetch failed        → stale record if any, else static fallback
"""
from __future__ import annotations

import json
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from ingest.providers.sportmonks import SportmonksClient
from shared.errors import GatewayError
from shared.models.domain import CacheRefreshResult, CacheStatus, NormalizedTeam
from shared.utils.cache_store import CacheStore
from shared.utils.logging import get_logger
from shared.utils.metrics import TEAM_CACHE_READS

logger = get_logger(__name__)

OTHER_LEAGUE = "other"
SECONDS_PER_DAY = 86_400

FALLBACK_TEAMS: tuple[NormalizedTeam, ...] = (
    NormalizedTeam(id="ind", name="India", abbrev="IND", logo="https://flagcdn.com/w40/in.png"),
    NormalizedTeam(id="aus", name="Australia", abbrev="AUS", logo="https://flagcdn.com/w40/au.png"),
    NormalizedTeam(id="eng", name="England", abbrev="ENG", logo="https://flagcdn.com/w40/gb-eng.png"),
    NormalizedTeam(id="pak", name="Pakistan", abbrev="PAK", logo="https://flagcdn.com/w40/pk.png"),
    NormalizedTeam(id="sa", name="South Africa", abbrev="SA", logo="https://flagcdn.com/w40/za.png"),
    NormalizedTeam(id="nz", name="New Zealand", abbrev="NZ", logo="https://flagcdn.com/w40/nz.png"),
    NormalizedTeam(id="sl", name="Sri Lanka", abbrev="SL", logo="https://flagcdn.com/w40/lk.png"),
    NormalizedTeam(id="wi", name="West Indies", abbrev="WI", logo="https://flagcdn.com/w40/jm.png"),
    NormalizedTeam(id="ban", name="Bangladesh", abbrev="BAN", logo="https://flagcdn.com/w40/bd.png"),
    NormalizedTeam(id="afg", name="Afghanistan", abbrev="AFG", logo="https://flagcdn.com/w40/af.png"),
    NormalizedTeam(id="ire", name="Ireland", abbrev="IRE", logo="https://flagcdn.com/w40/ie.png"),
    NormalizedTeam(id="zim", name="Zimbabwe", abbrev="ZIM", logo="https://flagcdn.com/w40/zw.png"),
)


def fallback_teams(league_flag: str) -> list[NormalizedTeam]:
    if league_flag == OTHER_LEAGUE:
        return []
    return list(FALLBACK_TEAMS)


def normalize_teams(records: list[dict[str, Any]], league_flag: str) -> list[NormalizedTeam]:
    """National teams for any flag except "other", which selects club/franchise teams."""
    want_national = league_flag != OTHER_LEAGUE
    teams: list[NormalizedTeam] = []
    for record in records:
        if bool(record.get("national_team")) != want_national:
            continue
        team_id, name = record.get("id"), record.get("name")
        if team_id is None or not name:
            continue
        teams.append(
            NormalizedTeam(
                id=str(team_id),
                name=name,
                abbrev=record.get("code") or name[:3].upper(),
                logo=record.get("image_path") or None,
            )
        )
    teams.sort(key=lambda t: t.name.casefold())
    return teams


class TeamCacheProvider:
    def __init__(
        self,
        client: SportmonksClient,
        store: Optional[CacheStore],
        *,
        ttl_days: float = 7.0,
        key: str = "sportmonks_teams",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._store = store
        self._ttl_ms = ttl_days * SECONDS_PER_DAY * 1000
        self._key = key
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    async def _read(self) -> Optional[dict[str, Any]]:
        """The stored record, or None when absent, unreadable, or corrupt."""
        if self._store is None:
            return None
        try:
            raw = await self._store.get(self._key)
        except Exception as exc:
            logger.warning("team_cache_read_failed", key=self._key, error=str(exc))
            return None
        if raw is None:
            return None
        try:
            record = json.loads(raw)
        except (ValueError, UnicodeDecodeError):
            logger.warning("team_cache_record_corrupt", key=self._key)
            return None
        if (
            not isinstance(record, dict)
            or not isinstance(record.get("teams"), list)
            or not isinstance(record.get("cachedAt"), (int, float))
        ):
            logger.warning("team_cache_record_corrupt", key=self._key)
            return None
        return record

    async def _fetch_and_store(self) -> list[dict[str, Any]]:
        teams = await self._client.fetch_all_teams()
        if self._store is not None:
            payload = {"teams": teams, "cachedAt": self._now_ms()}
            await self._store.put(self._key, json.dumps(payload).encode("utf-8"))
            logger.info("team_cache_written", key=self._key, teams=len(teams))
        return teams

    async def get_teams(self, league_flag: str = "international") -> list[NormalizedTeam]:
        if not self._client.configured:
            logger.warning("team_cache_no_api_key")
            TEAM_CACHE_READS.labels(result="fallback").inc()
            return fallback_teams(league_flag)

        if self._store is None:
            try:
                teams = await self._client.fetch_all_teams()
            except GatewayError as exc:
                logger.warning("team_cache_direct_fetch_failed", error=str(exc))
                TEAM_CACHE_READS.labels(result="fallback").inc()
                return fallback_teams(league_flag)
            TEAM_CACHE_READS.labels(result="direct").inc()
            return normalize_teams(teams, league_flag)

        record = await self._read()
        if record is not None:
            age_ms = self._now_ms() - record["cachedAt"]
            if age_ms < self._ttl_ms:
                TEAM_CACHE_READS.labels(result="fresh").inc()
                return normalize_teams(record["teams"], league_flag)
            logger.info("team_cache_stale", age_minutes=round(age_ms / 60_000))

        try:
            teams = await self._fetch_and_store()
        except Exception as exc:
            logger.warning("team_cache_refresh_failed", error=str(exc))
            if record is not None:
                logger.info("team_cache_stale_served", teams=len(record["teams"]))
                TEAM_CACHE_READS.labels(result="stale").inc()
                return normalize_teams(record["teams"], league_flag)
            TEAM_CACHE_READS.labels(result="fallback").inc()
            return fallback_teams(league_flag)

        TEAM_CACHE_READS.labels(result="refreshed").inc()
        return normalize_teams(teams, league_flag)

    async def refresh(self) -> CacheRefreshResult:
        """Unconditional fetch and write, regardless of record age."""
        if not self._client.configured:
            return CacheRefreshResult(success=False, error="LSG_SPORTMONKS_API_KEY not configured")
        if self._store is None:
            return CacheRefreshResult(success=False, error="LSG_REDIS_URL not configured")
        try:
            teams = await self._fetch_and_store()
        except Exception as exc:
            logger.warning("team_cache_manual_refresh_failed", error=str(exc))
            return CacheRefreshResult(success=False, error=str(exc))
        return CacheRefreshResult(success=True, count=len(teams))

    async def status(self) -> CacheStatus:
        record = await self._read()
        if record is None:
            return CacheStatus(exists=False)
        cached_at = record["cachedAt"]
        age_ms = self._now_ms() - cached_at
        return CacheStatus(
            exists=True,
            team_count=len(record["teams"]),
            cached_at=datetime.fromtimestamp(cached_at / 1000, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            age_minutes=round(age_ms / 60_000),
            is_stale=age_ms >= self._ttl_ms,
        )
