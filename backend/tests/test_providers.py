"""
Provider tests against httpx.MockTransport: upstream HTTP client retries,
ESPN scoreboard/teams parsing, the cricket RSS source, team directory and
SportMonks pagination.
"""
from __future__ import annotations

import json
from typing import Callable
from unittest.mock import AsyncMock

import httpx
import pytest

from ingest.normalization.normalizer import LogoIndex, ScoreNormalizer
from ingest.providers.cricket_feed import CricketFeedSource
from ingest.providers.espn import EspnScoreboardSource
from ingest.providers.sportmonks import SportmonksClient
from ingest.providers.team_directory import TeamDirectoryProvider
from shared.catalog import get_sport
from shared.errors import ConfigMissing, UpstreamUnavailable
from shared.models.enums import FeedClassification, MatchStatus
from shared.utils.http_client import UpstreamHTTPClient

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch: pytest.MonkeyPatch) -> AsyncMock:
    sleep = AsyncMock()
    monkeypatch.setattr("shared.utils.http_client.asyncio.sleep", sleep)
    return sleep


async def _client(handler: Handler, max_retries: int = 2) -> UpstreamHTTPClient:
    client = UpstreamHTTPClient(max_retries=max_retries, transport=httpx.MockTransport(handler))
    await client.start()
    return client


# ── UpstreamHTTPClient ──────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_http_client_retries_server_errors(no_backoff: AsyncMock) -> None:
    attempts = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal attempts
        attempts += 1
        return httpx.Response(503) if attempts == 1 else httpx.Response(200, text="ok")

    client = await _client(handler)
    try:
        assert await client.get_text("https://up.test/x", upstream="test") == "ok"
    finally:
        await client.close()
    assert attempts == 2
    no_backoff.assert_awaited_once()


@pytest.mark.asyncio
async def test_http_client_raises_after_final_retry() -> None:
    client = await _client(lambda request: httpx.Response(500))
    try:
        with pytest.raises(UpstreamUnavailable) as exc_info:
            await client.get("https://up.test/x", upstream="test")
    finally:
        await client.close()
    assert exc_info.value.status == 500


@pytest.mark.asyncio
async def test_http_client_does_not_retry_client_errors() -> None:
    attempts = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal attempts
        attempts += 1
        return httpx.Response(404)

    client = await _client(handler)
    try:
        with pytest.raises(UpstreamUnavailable):
            await client.get("https://up.test/x", upstream="test")
    finally:
        await client.close()
    assert attempts == 1


@pytest.mark.asyncio
async def test_http_client_transport_error_becomes_upstream_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = await _client(handler, max_retries=1)
    try:
        with pytest.raises(UpstreamUnavailable):
            await client.get("https://up.test/x", upstream="test")
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_http_client_invalid_json() -> None:
    client = await _client(lambda request: httpx.Response(200, text="<html>"))
    try:
        with pytest.raises(UpstreamUnavailable):
            await client.get_json("https://up.test/x", upstream="test")
    finally:
        await client.close()


# ── ESPN ────────────────────────────────────────────────────────────────

def _competitor(home_away: str, team_id: str, name: str, abbrev: str, score: str) -> dict:
    return {
        "homeAway": home_away,
        "score": score,
        "team": {"id": team_id, "displayName": name, "abbreviation": abbrev, "logo": f"https://logo/{abbrev}.png"},
    }


ESPN_SCOREBOARD = {
    "events": [
        {
            "id": "401",
            "date": "2025-01-05T19:30Z",
            "competitions": [{
                "competitors": [
                    _competitor("home", "13", "Los Angeles Lakers", "LAL", "101"),
                    _competitor("away", "2", "Boston Celtics", "BOS", "99"),
                ],
                "status": {"type": {"name": "STATUS_IN_PROGRESS", "shortDetail": "Q4 2:10"}},
                "venue": {"fullName": "Crypto.com Arena"},
                "broadcasts": [{"names": ["ESPN", "ABC"]}],
            }],
        },
        {
            "id": "402",
            "date": "2025-01-06T00:00Z",
            "competitions": [{
                "competitors": [
                    _competitor("home", "5", "Chicago Bulls", "CHI", "0"),
                    _competitor("away", "9", "Miami Heat", "MIA", "0"),
                ],
                "status": {"type": {"name": "STATUS_SCHEDULED", "detail": "Sun, January 5th at 7:00 PM"}},
            }],
        },
        {"id": "403", "competitions": [{"competitors": []}]},
    ]
}


@pytest.mark.asyncio
async def test_espn_scoreboard_parses_events_and_skips_malformed() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=ESPN_SCOREBOARD)

    http = await _client(handler)
    try:
        sport = get_sport("basketball")
        source = EspnScoreboardSource(http, "https://espn.test/sports")
        matches = await source.fetch_league(sport, sport.league_by_slug("nba"), "2025-01-05")
    finally:
        await http.close()

    assert seen[0].url.path == "/sports/basketball/nba/scoreboard"
    assert seen[0].url.params["dates"] == "20250105"
    assert [m.id for m in matches] == ["401", "402"]

    live, upcoming = matches
    assert live.status is MatchStatus.ONGOING
    assert live.home.name == "Los Angeles Lakers"
    assert live.home.score == "101"
    assert live.away.abbrev == "BOS"
    assert live.status_detail == "Q4 2:10"
    assert live.venue == "Crypto.com Arena"
    assert live.broadcast == "ESPN, ABC"
    assert live.league == "NBA"

    assert upcoming.status is MatchStatus.UPCOMING
    assert upcoming.home.score is None
    assert upcoming.status_detail == "Sun, January 5th at 7:00 PM"


@pytest.mark.asyncio
async def test_espn_teams() -> None:
    payload = {"sports": [{"leagues": [{"teams": [
        {"team": {"id": "1", "displayName": "Atlanta Hawks", "abbreviation": "ATL",
                  "logos": [{"href": "https://logo/atl.png"}]}},
        {"team": {"id": "2", "displayName": "Boston Celtics"}},
        {"team": {"displayName": "No Id"}},
    ]}]}]}
    http = await _client(lambda request: httpx.Response(200, json=payload))
    try:
        sport = get_sport("basketball")
        teams = await EspnScoreboardSource(http, "https://espn.test").fetch_teams(sport, sport.default_league)
    finally:
        await http.close()

    assert [t.abbrev for t in teams] == ["ATL", "BOS"]
    assert teams[0].logo == "https://logo/atl.png"
    assert teams[1].logo is None


# ── Cricket feed ────────────────────────────────────────────────────────

CRICKET_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel>
<item><title>India 250/3 * v Australia</title>
  <guid>http://www.cricinfo.com/ci/engine/match/1001.html</guid></item>
<item><title>Mashonaland Eagles 120/4 v Southern Rocks 200/9 *</title>
  <guid>http://www.cricinfo.com/ci/engine/match/1002.html</guid></item>
<item><title>Mumbai Indians 180/5 v Ireland Wolves</title>
  <guid>http://www.cricinfo.com/ci/engine/match/1003.html</guid></item>
</channel></rss>"""


async def _cricket_matches(league_slug: str, loader_teams: list | None = None) -> list:
    async def loader() -> list:
        return loader_teams or []

    http = await _client(lambda request: httpx.Response(200, text=CRICKET_RSS))
    try:
        source = CricketFeedSource(
            http,
            ScoreNormalizer(LogoIndex(loader)),
            "https://feed.test/livescores.xml",
            FeedClassification.LIVE,
        )
        sport = get_sport("cricket")
        return await source.fetch_league(sport, sport.league_by_slug(league_slug))
    finally:
        await http.close()


@pytest.mark.asyncio
async def test_cricket_international_keeps_flagged_sides() -> None:
    matches = await _cricket_matches("international")
    assert [m.id for m in matches] == ["1001", "1003"]
    india = matches[0]
    assert india.home.logo == "https://flagcdn.com/w40/in.png"
    assert india.away.logo == "https://flagcdn.com/w40/au.png"
    assert india.status_detail == "IND is batting"


@pytest.mark.asyncio
async def test_cricket_other_league_keeps_everything_and_fills_club_logos() -> None:
    from shared.models.domain import DirectoryTeam

    teams = [DirectoryTeam(id="7", name="Southern Rocks", abbrev="SR", slug="southern-rocks", logo="https://cb/sr.png")]
    matches = await _cricket_matches("other", teams)

    assert [m.id for m in matches] == ["1001", "1002", "1003"]
    rocks = matches[1].away
    assert rocks.logo == "https://cb/sr.png"
    assert rocks.turn is True
    assert matches[1].home.logo is None


# ── Team directory ──────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_team_directory_unions_pages_and_tolerates_failures() -> None:
    pages = {
        "/cricket-team": '<a href="/cricket-team/india/2"><span>India</span></a>',
        "/cricket-team/league": (
            '<a href="/cricket-team/india/2"><span>India</span></a>'
            '<a href="/cricket-team/chennai-super-kings/58"><img src="/i/csk.png"><span>Chennai Super Kings</span></a>'
        ),
    }

    def handler(request: httpx.Request) -> httpx.Response:
        body = pages.get(request.url.path)
        return httpx.Response(200, text=body) if body else httpx.Response(503)

    http = await _client(handler, max_retries=1)
    try:
        provider = TeamDirectoryProvider(
            http,
            urls=[
                "https://cb.test/cricket-team",
                "https://cb.test/cricket-team/league",
                "https://cb.test/cricket-team/women",
            ],
            base_url="https://cb.test",
        )
        teams = await provider.fetch_all()
    finally:
        await http.close()

    assert [t.id for t in teams] == ["2", "58"]
    assert teams[1].logo == "https://cb.test/i/csk.png"
    assert teams[1].abbrev == "CSK"


# ── SportMonks ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_sportmonks_follows_pagination() -> None:
    requested_pages: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        page = request.url.params["page"]
        requested_pages.append(page)
        assert request.url.params["api_token"] == "secret"
        body = {
            "data": [{"id": int(page), "name": f"Team {page}", "national_team": True}],
            "meta": {"pagination": {"current_page": int(page), "total_pages": 3}},
        }
        return httpx.Response(200, content=json.dumps(body))

    http = await _client(handler)
    try:
        teams = await SportmonksClient(http, "secret", "https://sm.test/teams").fetch_all_teams()
    finally:
        await http.close()

    assert requested_pages == ["1", "2", "3"]
    assert [t["id"] for t in teams] == [1, 2, 3]


@pytest.mark.asyncio
async def test_sportmonks_without_key() -> None:
    http = await _client(lambda request: httpx.Response(200, json={}))
    try:
        client = SportmonksClient(http, "", "https://sm.test/teams")
        assert client.configured is False
        with pytest.raises(ConfigMissing):
            await client.fetch_all_teams()
    finally:
        await http.close()


@pytest.mark.asyncio
async def test_sportmonks_page_failure_propagates() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params["page"] == "2":
            return httpx.Response(401)
        return httpx.Response(200, json={"data": [], "meta": {"pagination": {"current_page": 1, "total_pages": 2}}})

    http = await _client(handler)
    try:
        with pytest.raises(UpstreamUnavailable):
            await SportmonksClient(http, "secret", "https://sm.test/teams").fetch_all_teams()
    finally:
        await http.close()
