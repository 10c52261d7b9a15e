"""
Unit tests for status classification, the lazily built logo index,
and logo resolution.
"""
from __future__ import annotations

import asyncio

import pytest

from ingest.normalization.normalizer import LogoIndex, ScoreNormalizer, classify_status
from shared.models.domain import DirectoryTeam, Match, Team
from shared.models.enums import IndexState, MatchStatus


def _team(team_id: str, name: str, logo: str | None = None) -> DirectoryTeam:
    return DirectoryTeam(id=team_id, name=name, abbrev=name[:3].upper(), slug=name.lower(), logo=logo)


# ── classify_status ─────────────────────────────────────────────────────

class TestClassifyStatus:

    def test_final(self) -> None:
        assert classify_status("STATUS_FINAL") is MatchStatus.DONE
        assert classify_status("Final") is MatchStatus.DONE

    def test_post(self) -> None:
        assert classify_status("post") is MatchStatus.DONE

    def test_pre(self) -> None:
        assert classify_status("pre") is MatchStatus.UPCOMING

    def test_full_time_abbreviation(self) -> None:
        assert classify_status("FT") is MatchStatus.DONE

    def test_postponed_reads_as_done(self) -> None:
        assert classify_status("STATUS_POSTPONED") is MatchStatus.DONE

    def test_end_of_period_reads_as_done(self) -> None:
        assert classify_status("STATUS_END_PERIOD") is MatchStatus.DONE

    def test_in_progress(self) -> None:
        assert classify_status("STATUS_IN_PROGRESS") is MatchStatus.ONGOING

    def test_live(self) -> None:
        assert classify_status("Live") is MatchStatus.ONGOING

    def test_halftime_contains_ft_so_reads_as_done(self) -> None:
        assert classify_status("STATUS_HALFTIME") is MatchStatus.DONE

    def test_in_with_trailing_space(self) -> None:
        assert classify_status("in 2nd innings") is MatchStatus.ONGOING

    def test_scheduled(self) -> None:
        assert classify_status("STATUS_SCHEDULED") is MatchStatus.UPCOMING

    def test_empty(self) -> None:
        assert classify_status("") is MatchStatus.UPCOMING
        assert classify_status(None) is MatchStatus.UPCOMING


# ── LogoIndex ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_logo_index_builds_once_for_concurrent_callers() -> None:
    calls = 0
    gate = asyncio.Event()

    async def loader() -> list[DirectoryTeam]:
        nonlocal calls
        calls += 1
        await gate.wait()
        return [_team("1", "Somerset", "https://img/somerset.png")]

    index = LogoIndex(loader)
    tasks = [asyncio.create_task(index.lookup("Somerset")) for _ in range(5)]
    await asyncio.sleep(0)
    assert index.state is IndexState.INITIALIZING

    gate.set()
    results = await asyncio.gather(*tasks)

    assert calls == 1
    assert results == ["https://img/somerset.png"] * 5
    assert index.state is IndexState.READY


@pytest.mark.asyncio
async def test_logo_index_empty_build_is_final() -> None:
    calls = 0

    async def loader() -> list[DirectoryTeam]:
        nonlocal calls
        calls += 1
        return []

    index = LogoIndex(loader)
    assert await index.lookup("Somerset") is None
    assert await index.lookup("Kent") is None
    assert index.state is IndexState.READY
    assert calls == 1


@pytest.mark.asyncio
async def test_logo_index_failed_build_resets_and_retries() -> None:
    attempts = 0

    async def loader() -> list[DirectoryTeam]:
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise RuntimeError("directory down")
        return [_team("1", "Kent", "https://img/kent.png")]

    index = LogoIndex(loader)
    assert await index.lookup("Kent") is None
    assert index.state is IndexState.UNINITIALIZED

    assert await index.lookup("Kent") == "https://img/kent.png"
    assert index.state is IndexState.READY
    assert attempts == 2


@pytest.mark.asyncio
async def test_logo_index_cancelled_build_resets() -> None:
    started = asyncio.Event()

    async def loader() -> list[DirectoryTeam]:
        started.set()
        await asyncio.sleep(3600)
        return []

    index = LogoIndex(loader)
    task = asyncio.create_task(index.ensure_built())
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert index.state is IndexState.UNINITIALIZED


@pytest.mark.asyncio
async def test_logo_index_matches_exact_then_containment() -> None:
    async def loader() -> list[DirectoryTeam]:
        return [
            _team("1", "Mumbai Indians", "https://img/mi.png"),
            _team("2", "Mumbai Indians Women", "https://img/miw.png"),
            _team("3", "No Logo FC"),
        ]

    index = LogoIndex(loader)
    assert await index.lookup("mumbai indians women") == "https://img/miw.png"
    assert await index.lookup("Mumbai Indians Emerging") == "https://img/mi.png"
    assert await index.lookup("No Logo FC") is None
    assert len(index) == 2


@pytest.mark.asyncio
async def test_logo_index_resolves_slugs() -> None:
    async def loader() -> list[DirectoryTeam]:
        return [
            DirectoryTeam(id="62", name="Mumbai Indians", abbrev="MI", slug="mumbai-indians",
                          logo="https://img/mi.png"),
        ]

    index = LogoIndex(loader)
    assert await index.lookup("mumbai-indians") == "https://img/mi.png"
    assert await index.lookup("Mumbai Indians") == "https://img/mi.png"
    assert len(index) == 2


# ── ScoreNormalizer ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_resolve_logo_prefers_flag_without_building_index() -> None:
    calls = 0

    async def loader() -> list[DirectoryTeam]:
        nonlocal calls
        calls += 1
        return [_team("2", "India", "https://img/other-india.png")]

    normalizer = ScoreNormalizer(LogoIndex(loader))
    assert await normalizer.resolve_logo("India") == "https://flagcdn.com/w40/in.png"
    assert calls == 0


@pytest.mark.asyncio
async def test_fill_logos_uses_index_for_club_sides() -> None:
    async def loader() -> list[DirectoryTeam]:
        return [_team("62", "Mumbai Indians", "https://img/mi.png")]

    normalizer = ScoreNormalizer(LogoIndex(loader))
    match = Match(
        id="9",
        home=Team(id="9-1", name="Mumbai Indians", abbrev="MI"),
        away=Team(id="9-2", name="Ireland", abbrev="IRE", logo="https://kept.png"),
        status=MatchStatus.ONGOING,
    )

    filled = await normalizer.fill_logos(match)

    assert filled.home.logo == "https://img/mi.png"
    assert filled.away.logo == "https://kept.png"
    assert match.home.logo is None
