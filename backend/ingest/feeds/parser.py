"""
Regex extraction of match and team records from semi-structured text.

Two modes share this module:
- RSS live-score feeds, where each <item> title encodes both sides and their scores
  ("Australia 166/2 * v England 384/10").
- HTML team directories, where each team is an anchor to a profile URL.

No XML or DOM tree is built; upstream markup drifts and is frequently not well formed.
Every entry point returns a ParseResult so callers (and tests) can tell an empty
document from a document whose format changed underneath us.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import timezone
from email.utils import parsedate_to_datetime
from html import unescape
from typing import Generic, Optional, TypeVar
from urllib.parse import urljoin

from shared.models.domain import DirectoryTeam, Match, Team
from shared.models.enums import FeedClassification, MatchStatus, ParseOutcome
from shared.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class ParseResult(Generic[T]):
    """Items extracted from one document plus how many blocks had to be dropped."""
    items: list[T] = field(default_factory=list)
    skipped: int = 0
    recognized: bool = True

    @property
    def outcome(self) -> ParseOutcome:
        if self.items:
            return ParseOutcome.PARTIAL if self.skipped else ParseOutcome.SUCCESS
        if self.skipped or not self.recognized:
            return ParseOutcome.FAILURE
        return ParseOutcome.SUCCESS


# ── Shared helpers ──────────────────────────────────────────────────────

KNOWN_ABBREVIATIONS: dict[str, str] = {
    "India": "IND",
    "Australia": "AUS",
    "England": "ENG",
    "Pakistan": "PAK",
    "South Africa": "SA",
    "New Zealand": "NZ",
    "Sri Lanka": "SL",
    "West Indies": "WI",
    "Bangladesh": "BAN",
    "Afghanistan": "AFG",
    "Ireland": "IRE",
    "Zimbabwe": "ZIM",
    "United States of America": "USA",
    "United Arab Emirates": "UAE",
    "Hong Kong, China": "HK",
    "Papua New Guinea": "PNG",
    "Chennai Super Kings": "CSK",
    "Mumbai Indians": "MI",
    "Royal Challengers Bengaluru": "RCB",
    "Kolkata Knight Riders": "KKR",
    "Delhi Capitals": "DC",
    "Rajasthan Royals": "RR",
    "Punjab Kings": "PBKS",
    "Sunrisers Hyderabad": "SRH",
    "Gujarat Titans": "GT",
    "Lucknow Super Giants": "LSG",
    "Lahore Qalandars": "LQ",
    "Peshawar Zalmi": "PZ",
    "Islamabad United": "IU",
    "Karachi Kings": "KK",
    "Quetta Gladiators": "QG",
    "Multan Sultans": "MS",
}

_NON_LETTERS_RE = re.compile(r"[^a-zA-Z\s]")
_TAG_RE = re.compile(r"<[^>]+>")


def decode_entities(text: str) -> str:
    """Decode HTML entities; non-breaking spaces become plain spaces."""
    return unescape(text).replace("\xa0", " ")


def derive_abbreviation(name: str) -> str:
    """
    Short code for a team name.

    Well-known teams use a fixed table. Otherwise single-word names take their
    first three letters and multi-word names take word initials (max four).
    """
    name = (name or "").strip()
    if not name:
        return "TBD"
    if name in KNOWN_ABBREVIATIONS:
        return KNOWN_ABBREVIATIONS[name]
    words = _NON_LETTERS_RE.sub("", name).split()
    if not words:
        return "TBD"
    if len(words) == 1:
        return words[0][:3].upper()
    return "".join(w[0] for w in words)[:4].upper()


# ── RSS mode ────────────────────────────────────────────────────────────

_ITEM_RE = re.compile(r"<item\b[^>]*>(.*?)</item>", re.IGNORECASE | re.DOTALL)
_FEED_ROOT_RE = re.compile(r"<(?:rss|channel)\b", re.IGNORECASE)
_TITLE_RE = re.compile(r"<title>\s*(?:<!\[CDATA\[)?(.*?)(?:\]\]>)?\s*</title>", re.IGNORECASE | re.DOTALL)
_GUID_RE = re.compile(r"<guid\b[^>]*>\s*([^<]+?)\s*</guid>", re.IGNORECASE)
_MATCH_URL_ID_RE = re.compile(r"match/(\d+)\.html")
_PUB_DATE_RE = re.compile(r"<pubDate>\s*([^<]+?)\s*</pubDate>", re.IGNORECASE)

_SIDE_SEPARATOR = " v "
_ACTIVE_MARKER = "*"
_INNINGS = r"\d+(?:/\d+)?"
_MULTI_INNINGS_RE = re.compile(rf"^(.+?)\s+({_INNINGS})\s*&\s*({_INNINGS})\s*$")
_SINGLE_INNINGS_RE = re.compile(rf"^(.+?)\s+({_INNINGS})$")
_ALL_OUT_RE = re.compile(r"/10\b")


@dataclass(frozen=True)
class _Side:
    name: str
    score: Optional[str]
    active: bool


def _format_score(score: str) -> str:
    # "384/10" is an all-out innings; display it as "384"
    return _ALL_OUT_RE.sub("", score)


def _parse_side(raw: str) -> _Side:
    active = _ACTIVE_MARKER in raw
    text = " ".join(raw.replace(_ACTIVE_MARKER, " ").split())

    multi = _MULTI_INNINGS_RE.match(text)
    if multi:
        first, second = multi.group(2), multi.group(3)
        return _Side(multi.group(1).strip(), _format_score(f"{first} & {second}"), active)

    single = _SINGLE_INNINGS_RE.match(text)
    if single:
        return _Side(single.group(1).strip(), _format_score(single.group(2)), active)

    return _Side(text, None, active)


def _item_id(item: str) -> Optional[str]:
    guid = _GUID_RE.search(item)
    if guid:
        from_url = _MATCH_URL_ID_RE.search(guid.group(1))
        return from_url.group(1) if from_url else guid.group(1).strip() or None
    from_link = _MATCH_URL_ID_RE.search(item)
    return from_link.group(1) if from_link else None


def _published_at(item: str) -> Optional[str]:
    found = _PUB_DATE_RE.search(item)
    if not found:
        return None
    try:
        published = parsedate_to_datetime(found.group(1))
    except (TypeError, ValueError, IndexError):
        return None
    if published is None:
        return None
    if published.tzinfo is None:
        published = published.replace(tzinfo=timezone.utc)
    return published.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_rss_item(
    item: str,
    classification: FeedClassification,
    league: Optional[str] = "Cricket",
) -> Optional[Match]:
    """Parse one <item> body into a Match, or None when it lacks required fields."""
    title_match = _TITLE_RE.search(item)
    match_id = _item_id(item)
    if not title_match or not match_id:
        return None

    title = decode_entities(title_match.group(1)).strip()
    sides = title.split(_SIDE_SEPARATOR)
    if len(sides) < 2:
        return None

    home_side = _parse_side(sides[0])
    away_side = _parse_side(sides[1])
    if not home_side.name or not away_side.name:
        return None

    status = classification.match_status
    if status is MatchStatus.ONGOING and not home_side.score and not away_side.score:
        # Fixture listed in the live feed before the first ball
        status = MatchStatus.UPCOMING

    home_abbrev = derive_abbreviation(home_side.name)
    away_abbrev = derive_abbreviation(away_side.name)

    detail = title
    if home_side.active != away_side.active:
        detail = f"{home_abbrev if home_side.active else away_abbrev} is batting"

    return Match(
        id=match_id,
        home=Team(
            id=f"{match_id}-1",
            name=home_side.name,
            abbrev=home_abbrev,
            score=home_side.score,
            turn=home_side.active,
        ),
        away=Team(
            id=f"{match_id}-2",
            name=away_side.name,
            abbrev=away_abbrev,
            score=away_side.score,
            turn=away_side.active,
        ),
        status=status,
        status_detail=detail,
        time=_published_at(item),
        league=league,
    )


def parse_rss_matches(
    xml: str,
    classification: FeedClassification,
    league: Optional[str] = "Cricket",
) -> ParseResult[Match]:
    """Extract every well-formed match from an RSS document; malformed items are skipped."""
    result: ParseResult[Match] = ParseResult(recognized=bool(xml and _FEED_ROOT_RE.search(xml)))
    for block in _ITEM_RE.finditer(xml or ""):
        result.recognized = True
        match = parse_rss_item(block.group(1), classification, league)
        if match is None:
            result.skipped += 1
            logger.debug("feed_item_skipped", parser="rss", snippet=block.group(1)[:120])
            continue
        result.items.append(match)
    return result


# ── HTML team directory mode ────────────────────────────────────────────

NAVIGATION_LABELS: frozenset[str] = frozenset({
    "International",
    "Domestic",
    "League",
    "Women",
    "Test Teams",
    "Associate Teams",
    "League Teams",
})

_TEAM_ANCHOR_RE = re.compile(
    r"""<a\b[^>]*href=["']/cricket-team/([a-z0-9-]+)/(\d+)["'][^>]*>(.*?)</a>""",
    re.IGNORECASE | re.DOTALL,
)
_LABEL_RE = re.compile(r"<span\b[^>]*>([^<]+)</span>", re.IGNORECASE)
_IMG_SRC_RE = re.compile(r"""<img\b[^>]*src=["']([^"']+)["'][^>]*>""", re.IGNORECASE)


def _anchor_name(inner_html: str) -> str:
    label = _LABEL_RE.search(inner_html)
    raw = label.group(1) if label else _TAG_RE.sub(" ", inner_html)
    return " ".join(decode_entities(raw).split())


def _anchor_logo(inner_html: str, base_url: str) -> Optional[str]:
    img = _IMG_SRC_RE.search(inner_html)
    if not img:
        return None
    src = decode_entities(img.group(1).strip())
    if src.startswith("/"):
        return urljoin(base_url, src)
    return src


def parse_team_directory(html: str, base_url: str) -> ParseResult[DirectoryTeam]:
    """
    Extract teams from a directory page.

    Anchors with an empty name count as skipped. Duplicate ids and navigation
    labels are discarded without counting: they are expected on every page.
    """
    result: ParseResult[DirectoryTeam] = ParseResult(recognized=False)
    seen_ids: set[str] = set()

    for anchor in _TEAM_ANCHOR_RE.finditer(html or ""):
        result.recognized = True
        slug, team_id, inner = anchor.group(1), anchor.group(2), anchor.group(3)
        name = _anchor_name(inner)
        if not name:
            result.skipped += 1
            logger.debug("feed_item_skipped", parser="team_directory", slug=slug, team_id=team_id)
            continue
        if team_id in seen_ids or name in NAVIGATION_LABELS:
            continue
        seen_ids.add(team_id)
        result.items.append(
            DirectoryTeam(
                id=team_id,
                name=name,
                abbrev=derive_abbreviation(name),
                slug=slug,
                logo=_anchor_logo(inner, base_url),
            )
        )

    result.items.sort(key=lambda t: t.name.casefold())
    return result


# ── National flags ──────────────────────────────────────────────────────

_FLAG_CDN = "https://flagcdn.com/w40"

TEAM_FLAGS: dict[str, str] = {
    "Australia": f"{_FLAG_CDN}/au.png",
    "England": f"{_FLAG_CDN}/gb-eng.png",
    "India": f"{_FLAG_CDN}/in.png",
    "Pakistan": f"{_FLAG_CDN}/pk.png",
    "South Africa": f"{_FLAG_CDN}/za.png",
    "New Zealand": f"{_FLAG_CDN}/nz.png",
    "Sri Lanka": f"{_FLAG_CDN}/lk.png",
    "West Indies": f"{_FLAG_CDN}/jm.png",
    "Bangladesh": f"{_FLAG_CDN}/bd.png",
    "Afghanistan": f"{_FLAG_CDN}/af.png",
    "Ireland": f"{_FLAG_CDN}/ie.png",
    "Zimbabwe": f"{_FLAG_CDN}/zw.png",
    "Scotland": f"{_FLAG_CDN}/gb-sct.png",
    "Netherlands": f"{_FLAG_CDN}/nl.png",
    "Namibia": f"{_FLAG_CDN}/na.png",
    "UAE": f"{_FLAG_CDN}/ae.png",
    "United Arab Emirates": f"{_FLAG_CDN}/ae.png",
    "Nepal": f"{_FLAG_CDN}/np.png",
    "Oman": f"{_FLAG_CDN}/om.png",
    "USA": f"{_FLAG_CDN}/us.png",
    "United States": f"{_FLAG_CDN}/us.png",
    "Canada": f"{_FLAG_CDN}/ca.png",
    "Kenya": f"{_FLAG_CDN}/ke.png",
    "Hong Kong": f"{_FLAG_CDN}/hk.png",
    "Papua New Guinea": f"{_FLAG_CDN}/pg.png",
}

_FLAG_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(rf"\b{re.escape(country)}\b", re.IGNORECASE), url)
    for country, url in TEAM_FLAGS.items()
)


def flag_for(name: str) -> Optional[str]:
    """
    Flag image for a national side.

    Matches whole words only so "India A" and "Ireland Women" resolve but
    "Mumbai Indians" does not.
    """
    if not name:
        return None
    exact = TEAM_FLAGS.get(name.strip())
    if exact:
        return exact
    for pattern, url in _FLAG_PATTERNS:
        if pattern.search(name):
            return url
    return None
