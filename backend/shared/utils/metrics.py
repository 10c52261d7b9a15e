"""
Prometheus metrics for the Live Score Gateway.
Every degradation path (stale cache, fallback list, skipped feed item) has a counter
so silent data loss shows up on a dashboard rather than only in logs.
"""
from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, start_http_server

from shared.config import get_settings
from shared.utils.logging import get_logger

logger = get_logger(__name__)

# ── Upstreams ───────────────────────────────────────────────────────────
UPSTREAM_REQUESTS = Counter(
    "lsg_upstream_requests_total",
    "Outbound upstream HTTP requests",
    ["upstream", "status"],
)
UPSTREAM_LATENCY = Histogram(
    "lsg_upstream_latency_seconds",
    "Upstream request latency in seconds",
    ["upstream"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)
LEAGUE_FETCH_FAILURES = Counter(
    "lsg_league_fetch_failures_total",
    "Per-league scoreboard fetches that degraded to an empty result",
    ["sport", "league", "reason"],
)

# ── Admission control ───────────────────────────────────────────────────
RATE_LIMIT_DECISIONS = Counter(
    "lsg_rate_limit_decisions_total",
    "Rate limiter decisions",
    ["outcome"],
)
RATE_LIMIT_BUCKETS = Gauge(
    "lsg_rate_limit_buckets",
    "Client buckets currently tracked by the rate limiter",
)

# ── Team cache ──────────────────────────────────────────────────────────
TEAM_CACHE_READS = Counter(
    "lsg_team_cache_reads_total",
    "Team cache reads by how they were served",
    ["result"],
)

# ── Parsing / normalization ─────────────────────────────────────────────
FEED_PARSE_OUTCOMES = Counter(
    "lsg_feed_parse_outcomes_total",
    "Text feed parse results",
    ["parser", "outcome"],
)
FEED_ITEMS_SKIPPED = Counter(
    "lsg_feed_items_skipped_total",
    "Malformed feed items or anchors skipped during parsing",
    ["parser"],
)
LOGO_INDEX_SIZE = Gauge(
    "lsg_logo_index_entries",
    "Entries in the process-lifetime logo index",
)


def start_metrics_server(port: int | None = None) -> None:
    """Start the Prometheus metrics HTTP server."""
    settings = get_settings()
    if not settings.metrics_enabled:
        return
    metrics_port = port or settings.metrics_port
    try:
        start_http_server(metrics_port)
        logger.info("metrics_server_started", port=metrics_port)
    except OSError as exc:
        logger.warning("metrics_server_failed", error=str(exc), port=metrics_port)
