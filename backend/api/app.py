"""
FastAPI application factory for the Live Score Gateway.

Creates the app with:
- REST routes (sports, scoreboard, teams, cache admin)
- Middleware stack (request id, logging, rate limiting)
- Health check endpoint
- Lifespan management (HTTP client, optional Redis, providers)
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from redis.exceptions import RedisError

from api.dependencies import init_dependencies, reset_dependencies
from api.middleware import setup_middleware
from api.rate_limiter import RateLimiter
from api.routes.cache import router as cache_router
from api.routes.scoreboard import router as scoreboard_router
from api.routes.sports import router as sports_router
from api.routes.teams import router as teams_router
from ingest.aggregator import AggregationPipeline
from ingest.normalization.normalizer import LogoIndex, ScoreNormalizer
from ingest.providers.cricket_feed import CricketFeedSource
from ingest.providers.espn import EspnScoreboardSource
from ingest.providers.sportmonks import SportmonksClient
from ingest.providers.team_directory import TeamDirectoryProvider
from ingest.team_cache import TeamCacheProvider
from shared.config import Settings, get_settings
from shared.errors import ConfigMissing
from shared.models.enums import FeedClassification, SourceKind
from shared.utils.cache_store import CacheStore
from shared.utils.http_client import UpstreamHTTPClient
from shared.utils.logging import get_logger, setup_logging
from shared.utils.metrics import start_metrics_server
from shared.utils.redis_manager import RedisManager

logger = get_logger(__name__)


def build_rate_limiter(settings: Settings) -> RateLimiter:
    return RateLimiter(
        limit=settings.rate_limit_limit,
        burst=settings.rate_limit_burst,
        interval_s=settings.rate_limit_interval_s,
        blocked_agents=settings.rate_limit_blocked_agents,
    )


def build_services(
    settings: Settings,
    http: UpstreamHTTPClient,
    store: Optional[CacheStore],
) -> tuple[AggregationPipeline, TeamCacheProvider]:
    """Wire providers, team cache, and pipeline around one shared HTTP client."""
    directory = TeamDirectoryProvider(
        http,
        urls=settings.team_directory_urls,
        base_url=settings.team_directory_base_url,
    )
    normalizer = ScoreNormalizer(LogoIndex(directory.fetch_all))

    team_cache = TeamCacheProvider(
        SportmonksClient(http, settings.sportmonks_api_key, settings.sportmonks_teams_url),
        store,
        ttl_days=settings.team_cache_ttl_days,
        key=settings.team_cache_key,
    )

    sources = {
        SourceKind.STRUCTURED: EspnScoreboardSource(http, settings.espn_base_url),
        SourceKind.FEED: CricketFeedSource(
            http,
            normalizer,
            settings.cricket_feed_url,
            FeedClassification(settings.cricket_feed_classification),
        ),
    }
    pipeline = AggregationPipeline(
        sources,
        team_cache,
        league_timeout_s=settings.league_fetch_timeout_s,
    )
    return pipeline, team_cache


async def _connect_store(settings: Settings) -> Optional[RedisManager]:
    """Redis when configured and reachable; otherwise the team cache runs without a store."""
    if not settings.cache_enabled:
        logger.info("team_cache_store_disabled")
        return None
    redis = RedisManager(settings)
    try:
        await redis.connect()
    except (ConfigMissing, RedisError, OSError) as exc:
        logger.warning("redis_unavailable", url=settings.redis_url_safe_log, error=str(exc))
        return None
    return redis


@asynccontextmanager
async def _noop_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """No-op lifespan for testing; tests call init_dependencies themselves."""
    yield


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    Startup builds the HTTP client, optional Redis store, and providers;
    shutdown closes them.
    """
    settings = get_settings()
    setup_logging("api")
    start_metrics_server()

    http = UpstreamHTTPClient(settings)
    await http.start()
    redis = await _connect_store(settings)

    pipeline, team_cache = build_services(settings, http, redis)
    init_dependencies(pipeline, team_cache, build_rate_limiter(settings))

    logger.info(
        "api_service_started",
        host=settings.api_host,
        port=settings.api_port,
        team_cache_store=bool(redis),
        sportmonks_configured=bool(settings.sportmonks_api_key),
    )

    try:
        yield
    finally:
        reset_dependencies()
        await http.close()
        if redis:
            await redis.disconnect()
        logger.info("api_service_stopped")


def create_app(*, use_lifespan: bool = True, rate_limiter: Optional[RateLimiter] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Set use_lifespan=False for tests that inject services through init_dependencies.
    """
    app = FastAPI(
        title="Live Score Gateway",
        description="Aggregated live sports scores",
        version="1.0.0",
        lifespan=lifespan if use_lifespan else _noop_lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    setup_middleware(app, limiter=rate_limiter)

    app.include_router(sports_router)
    app.include_router(scoreboard_router)
    app.include_router(teams_router)
    app.include_router(cache_router)

    @app.get("/health", tags=["system"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "service": "api"}

    return app


app = create_app()
