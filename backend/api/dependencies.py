"""
Dependency injection for the API service.
Provides the aggregation pipeline, team cache, and rate limiter to route handlers.
"""
from __future__ import annotations

from api.rate_limiter import RateLimiter
from ingest.aggregator import AggregationPipeline
from ingest.team_cache import TeamCacheProvider

# Module-level singletons, initialized at startup
_pipeline: AggregationPipeline | None = None
_team_cache: TeamCacheProvider | None = None
_rate_limiter: RateLimiter | None = None


def init_dependencies(
    pipeline: AggregationPipeline,
    team_cache: TeamCacheProvider,
    rate_limiter: RateLimiter,
) -> None:
    """Initialize module-level singletons. Called once at startup (or by tests)."""
    global _pipeline, _team_cache, _rate_limiter
    _pipeline = pipeline
    _team_cache = team_cache
    _rate_limiter = rate_limiter


def reset_dependencies() -> None:
    global _pipeline, _team_cache, _rate_limiter
    _pipeline = None
    _team_cache = None
    _rate_limiter = None


def get_pipeline() -> AggregationPipeline:
    """FastAPI dependency: returns the shared AggregationPipeline."""
    if _pipeline is None:
        raise RuntimeError("AggregationPipeline not initialized; call init_dependencies first")
    return _pipeline


def get_team_cache() -> TeamCacheProvider:
    """FastAPI dependency: returns the shared TeamCacheProvider."""
    if _team_cache is None:
        raise RuntimeError("TeamCacheProvider not initialized; call init_dependencies first")
    return _team_cache


def get_rate_limiter() -> RateLimiter:
    if _rate_limiter is None:
        raise RuntimeError("RateLimiter not initialized; call init_dependencies first")
    return _rate_limiter
