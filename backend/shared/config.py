"""
Central configuration for the Live Score Gateway.
Uses pydantic-settings for env-based config with validation.
"""
from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Optional
from urllib.parse import urlparse

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Root settings for the gateway process."""

    model_config = SettingsConfigDict(
        env_prefix="LSG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── General ──────────────────────────────────────────────
    environment: Environment = Environment.DEV
    log_level: str = "INFO"
    instance_id: str = Field(default="", description="Pod/container ID bound to every log line")

    # ── API ──────────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # ── Redis (optional team cache store) ────────────────────
    redis_url: Optional[str] = Field(
        default=None,
        description="When unset, the team cache is disabled and SportMonks is queried directly.",
    )
    redis_max_connections: int = 20

    # ── Upstreams ────────────────────────────────────────────
    upstream_timeout_s: float = 10.0
    upstream_max_retries: int = 2
    league_fetch_timeout_s: float = 15.0
    upstream_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    espn_base_url: str = "https://site.api.espn.com/apis/site/v2/sports"
    sportmonks_teams_url: str = "https://cricket.sportmonks.com/api/v2.0/teams"
    sportmonks_api_key: str = ""
    cricket_feed_url: str = "https://static.cricinfo.com/rss/livescores.xml"
    cricket_feed_classification: str = "live"
    team_directory_base_url: str = "https://www.cricbuzz.com"
    team_directory_urls: list[str] = Field(
        default=[
            "https://www.cricbuzz.com/cricket-team",
            "https://www.cricbuzz.com/cricket-team/league",
        ],
        description="Directory pages unioned into the logo index on first use.",
    )

    # ── Team cache ───────────────────────────────────────────
    team_cache_key: str = "sportmonks_teams"
    team_cache_ttl_days: float = 7.0

    # ── Rate limiting ────────────────────────────────────────
    rate_limit_limit: int = 60
    rate_limit_burst: int = 10
    rate_limit_interval_s: float = 60.0
    rate_limit_blocked_agents: list[str] = Field(
        default=["curl", "python-requests", "postman"],
        description="Case-insensitive User-Agent substrings rejected outright.",
    )

    # ── Observability ────────────────────────────────────────
    metrics_enabled: bool = True
    metrics_port: int = 9090

    @property
    def cache_enabled(self) -> bool:
        return bool(self.redis_url)

    @property
    def redis_url_safe_log(self) -> str:
        """URL with credentials redacted, for logging only."""
        if not self.redis_url:
            return ""
        try:
            u = urlparse(self.redis_url)
            netloc = (u.hostname or "?") + (f":{u.port}" if u.port else "")
            return f"{u.scheme}://{netloc}{u.path or ''}"
        except ValueError:
            return "redis://***"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton access to validated settings."""
    return Settings()
