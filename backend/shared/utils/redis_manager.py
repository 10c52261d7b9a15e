"""
Redis connection manager for the Live Score Gateway.
Backs the CacheStore contract with an async connection pool.
"""
from __future__ import annotations

from typing import Optional

import redis.asyncio as aioredis
from redis.asyncio import Redis

from shared.config import Settings, get_settings
from shared.errors import ConfigMissing
from shared.utils.cache_store import CacheStore
from shared.utils.logging import get_logger

logger = get_logger(__name__)

# ── Key namespace ───────────────────────────────────────────────────────
KEY_PREFIX = "lsg:"


class RedisManager(CacheStore):
    """Manages the async Redis pool and exposes it as a CacheStore."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self._pool: Optional[Redis] = None

    async def connect(self) -> None:
        """Initialize the connection pool and verify connectivity."""
        if not self._settings.redis_url:
            raise ConfigMissing("LSG_REDIS_URL")
        self._pool = aioredis.from_url(
            self._settings.redis_url,
            max_connections=self._settings.redis_max_connections,
            decode_responses=False,
            socket_connect_timeout=5,
            socket_timeout=5,
            socket_keepalive=True,
            retry_on_timeout=True,
        )
        await self._pool.ping()
        logger.info("redis_connected", url=self._settings.redis_url_safe_log)

    async def disconnect(self) -> None:
        """Graceful shutdown."""
        if self._pool:
            await self._pool.aclose()
            self._pool = None
            logger.info("redis_disconnected")

    @property
    def client(self) -> Redis:
        if self._pool is None:
            raise RuntimeError("RedisManager not connected. Call connect() first.")
        return self._pool

    async def get(self, key: str) -> Optional[bytes]:
        value = await self.client.get(KEY_PREFIX + key)
        if value is None:
            return None
        return value if isinstance(value, bytes) else str(value).encode("utf-8")

    async def put(self, key: str, value: bytes) -> None:
        # No TTL: stale records are still served when the upstream fails
        await self.client.set(KEY_PREFIX + key, value)
