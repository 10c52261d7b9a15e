"""
Durable key/value store contract used by the team cache.

Stores hold opaque bytes and know nothing about expiry; freshness is computed
by the caller from a timestamp embedded in the payload.
"""
from __future__ import annotations

import abc
import asyncio
from typing import Optional


class CacheStore(abc.ABC):
    """Async get/put of opaque blobs."""

    @abc.abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Return the stored bytes, or None when the key is absent."""

    @abc.abstractmethod
    async def put(self, key: str, value: bytes) -> None:
        """Store value under key, replacing any previous value."""


class MemoryCacheStore(CacheStore):
    """Process-local store for development and tests."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[bytes]:
        async with self._lock:
            return self._data.get(key)

    async def put(self, key: str, value: bytes) -> None:
        async with self._lock:
            self._data[key] = bytes(value)

    def __len__(self) -> int:
        return len(self._data)
