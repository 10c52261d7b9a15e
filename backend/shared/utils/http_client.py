"""
Async HTTP client shared by every upstream connector.
Includes retry on 429/5xx, bounded timeouts, and metrics collection.
"""
from __future__ import annotations

import asyncio
import time
from typing import Any, Optional

import httpx

from shared.config import Settings, get_settings
from shared.errors import UpstreamUnavailable
from shared.utils.logging import get_logger
from shared.utils.metrics import UPSTREAM_LATENCY, UPSTREAM_REQUESTS

logger = get_logger(__name__)

MAX_RETRY_AFTER_S = 10.0


class UpstreamHTTPClient:
    """
    One pooled httpx client for all third-party upstreams.

    Every failure mode (non-2xx after retries, timeout, transport error) surfaces
    as UpstreamUnavailable so connectors have a single exception to degrade on.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        timeout_s: float | None = None,
        max_retries: int | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = settings or get_settings()
        self._timeout = timeout_s or settings.upstream_timeout_s
        self._max_retries = max(1, max_retries if max_retries is not None else settings.upstream_max_retries)
        self._default_headers = {"User-Agent": settings.upstream_user_agent}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def start(self) -> None:
        """Initialize the underlying httpx client."""
        self._client = httpx.AsyncClient(
            headers=self._default_headers,
            timeout=httpx.Timeout(self._timeout, connect=5.0),
            follow_redirects=True,
            limits=httpx.Limits(max_connections=50, max_keepalive_connections=20),
            transport=self._transport,
        )

    async def close(self) -> None:
        """Close the underlying httpx client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get(
        self,
        url: str,
        *,
        upstream: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        GET with retry and metrics.

        Args:
            url: Absolute upstream URL.
            upstream: Label used in logs and metrics (never the URL, which may carry keys).
            params: Query parameters.
            headers: Request-specific headers merged over the defaults.

        Returns:
            The successful httpx.Response.

        Raises:
            UpstreamUnavailable: On non-success status or transport failure after retries.
        """
        if not self._client:
            raise RuntimeError("UpstreamHTTPClient not started. Call start() first.")

        last_error: Optional[UpstreamUnavailable] = None

        for attempt in range(1, self._max_retries + 1):
            start_time = time.perf_counter()
            status = "error"
            try:
                resp = await self._client.get(url, params=params, headers=headers)
                status = str(resp.status_code)

                if resp.status_code == 429 or resp.status_code >= 500:
                    last_error = UpstreamUnavailable(upstream, "retryable status", resp.status_code)
                    logger.warning(
                        "upstream_retryable_status",
                        upstream=upstream,
                        status=resp.status_code,
                        attempt=attempt,
                    )
                    if attempt < self._max_retries:
                        await asyncio.sleep(self._retry_delay(resp, attempt))
                        continue
                    raise last_error

                if resp.status_code >= 400:
                    logger.warning("upstream_http_error", upstream=upstream, status=resp.status_code)
                    raise UpstreamUnavailable(upstream, "client error", resp.status_code)

                logger.debug(
                    "upstream_request_success",
                    upstream=upstream,
                    status=resp.status_code,
                    latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
                )
                return resp

            except httpx.TimeoutException as exc:
                status = "timeout"
                last_error = UpstreamUnavailable(upstream, f"timeout: {type(exc).__name__}")
                logger.warning("upstream_timeout", upstream=upstream, attempt=attempt)
                if attempt < self._max_retries:
                    await asyncio.sleep(1.0 * attempt)
                    continue

            except httpx.HTTPError as exc:
                last_error = UpstreamUnavailable(upstream, str(exc) or type(exc).__name__)
                logger.warning(
                    "upstream_transport_error",
                    upstream=upstream,
                    error=str(exc),
                    attempt=attempt,
                )
                if attempt < self._max_retries:
                    await asyncio.sleep(1.0 * attempt)
                    continue

            finally:
                UPSTREAM_REQUESTS.labels(upstream=upstream, status=status).inc()
                UPSTREAM_LATENCY.labels(upstream=upstream).observe(time.perf_counter() - start_time)

        raise last_error or UpstreamUnavailable(upstream, f"failed after {self._max_retries} attempts")

    async def get_text(self, url: str, *, upstream: str, **kwargs: Any) -> str:
        resp = await self.get(url, upstream=upstream, **kwargs)
        return resp.text

    async def get_json(self, url: str, *, upstream: str, **kwargs: Any) -> Any:
        resp = await self.get(url, upstream=upstream, **kwargs)
        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamUnavailable(upstream, f"invalid JSON body: {exc}", resp.status_code) from exc

    @staticmethod
    def _retry_delay(resp: httpx.Response, attempt: int) -> float:
        if resp.status_code == 429:
            try:
                return min(float(resp.headers.get("Retry-After", "2")), MAX_RETRY_AFTER_S)
            except ValueError:
                return 2.0
        return 1.0 * attempt
