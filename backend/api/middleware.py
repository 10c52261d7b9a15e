"""
API middleware stack.

- Request ID injection (X-Request-ID header)
- Structured request/response logging
- Global exception handler
- Token-bucket rate limiting per client
"""
from __future__ import annotations

import time
import uuid
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from api.dependencies import get_rate_limiter
from api.rate_limiter import RateLimiter
from shared.utils.logging import bind_request_context, get_logger

logger = get_logger(__name__)

UNLIMITED_PATHS = frozenset({"/health"})
DEFAULT_CLIENT_ID = "127.0.0.1"


def client_id_from(request: Request) -> str:
    """Edge-proxy header first, then the first forwarded hop, then the socket peer."""
    cf_ip = request.headers.get("cf-connecting-ip", "").strip()
    if cf_ip:
        return cf_ip
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    if request.client and request.client.host:
        return request.client.host
    return DEFAULT_CLIENT_ID


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Injects a unique X-Request-ID header into every request/response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        request.state.request_id = request_id

        with bind_request_context(request_id=request_id):
            response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs structured request/response information."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in UNLIMITED_PATHS:
            return await call_next(request)

        start = time.monotonic()
        request_id = getattr(request.state, "request_id", "unknown")
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "http_request_error",
                method=request.method,
                path=path,
                duration_ms=round((time.monotonic() - start) * 1000, 2),
                request_id=request_id,
                error=str(exc),
                exc_info=True,
            )
            raise

        logger.info(
            "http_request",
            method=request.method,
            path=path,
            query=str(request.url.query) or None,
            status=response.status_code,
            duration_ms=round((time.monotonic() - start) * 1000, 2),
            request_id=request_id,
            client=client_id_from(request),
        )
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rejects requests the RateLimiter refuses with 429 and the refusal reason."""

    def __init__(self, app: ASGIApp, limiter: Optional[RateLimiter] = None) -> None:
        super().__init__(app)
        self._limiter = limiter

    @property
    def limiter(self) -> RateLimiter:
        return self._limiter or get_rate_limiter()

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in UNLIMITED_PATHS:
            return await call_next(request)

        limiter = self.limiter
        client_id = client_id_from(request)
        decision = await limiter.check(client_id, request.headers.get("user-agent"))
        if not decision.allowed:
            logger.warning("rate_limit_blocked", client=client_id, reason=decision.reason)
            return JSONResponse(
                status_code=429,
                content={"error": decision.reason},
                headers={"Retry-After": str(limiter.retry_after_s)},
            )
        return await call_next(request)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = getattr(request.state, "request_id", "unknown")
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            error=str(exc),
            request_id=request_id,
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
                "request_id": request_id,
            },
        )

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": "Not found"})


def setup_middleware(app: FastAPI, limiter: Optional[RateLimiter] = None) -> None:
    """Apply all middleware to the FastAPI app; the last one added runs first."""
    app.add_middleware(RateLimitMiddleware, limiter=limiter)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    setup_exception_handlers(app)
