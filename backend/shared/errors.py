"""
Error taxonomy for the gateway.

Upstream and configuration problems are raised here and absorbed by the
providers, which degrade to cached, fallback, or empty data. Parse problems
never raise; they are counted on ParseResult instead.
"""
from __future__ import annotations

from typing import Optional


class GatewayError(Exception):
    """Base class for gateway errors."""


class UpstreamUnavailable(GatewayError):
    """An upstream returned a non-success status or the transport failed."""

    def __init__(self, upstream: str, detail: str, status: Optional[int] = None) -> None:
        self.upstream = upstream
        self.status = status
        self.detail = detail
        suffix = f" (HTTP {status})" if status is not None else ""
        super().__init__(f"{upstream} unavailable{suffix}: {detail}")


class ConfigMissing(GatewayError):
    """A credential or collaborator required for this path is not configured."""

    def __init__(self, setting: str) -> None:
        self.setting = setting
        super().__init__(f"{setting} not configured")


class UnknownSport(GatewayError, LookupError):
    """The requested sport slug is not in the catalog."""

    def __init__(self, slug: str) -> None:
        self.slug = slug
        super().__init__(f"Unknown sport: {slug}")
