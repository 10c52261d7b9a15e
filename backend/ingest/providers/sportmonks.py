"""
SportMonks cricket API client.
Only the paginated team listing is used; the raw records are cached as-is.
"""
from __future__ import annotations

from typing import Any

from shared.errors import ConfigMissing, UpstreamUnavailable
from shared.utils.http_client import UpstreamHTTPClient
from shared.utils.logging import get_logger

logger = get_logger(__name__)

UPSTREAM = "sportmonks"
MAX_PAGES = 200


class SportmonksClient:
    def __init__(self, http: UpstreamHTTPClient, api_key: str, teams_url: str) -> None:
        self._http = http
        self._api_key = api_key
        self._teams_url = teams_url

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def fetch_all_teams(self) -> list[dict[str, Any]]:
        """
        Every team record across all pages.

        Raises:
            ConfigMissing: No API key is configured.
            UpstreamUnavailable: Any page failed or returned a malformed body.
        """
        if not self._api_key:
            raise ConfigMissing("LSG_SPORTMONKS_API_KEY")

        teams: list[dict[str, Any]] = []
        page = 1
        while page <= MAX_PAGES:
            data = await self._http.get_json(
                self._teams_url,
                upstream=UPSTREAM,
                params={"api_token": self._api_key, "page": page},
                headers={"Accept": "application/json"},
            )
            if not isinstance(data, dict):
                raise UpstreamUnavailable(UPSTREAM, "unexpected response body")

            records = data.get("data")
            if isinstance(records, list):
                teams.extend(r for r in records if isinstance(r, dict))

            pagination = (data.get("meta") or {}).get("pagination") or {}
            current, total = pagination.get("current_page"), pagination.get("total_pages")
            if isinstance(current, int) and isinstance(total, int) and current < total:
                page += 1
                continue
            break

        logger.info("sportmonks_teams_fetched", teams=len(teams), pages=page)
        return teams
