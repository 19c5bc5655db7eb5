"""npm adapter — implements the RegistryGateway port."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from projectrc.domain.entities import RegistryInfo
from projectrc.domain.exceptions import UpstreamError

logger = logging.getLogger(__name__)

_REGISTRY_BASE = "https://registry.npmjs.org"
_DOWNLOADS_BASE = "https://api.npmjs.org/downloads/point/last-month"


class NpmRegistryAdapter:
    """Concrete ``RegistryGateway`` backed by the public npm APIs."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def fetch_registry_info(self, package_name: str) -> RegistryInfo:
        """GET registry.npmjs.org/{name} → RegistryInfo (``dist-tags.latest``)."""
        # scoped packages: "@scope/name" → "@scope%2Fname"
        url = f"{_REGISTRY_BASE}/{quote(package_name, safe='@')}"
        resp = await self._get(url)

        if resp.status_code != 200:
            raise UpstreamError(f"npm registry returned HTTP {resp.status_code} for {package_name}")

        try:
            payload = resp.json()
        except ValueError as exc:
            raise UpstreamError(f"npm registry returned invalid JSON for {package_name}") from exc
        dist_tags = payload.get("dist-tags") if isinstance(payload, dict) else None
        latest = dist_tags.get("latest") if isinstance(dist_tags, dict) else None
        return RegistryInfo(latest_version=latest if isinstance(latest, str) else None)

    async def fetch_monthly_downloads(self, package_name: str) -> int | None:
        """GET api.npmjs.org/downloads/point/last-month/{name} → download count.

        A malformed or missing ``downloads`` field is not fatal: it is
        logged and ``None`` is returned.
        """
        url = f"{_DOWNLOADS_BASE}/{package_name}"
        resp = await self._get(url)

        try:
            payload = resp.json()
        except ValueError:
            payload = None

        downloads = payload.get("downloads") if isinstance(payload, dict) else None
        if resp.status_code != 200 or not isinstance(downloads, int) or isinstance(downloads, bool):
            logger.warning(
                "npm downloads is enabled, but no `downloads` field was found in the "
                "npm API response for %s (HTTP %d)",
                package_name,
                resp.status_code,
            )
            return None
        return downloads

    async def _get(self, url: str) -> httpx.Response:
        try:
            return await self._client.get(url, headers={"Accept": "application/json"})
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Network error fetching {url}: {exc}") from exc
