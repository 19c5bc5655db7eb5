"""Port: package registry gateway — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol

from projectrc.domain.entities import RegistryInfo


class RegistryGateway(Protocol):
    """Abstract contract for the npm registry and download-count APIs."""

    async def fetch_registry_info(self, package_name: str) -> RegistryInfo:
        """Return registry metadata (``dist-tags.latest``) for *package_name*."""
        ...

    async def fetch_monthly_downloads(self, package_name: str) -> int | None:
        """Return last-month downloads, or ``None`` if the response is unusable."""
        ...
