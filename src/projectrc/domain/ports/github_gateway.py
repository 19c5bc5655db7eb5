"""Port: GitHub gateway — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol

from projectrc.domain.entities import (
    FileTree,
    PackageDescriptor,
    RawConfigFile,
    ReleaseInfo,
    RepositoryInfo,
)
from projectrc.domain.value_objects import RepositoryRef


class GitHubGateway(Protocol):
    """Abstract contract for the GitHub data the resolver needs."""

    async def fetch_config(self, ref: RepositoryRef) -> RawConfigFile | None:
        """Return the first config file found, or ``None`` when there is none."""
        ...

    async def fetch_repository(self, ref: RepositoryRef) -> RepositoryInfo:
        """Return repository metadata; raise ``RepositoryNotFoundError`` if absent."""
        ...

    async def fetch_package(
        self, ref: RepositoryRef, path: str | None = None
    ) -> PackageDescriptor:
        """Return the manifest at *path* (repository root when omitted)."""
        ...

    async def fetch_tree(self, ref: RepositoryRef, branch: str) -> FileTree:
        """Return the recursive file tree for the given branch."""
        ...

    async def fetch_latest_release(self, ref: RepositoryRef) -> ReleaseInfo | None:
        """Return the latest release, or ``None`` when the lookup is unsuccessful."""
        ...
