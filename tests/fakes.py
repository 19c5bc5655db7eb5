"""In-memory gateways used in place of the GitHub / npm adapters."""

from __future__ import annotations

import asyncio
from typing import Any

from projectrc.domain.entities import (
    FileTree,
    FileTreeEntry,
    PackageDescriptor,
    RawConfigFile,
    RegistryInfo,
    ReleaseInfo,
    RepositoryInfo,
)
from projectrc.domain.exceptions import (
    ManifestNotFoundError,
    RepositoryNotFoundError,
    UpstreamError,
)
from projectrc.domain.value_objects import RepositoryRef
from projectrc.services.resolve_projects import ResolveProjectsUseCase

SITE_URL = "https://site.test"
CONFIG_PATH = "https://api.github.com/repos/acme/widgets/contents/.github/mosaic.json"


def tree_of(*paths: str, truncated: bool = False) -> FileTree:
    """Tree listing for *paths*; a last segment with a dot is a blob."""
    entries = [
        FileTreeEntry(path=p, type="blob" if "." in p.rsplit("/", 1)[-1] else "tree")
        for p in paths
    ]
    return FileTree(truncated=truncated, entries=entries)


class FakeGitHub:
    def __init__(
        self,
        *,
        config: Any = None,
        repository: RepositoryInfo | None = None,
        packages: dict[str | None, PackageDescriptor] | None = None,
        tree: FileTree | None = None,
        release: ReleaseInfo | None = None,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.config = None if config is None else RawConfigFile(content=config, path=CONFIG_PATH)
        self.repository = repository
        self.packages = packages or {}
        self.tree = tree or FileTree(truncated=False, entries=[])
        self.release = release
        self.delays = delays or {}
        self.package_calls: list[str | None] = []
        self.completed: list[str | None] = []
        self.tree_branches: list[str] = []
        self.release_calls = 0

    async def fetch_config(self, ref: RepositoryRef) -> RawConfigFile | None:
        return self.config

    async def fetch_repository(self, ref: RepositoryRef) -> RepositoryInfo:
        if self.repository is None:
            raise RepositoryNotFoundError(f"Repository {ref.full_name} not found.")
        return self.repository

    async def fetch_package(
        self, ref: RepositoryRef, path: str | None = None
    ) -> PackageDescriptor:
        self.package_calls.append(path)
        if path in self.delays:
            await asyncio.sleep(self.delays[path])
        if path not in self.packages:
            raise ManifestNotFoundError(f"No package.json found at {path or 'root'}.")
        self.completed.append(path)
        return self.packages[path]

    async def fetch_tree(self, ref: RepositoryRef, branch: str) -> FileTree:
        self.tree_branches.append(branch)
        return self.tree

    async def fetch_latest_release(self, ref: RepositoryRef) -> ReleaseInfo | None:
        self.release_calls += 1
        return self.release


class FakeRegistry:
    def __init__(
        self,
        *,
        latest: dict[str, str | None] | None = None,
        downloads: dict[str, int | None] | None = None,
        unreachable: bool = False,
    ) -> None:
        self.latest = latest or {}
        self.downloads = downloads or {}
        self.unreachable = unreachable
        self.info_calls: list[str] = []
        self.download_calls: list[str] = []

    async def fetch_registry_info(self, package_name: str) -> RegistryInfo:
        self.info_calls.append(package_name)
        if self.unreachable:
            raise UpstreamError(f"npm registry returned HTTP 503 for {package_name}")
        return RegistryInfo(latest_version=self.latest.get(package_name))

    async def fetch_monthly_downloads(self, package_name: str) -> int | None:
        self.download_calls.append(package_name)
        return self.downloads.get(package_name)


def make_use_case(
    github: FakeGitHub, registry: FakeRegistry | None = None
) -> ResolveProjectsUseCase:
    return ResolveProjectsUseCase(
        github=github,
        registry=registry or FakeRegistry(),
        site_url=SITE_URL,
        max_concurrent_fetches=4,
    )
