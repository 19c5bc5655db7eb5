"""Domain entities — pure data structures with no external dependencies."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal


@dataclass(frozen=True, slots=True)
class FileTreeEntry:
    """A single node from the GitHub tree API (blob or sub-tree)."""

    path: str
    type: Literal["tree", "blob"]
    mode: str | None = None
    sha: str | None = None
    size: int | None = None


@dataclass(frozen=True, slots=True)
class FileTree:
    """Result of a recursive tree listing."""

    truncated: bool
    entries: list[FileTreeEntry] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class RepositoryInfo:
    """Read-only snapshot of repository metadata from the GraphQL API."""

    name: str
    description: str | None = None
    homepage_url: str | None = None
    stargazer_count: int = 0
    default_branch_name: str | None = None
    primary_language: str | None = None


@dataclass(frozen=True, slots=True)
class PackageDescriptor:
    """The fields of a ``package.json`` manifest the resolver cares about."""

    name: str
    version: str | None = None
    private: bool = False
    workspaces: list[str] | None = None


@dataclass(frozen=True, slots=True)
class ReleaseInfo:
    """Latest GitHub release of a repository."""

    tag_name: str


@dataclass(frozen=True, slots=True)
class RegistryInfo:
    """npm registry metadata for a package."""

    latest_version: str | None = None


@dataclass(frozen=True, slots=True)
class RawConfigFile:
    """An undecoded config document and the API URL it was read from."""

    content: Any
    path: str


@dataclass(frozen=True, slots=True)
class WorkspacePackage:
    """A workspace sub-package discovered by the matcher."""

    path: str
    descriptor: PackageDescriptor


@dataclass(frozen=True, slots=True)
class WebsiteInfo:
    url: str | None
    title: str
    description: str | None = None
    keywords: list[str] | None = None


@dataclass(frozen=True, slots=True)
class NpmInfo:
    name: str
    url: str
    downloads: int | None = None


@dataclass(frozen=True, slots=True)
class ResolvedProject:
    """The final, normalised record describing one project."""

    name: str
    ignore: bool = False
    priority: int = 0
    deprecated: bool | str | None = None
    stars: int | None = None
    description: str | None = None
    website: WebsiteInfo | None = None
    readme: str | None = None
    npm: NpmInfo | None = None
    version: str | None = None
