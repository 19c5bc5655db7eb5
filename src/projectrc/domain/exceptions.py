"""Domain exception hierarchy.

Each exception maps to a specific HTTP status code at the interface layer.
Inner layers raise these; the outermost error-handler translates them.
"""

from __future__ import annotations

from typing import Any


class ProjectRCError(Exception):
    """Base exception for the entire application."""


# ── Input validation ────────────────────────────────────────────────────────


class InvalidRepositoryRefError(ProjectRCError):
    """The supplied owner / repository name pair is not a valid GitHub ref."""


# ── Config lookup & validation ──────────────────────────────────────────────


class ConfigNotFoundError(ProjectRCError):
    """The repository has no config file in any of the candidate locations."""


class ProjectIgnoredError(ConfigNotFoundError):
    """The config explicitly excludes the repository (same signal as no config)."""


class ConfigValidationError(ProjectRCError):
    """The config document does not match the schema.

    ``details`` holds one ``{"loc": ..., "msg": ...}`` entry per violated
    field path.
    """

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.details: list[dict[str, Any]] = details or []


# ── GitHub API errors ───────────────────────────────────────────────────────


class RepositoryNotFoundError(ProjectRCError):
    """The repository does not exist or is not accessible (404)."""


class RepositoryAccessDeniedError(ProjectRCError):
    """Access to the repository was denied (401 / 403)."""


class GitHubRateLimitError(ProjectRCError):
    """GitHub API rate limit exceeded (429 / 403 with rate-limit header)."""


class UpstreamError(ProjectRCError):
    """Network failure or unexpected status from GitHub / npm."""


# ── Resolution errors ───────────────────────────────────────────────────────


class ResolutionError(ProjectRCError):
    """Resolution was aborted; the message carries the human-readable cause."""


class ManifestNotFoundError(ResolutionError):
    """No ``package.json`` exists at the requested path."""


class InvalidManifestError(ResolutionError):
    """A ``package.json`` exists but is not JSON or has no ``name``."""


class MissingWorkspacesError(ResolutionError):
    """Workspace mode is enabled but the root manifest declares no workspaces."""


class EmptyTreeError(ResolutionError):
    """The recursive tree listing returned no entries."""


class TreeTooLargeError(ResolutionError):
    """The recursive tree listing was truncated by GitHub."""


class NoVersionSourceError(ResolutionError):
    """Neither a GitHub release nor a usable manifest / npm version exists."""


class UpstreamResponseError(ResolutionError):
    """An upstream response was successful but did not have the expected shape."""
