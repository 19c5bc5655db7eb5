"""Version resolution — GitHub release first, npm registry second.

Precedence: latest release tag → npm ``dist-tags.latest`` → manifest
``version``.  The npm path is only consulted when the release lookup is
unsuccessful *and* the manifest declares a version; there is no silent
default.
"""

from __future__ import annotations

import logging

from projectrc.domain.entities import PackageDescriptor
from projectrc.domain.exceptions import (
    ManifestNotFoundError,
    NoVersionSourceError,
    UpstreamError,
)
from projectrc.domain.ports.github_gateway import GitHubGateway
from projectrc.domain.ports.registry_gateway import RegistryGateway
from projectrc.domain.value_objects import RepositoryRef

logger = logging.getLogger(__name__)


async def resolve_version(
    github: GitHubGateway,
    registry: RegistryGateway,
    ref: RepositoryRef,
    package_path: str | None = None,
    manifest: PackageDescriptor | None = None,
) -> str:
    """Return the version to publish for the package at *package_path*.

    *manifest* is the already-fetched package.json of that path, if any.
    """
    release = await github.fetch_latest_release(ref)
    if release is not None:
        return release.tag_name

    if manifest is None:
        where = package_path or "repository root"
        try:
            manifest = await github.fetch_package(ref, package_path)
        except ManifestNotFoundError as exc:
            raise NoVersionSourceError(
                f"No latest release on GitHub for {ref.full_name} "
                f"and no package.json in {where}."
            ) from exc

    if not manifest.version:
        raise NoVersionSourceError(
            f"No latest release on GitHub for {ref.full_name} and no version "
            f"in package.json of {manifest.name}."
        )

    logger.warning(
        "No latest release for %s — falling back to npm registry for %s",
        ref.full_name,
        manifest.name,
    )
    try:
        info = await registry.fetch_registry_info(manifest.name)
    except UpstreamError as exc:
        raise NoVersionSourceError(
            f"No latest release on GitHub for {ref.full_name} and the npm registry "
            f"is unavailable for {manifest.name}: {exc}"
        ) from exc

    if info.latest_version is None:
        raise NoVersionSourceError(
            f"No latest release on GitHub for {ref.full_name} and npm has no "
            f"'dist-tags.latest' for {manifest.name}."
        )

    return info.latest_version or manifest.version
