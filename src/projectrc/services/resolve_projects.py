"""Resolve-projects use case — the main orchestration pipeline.

This is the single entry point for the business logic.  It depends only on
the two ports (:class:`GitHubGateway` and :class:`RegistryGateway`) and the
pure service modules.  The interface layer injects concrete adapters at
runtime.  Every call is a fresh, stateless resolution: any failure aborts
the whole call and no partial project list is ever returned.
"""

from __future__ import annotations

import asyncio
import logging

from projectrc.domain.entities import (
    NpmInfo,
    PackageDescriptor,
    RepositoryInfo,
    ResolvedProject,
    WorkspacePackage,
)
from projectrc.domain.exceptions import (
    ConfigNotFoundError,
    EmptyTreeError,
    ManifestNotFoundError,
    MissingWorkspacesError,
    ProjectIgnoredError,
    TreeTooLargeError,
)
from projectrc.domain.ports.github_gateway import GitHubGateway
from projectrc.domain.ports.registry_gateway import RegistryGateway
from projectrc.domain.schema import (
    NpmSettings,
    ProjectConfig,
    WorkspaceSettings,
    validate_config,
)
from projectrc.domain.value_objects import RepositoryRef, npm_package_url, readme_url
from projectrc.services.project_builder import EffectiveConfig, build_website, merge_config
from projectrc.services.version_resolver import resolve_version
from projectrc.services.workspace_matcher import match_workspace_paths

logger = logging.getLogger(__name__)

_FALLBACK_BRANCH = "main"


class ResolveProjectsUseCase:
    """Orchestrates config → repository → (workspace) → projects.

    Parameters
    ----------
    github:
        Adapter for config files, repository metadata, manifests, trees
        and releases.
    registry:
        Adapter for npm registry metadata and download counts.
    site_url:
        Base URL of the readme-serving endpoint used in ``readme`` links.
    max_concurrent_fetches:
        Upper bound on concurrent manifest fetches in workspace mode.
    """

    def __init__(
        self,
        github: GitHubGateway,
        registry: RegistryGateway,
        site_url: str,
        max_concurrent_fetches: int = 10,
    ) -> None:
        self._github = github
        self._registry = registry
        self._site_url = site_url
        self._max_concurrent = max(1, max_concurrent_fetches)

    # ── Public entry points ─────────────────────────────────────────────

    async def load_config(self, owner: str, name: str) -> tuple[ProjectConfig, str]:
        """Return the validated config and the URL it was read from."""
        return await self._load_config(RepositoryRef.from_parts(owner, name))

    async def execute(self, owner: str, name: str) -> list[ResolvedProject]:
        """Resolve every project described by the repository's config."""
        ref = RepositoryRef.from_parts(owner, name)
        logger.info("Resolving projects for %s", ref.full_name)

        config, _ = await self._load_config(ref)
        if config.is_ignored:
            raise ProjectIgnoredError(f"Repository {ref.full_name} is ignored by its config.")

        repository = await self._github.fetch_repository(ref)

        workspace = config.workspace
        if workspace is not None and workspace.enabled:
            return await self._resolve_workspace(ref, config, workspace, repository)

        project = await self._build_project(
            ref,
            repository,
            merge_config(config),
            name=repository.name,
        )
        return [project]

    # ── Config ──────────────────────────────────────────────────────────

    async def _load_config(self, ref: RepositoryRef) -> tuple[ProjectConfig, str]:
        raw = await self._github.fetch_config(ref)
        if raw is None:
            raise ConfigNotFoundError(f"Repository {ref.full_name} has no config defined.")
        return validate_config(raw.content), raw.path

    # ── Workspace mode ──────────────────────────────────────────────────

    async def _resolve_workspace(
        self,
        ref: RepositoryRef,
        config: ProjectConfig,
        workspace: WorkspaceSettings,
        repository: RepositoryInfo,
    ) -> list[ResolvedProject]:
        try:
            root = await self._github.fetch_package(ref)
        except ManifestNotFoundError as exc:
            raise ManifestNotFoundError(
                f"Workspace mode is enabled, but {ref.full_name} has no package.json "
                "in the repository root."
            ) from exc

        if not root.workspaces:
            raise MissingWorkspacesError(
                f"Workspace mode is enabled, but the package.json of {ref.full_name} "
                "declares no workspaces."
            )

        branch = repository.default_branch_name or _FALLBACK_BRANCH
        tree = await self._github.fetch_tree(ref, branch)
        if tree.truncated:
            raise TreeTooLargeError(
                f"Workspace mode is enabled, but the file tree of {ref.full_name} "
                "is too large (truncated listing)."
            )
        if not tree.entries:
            raise EmptyTreeError(
                f"Workspace mode is enabled, but no files were found in {ref.full_name}."
            )

        directories = [entry.path for entry in tree.entries if entry.type == "tree"]
        matched = match_workspace_paths(directories, root.workspaces, workspace.ignores)
        logger.info(
            "Matched %d workspace package(s) in %s (%d directories)",
            len(matched),
            ref.full_name,
            len(directories),
        )

        packages = await self._fetch_packages(ref, matched)

        projects: list[ResolvedProject] = []
        for package in packages:
            override = workspace.overrides.get(package.descriptor.name)
            if override is not None and override.is_ignored:
                logger.debug("Skipping %s — ignored by override", package.descriptor.name)
                continue

            projects.append(
                await self._build_project(
                    ref,
                    repository,
                    merge_config(config, override),
                    name=package.descriptor.name,
                    package_path=package.path,
                    manifest=package.descriptor,
                )
            )
        return projects

    async def _fetch_packages(
        self, ref: RepositoryRef, paths: list[str]
    ) -> list[WorkspacePackage]:
        """Fetch manifests concurrently; results keep the order of *paths*.

        The fetches fail as a unit: the first error cancels every sibling
        still in flight and is re-raised as is.
        """
        sem = asyncio.Semaphore(self._max_concurrent)

        async def _fetch_one(path: str) -> WorkspacePackage:
            async with sem:
                descriptor = await self._github.fetch_package(ref, path)
            return WorkspacePackage(path=path, descriptor=descriptor)

        try:
            async with asyncio.TaskGroup() as tg:
                tasks = [tg.create_task(_fetch_one(path)) for path in paths]
        except ExceptionGroup as group:
            raise group.exceptions[0] from None

        return [task.result() for task in tasks]

    # ── Project assembly ────────────────────────────────────────────────

    async def _build_project(
        self,
        ref: RepositoryRef,
        repository: RepositoryInfo,
        effective: EffectiveConfig,
        *,
        name: str,
        package_path: str | None = None,
        manifest: PackageDescriptor | None = None,
    ) -> ResolvedProject:
        description = effective.description or repository.description or None

        readme = None
        if effective.readme is not None and effective.readme.enabled:
            readme = readme_url(
                self._site_url, ref, effective.readme.path or package_path
            )

        npm = None
        if manifest is None or not manifest.private:
            npm = await self._build_npm(ref, effective.npm, package_path, manifest)

        version = None
        if effective.version:
            version = await resolve_version(
                self._github, self._registry, ref, package_path, manifest
            )

        return ResolvedProject(
            name=name,
            ignore=False,
            priority=effective.priority,
            deprecated=effective.deprecated,
            stars=repository.stargazer_count if effective.stars else None,
            description=description,
            website=build_website(effective.website, repository, name, description),
            readme=readme,
            npm=npm,
            version=version,
        )

    async def _build_npm(
        self,
        ref: RepositoryRef,
        settings: NpmSettings | None,
        package_path: str | None,
        manifest: PackageDescriptor | None,
    ) -> NpmInfo | None:
        if settings is None or not settings.enabled:
            return None

        package_name = settings.name
        if not package_name:
            if manifest is None:
                manifest = await self._github.fetch_package(ref, package_path)
            package_name = manifest.name

        downloads = None
        if settings.downloads:
            downloads = await self._registry.fetch_monthly_downloads(package_name)

        return NpmInfo(
            name=package_name,
            url=npm_package_url(package_name),
            downloads=downloads,
        )
