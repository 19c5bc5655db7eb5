"""Override merging and the pure parts of building a resolved project."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeVar

from projectrc.domain.entities import RepositoryInfo, WebsiteInfo
from projectrc.domain.schema import (
    NpmSettings,
    PackageOverride,
    ProjectConfig,
    ReadmeSettings,
    WebsiteSettings,
)

_T = TypeVar("_T")


@dataclass(frozen=True, slots=True)
class EffectiveConfig:
    """Config for one project after layering an override over the base."""

    deprecated: bool | str | None
    description: str | None
    stars: bool
    priority: int
    version: bool
    website: WebsiteSettings | None
    readme: ReadmeSettings | None
    npm: NpmSettings | None


def _explicit(override: _T | None, base: _T) -> _T:
    """Override wins whenever it is set, even to ``0`` / ``False``."""
    return base if override is None else override


def _text(*candidates: str | None) -> str | None:
    """First non-empty string."""
    for candidate in candidates:
        if candidate:
            return candidate
    return None


def merge_config(config: ProjectConfig, override: PackageOverride | None = None) -> EffectiveConfig:
    """Layer *override* over *config*.

    Scalar ``project`` fields merge one by one; ``website`` / ``readme`` /
    ``npm`` blocks in the override replace the base block whole.
    """
    base = config.project
    if override is None:
        return EffectiveConfig(
            deprecated=config.deprecated,
            description=_text(base.description, config.description),
            stars=base.stars,
            priority=base.priority,
            version=base.version,
            website=config.website,
            readme=config.readme,
            npm=config.npm,
        )

    patch = override.project
    return EffectiveConfig(
        deprecated=_explicit(override.deprecated, config.deprecated),
        description=_text(
            patch.description, override.description, base.description, config.description
        ),
        stars=_explicit(patch.stars, base.stars),
        priority=_explicit(patch.priority, base.priority),
        version=_explicit(patch.version, base.version),
        website=_explicit(override.website, config.website),
        readme=_explicit(override.readme, config.readme),
        npm=_explicit(override.npm, config.npm),
    )


def build_website(
    settings: WebsiteSettings | None,
    repository: RepositoryInfo,
    project_name: str,
    project_description: str | None,
) -> WebsiteInfo | None:
    """Website block, falling back to the repository homepage."""
    if settings is None or not settings.enabled:
        return None
    return WebsiteInfo(
        url=settings.url or repository.homepage_url or None,
        title=settings.title or project_name,
        description=settings.description or project_description,
        keywords=list(settings.keywords) if settings.keywords else None,
    )
