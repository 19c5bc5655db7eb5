"""Config schema & validator.

Raw JSON never travels past this module: :func:`validate_config` turns it
into an immutable :class:`ProjectConfig` or raises
:class:`ConfigValidationError` listing every violated field path.
"""

from __future__ import annotations

from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from projectrc.domain.entities import FileTreeEntry
from projectrc.domain.exceptions import ConfigValidationError, UpstreamResponseError


class _Frozen(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


def _coerce_readme(value: Any) -> Any:
    """``true`` / ``"docs"`` / ``false`` shorthands → the object form."""
    if isinstance(value, bool):
        return {"enabled": value}
    if isinstance(value, str):
        return {"enabled": True, "path": value}
    return value


# ── Blocks ──────────────────────────────────────────────────────────────────


class ProjectSettings(_Frozen):
    ignore: StrictBool = False
    stars: StrictBool = False
    priority: StrictInt = 0
    description: StrictStr | None = None
    version: StrictBool = False


class WebsiteSettings(_Frozen):
    enabled: StrictBool = False
    url: StrictStr | None = None
    title: StrictStr | None = None
    description: StrictStr | None = None
    keywords: list[StrictStr] | None = None


class ReadmeSettings(_Frozen):
    enabled: StrictBool = False
    path: StrictStr | None = None


class NpmSettings(_Frozen):
    enabled: StrictBool = False
    name: StrictStr | None = None
    downloads: StrictBool = False


class ProjectOverride(_Frozen):
    """``project`` block inside an override: unset fields fall through."""

    ignore: StrictBool | None = None
    stars: StrictBool | None = None
    priority: StrictInt | None = None
    description: StrictStr | None = None
    version: StrictBool | None = None


class PackageOverride(_Frozen):
    """Per-package patch layered over the repository-wide config."""

    ignore: StrictBool | None = None
    deprecated: StrictBool | StrictStr | None = None
    description: StrictStr | None = None
    project: ProjectOverride = Field(default_factory=ProjectOverride)
    website: WebsiteSettings | None = None
    readme: ReadmeSettings | None = None
    npm: NpmSettings | None = None

    @field_validator("readme", mode="before")
    @classmethod
    def _readme_shorthand(cls, v: Any) -> Any:
        return _coerce_readme(v)

    @property
    def is_ignored(self) -> bool:
        return bool(self.ignore or self.project.ignore)


class WorkspaceSettings(_Frozen):
    enabled: StrictBool = False
    ignores: list[StrictStr] = Field(default_factory=list)
    overrides: dict[str, PackageOverride] = Field(default_factory=dict)


# ── Root document ───────────────────────────────────────────────────────────


class ProjectConfig(_Frozen):
    """Validated repository config (``.github/mosaic.json`` / ``.projectrc``)."""

    ignore: StrictBool = False
    deprecated: StrictBool | StrictStr | None = None
    description: StrictStr | None = None
    project: ProjectSettings = Field(default_factory=ProjectSettings)
    website: WebsiteSettings | None = None
    readme: ReadmeSettings | None = None
    npm: NpmSettings | None = None
    workspace: WorkspaceSettings | None = None

    @model_validator(mode="before")
    @classmethod
    def _monorepo_alias(cls, data: Any) -> Any:
        if isinstance(data, dict) and "workspace" not in data and "monorepo" in data:
            data = {**data, "workspace": data["monorepo"]}
        return data

    @field_validator("readme", mode="before")
    @classmethod
    def _readme_shorthand(cls, v: Any) -> Any:
        return _coerce_readme(v)

    @property
    def is_ignored(self) -> bool:
        return self.ignore or self.project.ignore

    @property
    def workspace_enabled(self) -> bool:
        return self.workspace is not None and self.workspace.enabled


# ── Validators ──────────────────────────────────────────────────────────────

_TREE_ADAPTER: TypeAdapter[list[FileTreeEntry]] = TypeAdapter(list[FileTreeEntry])


def _error_details(exc: ValidationError) -> list[dict[str, Any]]:
    return [
        {
            "loc": ".".join(str(part) for part in err.get("loc", ())) or "<root>",
            "msg": err.get("msg", "validation error"),
        }
        for err in exc.errors()
    ]


def validate_config(raw: Any) -> ProjectConfig:
    """Validate a decoded config document."""
    try:
        return ProjectConfig.model_validate(raw)
    except ValidationError as exc:
        details = _error_details(exc)
        raise ConfigValidationError(
            f"Config is not valid ({len(details)} error(s)).", details
        ) from exc


def validate_tree(raw_entries: Any) -> list[FileTreeEntry]:
    """Validate the ``tree`` array of a recursive tree listing."""
    try:
        return _TREE_ADAPTER.validate_python(raw_entries)
    except ValidationError as exc:
        locs = ", ".join(d["loc"] for d in _error_details(exc))
        raise UpstreamResponseError(
            f"GitHub returned a malformed tree listing (invalid: {locs})."
        ) from exc
