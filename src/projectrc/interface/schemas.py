"""Pydantic response DTOs for the API boundary."""

from __future__ import annotations

from dataclasses import asdict

from pydantic import BaseModel

from projectrc.domain.entities import ResolvedProject


class WebsiteResponse(BaseModel):
    url: str | None = None
    title: str
    description: str | None = None
    keywords: list[str] | None = None


class NpmResponse(BaseModel):
    name: str
    url: str
    downloads: int | None = None


class ResolvedProjectResponse(BaseModel):
    """One entry of ``GET /api/v1/projects/{owner}/{repo}``."""

    name: str
    ignore: bool = False
    priority: int = 0
    deprecated: bool | str | None = None
    stars: int | None = None
    description: str | None = None
    website: WebsiteResponse | None = None
    readme: str | None = None
    npm: NpmResponse | None = None
    version: str | None = None

    @classmethod
    def from_entity(cls, project: ResolvedProject) -> ResolvedProjectResponse:
        return cls.model_validate(asdict(project))


class ErrorResponse(BaseModel):
    """Standard error envelope returned on all failure paths."""

    status: str = "error"
    message: str
    details: list[dict[str, str]] | None = None
