"""API routes — thin controllers that delegate to the use case."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from projectrc.interface.dependencies import get_use_case
from projectrc.interface.schemas import ErrorResponse, ResolvedProjectResponse
from projectrc.services.resolve_projects import ResolveProjectsUseCase

router = APIRouter(prefix="/api/v1/projects")

_ERRORS: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Config is not valid"},
    403: {"model": ErrorResponse, "description": "Repository is private"},
    404: {"model": ErrorResponse, "description": "No config, ignored, or repository not found"},
    422: {"model": ErrorResponse, "description": "Config could not be resolved"},
    429: {"model": ErrorResponse, "description": "GitHub API rate limit exceeded"},
    502: {"model": ErrorResponse, "description": "GitHub / npm upstream error"},
}


@router.get(
    "/{owner}/{repo}",
    response_model=list[ResolvedProjectResponse],
    response_model_exclude_none=True,
    responses=_ERRORS,
)
async def resolve_projects(
    owner: str,
    repo: str,
    use_case: ResolveProjectsUseCase = Depends(get_use_case),
) -> list[ResolvedProjectResponse]:
    """Resolve the projects a repository's config describes."""
    projects = await use_case.execute(owner, repo)
    return [ResolvedProjectResponse.from_entity(p) for p in projects]


@router.get("/{owner}/{repo}/config", responses=_ERRORS)
async def get_project_config(
    owner: str,
    repo: str,
    use_case: ResolveProjectsUseCase = Depends(get_use_case),
) -> dict[str, Any]:
    """Return the validated config and where it was read from."""
    config, path = await use_case.load_config(owner, repo)
    return {"$path": path, **config.model_dump(exclude_none=True)}
