"""FastAPI dependency injection wiring."""

from __future__ import annotations

import httpx

from projectrc.infrastructure.config import get_settings
from projectrc.infrastructure.github_rest_adapter import GitHubRestAdapter
from projectrc.infrastructure.npm_registry_adapter import NpmRegistryAdapter
from projectrc.services.resolve_projects import ResolveProjectsUseCase

_http_client: httpx.AsyncClient | None = None


async def startup() -> None:
    """Initialise shared resources — called from the lifespan context manager."""
    global _http_client  # noqa: PLW0603

    settings = get_settings()
    _http_client = httpx.AsyncClient(timeout=httpx.Timeout(settings.http_timeout_seconds))


async def shutdown() -> None:
    """Release shared resources."""
    global _http_client  # noqa: PLW0603

    if _http_client:
        await _http_client.aclose()
        _http_client = None


def get_use_case() -> ResolveProjectsUseCase:
    """Build a use case with injected adapters (one per request, no shared state)."""
    settings = get_settings()

    assert _http_client is not None, "startup() was not called"

    token = settings.github_token.get_secret_value() if settings.github_token else None

    return ResolveProjectsUseCase(
        github=GitHubRestAdapter(client=_http_client, token=token),
        registry=NpmRegistryAdapter(client=_http_client),
        site_url=settings.site_url,
        max_concurrent_fetches=settings.max_concurrent_fetches,
    )
