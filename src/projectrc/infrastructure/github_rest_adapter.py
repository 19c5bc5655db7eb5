"""GitHub API adapter — implements the GitHubGateway port.

REST for contents / trees / releases, GraphQL for repository metadata.
Every response is parsed into a domain entity here; nothing downstream
sees raw JSON.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from projectrc.domain.entities import (
    FileTree,
    PackageDescriptor,
    RawConfigFile,
    ReleaseInfo,
    RepositoryInfo,
)
from projectrc.domain.exceptions import (
    ConfigValidationError,
    GitHubRateLimitError,
    InvalidManifestError,
    ManifestNotFoundError,
    RepositoryAccessDeniedError,
    RepositoryNotFoundError,
    UpstreamError,
    UpstreamResponseError,
)
from projectrc.domain.schema import validate_tree
from projectrc.domain.value_objects import RepositoryRef

logger = logging.getLogger(__name__)

_GITHUB_API = "https://api.github.com"
_GRAPHQL_URL = f"{_GITHUB_API}/graphql"
_USER_AGENT = "projectrc-resolver/1.0"

CONFIG_DIR = ".github"
CONFIG_FILE_NAMES: tuple[str, ...] = (
    "mosaic.json",
    ".projectrc.json",
    ".projectrc",
    # read as plain JSON; JSON5-only syntax is reported as invalid
    ".projectrc.json5",
)

REPOSITORY_QUERY = """
query getRepository($owner: String!, $name: String!) {
  repository(owner: $owner, name: $name) {
    name
    description
    homepageUrl
    stargazerCount
    defaultBranchRef {
      name
    }
    primaryLanguage {
      name
    }
  }
}
"""


# ── Response parsers ────────────────────────────────────────────────────────


def decode_content(payload: Any) -> str | None:
    """Return the decoded ``content`` of a contents-API payload.

    ``None`` when the payload is not a single file with inline content
    (directories come back as lists).
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("content"), str):
        return None
    try:
        return base64.b64decode(payload["content"]).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None


def parse_package(text: str, source: str) -> PackageDescriptor:
    """Parse ``package.json`` text into a :class:`PackageDescriptor`."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidManifestError(f"{source} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise InvalidManifestError(f"{source} is not a JSON object.")

    name = data.get("name")
    if not isinstance(name, str) or not name:
        raise InvalidManifestError(f"No `name` field found in {source}.")

    version = data.get("version")
    private = data.get("private")

    workspaces = data.get("workspaces")
    if isinstance(workspaces, dict):
        # yarn: {"packages": [...], "nohoist": [...]}
        workspaces = workspaces.get("packages")
    if isinstance(workspaces, list):
        workspaces = [w for w in workspaces if isinstance(w, str)]
    else:
        workspaces = None

    return PackageDescriptor(
        name=name,
        version=version if isinstance(version, str) and version else None,
        private=private if isinstance(private, bool) else False,
        workspaces=workspaces,
    )


def parse_repository(node: dict[str, Any]) -> RepositoryInfo:
    """Map a GraphQL ``repository`` node to :class:`RepositoryInfo`."""
    name = node.get("name")
    if not isinstance(name, str):
        raise UpstreamResponseError("GitHub GraphQL response has no repository `name`.")

    branch = node.get("defaultBranchRef") or {}
    language = node.get("primaryLanguage") or {}
    stars = node.get("stargazerCount")

    return RepositoryInfo(
        name=name,
        description=node.get("description") or None,
        homepage_url=node.get("homepageUrl") or None,
        stargazer_count=stars if isinstance(stars, int) else 0,
        default_branch_name=branch.get("name"),
        primary_language=language.get("name"),
    )


def parse_tree(payload: Any) -> FileTree:
    """Map a ``git/trees?recursive=1`` payload to :class:`FileTree`."""
    if not isinstance(payload, dict):
        raise UpstreamResponseError("GitHub returned a malformed tree listing.")

    truncated = payload.get("truncated")
    if not isinstance(truncated, bool):
        raise UpstreamResponseError("GitHub tree listing has no `truncated` flag.")

    raw_entries = payload.get("tree", [])
    if not isinstance(raw_entries, list):
        raise UpstreamResponseError("GitHub tree listing has no `tree` array.")

    # submodules show up as "commit" entries; they are never packages
    raw_entries = [
        e for e in raw_entries if not (isinstance(e, dict) and e.get("type") == "commit")
    ]
    return FileTree(truncated=truncated, entries=validate_tree(raw_entries))


# ── Adapter ─────────────────────────────────────────────────────────────────


class GitHubRestAdapter:
    """Concrete GitHubGateway backed by the GitHub REST and GraphQL APIs."""

    def __init__(self, client: httpx.AsyncClient, token: str | None = None) -> None:
        self._client = client
        self._api_headers: dict[str, str] = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": _USER_AGENT,
        }
        if token:
            self._api_headers["Authorization"] = f"Bearer {token}"

    async def fetch_config(self, ref: RepositoryRef) -> RawConfigFile | None:
        """Probe ``.github/<candidate>`` in order; first existing file wins."""
        for file_name in CONFIG_FILE_NAMES:
            endpoint = f"/repos/{ref.owner}/{ref.name}/contents/{CONFIG_DIR}/{file_name}"
            resp = await self._api_get(endpoint, missing=(404,))
            if resp is None:
                continue

            text = decode_content(_json(resp))
            if text is None:
                logger.warning(
                    "%s/%s in %s could not be decoded — skipping",
                    CONFIG_DIR,
                    file_name,
                    ref.full_name,
                )
                continue

            try:
                content = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ConfigValidationError(
                    f"Config file {CONFIG_DIR}/{file_name} is not valid JSON.",
                    [{"loc": "<root>", "msg": str(exc)}],
                ) from exc

            logger.debug("Using config %s/%s for %s", CONFIG_DIR, file_name, ref.full_name)
            return RawConfigFile(content=content, path=f"{_GITHUB_API}{endpoint}")

        return None

    async def fetch_repository(self, ref: RepositoryRef) -> RepositoryInfo:
        """POST /graphql getRepository → RepositoryInfo."""
        resp = await self._send(
            "POST",
            _GRAPHQL_URL,
            body={
                "query": REPOSITORY_QUERY,
                "variables": {"owner": ref.owner, "name": ref.name},
            },
        )
        _check_status(resp)
        payload = _json(resp)
        data = payload.get("data") if isinstance(payload, dict) else None
        node = data.get("repository") if isinstance(data, dict) else None

        if not isinstance(node, dict):
            errors = payload.get("errors") if isinstance(payload, dict) else None
            if errors:
                logger.debug("GraphQL errors for %s: %s", ref.full_name, errors)
            raise RepositoryNotFoundError(f"Repository {ref.full_name} not found.")

        return parse_repository(node)

    async def fetch_package(
        self, ref: RepositoryRef, path: str | None = None
    ) -> PackageDescriptor:
        """GET /repos/{owner}/{repo}/contents/{path}/package.json → PackageDescriptor."""
        manifest_path = f"{path.strip('/')}/package.json" if path else "package.json"
        endpoint = f"/repos/{ref.owner}/{ref.name}/contents/{manifest_path}"
        source = f"{ref.full_name}/{manifest_path}"

        resp = await self._api_get(endpoint, missing=(404,))
        if resp is None:
            raise ManifestNotFoundError(f"No package.json found at {source}.")

        text = decode_content(_json(resp))
        if text is None:
            raise InvalidManifestError(f"Could not read the content of {source}.")

        return parse_package(text, source)

    async def fetch_tree(self, ref: RepositoryRef, branch: str) -> FileTree:
        """GET /repos/{owner}/{repo}/git/trees/{branch}?recursive=1 → FileTree."""
        resp = await self._api_get(
            f"/repos/{ref.owner}/{ref.name}/git/trees/{branch}",
            params={"recursive": "1"},
            # 409: empty repository
            missing=(404, 409),
        )
        if resp is None:
            return FileTree(truncated=False, entries=[])
        return parse_tree(_json(resp))

    async def fetch_latest_release(self, ref: RepositoryRef) -> ReleaseInfo | None:
        """GET /repos/{owner}/{repo}/releases/latest; ``None`` unless HTTP 200."""
        resp = await self._send(
            "GET", f"{_GITHUB_API}/repos/{ref.owner}/{ref.name}/releases/latest"
        )
        if resp.status_code != 200:
            logger.warning(
                "No latest release found on GitHub for %s (HTTP %d)",
                ref.full_name,
                resp.status_code,
            )
            return None

        payload = _json(resp)
        tag_name = payload.get("tag_name") if isinstance(payload, dict) else None
        if not isinstance(tag_name, str):
            raise UpstreamResponseError(
                "Version is enabled, but no `tag_name` field was found in the "
                "GitHub API response."
            )
        return ReleaseInfo(tag_name=tag_name)

    # ── HTTP plumbing ───────────────────────────────────────────────────

    async def _api_get(
        self,
        endpoint: str,
        params: dict[str, str] | None = None,
        missing: tuple[int, ...] = (),
    ) -> httpx.Response | None:
        """GitHub REST GET; ``None`` for any status listed in *missing*."""
        resp = await self._send("GET", f"{_GITHUB_API}{endpoint}", params=params)
        if resp.status_code in missing:
            return None
        _check_status(resp)
        return resp

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        body: Any = None,
    ) -> httpx.Response:
        """Perform a GitHub API request, translating network failures."""
        try:
            return await self._client.request(
                method, url, headers=self._api_headers, params=params, json=body
            )
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Network error fetching {url}: {exc}") from exc


def _json(resp: httpx.Response) -> Any:
    """Decode a response body; a non-JSON body is a malformed response."""
    try:
        return resp.json()
    except ValueError as exc:
        raise UpstreamResponseError(
            f"GitHub returned a non-JSON body (HTTP {resp.status_code}) for {resp.request.url}"
        ) from exc


def _check_status(resp: httpx.Response) -> None:
    """Translate any non-200 GitHub status into a domain error."""
    if resp.status_code == 200:
        return

    if resp.status_code == 404:
        raise RepositoryNotFoundError(
            "Repository not found. Make sure the owner and name point to a public repository."
        )

    if resp.status_code == 401:
        raise RepositoryAccessDeniedError(
            "GitHub rejected the request. Set a valid GITHUB_TOKEN environment variable."
        )

    if resp.status_code == 403:
        remaining = resp.headers.get("x-ratelimit-remaining", "")
        if remaining == "0":
            reset_raw = resp.headers.get("x-ratelimit-reset", "")
            try:
                reset_str = datetime.fromtimestamp(int(reset_raw), tz=timezone.utc).strftime(
                    "%Y-%m-%d %H:%M:%S UTC"
                )
            except (ValueError, OSError):
                reset_str = reset_raw or "unknown"
            raise GitHubRateLimitError(
                f"GitHub API rate limit exceeded. Resets at {reset_str}. "
                "Set the GITHUB_TOKEN environment variable to increase the limit."
            )
        raise RepositoryAccessDeniedError(
            "Access denied. The repository may be private."
        )

    if resp.status_code == 429:
        raise GitHubRateLimitError("GitHub API rate limit exceeded (HTTP 429).")

    raise UpstreamError(f"GitHub API returned HTTP {resp.status_code} for {resp.request.url}")
