"""Tests for projectrc.infrastructure.github_rest_adapter."""

from __future__ import annotations

import base64
import json
import logging
from typing import Any, Callable

import httpx
import pytest

from projectrc.domain.entities import FileTree, FileTreeEntry, PackageDescriptor, RepositoryInfo
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
from projectrc.domain.value_objects import RepositoryRef
from projectrc.infrastructure.github_rest_adapter import GitHubRestAdapter, parse_package

Handler = Callable[[httpx.Request], httpx.Response]


def _encoded(document: Any) -> dict[str, str]:
    raw = base64.b64encode(json.dumps(document).encode()).decode()
    # the contents API wraps base64 at 60 columns
    wrapped = "\n".join(raw[i : i + 60] for i in range(0, len(raw), 60))
    return {"type": "file", "encoding": "base64", "content": wrapped}


def _adapter(handler: Handler, token: str | None = "t0ken") -> GitHubRestAdapter:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GitHubRestAdapter(client=client, token=token)


# ── Config lookup ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_config_candidates_are_probed_in_order(ref: RepositoryRef) -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        if request.url.path.endswith("/.github/.projectrc.json"):
            return httpx.Response(200, json=_encoded({"project": {"priority": 1}}))
        return httpx.Response(404, json={"message": "Not Found"})

    result = await _adapter(handler).fetch_config(ref)

    assert result is not None
    assert result.content == {"project": {"priority": 1}}
    assert result.path == (
        "https://api.github.com/repos/acme/widgets/contents/.github/.projectrc.json"
    )
    assert seen == [
        "/repos/acme/widgets/contents/.github/mosaic.json",
        "/repos/acme/widgets/contents/.github/.projectrc.json",
    ]


@pytest.mark.asyncio
async def test_config_absent_everywhere(ref: RepositoryRef) -> None:
    adapter = _adapter(lambda request: httpx.Response(404))

    assert await adapter.fetch_config(ref) is None


@pytest.mark.asyncio
async def test_config_with_invalid_json_is_a_config_error(ref: RepositoryRef) -> None:
    body = {"content": base64.b64encode(b"{ not json").decode()}
    adapter = _adapter(lambda request: httpx.Response(200, json=body))

    with pytest.raises(ConfigValidationError) as info:
        await adapter.fetch_config(ref)
    assert info.value.details[0]["loc"] == "<root>"


@pytest.mark.asyncio
async def test_json5_candidate_is_tried_last(ref: RepositoryRef) -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path.rsplit("/", 1)[-1])
        if request.url.path.endswith(".json5"):
            return httpx.Response(200, json=_encoded({"readme": True}))
        return httpx.Response(404)

    result = await _adapter(handler).fetch_config(ref)

    assert result is not None and result.content == {"readme": True}
    assert seen == ["mosaic.json", ".projectrc.json", ".projectrc", ".projectrc.json5"]


@pytest.mark.asyncio
async def test_undecodable_config_is_skipped_with_a_warning(
    ref: RepositoryRef, caplog: pytest.LogCaptureFixture
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/mosaic.json"):
            return httpx.Response(200, json=[{"type": "file", "name": "x"}])
        if request.url.path.endswith("/.projectrc"):
            return httpx.Response(200, json=_encoded({"readme": True}))
        return httpx.Response(404)

    with caplog.at_level(logging.WARNING):
        result = await _adapter(handler).fetch_config(ref)

    assert result is not None and result.path.endswith("/.github/.projectrc")
    assert "mosaic.json" in caplog.text
    assert "could not be decoded" in caplog.text


# ── Manifests ───────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_fetch_root_and_nested_package(ref: RepositoryRef) -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(
            200,
            json=_encoded(
                {"name": "@acme/a", "version": "1.0.0", "private": True, "workspaces": ["x/*"]}
            ),
        )

    adapter = _adapter(handler)
    root = await adapter.fetch_package(ref)
    nested = await adapter.fetch_package(ref, "packages/a/")

    assert root == PackageDescriptor(
        name="@acme/a", version="1.0.0", private=True, workspaces=["x/*"]
    )
    assert nested == root
    assert seen == [
        "/repos/acme/widgets/contents/package.json",
        "/repos/acme/widgets/contents/packages/a/package.json",
    ]


@pytest.mark.asyncio
async def test_missing_package_is_not_found(ref: RepositoryRef) -> None:
    adapter = _adapter(lambda request: httpx.Response(404))

    with pytest.raises(ManifestNotFoundError, match="packages/a/package.json"):
        await adapter.fetch_package(ref, "packages/a")


def test_parse_package_yarn_workspaces() -> None:
    text = json.dumps({"name": "root", "workspaces": {"packages": ["packages/*"]}})

    assert parse_package(text, "x").workspaces == ["packages/*"]


@pytest.mark.parametrize(
    "text",
    ["not json", "[]", json.dumps({"version": "1.0.0"}), json.dumps({"name": 3})],
)
def test_parse_package_rejects_invalid_manifests(text: str) -> None:
    with pytest.raises(InvalidManifestError):
        parse_package(text, "acme/widgets/package.json")


def test_parse_package_ignores_mistyped_optional_fields() -> None:
    text = json.dumps({"name": "w", "version": 1, "private": "yes", "workspaces": "a/*"})

    assert parse_package(text, "x") == PackageDescriptor(name="w")


# ── Repository (GraphQL) ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_fetch_repository(ref: RepositoryRef) -> None:
    captured: dict[str, Any] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["auth"] = request.headers.get("Authorization")
        captured["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "data": {
                    "repository": {
                        "name": "widgets",
                        "description": "desc",
                        "homepageUrl": "",
                        "stargazerCount": 7,
                        "defaultBranchRef": {"name": "trunk"},
                        "primaryLanguage": None,
                    }
                }
            },
        )

    info = await _adapter(handler).fetch_repository(ref)

    assert info == RepositoryInfo(
        name="widgets", description="desc", stargazer_count=7, default_branch_name="trunk"
    )
    assert captured["url"] == "https://api.github.com/graphql"
    assert captured["auth"] == "Bearer t0ken"
    assert captured["body"]["variables"] == {"owner": "acme", "name": "widgets"}


@pytest.mark.asyncio
async def test_fetch_repository_not_found(ref: RepositoryRef) -> None:
    payload = {
        "data": {"repository": None},
        "errors": [{"type": "NOT_FOUND", "message": "Could not resolve"}],
    }
    adapter = _adapter(lambda request: httpx.Response(200, json=payload))

    with pytest.raises(RepositoryNotFoundError):
        await adapter.fetch_repository(ref)


# ── Trees ───────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_fetch_tree(ref: RepositoryRef) -> None:
    captured: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["recursive"] = request.url.params["recursive"]
        return httpx.Response(
            200,
            json={
                "sha": "abc",
                "truncated": False,
                "tree": [
                    {"path": "packages", "type": "tree", "mode": "040000", "sha": "1"},
                    {"path": "vendor/lib", "type": "commit", "mode": "160000", "sha": "2"},
                    {"path": "package.json", "type": "blob", "size": 10, "sha": "3"},
                ],
            },
        )

    tree = await _adapter(handler).fetch_tree(ref, "trunk")

    assert tree == FileTree(
        truncated=False,
        entries=[
            FileTreeEntry(path="packages", type="tree", mode="040000", sha="1"),
            FileTreeEntry(path="package.json", type="blob", size=10, sha="3"),
        ],
    )
    assert captured == {"path": "/repos/acme/widgets/git/trees/trunk", "recursive": "1"}


@pytest.mark.asyncio
async def test_truncated_flag_is_passed_through(ref: RepositoryRef) -> None:
    body = {"truncated": True, "tree": [{"path": "a", "type": "tree"}]}
    adapter = _adapter(lambda request: httpx.Response(200, json=body))

    assert (await adapter.fetch_tree(ref, "main")).truncated is True


@pytest.mark.asyncio
async def test_tree_without_truncated_flag_is_malformed(ref: RepositoryRef) -> None:
    adapter = _adapter(lambda request: httpx.Response(200, json={"tree": []}))

    with pytest.raises(UpstreamResponseError):
        await adapter.fetch_tree(ref, "main")


@pytest.mark.asyncio
async def test_empty_repository_yields_empty_tree(ref: RepositoryRef) -> None:
    adapter = _adapter(lambda request: httpx.Response(409, json={"message": "empty"}))

    assert await adapter.fetch_tree(ref, "main") == FileTree(truncated=False, entries=[])


# ── Releases ────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_latest_release(ref: RepositoryRef) -> None:
    adapter = _adapter(lambda request: httpx.Response(200, json={"tag_name": "v1.2.3"}))

    release = await adapter.fetch_latest_release(ref)

    assert release is not None and release.tag_name == "v1.2.3"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [404, 403, 500])
async def test_unsuccessful_release_lookup_is_none(ref: RepositoryRef, status: int) -> None:
    adapter = _adapter(lambda request: httpx.Response(status))

    assert await adapter.fetch_latest_release(ref) is None


@pytest.mark.asyncio
async def test_release_without_tag_name_is_malformed(ref: RepositoryRef) -> None:
    adapter = _adapter(lambda request: httpx.Response(200, json={"name": "Release"}))

    with pytest.raises(UpstreamResponseError):
        await adapter.fetch_latest_release(ref)


@pytest.mark.asyncio
async def test_non_json_body_is_malformed(ref: RepositoryRef) -> None:
    adapter = _adapter(
        lambda request: httpx.Response(
            200, text="<html>upstream proxy</html>", headers={"content-type": "text/html"}
        )
    )

    with pytest.raises(UpstreamResponseError, match="non-JSON"):
        await adapter.fetch_latest_release(ref)
    with pytest.raises(UpstreamResponseError, match="non-JSON"):
        await adapter.fetch_repository(ref)
    with pytest.raises(UpstreamResponseError, match="non-JSON"):
        await adapter.fetch_tree(ref, "main")


# ── Error translation ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_rate_limit_is_translated(ref: RepositoryRef) -> None:
    headers = {"x-ratelimit-remaining": "0", "x-ratelimit-reset": "1700000000"}
    adapter = _adapter(lambda request: httpx.Response(403, headers=headers))

    with pytest.raises(GitHubRateLimitError, match="2023-11-14"):
        await adapter.fetch_tree(ref, "main")


@pytest.mark.asyncio
async def test_forbidden_is_access_denied(ref: RepositoryRef) -> None:
    adapter = _adapter(lambda request: httpx.Response(403))

    with pytest.raises(RepositoryAccessDeniedError):
        await adapter.fetch_package(ref)


@pytest.mark.asyncio
async def test_server_error_is_upstream_error(ref: RepositoryRef) -> None:
    adapter = _adapter(lambda request: httpx.Response(502))

    with pytest.raises(UpstreamError):
        await adapter.fetch_config(ref)


@pytest.mark.asyncio
async def test_network_error_is_upstream_error(ref: RepositoryRef) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamError, match="Network error"):
        await _adapter(handler).fetch_repository(ref)


@pytest.mark.asyncio
async def test_no_token_sends_no_authorization(ref: RepositoryRef) -> None:
    captured: dict[str, str | None] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["auth"] = request.headers.get("Authorization")
        captured["version"] = request.headers.get("X-GitHub-Api-Version")
        return httpx.Response(404)

    await _adapter(handler, token=None).fetch_config(ref)

    assert captured == {"auth": None, "version": "2022-11-28"}
