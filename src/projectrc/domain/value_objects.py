"""Value objects — self-validating domain primitives."""

from __future__ import annotations

import re
from dataclasses import dataclass

from projectrc.domain.exceptions import InvalidRepositoryRefError

_OWNER_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9\-]{0,38})$")
_NAME_RE = re.compile(r"^[A-Za-z0-9\-_.]{1,100}$")

NPM_PACKAGE_BASE = "https://www.npmjs.com/package"


@dataclass(frozen=True, slots=True)
class RepositoryRef:
    """Validated ``owner/name`` pair identifying a GitHub repository.

    Rejects anything GitHub itself would not accept as an owner login or
    repository name, so that adapters can interpolate both into URLs.
    """

    owner: str
    name: str

    @classmethod
    def from_parts(cls, owner: str, name: str) -> RepositoryRef:
        """Validate and build a ref from its two components."""
        owner = owner.strip()
        name = name.strip()
        if name.endswith(".git"):
            name = name[:-4]
        if not _OWNER_RE.match(owner) or not _NAME_RE.match(name) or name in (".", ".."):
            raise InvalidRepositoryRefError(
                f"Invalid repository: '{owner}/{name}'. "
                "Expected a GitHub owner login and repository name."
            )
        return cls(owner=owner, name=name)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


def npm_package_url(package_name: str) -> str:
    """Public npmjs.com page for *package_name* (scoped names kept verbatim)."""
    return f"{NPM_PACKAGE_BASE}/{package_name}"


def readme_url(site_url: str, ref: RepositoryRef, path: str | None = None) -> str:
    """Build the URL of the readme-serving endpoint for *ref*.

    The readme itself is never fetched here; consumers follow the URL.
    """
    base = f"{site_url.rstrip('/')}/api/v1/mosaic/{ref.owner}/{ref.name}/readme"
    if path:
        return f"{base}/{path.strip('/')}"
    return base
