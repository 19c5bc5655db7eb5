from __future__ import annotations

import pytest

from projectrc.domain.entities import RepositoryInfo
from projectrc.domain.value_objects import RepositoryRef


@pytest.fixture
def ref() -> RepositoryRef:
    return RepositoryRef.from_parts("acme", "widgets")


@pytest.fixture
def repository() -> RepositoryInfo:
    """Repository metadata as the GraphQL adapter would return it."""
    return RepositoryInfo(
        name="widgets",
        description="desc",
        homepage_url="https://widgets.dev",
        stargazer_count=42,
        default_branch_name="trunk",
        primary_language="TypeScript",
    )
