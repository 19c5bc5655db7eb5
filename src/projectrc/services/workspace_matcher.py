"""Workspace matching — decide which tree paths are workspace packages.

Include patterns are ``package.json`` workspace globs (``*`` stays inside
one segment, ``**`` spans any number of segments, wildcards do not match
dot-segments unless the pattern segment starts with a dot).  Ignore
patterns use ``.gitignore`` semantics via :mod:`pathspec`, so ignoring
``packages/legacy`` also drops anything below it.  Ignores always win.
"""

from __future__ import annotations

from fnmatch import fnmatchcase
from typing import Sequence

from pathspec import GitIgnoreSpec

_GLOBSTAR = "**"


def _split(value: str) -> list[str]:
    return [part for part in value.strip().strip("/").split("/") if part not in ("", ".")]


def _segment_matches(segment: str, pattern: str) -> bool:
    if segment.startswith(".") and not pattern.startswith("."):
        return False
    return fnmatchcase(segment, pattern)


def _match_segments(segments: list[str], patterns: list[str]) -> bool:
    if not patterns:
        return not segments

    head, rest = patterns[0], patterns[1:]
    if head == _GLOBSTAR:
        # zero or more whole segments, never dot-segments
        for skip in range(len(segments) + 1):
            if skip and segments[skip - 1].startswith("."):
                break
            if _match_segments(segments[skip:], rest):
                return True
        return False

    if not segments:
        return False
    return _segment_matches(segments[0], head) and _match_segments(segments[1:], rest)


def glob_match(path: str, pattern: str) -> bool:
    """Return *True* if *path* matches the workspace glob *pattern*."""
    return _match_segments(_split(path), _split(pattern))


def match_workspace_paths(
    paths: Sequence[str],
    include_globs: Sequence[str],
    ignore_globs: Sequence[str] = (),
) -> list[str]:
    """Return the paths matching any include glob and no ignore glob.

    Output order follows *paths*.  An empty result is not an error.
    """
    includes = [p for p in include_globs if p.strip()]
    if not includes:
        return []

    # Compiled per call: matchers are never shared between resolutions.
    ignore_spec = GitIgnoreSpec.from_lines(ignore_globs)

    return [
        path
        for path in paths
        if any(glob_match(path, pattern) for pattern in includes)
        and not ignore_spec.match_file(path)
    ]
