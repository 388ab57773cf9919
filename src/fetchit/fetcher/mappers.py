"""Mappers that rewrite shorthand sources into fully qualified URLs.

Every mapper returns the rewritten string, or ``None`` when it does not apply.
Query strings and fragments are carried over verbatim.
"""

from __future__ import annotations

import re
from pathlib import Path

from .protocol import Mapper

GITHUB_PREFIX = "github.com/"
GITHUB_URL = "https://github.com/"
FILE_SCHEME_PREFIX = "file://"

_NAME = r"[A-Za-z0-9_-]+"
_SUFFIX = r"(?P<suffix>[?#].*)?"
_ORG_REPO = re.compile(rf"(?P<repo>{_NAME}/{_NAME}){_SUFFIX}", re.DOTALL)
_REPO = re.compile(rf"(?P<repo>{_NAME}){_SUFFIX}", re.DOTALL)


def github(source: str) -> str | None:
    """Map ``github.com/<path>`` to ``https://github.com/<path>``.

    An already schemed ``https://github.com/...`` URL counts as mapped and is
    returned unchanged.
    """
    if source.startswith(GITHUB_PREFIX):
        return f"https://{source}"
    if source.startswith(GITHUB_URL):
        return source
    return None


def github_org_repo(source: str) -> str | None:
    """Map ``<org>/<repo>[?query][#fragment]`` to a GitHub URL."""
    if match := _ORG_REPO.fullmatch(source):
        return f"{GITHUB_URL}{match['repo']}{match['suffix'] or ''}"
    return None


def single_github_org(org: str) -> Mapper:
    """Build a mapper for bare ``<repo>[?query][#fragment]`` names within one GitHub org."""
    if not re.fullmatch(_NAME, org):
        raise ValueError(f"invalid GitHub organisation: {org!r}")

    def mapper(source: str) -> str | None:
        if match := _REPO.fullmatch(source):
            return f"{GITHUB_URL}{org}/{match['repo']}{match['suffix'] or ''}"
        return None

    mapper.__name__ = f"single_github_org({org})"
    return mapper


def file_path(source: str) -> str | None:
    """Map an existing local directory to a ``file://`` URL.

    Handles absolute paths, ``./`` and ``../`` relative paths, ``~/`` paths and
    bare directory names. The result is absolute with symlinks resolved and
    percent-encoded, so names containing ``%``, ``#`` or ``?`` survive parsing.
    Anything that is not an existing directory is silently left alone.
    """
    if not source:
        return None

    if source.startswith(FILE_SCHEME_PREFIX):
        return source

    path = Path(source)
    if source.startswith("~/"):
        try:
            path = Path.home() / source[2:]
        except RuntimeError:
            return None

    try:
        if not path.is_dir():
            return None
        resolved = path.resolve(strict=True)
    except (OSError, ValueError):
        return None

    return resolved.as_uri()
