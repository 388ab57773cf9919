"""Default fetcher with the built-in resolvers and mappers."""

from __future__ import annotations

from functools import cache
from pathlib import Path

from result import Result

from fetchit.resolvers import GitResolver, LocalDirectoryResolver, TarResolver, ZipResolver
from fetchit.settings import Settings, get_settings

from .api import Fetcher
from .mappers import file_path, github, github_org_repo, single_github_org
from .models import CancelToken, FetchError, Resolution, ResolveError
from .protocol import Mapper, Resolver

DEFAULT_MAPPERS: tuple[Mapper, ...] = (github, github_org_repo, file_path)


def create_default_resolvers(settings: Settings) -> list[Resolver]:
    # Archive suffixes must win over the git host match for GitHub release tarballs.
    return [
        LocalDirectoryResolver(),
        TarResolver(settings.http),
        ZipResolver(settings.http),
        GitResolver(settings.git),
    ]


def create_default_fetcher(settings: Settings | None = None, *, org: str | None = None) -> Fetcher:
    """Build a fetcher with the built-in resolvers and mappers.

    When a default GitHub organisation is given (or configured), bare repository
    names map into it. That mapper runs after ``file_path`` so an existing local
    directory of the same name still wins.
    """
    settings = settings or get_settings()
    mappers = list(DEFAULT_MAPPERS)
    if default_org := org or settings.github_org:
        mappers.append(single_github_org(default_org))
    return Fetcher(create_default_resolvers(settings), mappers)


@cache
def get_default_fetcher() -> Fetcher:
    return create_default_fetcher()


def resolve(source: str) -> Result[Resolution, ResolveError]:
    """Resolve a source string with the default fetcher."""
    return get_default_fetcher().resolve(source)


def fetch(
    source: str,
    destination: Path | str,
    *,
    cancel: CancelToken | None = None,
) -> Result[Path, ResolveError | FetchError]:
    """Fetch a source into destination with the default fetcher."""
    return get_default_fetcher().fetch(source, destination, cancel=cancel)
