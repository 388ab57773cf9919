"""Source resolution and fetch dispatch."""

from __future__ import annotations

from .api import Fetcher
from .defaults import (
    DEFAULT_MAPPERS,
    create_default_fetcher,
    create_default_resolvers,
    fetch,
    get_default_fetcher,
    resolve,
)
from .mappers import file_path, github, github_org_repo, single_github_org
from .models import (
    BaseFetchitError,
    CancelToken,
    FetchCancelledError,
    FetchError,
    InvalidSourceError,
    MapperOutputError,
    Resolution,
    ResolveError,
    Source,
    UnsupportedSourceError,
)
from .protocol import Mapper, Resolver
from .urls import parse_url, split_subdir

__all__ = [
    "DEFAULT_MAPPERS",
    "BaseFetchitError",
    "CancelToken",
    "FetchCancelledError",
    "FetchError",
    "Fetcher",
    "InvalidSourceError",
    "Mapper",
    "MapperOutputError",
    "Resolution",
    "ResolveError",
    "Resolver",
    "Source",
    "UnsupportedSourceError",
    "create_default_fetcher",
    "create_default_resolvers",
    "fetch",
    "file_path",
    "get_default_fetcher",
    "github",
    "github_org_repo",
    "parse_url",
    "resolve",
    "single_github_org",
    "split_subdir",
]
