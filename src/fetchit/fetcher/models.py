"""Data and error models for source resolution and fetching."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, NamedTuple
from urllib.parse import SplitResult, parse_qs, urlunsplit

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from .protocol import Resolver

type CancelToken = threading.Event


@dataclass(frozen=True)
class Source:
    """A resolved source URL with an optional sub-directory selector.

    ``url`` never contains the ``//<subdir>`` selector; it is split off into
    ``subdir`` during resolution.
    """

    url: SplitResult
    subdir: str = ""

    def geturl(self) -> str:
        return urlunsplit(self.url)

    def query_value(self, name: str) -> str | None:
        values = parse_qs(self.url.query).get(name)
        return values[0] if values else None

    def __str__(self) -> str:
        if self.subdir:
            return f"{self.geturl()} (subdir: {self.subdir})"
        return self.geturl()


class Resolution(NamedTuple):
    resolver: Resolver
    source: Source


class MapperOutputError(RuntimeError):
    """A mapper claimed a match but produced something that is not a URL.

    This is a defect in the mapper, never a user error, so it is raised instead
    of being returned as an ``Err``.
    """

    def __init__(self, mapped: str, reason: str) -> None:
        self.mapped = mapped
        super().__init__(f"mapper did not produce a valid URL: {mapped!r} ({reason})")


class BaseFetchitError(BaseModel):
    """Base error model."""

    model_config = ConfigDict(extra="forbid")

    message: str


class InvalidSourceError(BaseFetchitError):
    """Source string is not a syntactically valid URL."""

    source: str


class UnsupportedSourceError(BaseFetchitError):
    """No resolver matched the source URL."""

    url: str


class FetchError(BaseFetchitError):
    """A resolver failed to fetch its source."""

    source: str


class FetchCancelledError(FetchError):
    """Fetch aborted through the cancel token."""

    pass


ResolveError = InvalidSourceError | UnsupportedSourceError


__all__ = [
    "BaseFetchitError",
    "CancelToken",
    "FetchCancelledError",
    "FetchError",
    "InvalidSourceError",
    "MapperOutputError",
    "Resolution",
    "ResolveError",
    "Source",
    "UnsupportedSourceError",
]
