"""Fetcher: maps a source string to a resolver and delegates fetching to it."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from result import Err, Ok, Result

from fetchit.common import create_logger

from .models import (
    CancelToken,
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

logger = create_logger("fetcher")


class Fetcher:
    """Retrieves archives through an ordered set of pluggable resolvers.

    Source strings first pass through the mappers; the first mapper that
    matches rewrites the string and the rest are skipped. The first resolver
    whose ``match`` accepts the resulting URL is used. Resolver and mapper
    order is the only priority there is.

    Every source may carry a sub-directory selector appended to its path with
    ``//``::

        git+ssh://host/path/to/repo.git//path/to/subdir
        https://host/path/to/archive.tgz//path/to/subdir
    """

    def __init__(self, resolvers: Iterable[Resolver], mappers: Iterable[Mapper] = ()) -> None:
        self._resolvers = tuple(resolvers)
        self._mappers = tuple(mappers)

    @property
    def resolvers(self) -> tuple[Resolver, ...]:
        return self._resolvers

    @property
    def mappers(self) -> tuple[Mapper, ...]:
        return self._mappers

    def resolve(self, source: str) -> Result[Resolution, ResolveError]:
        candidate = self._map(source)

        try:
            url = parse_url(candidate)
        except ValueError as exc:
            logger.debug("Invalid source", source=candidate, error=str(exc))
            return Err(InvalidSourceError(source=candidate, message=f"invalid source {candidate!r}: {exc}"))

        for resolver in self._resolvers:
            if not resolver.match(url):
                continue
            base, subdir = split_subdir(url)
            logger.debug(
                "Resolved source",
                source=source,
                url=candidate,
                resolver=type(resolver).__name__,
                subdir=subdir,
            )
            return Ok(Resolution(resolver=resolver, source=Source(url=base, subdir=subdir)))

        logger.debug("Unsupported source", source=source, url=candidate)
        return Err(UnsupportedSourceError(url=candidate, message=f"unsupported source: {candidate}"))

    def fetch(
        self,
        source: str,
        destination: Path | str,
        *,
        cancel: CancelToken | None = None,
    ) -> Result[Path, ResolveError | FetchError]:
        """Resolve ``source`` and fetch it into ``destination``.

        The resolver's result is returned as is.
        """
        match self.resolve(source):
            case Ok(Resolution(resolver=resolver, source=resolved)):
                logger.debug("Fetching source", source=str(resolved), destination=str(destination))
                return resolver.fetch(resolved, Path(destination), cancel=cancel)
            case Err(error):
                return Err(error)

    def _map(self, source: str) -> str:
        for mapper in self._mappers:
            mapped = mapper(source)
            if mapped is None:
                continue

            try:
                parse_url(mapped)
            except ValueError as exc:
                raise MapperOutputError(mapped, str(exc)) from exc

            logger.debug("Mapped source", mapper=getattr(mapper, "__name__", repr(mapper)), source=source, mapped=mapped)
            return mapped

        return source
