"""fetchit - fetch directories, tarballs, zips and git repositories from loosely typed sources.

By default, fetchit's internal logging is disabled when used as a library.
Library users can enable logging by calling fetchit.enable_logging().
"""

from fetchit.common import disable_library_logging, enable_library_logging
from fetchit.fetcher import (
    Fetcher,
    FetchError,
    InvalidSourceError,
    Mapper,
    MapperOutputError,
    Resolution,
    Resolver,
    Source,
    UnsupportedSourceError,
    create_default_fetcher,
    fetch,
    resolve,
)

disable_library_logging()

enable_logging = enable_library_logging

__all__ = [
    "FetchError",
    "Fetcher",
    "InvalidSourceError",
    "Mapper",
    "MapperOutputError",
    "Resolution",
    "Resolver",
    "Source",
    "UnsupportedSourceError",
    "create_default_fetcher",
    "enable_logging",
    "fetch",
    "resolve",
]
