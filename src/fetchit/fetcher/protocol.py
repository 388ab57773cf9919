"""Mapper and resolver contracts."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Protocol
from urllib.parse import SplitResult

from result import Result

from .models import CancelToken, FetchError, Source

type Mapper = Callable[[str], str | None]
"""Rewrites one form of a source string into another; ``None`` means no match."""


class Resolver(Protocol):
    """Protocol for a fetch backend."""

    def match(self, url: SplitResult) -> bool:
        """Return True if this resolver can fetch the given URL."""
        ...

    def fetch(
        self,
        source: Source,
        destination: Path,
        *,
        cancel: CancelToken | None = None,
    ) -> Result[Path, FetchError]:
        """Fetch the source and unpack it into destination, creating it if absent."""
        ...
