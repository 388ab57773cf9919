"""HTTP streaming helpers shared by the archive resolvers."""

from __future__ import annotations

import io
import threading
from collections.abc import Iterator
from contextlib import contextmanager

import requests
from pydantic import BaseModel, ConfigDict, Field
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from fetchit.constants import APP_NAME

RETRY_STATUS_CODES = (408, 429, 500, 502, 503, 504)


class HttpConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    timeout: float = Field(default=30.0, gt=0)
    chunk_size: int = Field(default=64 * 1024, gt=0)
    retries: int = Field(default=3, ge=0)
    backoff_factor: float = Field(default=0.5, ge=0)
    user_agent: str = Field(default=f"{APP_NAME}/0.1.0")


class DownloadCancelledError(Exception):
    """Raised from a chunk iterator when the cancel token is set mid-download."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"download of {url} cancelled")


def create_session(config: HttpConfig) -> requests.Session:
    retry_strategy = Retry(
        total=config.retries,
        connect=config.retries,
        read=config.retries,
        status=config.retries,
        backoff_factor=config.backoff_factor,
        status_forcelist=RETRY_STATUS_CODES,
        allowed_methods=frozenset({"GET", "HEAD"}),
        raise_on_status=False,
        respect_retry_after_header=True,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)

    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers["User-Agent"] = config.user_agent
    return session


@contextmanager
def open_stream(url: str, config: HttpConfig) -> Iterator[requests.Response]:
    """Open a streaming GET request, raising ``requests.HTTPError`` on a non-2xx status."""
    with create_session(config) as session, session.get(url, stream=True, timeout=config.timeout) as response:
        response.raise_for_status()
        yield response


def iter_chunks(
    response: requests.Response,
    *,
    chunk_size: int,
    cancel: threading.Event | None = None,
) -> Iterator[bytes]:
    for chunk in response.iter_content(chunk_size=chunk_size):
        if cancel is not None and cancel.is_set():
            raise DownloadCancelledError(response.url)
        if chunk:
            yield chunk


class ChunkReader(io.RawIOBase):
    """Read-only file object over an iterator of byte chunks."""

    def __init__(self, chunks: Iterator[bytes]) -> None:
        self._chunks = chunks
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: bytearray | memoryview) -> int:  # type: ignore[override]
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return 0

        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size
