"""Tarball resolver: streams an archive over HTTP and unpacks it."""

from __future__ import annotations

import io
import re
import tarfile
from pathlib import Path
from urllib.parse import SplitResult

import requests
from result import Err, Ok, Result

from fetchit.common import create_logger
from fetchit.fetcher.models import CancelToken, FetchCancelledError, FetchError, Source
from fetchit.utils.http import ChunkReader, DownloadCancelledError, HttpConfig, iter_chunks, open_stream
from fetchit.utils.process import ProcessCancelledError, run_process

logger = create_logger("resolvers.tar")

# The suffix may be followed by a //<subdir> selector.
TAR_PATTERN = re.compile(r"(\.tar(\.[A-Za-z0-9]+)?|\.tbz2?|\.txz|\.tzstd|\.tlz|\.tZ|\.tgz)(//|$)")

# Compressions tarfile reads natively in stream mode; the rest go through the system tar.
NATIVE_FLAGS = frozenset({"-z", "-j", "-J", "-a"})


def compression_flag(path: str) -> str:
    """The ``tar`` flag selecting the decompressor for an archive path."""
    if path.endswith((".tar.Z", ".tZ")):
        return "-Z"

    lower = path.lower()
    if lower.endswith((".tar.gz", ".tgz")):
        return "-z"
    if lower.endswith((".tar.bz2", ".tbz", ".tbz2")):
        return "-j"
    if lower.endswith((".tar.xz", ".txz")):
        return "-J"
    if lower.endswith((".tar.zst", ".tzstd")):
        return "--zstd"
    if lower.endswith((".tar.lz", ".tlz")):
        return "--lzip"
    return "-a"


class TarResolver:
    """Unpacks tarballs fetched over HTTP(S)."""

    def __init__(self, config: HttpConfig | None = None, *, tar_executable: str = "tar") -> None:
        self._config = config or HttpConfig()
        self._tar_executable = tar_executable

    def match(self, url: SplitResult) -> bool:
        return TAR_PATTERN.search(url.path) is not None

    def fetch(
        self,
        source: Source,
        destination: Path,
        *,
        cancel: CancelToken | None = None,
    ) -> Result[Path, FetchError]:
        url = source.geturl()
        if cancel is not None and cancel.is_set():
            return Err(FetchCancelledError(source=url, message=f"fetching {url} cancelled"))

        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            return Err(FetchError(source=url, message=f"creating destination directory: {exc}"))

        flag = compression_flag(source.url.path)
        logger.debug("Fetching tarball", url=url, flag=flag, destination=str(destination))

        try:
            with open_stream(url, self._config) as response:
                if flag in NATIVE_FLAGS:
                    result = self._extract_native(response, destination, url, cancel)
                else:
                    result = self._extract_with_tar(response, destination, url, flag, cancel)
        except DownloadCancelledError:
            result = Err(FetchCancelledError(source=url, message=f"fetching {url} cancelled"))
        except requests.RequestException as exc:
            result = Err(FetchError(source=url, message=f"fetching {url}: {exc}"))

        if result.is_err():
            logger.error("Failed to fetch tarball", url=url, error=result.unwrap_err().message)
        else:
            logger.debug("Tarball unpacked", url=url, destination=str(destination))
        return result

    def _extract_native(
        self,
        response: requests.Response,
        destination: Path,
        url: str,
        cancel: CancelToken | None,
    ) -> Result[Path, FetchError]:
        chunks = iter_chunks(response, chunk_size=self._config.chunk_size, cancel=cancel)
        stream = io.BufferedReader(ChunkReader(chunks), buffer_size=self._config.chunk_size)

        try:
            with tarfile.open(fileobj=stream, mode="r|*") as archive:
                for member in archive:
                    if cancel is not None and cancel.is_set():
                        raise DownloadCancelledError(url)
                    archive.extract(member, destination, filter="data")
        except requests.RequestException:
            raise
        except (tarfile.TarError, EOFError, OSError) as exc:
            return Err(FetchError(source=url, message=f"unpacking {url}: {exc}"))

        return Ok(destination)

    def _extract_with_tar(
        self,
        response: requests.Response,
        destination: Path,
        url: str,
        flag: str,
        cancel: CancelToken | None,
    ) -> Result[Path, FetchError]:
        args = [self._tar_executable, "-x", "-C", str(destination), flag]
        chunks = iter_chunks(response, chunk_size=self._config.chunk_size)

        return (
            run_process(args, cancel=cancel, input_chunks=chunks)
            .map(lambda _: destination)
            .map_err(
                lambda err: FetchCancelledError(source=url, message=f"fetching {url} cancelled")
                if isinstance(err, ProcessCancelledError)
                else FetchError(source=url, message=f"{err.command} failed: {err.message}")
            )
        )
