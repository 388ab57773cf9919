"""Zip resolver: downloads an archive over HTTP and unpacks it."""

from __future__ import annotations

import os
import re
import shutil
import tempfile
import zipfile
from pathlib import Path
from urllib.parse import SplitResult

import requests
from result import Err, Ok, Result

from fetchit.common import create_logger
from fetchit.fetcher.models import CancelToken, FetchCancelledError, FetchError, Source
from fetchit.utils.http import DownloadCancelledError, HttpConfig, iter_chunks, open_stream

logger = create_logger("resolvers.zip")

# The suffix may be followed by a //<subdir> selector.
ZIP_PATTERN = re.compile(r"\.zip(//|$)")


class UnsafeMemberError(Exception):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"unsafe archive member {name!r}")


class ZipResolver:
    """Unpacks zip archives fetched over HTTP(S)."""

    def __init__(self, config: HttpConfig | None = None) -> None:
        self._config = config or HttpConfig()

    def match(self, url: SplitResult) -> bool:
        return ZIP_PATTERN.search(url.path) is not None

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

        logger.debug("Fetching zip archive", url=url, destination=str(destination))

        with tempfile.TemporaryDirectory(prefix="fetchit-zip-") as workdir:
            archive_path = Path(workdir) / "archive.zip"
            try:
                self._download(url, archive_path, cancel)
                extract_zip(archive_path, destination, cancel=cancel)
            except DownloadCancelledError:
                return Err(FetchCancelledError(source=url, message=f"fetching {url} cancelled"))
            except requests.RequestException as exc:
                error = FetchError(source=url, message=f"fetching {url}: {exc}")
                logger.error("Failed to fetch zip archive", url=url, error=error.message)
                return Err(error)
            except (zipfile.BadZipFile, UnsafeMemberError, OSError) as exc:
                error = FetchError(source=url, message=f"unzip {url}: {exc}")
                logger.error("Failed to unpack zip archive", url=url, error=error.message)
                return Err(error)

        logger.debug("Zip archive unpacked", url=url, destination=str(destination))
        return Ok(destination)

    def _download(self, url: str, target: Path, cancel: CancelToken | None) -> None:
        with open_stream(url, self._config) as response, target.open("wb") as file:
            for chunk in iter_chunks(response, chunk_size=self._config.chunk_size, cancel=cancel):
                file.write(chunk)


def extract_zip(archive_path: Path, destination: Path, *, cancel: CancelToken | None = None) -> None:
    """Extract every member, refusing names that would land outside ``destination``."""
    with zipfile.ZipFile(archive_path) as archive:
        for info in archive.infolist():
            if cancel is not None and cancel.is_set():
                raise DownloadCancelledError(str(archive_path))
            if not is_safe_member(info.filename):
                raise UnsafeMemberError(info.filename)

            target = destination / info.filename
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue

            target.parent.mkdir(parents=True, exist_ok=True)
            with archive.open(info) as src, target.open("wb") as dest:
                shutil.copyfileobj(src, dest)

            # Keep the executable bits recorded by unix zip tools.
            mode = (info.external_attr >> 16) & 0o777
            if mode and os.name != "nt":
                target.chmod(mode)


def is_safe_member(name: str) -> bool:
    if not name or name.startswith(("/", "\\")) or "\x00" in name:
        return False
    normalized = os.path.normpath(name)
    if os.path.isabs(normalized):
        return False
    return normalized != ".." and not normalized.startswith(f"..{os.sep}")
