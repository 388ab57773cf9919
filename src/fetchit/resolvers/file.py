"""Local directory resolver."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from urllib.parse import SplitResult, unquote

from result import Err, Ok, Result

from fetchit.common import create_logger
from fetchit.fetcher.models import CancelToken, FetchCancelledError, FetchError, Source

logger = create_logger("resolvers.file")


class _Cancelled(Exception):
    pass


class LocalDirectoryResolver:
    """Copies local directories.

    Supported URL forms::

        file:///absolute/path/to/dir
        file://relative/path/to/dir
    """

    def match(self, url: SplitResult) -> bool:
        return url.scheme == "file"

    def fetch(
        self,
        source: Source,
        destination: Path,
        *,
        cancel: CancelToken | None = None,
    ) -> Result[Path, FetchError]:
        src = source_path(source.url)
        display = source.geturl()
        logger.debug("Copying local directory", path=str(src), destination=str(destination))

        if not src.exists():
            return Err(FetchError(source=display, message=f"stat {src}: no such file or directory"))
        if not src.is_dir():
            return Err(FetchError(source=display, message=f"{src} is not a directory"))

        def copy_entry(src_file: str, dest_file: str) -> object:
            if cancel is not None and cancel.is_set():
                raise _Cancelled
            return shutil.copy2(src_file, dest_file)

        try:
            shutil.copytree(src, destination, symlinks=True, copy_function=copy_entry, dirs_exist_ok=True)
        except _Cancelled:
            return Err(FetchCancelledError(source=display, message=f"copying {src} cancelled"))
        except shutil.Error as exc:
            return Err(FetchError(source=display, message=f"copying {src}: {_describe_copy_errors(exc)}"))
        except OSError as exc:
            return Err(FetchError(source=display, message=f"copying {src}: {exc}"))

        logger.debug("Local directory copied", path=str(src), destination=str(destination))
        return Ok(destination)


def source_path(url: SplitResult) -> Path:
    """Filesystem path named by a ``file://`` URL; a host part is a relative prefix."""
    path = unquote(url.path)
    if url.netloc:
        return Path(url.netloc) / path.lstrip(os.sep)
    return Path(path)


def _describe_copy_errors(exc: shutil.Error) -> str:
    errors = exc.args[0] if exc.args else []
    if isinstance(errors, list):
        return "; ".join(f"{src}: {reason}" for src, _dest, reason in errors)
    return str(exc)
