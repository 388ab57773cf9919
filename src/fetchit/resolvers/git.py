"""Git resolver: clones repositories directly."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import SplitResult

from result import Err, Result

from fetchit.common import create_logger
from fetchit.fetcher.models import CancelToken, FetchCancelledError, FetchError, Source
from fetchit.utils.git import GitCloneCancelledError, GitConfig, clone_repository, to_clone_url

logger = create_logger("resolvers.git")

GIT_SCHEMES = frozenset({"git", "git+https", "git+http", "git+ssh"})
HTTP_SCHEMES = frozenset({"http", "https"})


class GitResolver:
    """Uses git repositories as archive sources, cloning them directly.

    Supported URL forms::

        git://host/path/to/repo
        git+ssh://host/path/to/repo
        git+https://host/path/to/repo
        https://<git host>/path/to/repo
        https://host/path/to/repo.git

    All forms accept ``ref=<ref>`` and ``depth=<depth>`` query parameters.
    """

    def __init__(self, config: GitConfig | None = None) -> None:
        self._config = config or GitConfig()
        self._hosts = frozenset(host.lower() for host in self._config.hosts)

    def match(self, url: SplitResult) -> bool:
        if url.scheme in GIT_SCHEMES:
            return True
        if url.scheme not in HTTP_SCHEMES:
            return False
        repo_path = url.path.partition("//")[0]
        return (url.hostname or "") in self._hosts or repo_path.endswith(".git")

    def fetch(
        self,
        source: Source,
        destination: Path,
        *,
        cancel: CancelToken | None = None,
    ) -> Result[Path, FetchError]:
        display = source.geturl()

        depth: int | None = None
        if raw_depth := source.query_value("depth"):
            try:
                depth = int(raw_depth)
            except ValueError:
                return Err(FetchError(source=display, message=f"invalid depth {raw_depth!r}: must be an integer"))
            if depth < 1:
                return Err(FetchError(source=display, message=f"invalid depth {raw_depth!r}: must be positive"))

        ref = source.query_value("ref")
        clone_url = to_clone_url(source.url)
        logger.debug("Cloning repository", url=clone_url, ref=ref, depth=depth, destination=str(destination))

        def log_success(path: Path) -> None:
            logger.debug("Repository cloned", url=clone_url, path=str(path))

        def log_error(err: object) -> None:
            logger.error("Failed to clone repository", url=clone_url, error=str(err))

        return (
            clone_repository(
                clone_url,
                destination,
                depth=depth,
                ref=ref,
                cancel=cancel,
                executable=self._config.executable,
            )
            .inspect(log_success)
            .inspect_err(log_error)
            .map_err(
                lambda err: FetchCancelledError(source=display, message=err.message)
                if isinstance(err, GitCloneCancelledError)
                else FetchError(source=display, message=f"git clone failed: {err.message}")
            )
        )
