"""Git utility functions."""

from __future__ import annotations

import threading
from pathlib import Path
from urllib.parse import SplitResult, urlunsplit

from pydantic import BaseModel, ConfigDict, Field
from result import Err, Ok, Result

from .process import ProcessCancelledError, ProcessFailedError, ProcessNotFoundError, run_process


class GitConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    executable: str = Field(default="git", min_length=1)
    # http(s) hosts whose URLs are treated as git repositories
    hosts: list[str] = Field(default_factory=lambda: ["github.com"])


class GitError(BaseModel):
    """Base error for git operations."""

    message: str


class GitNotInstalledError(GitError):
    """Git command not found."""

    pass


class GitCloneError(GitError):
    """Failed to clone repository."""

    url: str


class GitCloneCancelledError(GitCloneError):
    """Clone aborted through the cancel token."""

    pass


def to_clone_url(url: SplitResult) -> str:
    """Convert a fetch URL into one git itself understands.

    git+https://host/path -> https://host/path
    git+ssh://host/path   -> git@host:path
    git://host/path       -> git://host/path

    Query parameters and fragments are dropped, they only steer the clone.
    """
    bare = url._replace(query="", fragment="")

    if bare.scheme == "git+ssh":
        user = bare.username or "git"
        if bare.port is not None:
            return f"ssh://{user}@{bare.hostname}:{bare.port}{bare.path}"
        return f"{user}@{bare.hostname}:{bare.path.removeprefix('/')}"

    return urlunsplit(bare._replace(scheme=bare.scheme.removeprefix("git+")))


def clone_repository(
    url: str,
    destination: Path,
    *,
    depth: int | None = None,
    ref: str | None = None,
    cancel: threading.Event | None = None,
    executable: str = "git",
) -> Result[Path, GitError]:
    if destination.exists() and (not destination.is_dir() or any(destination.iterdir())):
        return Err(GitCloneError(url=url, message=f"Destination already exists and is not empty: {destination}"))

    destination.parent.mkdir(parents=True, exist_ok=True)

    args = [executable, "clone"]
    if depth is not None:
        args.extend(["--depth", str(depth)])
    if ref:
        args.extend(["--branch", ref])
    args.extend([url, str(destination)])

    match run_process(args, cancel=cancel):
        case Ok(_):
            return Ok(destination)
        case Err(ProcessNotFoundError()):
            return Err(GitNotInstalledError(message="git command not found. Please install git."))
        case Err(ProcessCancelledError()):
            return Err(GitCloneCancelledError(url=url, message="Clone cancelled"))
        case Err(ProcessFailedError(stderr=stderr)):
            detail = stderr.strip() or "Unknown error"
            return Err(GitCloneError(url=url, message=f"Failed to clone repository: {detail}"))
        case Err(error):
            return Err(GitCloneError(url=url, message=f"Unexpected error cloning repository: {error.message}"))
