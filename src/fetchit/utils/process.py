"""Subprocess execution with cooperative cancellation."""

from __future__ import annotations

import subprocess
import tempfile
import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from pydantic import BaseModel
from result import Err, Ok, Result


class ProcessError(BaseModel):
    """Base error for subprocess execution."""

    message: str
    command: str


class ProcessNotFoundError(ProcessError):
    """Executable not found."""

    pass


class ProcessFailedError(ProcessError):
    """Process exited with a non-zero status."""

    returncode: int
    stderr: str


class ProcessCancelledError(ProcessError):
    """Process was killed because the cancel token was set."""

    pass


@dataclass(frozen=True)
class CompletedCommand:
    args: tuple[str, ...]
    stdout: str
    stderr: str


def run_process(
    args: Sequence[str],
    *,
    cancel: threading.Event | None = None,
    input_chunks: Iterable[bytes] | None = None,
    cwd: Path | None = None,
    poll_interval: float = 0.1,
) -> Result[CompletedCommand, ProcessError]:
    """Run a command to completion, killing it if ``cancel`` is set.

    When ``input_chunks`` is given, every chunk is written to the process stdin
    before waiting on it. Output is buffered in temporary files so a chatty
    process can never block on a full pipe while input is still being fed.
    """
    command = args[0]
    if cancel is not None and cancel.is_set():
        return Err(ProcessCancelledError(command=command, message=f"{command} cancelled before start"))

    with tempfile.TemporaryFile() as stdout, tempfile.TemporaryFile() as stderr:
        try:
            process = subprocess.Popen(
                list(args),
                stdin=subprocess.PIPE if input_chunks is not None else subprocess.DEVNULL,
                stdout=stdout,
                stderr=stderr,
                cwd=cwd,
            )
        except FileNotFoundError:
            return Err(ProcessNotFoundError(command=command, message=f"{command} command not found"))

        try:
            cancelled = False
            if input_chunks is not None and process.stdin is not None:
                cancelled = _feed_input(process.stdin, input_chunks, cancel)
            if not cancelled:
                cancelled = _wait(process, cancel, poll_interval)
        finally:
            if process.poll() is None:
                process.kill()
                process.wait()

        out = _read(stdout)
        err = _read(stderr)

    if cancelled:
        return Err(ProcessCancelledError(command=command, message=f"{command} cancelled"))

    if process.returncode != 0:
        detail = err.strip() or "Unknown error"
        return Err(
            ProcessFailedError(
                command=command,
                returncode=process.returncode,
                stderr=err,
                message=f"{command} failed with exit code {process.returncode}: {detail}",
            )
        )

    return Ok(CompletedCommand(args=tuple(args), stdout=out, stderr=err))


def _feed_input(
    stdin: IO[bytes],
    chunks: Iterable[bytes],
    cancel: threading.Event | None,
) -> bool:
    try:
        for chunk in chunks:
            if cancel is not None and cancel.is_set():
                return True
            stdin.write(chunk)
    except BrokenPipeError:
        # The process exited early; its exit status carries the reason.
        pass
    finally:
        try:
            stdin.close()
        except BrokenPipeError:
            pass
    return False


def _wait(process: subprocess.Popen[bytes], cancel: threading.Event | None, poll_interval: float) -> bool:
    if cancel is None:
        process.wait()
        return False

    while True:
        try:
            process.wait(timeout=poll_interval)
            return False
        except subprocess.TimeoutExpired:
            if cancel.is_set():
                return True


def _read(stream: IO[bytes]) -> str:
    stream.seek(0)
    return stream.read().decode("utf-8", errors="replace")
