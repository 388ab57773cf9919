from __future__ import annotations

import io
import tarfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from unittest.mock import patch
from urllib.parse import urlsplit

import pytest
import requests
from result import Err, Ok, is_err, is_ok

from fetchit.fetcher.models import FetchCancelledError, FetchError, Source
from fetchit.resolvers.tar import TarResolver, compression_flag
from fetchit.utils.http import HttpConfig
from fetchit.utils.process import CompletedCommand, ProcessCancelledError, ProcessFailedError


class FakeResponse:
    def __init__(self, url: str, chunks: list[bytes], on_chunk=None) -> None:
        self.url = url
        self._chunks = chunks
        self._on_chunk = on_chunk

    def iter_content(self, chunk_size: int) -> Iterator[bytes]:
        for index, chunk in enumerate(self._chunks):
            if self._on_chunk is not None:
                self._on_chunk(index)
            yield chunk


def serve(payload: bytes, *, pieces: int = 1, on_chunk=None):
    size = max(1, len(payload) // pieces)
    chunks = [payload[i : i + size] for i in range(0, len(payload), size)]

    @contextmanager
    def fake_open_stream(url: str, config: HttpConfig) -> Iterator[FakeResponse]:
        yield FakeResponse(url, chunks, on_chunk)

    return patch("fetchit.resolvers.tar.open_stream", fake_open_stream)


def make_tarball(files: dict[str, bytes], mode: str = "w:gz") -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode=mode) as archive:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            archive.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def tar_source(url: str) -> Source:
    return Source(url=urlsplit(url))


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("/a.tar", True),
        ("/a.tar.gz", True),
        ("/a.tar.bz2", True),
        ("/a.tar.xz", True),
        ("/a.tar.zst", True),
        ("/a.tgz", True),
        ("/a.tbz", True),
        ("/a.tbz2", True),
        ("/a.txz", True),
        ("/a.tzstd", True),
        ("/a.tlz", True),
        ("/a.tZ", True),
        ("/archive/v1.0.tar.gz//repo-1.0", True),
        ("/acme/my.target", False),
        ("/acme/node.tar-utils", False),
        ("/a.tar.gz.sig", False),
        ("/a.zip", False),
        ("/a.gz", False),
        ("/repo", False),
    ],
)
def test_match(path: str, expected: bool) -> None:
    assert TarResolver().match(urlsplit(f"https://example.com{path}")) is expected


@pytest.mark.parametrize(
    ("path", "flag"),
    [
        ("/a.tar.gz", "-z"),
        ("/a.TGZ", "-z"),
        ("/a.tgz", "-z"),
        ("/a.tar.bz2", "-j"),
        ("/a.tbz", "-j"),
        ("/a.tbz2", "-j"),
        ("/a.tar.xz", "-J"),
        ("/a.txz", "-J"),
        ("/a.tar.zst", "--zstd"),
        ("/a.tzstd", "--zstd"),
        ("/a.tar.lz", "--lzip"),
        ("/a.tlz", "--lzip"),
        ("/a.tar.Z", "-Z"),
        ("/a.tZ", "-Z"),
        ("/a.tar", "-a"),
        ("/a.tar.unknown", "-a"),
    ],
)
def test_compression_flag(path: str, flag: str) -> None:
    assert compression_flag(path) == flag


def test_fetch_extracts_gzip_tarball(tmp_path: Path) -> None:
    payload = make_tarball({"project/README.md": b"# hello\n", "project/src/main.py": b"print('hi')\n"})
    destination = tmp_path / "out"

    with serve(payload, pieces=4):
        result = TarResolver().fetch(tar_source("https://example.com/project.tar.gz"), destination)

    assert result == Ok(destination)
    assert (destination / "project" / "README.md").read_bytes() == b"# hello\n"
    assert (destination / "project" / "src" / "main.py").read_bytes() == b"print('hi')\n"


@pytest.mark.parametrize(("mode", "suffix"), [("w:bz2", ".tar.bz2"), ("w:xz", ".txz"), ("w", ".tar")])
def test_fetch_extracts_other_native_compressions(tmp_path: Path, mode: str, suffix: str) -> None:
    payload = make_tarball({"file.txt": b"content"}, mode=mode)

    with serve(payload):
        result = TarResolver().fetch(tar_source(f"https://example.com/a{suffix}"), tmp_path)

    assert is_ok(result)
    assert (tmp_path / "file.txt").read_bytes() == b"content"


def test_fetch_reports_http_errors(tmp_path: Path) -> None:
    @contextmanager
    def failing_open_stream(url: str, config: HttpConfig) -> Iterator[FakeResponse]:
        raise requests.HTTPError("404 Client Error: Not Found")
        yield  # pragma: no cover

    with patch("fetchit.resolvers.tar.open_stream", failing_open_stream):
        result = TarResolver().fetch(tar_source("https://example.com/missing.tgz"), tmp_path)

    assert is_err(result)
    error = result.unwrap_err()
    assert type(error) is FetchError
    assert error.source == "https://example.com/missing.tgz"
    assert "404" in error.message


def test_fetch_reports_invalid_archive(tmp_path: Path) -> None:
    with serve(b"definitely not a tarball"):
        result = TarResolver().fetch(tar_source("https://example.com/broken.tar.gz"), tmp_path)

    assert is_err(result)
    assert "unpacking" in result.unwrap_err().message


def test_fetch_refuses_members_outside_destination(tmp_path: Path) -> None:
    payload = make_tarball({"../escape.txt": b"nope"})
    destination = tmp_path / "out"

    with serve(payload):
        result = TarResolver().fetch(tar_source("https://example.com/evil.tgz"), destination)

    assert is_err(result)
    assert not (tmp_path / "escape.txt").exists()


def test_fetch_cancelled_before_start(tmp_path: Path) -> None:
    cancel = threading.Event()
    cancel.set()

    with patch("fetchit.resolvers.tar.open_stream") as mock_open:
        result = TarResolver().fetch(tar_source("https://example.com/a.tgz"), tmp_path, cancel=cancel)

    assert isinstance(result.unwrap_err(), FetchCancelledError)
    mock_open.assert_not_called()


def test_fetch_cancelled_mid_download(tmp_path: Path) -> None:
    payload = make_tarball({f"file{i}.txt": bytes(2048) for i in range(8)}, mode="w")
    cancel = threading.Event()

    def cancel_after_first(index: int) -> None:
        if index == 1:
            cancel.set()

    with serve(payload, pieces=8, on_chunk=cancel_after_first):
        result = TarResolver().fetch(tar_source("https://example.com/a.tar"), tmp_path / "out", cancel=cancel)

    assert isinstance(result.unwrap_err(), FetchCancelledError)


def test_fetch_uses_system_tar_for_zstd(tmp_path: Path) -> None:
    destination = tmp_path / "out"
    completed = CompletedCommand(args=(), stdout="", stderr="")

    with serve(b"zstd-bytes"), patch("fetchit.resolvers.tar.run_process", return_value=Ok(completed)) as mock_run:
        result = TarResolver(tar_executable="gtar").fetch(tar_source("https://example.com/a.tar.zst"), destination)

    assert result == Ok(destination)
    args = mock_run.call_args.args[0]
    assert args == ["gtar", "-x", "-C", str(destination), "--zstd"]
    assert list(mock_run.call_args.kwargs["input_chunks"]) == [b"zstd-bytes"]


def test_fetch_reports_system_tar_failure(tmp_path: Path) -> None:
    failure = ProcessFailedError(
        command="tar",
        returncode=2,
        stderr="tar: unrecognized option '--lzip'\n",
        message="tar failed with exit code 2: tar: unrecognized option '--lzip'",
    )

    with serve(b"lz-bytes"), patch("fetchit.resolvers.tar.run_process", return_value=Err(failure)):
        result = TarResolver().fetch(tar_source("https://example.com/a.tlz"), tmp_path)

    assert is_err(result)
    assert "unrecognized option" in result.unwrap_err().message


def test_fetch_reports_system_tar_cancellation(tmp_path: Path) -> None:
    cancelled = ProcessCancelledError(command="tar", message="tar cancelled")

    with serve(b"Z-bytes"), patch("fetchit.resolvers.tar.run_process", return_value=Err(cancelled)):
        result = TarResolver().fetch(tar_source("https://example.com/a.tar.Z"), tmp_path)

    assert isinstance(result.unwrap_err(), FetchCancelledError)