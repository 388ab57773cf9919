from __future__ import annotations

from urllib.parse import urlsplit

import pytest

from fetchit.fetcher.urls import parse_url, split_subdir


@pytest.mark.parametrize(
    "value",
    [
        "https://github.com/user/repo?ref=main#readme",
        "git+ssh://git@host:2222/path/repo.git",
        "file:///tmp/dir",
        "http://[::1]:8080/a.tgz",
        "",
        "relative/path",
        "https://host/a%20b.tgz",
    ],
)
def test_parse_url_accepts_valid_urls(value: str) -> None:
    assert parse_url(value) == urlsplit(value)


@pytest.mark.parametrize(
    ("value", "reason"),
    [
        ("https://host/a\nb", "control character"),
        ("https://host/\x7f", "control character"),
        (":missing-scheme", "missing protocol scheme"),
        ("https://host/%zz", "invalid URL escape"),
        ("https://host/100%", "invalid URL escape"),
        ("http://[::1/path", "IPv6"),
        ("http://host:notaport/path", "Port"),
        ("http://host:99999/path", "Port"),
    ],
)
def test_parse_url_rejects_malformed_urls(value: str, reason: str) -> None:
    with pytest.raises(ValueError, match=f"(?i){reason}"):
        parse_url(value)


def test_split_subdir_splits_on_first_delimiter() -> None:
    url = urlsplit("http://host/a.tgz//sub/dir//deeper?x=1#frag")

    base, subdir = split_subdir(url)

    assert base.path == "/a.tgz"
    assert subdir == "sub/dir//deeper"
    assert base.query == "x=1"
    assert base.fragment == "frag"
    assert base.netloc == "host"


def test_split_subdir_without_delimiter_returns_url_unchanged() -> None:
    url = urlsplit("http://host/a.tgz")

    base, subdir = split_subdir(url)

    assert base is url
    assert subdir == ""


def test_split_subdir_ignores_scheme_separator() -> None:
    base, subdir = split_subdir(urlsplit("git+ssh://host/path/repo.git"))

    assert base.geturl() == "git+ssh://host/path/repo.git"
    assert subdir == ""
