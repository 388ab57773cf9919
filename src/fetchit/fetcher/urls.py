"""URL parsing and sub-directory splitting."""

from __future__ import annotations

import re
from urllib.parse import SplitResult, urlsplit

SUBDIR_DELIMITER = "//"

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def parse_url(value: str) -> SplitResult:
    """Parse a URL, raising ``ValueError`` when it is not syntactically valid.

    ``urlsplit`` accepts nearly anything, so the checks it skips are done here:
    control characters, a missing scheme before ``:``, malformed
    percent-escapes, and a bad port.
    """
    if _CONTROL_CHARS.search(value):
        raise ValueError("invalid control character in URL")
    if value.startswith(":"):
        raise ValueError("missing protocol scheme")
    if _BAD_ESCAPE.search(value):
        raise ValueError("invalid URL escape")

    parsed = urlsplit(value)
    # Raises ValueError for a non-numeric or out-of-range port.
    _ = parsed.port
    return parsed


def split_subdir(url: SplitResult) -> tuple[SplitResult, str]:
    """Split a ``//<subdir>`` selector off the URL path."""
    base, delimiter, subdir = url.path.partition(SUBDIR_DELIMITER)
    if not delimiter:
        return url, ""
    return url._replace(path=base), subdir
