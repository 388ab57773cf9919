"""Built-in fetch backends."""

from .file import LocalDirectoryResolver
from .git import GitResolver
from .tar import TarResolver, compression_flag
from .zip import ZipResolver

__all__ = [
    "GitResolver",
    "LocalDirectoryResolver",
    "TarResolver",
    "ZipResolver",
    "compression_flag",
]
