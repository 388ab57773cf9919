from .git import GitConfig
from .http import HttpConfig

__all__ = ["GitConfig", "HttpConfig"]
