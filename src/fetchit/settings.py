from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fetchit.common import AppInfo, LoggingConfig
from fetchit.utils.git import GitConfig
from fetchit.utils.http import HttpConfig


class Settings(BaseSettings):
    app: AppInfo = AppInfo()
    logging: LoggingConfig = LoggingConfig()
    http: HttpConfig = HttpConfig()
    git: GitConfig = GitConfig()
    github_org: str | None = Field(default=None, pattern=r"^[A-Za-z0-9_-]+$")

    model_config = SettingsConfigDict(
        env_prefix="FETCHIT_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        nested_model_default_partial_update=True,
    )


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next access re-reads the environment."""
    global _settings
    _settings = None


# Private singleton instance
_settings: Settings | None = None


__all__ = [
    "Settings",
    "get_settings",
    "reset_settings",
]
