"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (VIDSEARCH__YOUTUBE__API_KEY=...)
  2. vidsearch.yaml         (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional. The proxy server needs ``youtube.api_key``;
everything else has a working default.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

YOUTUBE_API_URL = "https://www.googleapis.com/youtube/v3"


def _find_config_file() -> str | None:
    """Return the path of the first vidsearch.yaml found, or None."""
    candidates = [
        Path("vidsearch.yaml"),
        Path(platformdirs.user_config_dir("vidsearch")) / "vidsearch.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 5000
    frontend_url: str = "http://localhost:3000"


class BackendSettings(BaseModel):
    """Where the client instance finds the search proxy."""

    url: str = "http://localhost:5000/api"
    timeout_seconds: float = 30.0


class YouTubeSettings(BaseModel):
    api_url: str = YOUTUBE_API_URL
    api_key: str = ""
    # OAuth bearer token, used by the genre browser instead of an API key
    access_token: str = ""
    category_id: str = "10"  # Music
    safe_search: Literal["none", "moderate", "strict"] = "moderate"


class CacheSettings(BaseModel):
    client_ttl_ms: int = 15 * 60 * 1000
    proxy_ttl_ms: int = 60 * 60 * 1000


class SearchSettings(BaseModel):
    debounce_delay_ms: int = 500
    max_results: int = 20
    genre_max_results: int = 8
    proxy_max_results: int = 50
    min_search_length: int = 2


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: VIDSEARCH__SERVER__PORT=9090
        env_prefix="VIDSEARCH__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    backend: BackendSettings = BackendSettings()
    youtube: YouTubeSettings = YouTubeSettings()
    cache: CacheSettings = CacheSettings()
    search: SearchSettings = SearchSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
