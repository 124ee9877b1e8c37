"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (WEEKLYTRACKER__HTTP__MAX_RETRIES=5)
  2. .env file in the working directory
  3. weeklytracker.yaml     (searched in cwd, then platform config dir)
  4. Hardcoded defaults

The Notion credential is the one exception to the prefix scheme: it is read
from the plain ``NOTION_TOKEN`` variable. Every other field has a default.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import AliasChoices, BaseModel, Field, SecretStr
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from weeklytracker.errors import missing_token_error

_APP_NAME = "weeklytracker"


def _find_config_file() -> str | None:
    """Return the path of the first weeklytracker.yaml found, or None."""
    candidates = [
        Path("weeklytracker.yaml"),
        Path(platformdirs.user_config_dir(_APP_NAME)) / "weeklytracker.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class NotionSettings(BaseModel):
    api_base: str = "https://api.notion.com/v1"
    api_version: str = "2022-06-28"
    page_size: int = Field(default=100, ge=1, le=100)
    # Upper bound on search pagination; each page holds up to page_size results
    max_search_pages: int = Field(default=10, ge=1)


class HttpSettings(BaseModel):
    max_retries: int = Field(default=3, ge=0)
    base_delay_seconds: float = Field(default=1.0, ge=0)
    cache_ttl_seconds: float = Field(default=300.0, ge=0)
    timeout_seconds: float = 30.0


class ServerSettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 3000
    cors_origins: list[str] = []


class BrowserSettings(BaseModel):
    # Base URL of the /knowledge-base endpoint used by `browse` and `overview`
    api_base: str = "http://localhost:3000"


class ExportSettings(BaseModel):
    output_dir: str = "docs/data"
    weeks: int = Field(default=10, ge=1)


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    format: Literal["json", "text"] = "text"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: WEEKLYTRACKER__SERVER__PORT=9090
        env_prefix="WEEKLYTRACKER__",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
        extra="ignore",
    )

    notion_token: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("NOTION_TOKEN", "notion_token"),
    )
    notion: NotionSettings = NotionSettings()
    http: HttpSettings = HttpSettings()
    server: ServerSettings = ServerSettings()
    browser: BrowserSettings = BrowserSettings()
    export: ExportSettings = ExportSettings()
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
            dotenv_settings,  # .env in the working directory
            YamlConfigSettingsSource(settings_cls),  # YAML file
        )

    def require_token(self) -> str:
        """Return the Notion token, or raise MISSING_TOKEN when it is not configured."""
        if self.notion_token is None or not self.notion_token.get_secret_value().strip():
            raise missing_token_error()
        return self.notion_token.get_secret_value().strip()
