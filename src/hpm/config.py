"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Constructor arguments
  2. Environment variables  (HPM__CACHE__TTL_SECONDS=60)
  3. hpm.yaml               (searched in cwd, then the platform config dir)
  4. Hardcoded defaults

The config file is optional; every field has a default.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_CONFIG_DIR = platformdirs.user_config_dir("hpm")


def _find_config_file() -> str | None:
    """Return the path of the first hpm.yaml found, or None."""
    candidates = [
        Path("hpm.yaml"),
        Path(_DEFAULT_CONFIG_DIR) / "hpm.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class PluginSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    prefix: str = "/hpm"
    name: str = "hain-package-manager"


class RegistrySettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    url: str = "https://registry.npmjs.org/-/v1/search"
    topic: str = "hain-plugin"
    page_size: int = Field(default=250, ge=1, le=250)
    timeout_seconds: float = Field(default=30.0, gt=0)


class CacheSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ttl_seconds: float = Field(default=300.0, ge=0)


class ProgressSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    poll_interval_seconds: float = Field(default=0.5, gt=0)


class StoreSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # None disables the timeout around install/remove/list calls
    timeout_seconds: float | None = Field(default=None, gt=0)
    version_range: str = "latest"


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: HPM__REGISTRY__TOPIC=my-topic
        env_prefix="HPM__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    plugin: PluginSettings = PluginSettings()
    registry: RegistrySettings = RegistrySettings()
    cache: CacheSettings = CacheSettings()
    progress: ProgressSettings = ProgressSettings()
    store: StoreSettings = StoreSettings()
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
