"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Constructor arguments   (Settings(ssr={"enabled": False}))
  2. Environment variables   (INERTIAKIT__SSR__URL=http://127.0.0.1:13714)
  3. inertiakit.yaml         (searched in cwd, then platform config dir)
  4. Hardcoded defaults

The config file is optional; all fields have sensible defaults.
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

DEFAULT_PAGE_EXTENSIONS = [".jsx", ".tsx", ".js", ".ts", ".vue", ".svelte"]


def _find_config_file() -> str | None:
    """Return the path of the first inertiakit.yaml found, or None."""
    candidates = [
        Path("inertiakit.yaml"),
        Path(platformdirs.user_config_dir("inertiakit")) / "inertiakit.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class PagesSettings(BaseModel):
    # When enabled, rendering an unknown component raises COMPONENT_NOT_FOUND.
    ensure_exist: bool = False
    paths: list[str] = []
    extensions: list[str] = DEFAULT_PAGE_EXTENSIONS


class SsrSettings(BaseModel):
    enabled: bool = True
    url: str = "http://127.0.0.1:13714"
    bundle: str | None = None  # Auto-detected when unset
    ensure_bundle_exists: bool = True
    timeout_seconds: float = 10.0


class HistorySettings(BaseModel):
    encrypt: bool = False


class ServerSettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8000


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: INERTIAKIT__SSR__ENABLED=false
        env_prefix="INERTIAKIT__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    root_view: str = "app"
    version: str = ""
    root_element_id: str = "app"
    use_script_element: bool = False

    pages: PagesSettings = PagesSettings()
    ssr: SsrSettings = SsrSettings()
    history: HistorySettings = HistorySettings()
    server: ServerSettings = ServerSettings()
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
        )
