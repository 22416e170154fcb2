"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, hostkit.toml only contains
overrides. A fresh install needs no config file at all.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

AUTOSAVE_DELAY_SECONDS = 60 * 60
AUTOSAVE_PERIOD_SECONDS = 60 * 60


class StorageConfig(BaseModel):
    """[storage] section."""

    model_config = {"frozen": True}

    backend: Literal["sqlite", "json"] = "sqlite"
    # Relative to the data root. None picks the backend's default location.
    location: str | None = None


class AutosaveConfig(BaseModel):
    """[autosave] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    initial_delay_seconds: float = Field(default=AUTOSAVE_DELAY_SECONDS, ge=0)
    period_seconds: float = Field(default=AUTOSAVE_PERIOD_SECONDS, gt=0)


class ColorsConfig(BaseModel):
    """[colors] section."""

    model_config = {"frozen": True}

    restricted: bool = False


class LocaleConfig(BaseModel):
    """[locale] section."""

    model_config = {"frozen": True}

    language: str = "en_us"
    default_language: str = "en_us"
    directory: str = "lang"


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    local_dir: str = ".hostkit/plugins"


class OptionsConfig(BaseModel):
    """[options] section — where per-plugin options are kept."""

    model_config = {"frozen": True}

    filename: str = "config.yml"


class HostConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    debug: bool = False
    storage: StorageConfig = Field(default_factory=StorageConfig)
    autosave: AutosaveConfig = Field(default_factory=AutosaveConfig)
    colors: ColorsConfig = Field(default_factory=ColorsConfig)
    locale: LocaleConfig = Field(default_factory=LocaleConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
    options: OptionsConfig = Field(default_factory=OptionsConfig)
