"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click, or a host's explicit values
  2. Env vars     — ``HOSTKIT_*`` prefix, nested sections split on ``__``
  3. TOML file    — ``hostkit.toml`` discovered via walk-up
  4. Code defaults — baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reuses the walk-up discovery from :mod:`hostkit.config.discovery`.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from hostkit.config.discovery import find_config
from hostkit.config.models import (
    AutosaveConfig,
    ColorsConfig,
    LocaleConfig,
    OptionsConfig,
    PluginsConfig,
    StorageConfig,
)

_DEFAULT_LOCATIONS = {
    "sqlite": ".hostkit/hostkit.db",
    "json": ".hostkit/records",
}


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``hostkit.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                import click

                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class HostSettings(BaseSettings):
    """Unified settings for hostkit and the plugin embedding it.

    Attributes:
        root: Data directory every relative path is resolved against
            (parent of ``hostkit.toml``, or CWD if no config found).
        config_path: The TOML file that was loaded, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "HOSTKIT_",
        "env_nested_delimiter": "__",
    }

    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    debug: bool = False

    # --- TOML sections ---
    storage: StorageConfig = Field(default_factory=StorageConfig)
    autosave: AutosaveConfig = Field(default_factory=AutosaveConfig)
    colors: ColorsConfig = Field(default_factory=ColorsConfig)
    locale: LocaleConfig = Field(default_factory=LocaleConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
    options: OptionsConfig = Field(default_factory=OptionsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def load(
        cls,
        *,
        config_path: str | Path | None = None,
        root: Path | None = None,
        **overrides: Any,
    ) -> HostSettings:
        """Construct settings for a CLI invocation or an embedding host.

        Discovers ``hostkit.toml`` via walk-up from *root* (or uses the
        explicit *config_path*), resolves *root* from the config file's
        parent directory when not given, and applies *overrides* as the
        highest-priority values.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(root)

        resolved_root = root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(root=resolved_root, config_path=toml_path, **overrides)
        finally:
            _tls.toml_path = None

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    def resolve_path(self, relative: str | Path) -> Path:
        """Resolve *relative* against :attr:`root` (absolute paths pass through)."""
        path = Path(relative)
        return path if path.is_absolute() else self.root / path

    def storage_location(self) -> Path:
        """Database file or record directory for the configured backend."""
        location = self.storage.location or _DEFAULT_LOCATIONS[self.storage.backend]
        return self.resolve_path(location)

    def locale_directory(self) -> Path:
        return self.resolve_path(self.locale.directory)

    def plugins_directory(self) -> Path:
        return self.resolve_path(self.plugins.local_dir)

    def options_file(self) -> Path:
        return self.resolve_path(self.options.filename)
