"""LocaleService — message lookup from per-language YAML files.

Files live at ``<locale.directory>/<language>.yml``. Nested mappings are
flattened to dotted keys (``errors.not_found``). Keys missing from the
active language fall back to the default language, then to the key.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


def _flatten(data: dict[str, Any], prefix: str = "") -> dict[str, str]:
    out: dict[str, str] = {}
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            out.update(_flatten(value, f"{dotted}."))
        elif value is not None:
            out[dotted] = str(value)
    return out


class LocaleService:
    """Localized messages for one active language.

    Args:
        directory: Folder holding ``<language>.yml`` files.
        language: Active language code, e.g. ``"en_us"``.
        default_language: Fallback language code.
    """

    suffix = ".yml"

    def __init__(self, directory: Path, language: str, default_language: str = "en_us") -> None:
        self._directory = directory
        self.language = language
        self.default_language = default_language
        self._messages: dict[str, str] = {}
        self._fallback: dict[str, str] = {}
        self.reload()

    def reload(self) -> None:
        """Re-read the active and default language files."""
        self._messages = self._read(self.language)
        self._fallback = (
            self._messages
            if self.default_language == self.language
            else self._read(self.default_language)
        )

    def _read(self, language: str) -> dict[str, str]:
        path = self._directory / f"{language}{self.suffix}"
        if not path.is_file():
            logger.debug("No locale file for %s at %s", language, path)
            return {}
        yaml = YAML(typ="safe")
        try:
            data = yaml.load(path.read_text(encoding="utf-8"))
        except YAMLError as exc:
            msg = f"Invalid YAML in locale file {path}: {exc}"
            raise ValueError(msg) from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            msg = f"Locale file {path} must contain a mapping"
            raise ValueError(msg)
        return _flatten(data)

    def languages(self) -> list[str]:
        """Language codes with a file in the locale directory."""
        if not self._directory.is_dir():
            return []
        return sorted(p.stem for p in self._directory.glob(f"*{self.suffix}"))

    def has(self, key: str) -> bool:
        return key in self._messages or key in self._fallback

    def get(self, key: str, **params: Any) -> str:
        """Message for *key* with ``{name}`` placeholders filled from *params*.

        Returns *key* itself when no language defines it. Placeholders with
        no matching parameter are left as written.
        """
        template = self._messages.get(key) or self._fallback.get(key)
        if template is None:
            logger.debug("Missing locale key %s (%s)", key, self.language)
            return key
        if not params:
            return template
        return template.format_map(_KeepMissing(params))


class _KeepMissing(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"
