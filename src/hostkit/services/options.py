"""OptionsService — a plugin's own options in a YAML file.

Options live in ``config.yml`` (configurable) under the data root, read
and written in ruamel.yaml round-trip mode so that comments and ordering
an administrator added by hand survive ``ensure_defaults()`` and ``set()``.

Values set from text (a host command, the CLI) are coerced to the type
of the option's current value: bool, int, float or str.
"""

from __future__ import annotations

import logging
from io import StringIO
from typing import TYPE_CHECKING, Any

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap
from ruamel.yaml.error import YAMLError

from hostkit.services.result import ErrorCode, ServiceResult

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

_TRUE = frozenset({"true", "yes", "on", "1"})
_FALSE = frozenset({"false", "no", "off", "0"})


def _new_yaml() -> YAML:
    """Fresh round-trip parser per call; YAML objects keep emitter state."""
    y = YAML()
    y.preserve_quotes = True
    y.default_flow_style = False
    return y


def coerce_value(raw: str, current: Any) -> Any:
    """Convert *raw* text to the type of *current*.

    Raises:
        ValueError: If *raw* cannot be read as that type.
    """
    text = raw.strip()
    if isinstance(current, bool):
        lowered = text.lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        msg = f"expected a boolean, got {raw!r}"
        raise ValueError(msg)
    if isinstance(current, int):
        return int(text)
    if isinstance(current, float):
        return float(text)
    return raw


class OptionsService:
    """Read, default and update options stored in a YAML file."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._defaults: dict[str, Any] = {}
        self._data: CommentedMap = CommentedMap()
        self.reload()

    @property
    def path(self) -> Path:
        return self._path

    def reload(self) -> None:
        """Re-read the options file (missing file means no values)."""
        if not self._path.is_file():
            self._data = CommentedMap()
            return
        try:
            loaded = _new_yaml().load(self._path.read_text(encoding="utf-8"))
        except YAMLError as exc:
            msg = f"Invalid YAML in {self._path}: {exc}"
            raise ValueError(msg) from exc
        if loaded is None:
            loaded = CommentedMap()
        if not isinstance(loaded, dict):
            msg = f"{self._path} must contain a mapping at the top level"
            raise ValueError(msg)
        self._data = loaded

    def define(self, key: str, default: Any) -> None:
        """Declare an option and its default value."""
        self._defaults[key] = default

    def ensure_defaults(self) -> list[str]:
        """Write every declared option missing from the file. Returns added keys."""
        added = [key for key in self._defaults if key not in self._data]
        for key in added:
            self._data[key] = self._defaults[key]
        if added:
            self._write()
            logger.debug("Added default options: %s", ", ".join(added))
        return added

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._data:
            return self._data[key]
        return self._defaults.get(key, default)

    def values(self) -> dict[str, Any]:
        """Effective options: declared defaults overlaid with file values."""
        merged = dict(self._defaults)
        merged.update(self._data)
        return merged

    def set(self, key: str, raw: str) -> ServiceResult:
        """Set a known option from text, persisting the file."""
        op = "set_option"
        if key not in self._data and key not in self._defaults:
            return ServiceResult.failure(
                op,
                ErrorCode.UNKNOWN_OPTION,
                f"Unknown option: {key!r}",
                detail={"known": sorted(self.values())},
            )
        current = self.get(key)
        try:
            value = coerce_value(raw, current)
        except ValueError as exc:
            return ServiceResult.failure(
                op,
                ErrorCode.INVALID_VALUE,
                f"Invalid value for {key!r}: {exc}",
                detail={"expected": type(current).__name__, "raw": raw},
            )
        self._data[key] = value
        self._write()
        return ServiceResult(ok=True, op=op, data={"key": key, "value": value})

    def _write(self) -> None:
        buf = StringIO()
        _new_yaml().dump(self._data, buf)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(buf.getvalue(), encoding="utf-8")
