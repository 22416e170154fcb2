"""Persistence contract for domain entities.

Any object that can be flattened to a ``str -> str`` mapping and rebuilt
from one is *persistable*. The storage layer is generic over this
capability and never sees concrete entity classes.

Round-trip law: ``e.restore(e.snapshot())`` must leave ``e`` observationally
unchanged on every field the entity declares.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol, runtime_checkable


@runtime_checkable
class Persistable(Protocol):
    """Capability interface for entities owned by a StorageService."""

    def snapshot(self) -> Mapping[str, str]:
        """Return the entity's current state as a string-keyed mapping."""
        ...

    def restore(self, data: Mapping[str, str]) -> None:
        """Replace the entity's state in place from *data*.

        Raises:
            RestoreMismatch: If *data* cannot populate the entity.
        """
        ...


class RestoreMismatch(Exception):
    """A persisted mapping does not fit the entity's expected shape."""

    def __init__(self, message: str, *, missing: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.missing = missing


def require_fields(data: Mapping[str, str], *keys: str) -> None:
    """Raise :class:`RestoreMismatch` unless every key in *keys* is present.

    Examples:
        >>> require_fields({"name": "a"}, "name")
        >>> require_fields({}, "name", "level")
        Traceback (most recent call last):
            ...
        hostkit.domain.persistable.RestoreMismatch: missing fields: name, level
    """
    missing = tuple(key for key in keys if key not in data)
    if missing:
        msg = f"missing fields: {', '.join(missing)}"
        raise RestoreMismatch(msg, missing=missing)


def parse_int_field(data: Mapping[str, str], key: str) -> int:
    """Read an integer field, reporting a bad value as a mismatch."""
    require_fields(data, key)
    try:
        return int(data[key])
    except ValueError as exc:
        msg = f"field {key!r} is not an integer: {data[key]!r}"
        raise RestoreMismatch(msg) from exc


def parse_bool_field(data: Mapping[str, str], key: str) -> bool:
    """Read a ``"true"``/``"false"`` field, reporting anything else as a mismatch."""
    require_fields(data, key)
    value = data[key].strip().lower()
    if value == "true":
        return True
    if value == "false":
        return False
    msg = f"field {key!r} is not a boolean: {data[key]!r}"
    raise RestoreMismatch(msg)
