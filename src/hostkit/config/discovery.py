"""Locate and read ``hostkit.toml``.

An explicit ``--config`` path wins, then ``HOSTKIT_CONFIG``, then the
nearest ``hostkit.toml`` found walking up from the working directory.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path

from hostkit.config.models import HostConfig

CONFIG_FILENAME = "hostkit.toml"
CONFIG_ENV_VAR = "HOSTKIT_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file that applies to *start*, or None.

    A ``HOSTKIT_CONFIG`` pointing at a missing file yields None rather
    than falling through to the walk-up search.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        explicit = Path(override)
        return explicit if explicit.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Path | None = None, cwd: Path | None = None) -> HostConfig:
    """Validate the TOML at *path* (or the discovered one) into a HostConfig.

    No file at all means every section keeps its defaults.
    """
    source = path if path is not None else find_config(cwd)
    if source is None:
        return HostConfig()
    with source.open("rb") as fh:
        return HostConfig.model_validate(tomllib.load(fh))
