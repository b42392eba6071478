"""Resolve the medquiz data directory layout.

Runtime artifacts (the config file and logs) live under a single data home,
``~/.medquiz`` unless ``MEDQUIZ_DATA_HOME`` points elsewhere.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

DATA_HOME_ENV = "MEDQUIZ_DATA_HOME"
DEFAULT_DATA_HOME = Path.home() / ".medquiz"
CONFIG_FILENAME = "medquiz.toml"

_SUBDIRS = {
    "config": "config",
    "logs": "logs",
}


class DataDirError(RuntimeError):
    """Raised when the data home cannot be resolved or created."""


def get_data_home(
    *, env: Mapping[str, str] | None = None, create: bool = True
) -> Path:
    """Return the resolved data home directory, optionally creating it."""

    env_map = os.environ if env is None else env
    override = (env_map.get(DATA_HOME_ENV) or "").strip()
    base = Path(override).expanduser() if override else DEFAULT_DATA_HOME
    if base.exists() and not base.is_dir():
        raise DataDirError(
            f"Configured data home exists and is not a directory: {base}"
        )
    if create:
        _ensure_dir(base)
    return base


def require_subdir(
    name: str, *, env: Mapping[str, str] | None = None, create: bool = True
) -> Path:
    """Return a named subdirectory inside the data home."""

    try:
        relative = _SUBDIRS[name]
    except KeyError as exc:
        raise KeyError(f"Unknown data subdir '{name}'.") from exc
    target = get_data_home(env=env, create=create) / relative
    if target.exists() and not target.is_dir():
        raise DataDirError(
            f"Expected a directory for '{name}' but found a file: {target}"
        )
    if create:
        _ensure_dir(target)
    return target


def logs_dir(
    *, env: Mapping[str, str] | None = None, create: bool = True
) -> Path:
    return require_subdir("logs", env=env, create=create)


def config_path(
    *, env: Mapping[str, str] | None = None, create_parent: bool = True
) -> Path:
    """Return the canonical config TOML path without creating the file."""

    path = require_subdir("config", env=env, create=create_parent)
    path = path / CONFIG_FILENAME
    if path.is_dir():
        raise DataDirError(
            f"Configuration path exists but is a directory: {path}"
        )
    return path


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)
    try:
        path.chmod(0o700)
    except (PermissionError, NotImplementedError):
        pass
