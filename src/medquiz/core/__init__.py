"""Core shared helpers for the medquiz runner."""

from __future__ import annotations

from .ai import load_client
from .data_dir import (
    DATA_HOME_ENV,
    DataDirError,
    config_path,
    get_data_home,
    logs_dir,
)
from .logging import JsonLogFormatter, configure_logger

__all__ = [
    "load_client",
    "DATA_HOME_ENV",
    "DataDirError",
    "config_path",
    "get_data_home",
    "logs_dir",
    "configure_logger",
    "JsonLogFormatter",
]
