"""Configuration management for the medquiz runner.

Settings live in a TOML file grouped by concern. Values are merged over
built-in defaults (unknown keys are rejected) and validated into frozen
dataclasses so the rest of the package never handles raw dictionaries.
"""

from __future__ import annotations

import copy
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional

from .catalog import CatalogError, SubjectCatalog, DEFAULT_SUBJECTS
from .core import data_dir

CONFIG_PATH_ENV = "MEDQUIZ_CONFIG"


class ConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class OpenAIConfig:
    chat_model: str
    temperature: float
    max_output_tokens: int
    request_timeout_seconds: int
    api_base: Optional[str]


@dataclass(frozen=True)
class QuizConfig:
    time_limit_seconds: int
    question_limit: int
    time_limit_choices: tuple[int, ...]
    question_limit_choices: tuple[int, ...]
    tick_seconds: float


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    verbose: bool


@dataclass(frozen=True)
class AppConfig:
    openai: OpenAIConfig
    quiz: QuizConfig
    catalog: SubjectCatalog
    logging: LoggingConfig


def _merge_dict(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> None:
    for key, value in override.items():
        dotted = f"{path}{key}"
        if key not in base:
            raise ConfigError(f"Unknown configuration key '{dotted}'.")
        base_value = base[key]
        if isinstance(base_value, MutableMapping):
            if not isinstance(value, Mapping):
                raise ConfigError(
                    "Expected table for '{0}', found {1}.".format(
                        dotted,
                        type(value).__name__,
                    )
                )
            _merge_dict(base_value, value, path=f"{dotted}.")
        else:
            base[key] = value


def _require_positive_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"'{field}' must be a positive integer.")
    return value


def _require_non_negative_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(f"'{field}' must be a non-negative integer.")
    return value


def _require_bool(value: Any, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{field}' must be a boolean.")
    return value


def _require_float_range(
    value: Any, *, field: str, min_value: float, max_value: float
) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{field}' must be a number.")
    number = float(value)
    if not (min_value <= number <= max_value):
        raise ConfigError(
            f"'{field}' must be between {min_value} and {max_value}."
        )
    return number


def _require_string(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string.")
    return value.strip()


def _coerce_optional_string(value: Any, *, field: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string when set.")
    return value.strip()


def _require_choices(value: Any, *, field: str) -> tuple[int, ...]:
    if not isinstance(value, list) or not value:
        raise ConfigError(f"'{field}' must be a non-empty list of integers.")
    choices = tuple(
        _require_non_negative_int(item, field=field) for item in value
    )
    if len(set(choices)) != len(choices):
        raise ConfigError(f"'{field}' must not repeat values.")
    return choices


def _build_openai(section: Mapping[str, Any]) -> OpenAIConfig:
    return OpenAIConfig(
        chat_model=_require_string(
            section.get("chat_model"),
            field="providers.openai.chat_model",
        ),
        temperature=_require_float_range(
            section.get("temperature"),
            field="providers.openai.temperature",
            min_value=0.0,
            max_value=2.0,
        ),
        max_output_tokens=_require_positive_int(
            section.get("max_output_tokens"),
            field="providers.openai.max_output_tokens",
        ),
        request_timeout_seconds=_require_positive_int(
            section.get("request_timeout_seconds"),
            field="providers.openai.request_timeout_seconds",
        ),
        api_base=_coerce_optional_string(
            section.get("api_base"), field="providers.openai.api_base"
        ),
    )


def _build_quiz(section: Mapping[str, Any]) -> QuizConfig:
    time_limit = _require_non_negative_int(
        section.get("time_limit_seconds"), field="quiz.time_limit_seconds"
    )
    question_limit = _require_non_negative_int(
        section.get("question_limit"), field="quiz.question_limit"
    )
    time_choices = _require_choices(
        section.get("time_limit_choices"), field="quiz.time_limit_choices"
    )
    question_choices = _require_choices(
        section.get("question_limit_choices"),
        field="quiz.question_limit_choices",
    )
    if time_limit not in time_choices:
        raise ConfigError(
            "quiz.time_limit_seconds must be one of quiz.time_limit_choices."
        )
    if question_limit not in question_choices:
        raise ConfigError(
            "quiz.question_limit must be one of quiz.question_limit_choices."
        )
    tick_seconds = _require_float_range(
        section.get("tick_seconds"),
        field="quiz.tick_seconds",
        min_value=0.001,
        max_value=60.0,
    )
    return QuizConfig(
        time_limit_seconds=time_limit,
        question_limit=question_limit,
        time_limit_choices=time_choices,
        question_limit_choices=question_choices,
        tick_seconds=tick_seconds,
    )


def _build_logging(section: Mapping[str, Any]) -> LoggingConfig:
    level = _require_string(section.get("level"), field="logging.level").upper()
    allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if level not in allowed:
        raise ConfigError(
            "logging.level must be one of "
            "DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    verbose = _require_bool(section.get("verbose"), field="logging.verbose")
    return LoggingConfig(level=level, verbose=verbose)


def _build_catalog(section: Any) -> SubjectCatalog:
    try:
        return SubjectCatalog.from_mapping(section)
    except CatalogError as exc:
        raise ConfigError(f"catalog: {exc}") from exc


def _build_config(tree: Mapping[str, Any]) -> AppConfig:
    providers = tree.get("providers", {})
    openai_section = providers.get("openai")
    if not isinstance(openai_section, Mapping):
        raise ConfigError("providers.openai table is required.")
    return AppConfig(
        openai=_build_openai(openai_section),
        quiz=_build_quiz(tree.get("quiz", {})),
        catalog=_build_catalog(tree.get("catalog")),
        logging=_build_logging(tree.get("logging", {})),
    )


def _load_toml(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse config TOML: {exc}") from exc


def resolve_config_path(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
) -> Path:
    env_map = os.environ if env is None else env
    if explicit_path is not None:
        return explicit_path.expanduser().resolve()
    env_override = env_map.get(CONFIG_PATH_ENV)
    if env_override:
        return Path(env_override).expanduser().resolve()
    return data_dir.config_path(env=env_map, create_parent=False)


def load_config(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
) -> AppConfig:
    """Load the TOML config, applying defaults and validation.

    An explicitly requested file (flag or environment variable) must exist.
    The default location is optional; built-in defaults apply without it.
    """

    env_map = os.environ if env is None else env
    path = resolve_config_path(explicit_path=explicit_path, env=env_map)
    explicit = explicit_path is not None or bool(env_map.get(CONFIG_PATH_ENV))
    tree = default_tree()
    if explicit or path.exists():
        toml_data = _load_toml(path)
        if "catalog" in toml_data:
            catalog = toml_data["catalog"]
            if not isinstance(catalog, Mapping):
                raise ConfigError(
                    "Expected table for 'catalog', found {0}.".format(
                        type(catalog).__name__
                    )
                )
            # A configured catalog replaces the built-in one wholesale.
            tree["catalog"] = {key: None for key in catalog}
        _merge_dict(tree, toml_data)
    return _build_config(tree)


def default_tree() -> Dict[str, Any]:
    """Return a copy of the default configuration tree."""

    return copy.deepcopy(_DEFAULTS)


def config_template() -> str:
    """Return the TOML template recommended for new installs."""

    return _CONFIG_TEMPLATE.strip() + "\n"


def write_template(
    path: Path, *, overwrite: bool = False, mode: int = 0o600
) -> Path:
    """Write the default template to ``path``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists() and not overwrite:
        raise ConfigError(f"Config already exists: {path}")
    with path.open("w", encoding="utf-8") as fh:
        fh.write(config_template())
    try:
        path.chmod(mode)
    except PermissionError:
        pass
    return path


_DEFAULTS: Dict[str, Any] = {
    "providers": {
        "openai": {
            "chat_model": "gpt-4o-mini",
            "temperature": 0.7,
            "max_output_tokens": 1200,
            "request_timeout_seconds": 60,
            "api_base": None,
        },
    },
    "quiz": {
        "time_limit_seconds": 0,
        "question_limit": 0,
        "time_limit_choices": [0, 30, 60, 90, 120],
        "question_limit_choices": [0, 5, 10, 20, 50],
        "tick_seconds": 1.0,
    },
    "catalog": {
        subject: list(topics) for subject, topics in DEFAULT_SUBJECTS.items()
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
    },
}


_CONFIG_TEMPLATE = """
# medquiz configuration

[providers.openai]
# Chat completion model used for questions, explanations and doubts
chat_model = "gpt-4o-mini"
# Sampling temperature (0.0-2.0); higher values vary questions more
temperature = 0.7
max_output_tokens = 1200
request_timeout_seconds = 60
# Optional API base override
# api_base = "https://api.openai.com/v1"

[quiz]
# Defaults pre-selected on the setup screen (0 = untimed / unlimited)
time_limit_seconds = 0
question_limit = 0
# Values offered by the setup screen selects
time_limit_choices = [0, 30, 60, 90, 120]
question_limit_choices = [0, 5, 10, 20, 50]
# Countdown tick length in seconds
tick_seconds = 1.0

# Uncomment to replace the built-in subject catalog.
# [catalog]
# "Cardiology" = ["Arrhythmias", "Heart Failure"]
# "Pharmacology" = ["Autonomic Drugs", "Antimicrobials"]

[logging]
level = "INFO"
verbose = false
"""
