"""Configuration loading and validation."""

from __future__ import annotations

import dataclasses
import logging
import math
import os
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from .combiners import COMBINERS, DEFAULT_COMBINER
from .types import UNK

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.config/quince/config.yaml")
DEFAULT_LOG_LEVEL = "info"
CONFIG_ENV_VAR = "QUINCE_CONFIG"


class ConfigurationError(ValueError):
    """Raised when configuration or call arguments are invalid."""


@dataclass(frozen=True)
class LoggingConfig:
    """Logging-related configuration."""

    level: str = DEFAULT_LOG_LEVEL
    debug_file: bool = False


@dataclass(frozen=True)
class ClassifierOptions:
    """Tunable options shared by every classifier variant."""

    debug: int = 0
    on_disk: bool = False
    n_observations_required: int = 5
    number_of_predictors: int = 15
    minimum_word_prob: float = 0.01
    maximum_word_prob: float = 0.99
    score_delay: int = 1
    ignored_tokens: tuple[str, ...] = ()
    combiner: str = DEFAULT_COMBINER

    def __post_init__(self) -> None:
        _require_int("debug", self.debug, minimum=0)
        _require_int("n_observations_required", self.n_observations_required, minimum=0)
        _require_int("number_of_predictors", self.number_of_predictors, minimum=1)
        _require_int("score_delay", self.score_delay, minimum=1)
        if not isinstance(self.on_disk, bool):
            raise ConfigurationError("on_disk must be a boolean.")
        minimum = _require_probability("minimum_word_prob", self.minimum_word_prob)
        maximum = _require_probability("maximum_word_prob", self.maximum_word_prob)
        if minimum > maximum:
            raise ConfigurationError(
                "minimum_word_prob must not exceed maximum_word_prob "
                f"({minimum} > {maximum})."
            )
        if self.combiner not in COMBINERS:
            known = ", ".join(sorted(COMBINERS))
            raise ConfigurationError(f"Unknown combiner '{self.combiner}' (expected one of {known}).")
        object.__setattr__(self, "minimum_word_prob", minimum)
        object.__setattr__(self, "maximum_word_prob", maximum)
        object.__setattr__(self, "ignored_tokens", _normalize_ignored(self.ignored_tokens))

    def with_overrides(self, **changes: Any) -> ClassifierOptions:
        """Return a copy with the given options replaced."""

        unknown = set(changes) - {item.name for item in dataclasses.fields(self)}
        if unknown:
            raise ConfigurationError(f"Unknown option(s): {', '.join(sorted(unknown))}")
        return dataclasses.replace(self, **changes)

    def as_dict(self) -> dict[str, Any]:
        payload = dataclasses.asdict(self)
        payload["ignored_tokens"] = list(self.ignored_tokens)
        return payload


@dataclass(frozen=True)
class Config:
    """Fully parsed configuration file."""

    options: ClassifierOptions
    logging: LoggingConfig


def load_config(path: Path | str | None = None) -> Config:
    """Load and validate configuration from YAML."""

    config_path = _resolve_config_path(path)
    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    if not isinstance(raw, dict):
        raise ConfigurationError("Configuration root must be a mapping.")

    return _parse_config(raw)


def load_options(path: Path | str | None = None) -> ClassifierOptions:
    """Load only the classifier options from a configuration file."""

    return load_config(path).options


def save_options(options: ClassifierOptions, path: Path | str) -> Path:
    """Write classifier options as YAML, clobbering any existing file."""

    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    header = f"# Quince options file created {datetime.now().isoformat(timespec='seconds')}\n"
    body = yaml.safe_dump(options.as_dict(), sort_keys=True, default_flow_style=False)
    target.write_text(header + body, encoding="utf-8")
    LOGGER.debug("Saved classifier options to %s", target)
    return target


def require_category(category: str) -> str:
    """Validate a user-supplied category name."""

    if not isinstance(category, str) or not category.strip():
        raise ConfigurationError("Category name cannot be empty.")
    if category == UNK:
        raise ConfigurationError(f"Can't accept reserved category '{UNK}'.")
    return category


def require_threshold(threshold: float) -> float:
    try:
        value = float(threshold)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Threshold must be a number, got {threshold!r}.") from exc
    if math.isnan(value) or value < 0.0 or value > 1.0:
        raise ConfigurationError(f"Threshold must be within [0, 1], got {threshold}.")
    return value


def require_folds(folds: int) -> int:
    if isinstance(folds, bool) or not isinstance(folds, int):
        raise ConfigurationError(f"Folds must be an integer, got {folds!r}.")
    if folds < 2:
        raise ConfigurationError("Can't crossval with less than 2 folds.")
    return folds


def _resolve_config_path(explicit: Path | str | None) -> Path:
    if explicit:
        return Path(explicit).expanduser()
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH.expanduser()


def _parse_config(raw: dict[str, Any]) -> Config:
    raw = dict(raw)
    logging_config = _parse_logging(raw.pop("logging", None))
    options = _parse_options(raw.pop("options", raw))
    return Config(options=options, logging=logging_config)


def _parse_options(value: Any) -> ClassifierOptions:
    if value is None:
        return ClassifierOptions()
    if not isinstance(value, dict):
        raise ConfigurationError("options must be a mapping.")
    known = {item.name for item in dataclasses.fields(ClassifierOptions)}
    unknown = set(value) - known
    if unknown:
        raise ConfigurationError(f"Unknown option(s): {', '.join(sorted(map(str, unknown)))}")
    values = dict(value)
    ignored = values.get("ignored_tokens")
    if ignored is not None and not isinstance(ignored, list):
        raise ConfigurationError("ignored_tokens must be a list.")
    return ClassifierOptions(**values)


def _parse_logging(value: Any) -> LoggingConfig:
    if value is None:
        return LoggingConfig()
    if not isinstance(value, dict):
        raise ConfigurationError("logging must be a mapping.")
    level = str(value.get("level", DEFAULT_LOG_LEVEL)).lower()
    debug_file = bool(value.get("debug_file", False))
    return LoggingConfig(level=level, debug_file=debug_file)


def _require_int(name: str, value: Any, *, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}.")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}.")


def _require_probability(name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a number, got {value!r}.")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a number, got {value!r}.") from exc
    if not 0.0 < number < 1.0:
        raise ConfigurationError(f"{name} must lie strictly between 0 and 1, got {value}.")
    return number


def _normalize_ignored(values: Iterable[str] | None) -> tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        raise ConfigurationError("ignored_tokens must be a list of strings, not a string.")
    normalized: list[str] = []
    seen: set[str] = set()
    for value in values:
        candidate = str(value).strip().casefold()
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        normalized.append(candidate)
    return tuple(normalized)


__all__ = [
    "ClassifierOptions",
    "Config",
    "ConfigurationError",
    "LoggingConfig",
    "load_config",
    "load_options",
    "require_category",
    "require_folds",
    "require_threshold",
    "save_options",
]
