# SPDX-License-Identifier: MIT
"""
Parser Configuration

Settings for the adaptive parser and the CLI. Values come from, in order
of increasing precedence: built-in defaults, an optional JSON file
(cmdhelp.json in the working directory unless a path is given), and
CMDHELP_* environment variables.

Environment Variables (optional):
    CMDHELP_CONFIG: Path to the JSON config file
    CMDHELP_CHUNK_SIZE: Lines per chunk for streaming parses
    CMDHELP_STRATEGY: Force a single parsing strategy
    CMDHELP_VALIDATE: "0"/"false" to skip quality scoring
    CMDHELP_LOG_LEVEL: Logging level for the CLI
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "cmdhelp.json"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class ParserConfig:
    """Configuration for the adaptive parser."""

    chunk_size: int = 200
    minimal_description_lines: int = 3
    minimal_max_lines: int = 1000
    strategy: Optional[str] = None
    validate: bool = True
    log_level: str = "WARNING"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def get_default_config() -> Dict[str, Any]:
    """Get default configuration values."""
    return ParserConfig().to_dict()


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _coerce_positive_int(value: Any) -> int:
    number = int(value)
    if number < 1:
        raise ValueError(f"must be positive: {value!r}")
    return number


def _coerce_strategy(value: Any) -> Optional[str]:
    text = str(value).strip() if value is not None else ""
    return text or None


def _coerce_level(value: Any) -> str:
    level = str(value).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"unknown log level: {value!r}")
    return level


_COERCERS = {
    "chunk_size": _coerce_positive_int,
    "minimal_description_lines": _coerce_positive_int,
    "minimal_max_lines": _coerce_positive_int,
    "strategy": _coerce_strategy,
    "validate": _coerce_bool,
    "log_level": _coerce_level,
}

_ENV_KEYS = {
    "CMDHELP_CHUNK_SIZE": "chunk_size",
    "CMDHELP_STRATEGY": "strategy",
    "CMDHELP_VALIDATE": "validate",
    "CMDHELP_LOG_LEVEL": "log_level",
}


def apply_overrides(config: ParserConfig, values: Mapping[str, Any], source: str) -> ParserConfig:
    """
    Apply known keys from a mapping onto a config.

    Unknown keys and invalid values are skipped with a warning.

    Args:
        config: Config to update in place
        values: Candidate values
        source: Where the values came from, for log messages

    Returns:
        The updated config
    """
    for key, raw in values.items():
        coerce = _COERCERS.get(key)
        if coerce is None:
            logger.warning("Ignoring unknown config key %r from %s", key, source)
            continue
        try:
            setattr(config, key, coerce(raw))
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring invalid %s from %s: %s", key, source, e)
    return config


def load_config(
    config_path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None
) -> ParserConfig:
    """
    Load configuration from file and environment.

    Args:
        config_path: Path to a JSON config file. Defaults to CMDHELP_CONFIG,
            then ./cmdhelp.json
        environ: Environment mapping (defaults to os.environ)

    Returns:
        ParserConfig instance
    """
    environ = os.environ if environ is None else environ
    config = ParserConfig()

    if config_path is None:
        env_path = environ.get("CMDHELP_CONFIG")
        config_path = Path(env_path) if env_path else Path.cwd() / DEFAULT_CONFIG_NAME

    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load config from %s: %s", config_path, e)
        else:
            if isinstance(data, dict):
                apply_overrides(config, data, str(config_path))
            else:
                logger.warning("Config file %s does not hold a JSON object", config_path)

    env_values = {key: environ[name] for name, key in _ENV_KEYS.items() if name in environ}
    apply_overrides(config, env_values, "environment")
    return config
