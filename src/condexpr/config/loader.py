"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. CLI arguments (applied by the caller, see build_logging_config)
2. Environment variables (CONDEXPR_*)
3. Config file (~/.condexpr/config.toml)
4. Default values

Environment variables:
- CONDEXPR_CONFIG_PATH: Path to config file (overrides default location)
- CONDEXPR_MAX_WORKERS: Worker pool size for async evaluation
- CONDEXPR_CACHE_SIZE: Compiled-expression cache entries (0 disables)
- CONDEXPR_LOG_LEVEL: debug, info, warning or error
- CONDEXPR_LOG_FILE: Log file path
- CONDEXPR_LOG_FORMAT: text or json
"""

from __future__ import annotations

import logging
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from condexpr.config.env import EnvReader
from condexpr.config.models import CondexprConfig, EngineConfig, LoggingConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".condexpr"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

_ENGINE_KEYS = ("max_workers", "cache_size", "thread_name_prefix")
_LOGGING_KEYS = (
    "level",
    "file",
    "format",
    "include_stderr",
    "max_bytes",
    "backup_count",
)


class ConfigError(Exception):
    """Raised when a configuration file or value is invalid."""


def get_default_config_path(env: Mapping[str, str] | None = None) -> Path:
    """Get the config file path, honoring CONDEXPR_CONFIG_PATH."""
    path = EnvReader(env).get_path("CONDEXPR_CONFIG_PATH")
    return path if path is not None else DEFAULT_CONFIG_FILE


def load_config_file(path: Path) -> dict[str, Any]:
    """Load a TOML config file.

    Args:
        path: Config file location.

    Returns:
        Parsed config dict, empty if the file does not exist.

    Raises:
        ConfigError: If the file cannot be read or is not valid TOML.
    """
    if not path.exists():
        logger.debug("Config file not found, using defaults: %s", path)
        return {}
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e


def _section(data: dict[str, Any], name: str, keys: tuple[str, ...]) -> dict:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ConfigError(f"[{name}] must be a table")
    unknown = set(section) - set(keys)
    if unknown:
        logger.warning(
            "Ignoring unknown keys in [%s]: %s", name, ", ".join(sorted(unknown))
        )
    return {k: v for k, v in section.items() if k in keys}


def _env_overrides(reader: EnvReader) -> tuple[dict[str, Any], dict[str, Any]]:
    engine: dict[str, Any] = {}
    log: dict[str, Any] = {}

    max_workers = reader.get_int("CONDEXPR_MAX_WORKERS")
    if max_workers is not None:
        engine["max_workers"] = max_workers
    cache_size = reader.get_int("CONDEXPR_CACHE_SIZE")
    if cache_size is not None:
        engine["cache_size"] = cache_size

    level = reader.get_str("CONDEXPR_LOG_LEVEL")
    if level is not None:
        log["level"] = level
    log_file = reader.get_path("CONDEXPR_LOG_FILE")
    if log_file is not None:
        log["file"] = log_file
    log_format = reader.get_str("CONDEXPR_LOG_FORMAT")
    if log_format is not None:
        log["format"] = log_format

    return engine, log


def load_config(
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> CondexprConfig:
    """Build the effective configuration.

    Args:
        config_path: Config file to read. None uses get_default_config_path().
        env: Environment mapping, os.environ when None.

    Returns:
        Configuration with file values layered over defaults and
        environment values layered over the file.

    Raises:
        ConfigError: If the file or any resulting value is invalid.
    """
    path = config_path if config_path is not None else get_default_config_path(env)
    data = load_config_file(path)

    engine_values = _section(data, "engine", _ENGINE_KEYS)
    logging_values = _section(data, "logging", _LOGGING_KEYS)
    if "file" in logging_values:
        logging_values["file"] = Path(logging_values["file"]).expanduser()

    env_engine, env_logging = _env_overrides(EnvReader(env))
    engine_values.update(env_engine)
    logging_values.update(env_logging)

    try:
        return CondexprConfig(
            engine=EngineConfig(**engine_values),
            logging=LoggingConfig(**logging_values),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
