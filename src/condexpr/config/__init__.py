"""Configuration management for condexpr.

Configuration is layered with the following precedence:
1. CLI flags (highest priority)
2. Environment variables (CONDEXPR_*)
3. Config file (~/.condexpr/config.toml)
4. Default values (lowest priority)
"""

from condexpr.config.env import EnvReader
from condexpr.config.loader import (
    ConfigError,
    get_default_config_path,
    load_config,
    load_config_file,
)
from condexpr.config.logging_factory import build_logging_config
from condexpr.config.models import CondexprConfig, EngineConfig, LoggingConfig

__all__ = [
    # Models
    "CondexprConfig",
    "EngineConfig",
    "LoggingConfig",
    # Loader
    "ConfigError",
    "EnvReader",
    "get_default_config_path",
    "load_config",
    "load_config_file",
    "build_logging_config",
]
