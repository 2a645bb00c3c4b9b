"""Logging setup for the condexpr logger tree.

configure_logging() only touches the "condexpr" package logger: handlers
are attached there, tagged with EvaluationContextFilter, and records stop
propagating so an embedding application's root handlers do not print them
twice. The root logger is left alone.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from condexpr.logging.context import EvaluationContextFilter
from condexpr.logging.handlers import JSONFormatter

if TYPE_CHECKING:
    from condexpr.config.models import LoggingConfig

PACKAGE_LOGGER = "condexpr"

# expr_tag is "[caller: expression] " inside an evaluation, "" otherwise
TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(expr_tag)s%(name)s: %(message)s"


def configure_logging(
    config: LoggingConfig, logger_name: str = PACKAGE_LOGGER
) -> logging.Logger:
    """Attach handlers for config to the package logger.

    Calling it again replaces the handlers from the previous call, so the
    CLI and tests can reconfigure freely.

    Returns:
        The configured logger.
    """
    target = logging.getLogger(logger_name)
    level = logging.getLevelName(config.level.upper())
    target.setLevel(level)
    target.propagate = False

    for handler in [h for h in target.handlers if _is_ours(h)]:
        target.removeHandler(handler)
        handler.close()

    formatter: logging.Formatter
    if config.format.lower() == "json":
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")

    handlers: list[logging.Handler] = []
    file_error: OSError | None = None
    if config.file:
        try:
            handlers.append(_file_handler(Path(config.file).expanduser(), config))
        except OSError as e:
            file_error = e

    if config.include_stderr or not handlers:
        handlers.append(logging.StreamHandler(sys.stderr))

    context_filter = EvaluationContextFilter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        target.addHandler(handler)

    if file_error is not None:
        target.warning(
            "Could not open log file %s, logging to stderr: %s",
            config.file,
            file_error,
        )
    return target


def _file_handler(path: Path, config: LoggingConfig) -> RotatingFileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding="utf-8",
    )


def _is_ours(handler: logging.Handler) -> bool:
    return any(isinstance(f, EvaluationContextFilter) for f in handler.filters)
