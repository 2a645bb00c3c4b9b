"""CLI module for condexpr."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from condexpr.cli.exit_codes import ExitCode
from condexpr.cli.output import error_exit
from condexpr.config import (
    ConfigError,
    LoggingConfig,
    build_logging_config,
    load_config,
)

_logging_configured: bool = False

logger = logging.getLogger(__name__)


def _configure_logging(
    base_config: LoggingConfig,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Configure logging from CLI options layered over the loaded config."""
    global _logging_configured
    if _logging_configured:
        return

    from condexpr.logging import configure_logging

    configure_logging(
        build_logging_config(
            base_config,
            level=log_level,
            file=log_file,
            format="json" if log_json else None,
        )
    )
    _logging_configured = True


@click.group()
@click.version_option(package_name="condexpr")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: ~/.condexpr/config.toml).",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """condexpr - Evaluate placeholder condition expressions."""
    ctx.ensure_object(dict)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        error_exit(str(e), ExitCode.CONFIG_ERROR)

    _configure_logging(config.logging, log_level, log_file, log_json)
    ctx.obj["config"] = config


# Defer import to avoid circular dependency
def _register_commands():
    from condexpr.cli.check import check_command, eval_command, tokens_command

    main.add_command(eval_command)
    main.add_command(check_command)
    main.add_command(tokens_command)


_register_commands()
