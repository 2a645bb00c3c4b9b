"""Unified CLI output formatting for JSON and human-readable output."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from typing import Any, NoReturn

import click

from condexpr.cli.exit_codes import ExitCode

format_option = click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"], case_sensitive=False),
    default="text",
    show_default=True,
    help="Output format.",
)


@dataclass
class CLIResult:
    """Result of a condition check, serializable for --format json."""

    passed: bool
    message: str
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def exit_code(self) -> ExitCode:
        return ExitCode.SUCCESS if self.passed else ExitCode.CONDITION_FALSE

    def to_json(self) -> str:
        output: dict[str, Any] = {
            "status": "completed",
            "result": self.passed,
            "message": self.message,
        }
        output.update(self.data)
        return json.dumps(output, indent=2)


def error_exit(
    message: str,
    code: ExitCode | int,
    json_output: bool = False,
) -> NoReturn:
    """Exit with formatted error message.

    Args:
        message: Error message to display.
        code: Exit code to use (ExitCode enum or int).
        json_output: Whether to format output as JSON.
    """
    if isinstance(code, ExitCode):
        code_name = code.name
        exit_value = int(code)
    else:
        code_name = "UNKNOWN_ERROR"
        exit_value = code

    if json_output:
        click.echo(
            json.dumps(
                {
                    "status": "failed",
                    "error": {
                        "code": code_name,
                        "message": message,
                    },
                }
            ),
            err=True,
        )
    else:
        click.echo(f"Error: {message}", err=True)

    sys.exit(exit_value)


def result_exit(result: CLIResult, json_output: bool = False) -> NoReturn:
    """Print a check result and exit with its exit code."""
    if json_output:
        click.echo(result.to_json())
    else:
        click.echo(result.message)
    sys.exit(int(result.exit_code))
