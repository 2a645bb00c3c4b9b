"""CLI commands for evaluating condition expressions.

- eval: Evaluate a single expression
- check: Evaluate every condition line in a YAML file (AND)
- tokens: Show how an expression is tokenized
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from pathlib import Path
from typing import Any

import click
import yaml

from condexpr.cli.exit_codes import ExitCode
from condexpr.cli.output import CLIResult, error_exit, format_option, result_exit
from condexpr.config import CondexprConfig
from condexpr.engine import ConditionEvaluator
from condexpr.expressions import ParseError, tokenize
from condexpr.resolvers import MappingResolver

logger = logging.getLogger(__name__)

set_option = click.option(
    "--set",
    "assignments",
    multiple=True,
    metavar="KEY=VALUE",
    help="Define placeholder %KEY% (repeatable).",
)
caller_option = click.option(
    "--caller",
    default=None,
    help="Caller name passed to the resolver as context.",
)
async_option = click.option(
    "--async",
    "use_async",
    is_flag=True,
    default=False,
    help="Evaluate on the worker pool; malformed input evaluates to false.",
)


def _parse_assignments(assignments: tuple[str, ...], json_output: bool) -> dict:
    """Parse KEY=VALUE pairs from --set options."""
    values: dict[str, str] = {}
    for item in assignments:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            error_exit(
                f"Invalid --set value '{item}', expected KEY=VALUE",
                ExitCode.INVALID_INPUT,
                json_output,
            )
        values[key.strip()] = value
    return values


def _load_conditions_file(
    path: Path, json_output: bool
) -> tuple[list[str], dict[str, str]]:
    """Load condition lines and optional placeholders from a YAML file.

    The file holds either a list of condition strings, or a mapping with a
    'conditions' list and an optional 'placeholders' mapping.
    """
    if not path.is_file():
        error_exit(
            f"Conditions file not found: {path}", ExitCode.TARGET_NOT_FOUND, json_output
        )
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        error_exit(
            f"Cannot read conditions file {path}: {e}",
            ExitCode.INVALID_INPUT,
            json_output,
        )

    placeholders: dict[str, str] = {}
    if isinstance(data, dict):
        raw_placeholders = data.get("placeholders") or {}
        if not isinstance(raw_placeholders, dict):
            error_exit(
                "'placeholders' must be a mapping", ExitCode.INVALID_INPUT, json_output
            )
        placeholders = {str(k): str(v) for k, v in raw_placeholders.items()}
        data = data.get("conditions")

    if data is None:
        data = []
    if not isinstance(data, list) or not all(isinstance(c, str) for c in data):
        error_exit(
            "Conditions must be a list of strings", ExitCode.INVALID_INPUT, json_output
        )
    return data, placeholders


def _await_result(future: Future[bool], json_output: bool) -> bool:
    """Wait for an async result; Ctrl+C cancels it and exits INTERRUPTED."""
    try:
        return future.result()
    except KeyboardInterrupt:
        future.cancel()
        logger.info("Interrupted while waiting for condition result")
        error_exit("Interrupted", ExitCode.INTERRUPTED, json_output)


def _build_evaluator(ctx: click.Context, values: dict[str, str]) -> ConditionEvaluator:
    config: CondexprConfig = ctx.obj.get("config") or CondexprConfig()
    return ConditionEvaluator(MappingResolver(values), config=config.engine)


@click.command("eval")
@click.argument("expression")
@set_option
@caller_option
@async_option
@format_option
@click.pass_context
def eval_command(
    ctx: click.Context,
    expression: str,
    assignments: tuple[str, ...],
    caller: str | None,
    use_async: bool,
    output_format: str,
) -> None:
    """Evaluate a single condition expression.

    Exits 0 when the condition holds, 1 when it does not, and 51 when the
    expression cannot be parsed.

    Examples:

        condexpr eval '%level% >= 10 && %world% == nether' \\
            --set level=12 --set world=nether
    """
    json_output = output_format == "json"
    values = _parse_assignments(assignments, json_output)

    with _build_evaluator(ctx, values) as evaluator:
        try:
            if use_async:
                passed = _await_result(
                    evaluator.evaluate_async(caller, expression), json_output
                )
            else:
                passed = evaluator.evaluate(caller, expression)
        except ParseError as e:
            error_exit(e.format_error(), ExitCode.PARSE_ERROR, json_output)

    result_exit(
        CLIResult(
            passed=passed,
            message="true" if passed else "false",
            data={"expression": expression},
        ),
        json_output,
    )


@click.command("check")
@click.argument("conditions_file", type=click.Path(path_type=Path, dir_okay=False))
@set_option
@caller_option
@async_option
@format_option
@click.pass_context
def check_command(
    ctx: click.Context,
    conditions_file: Path,
    assignments: tuple[str, ...],
    caller: str | None,
    use_async: bool,
    output_format: str,
) -> None:
    """Check that every condition in a YAML file holds.

    Lines are evaluated in order and checking stops at the first line that
    is false or malformed. --set values override the file's placeholders.

    Examples:

        # conditions.yaml
        # placeholders:
        #   level: "12"
        # conditions:
        #   - "%level% >= 10"
        #   - "'%rank%' !<< 'guest visitor'"

        condexpr check conditions.yaml --set rank=admin
    """
    json_output = output_format == "json"
    lines, placeholders = _load_conditions_file(conditions_file, json_output)
    placeholders.update(_parse_assignments(assignments, json_output))

    with _build_evaluator(ctx, placeholders) as evaluator:
        if use_async:
            passed = _await_result(
                evaluator.evaluate_all_async(caller, lines), json_output
            )
        else:
            passed = evaluator.evaluate_all(caller, lines)

    logger.info(
        "Checked %d condition(s) from %s: %s", len(lines), conditions_file, passed
    )
    result_exit(
        CLIResult(
            passed=passed,
            message="true" if passed else "false",
            data={"file": str(conditions_file), "count": len(lines)},
        ),
        json_output,
    )


@click.command("tokens")
@click.argument("expression")
def tokens_command(expression: str) -> None:
    """Print the tokens of an expression, one per line."""
    try:
        tokens = tokenize(expression)
    except ParseError as e:
        error_exit(e.format_error(), ExitCode.PARSE_ERROR)

    for tok in tokens:
        click.echo(f"{tok.position:>4}  {tok.type.name:<8}  {tok.value}")
