"""Evaluation context for structured logging.

Provides context propagation for worker threads using contextvars, so log
records emitted while an expression is evaluated carry the expression and
the caller it is being evaluated for.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

# Longest expression text copied into a record's compact tag
_TAG_MAX_LENGTH = 60

_expression: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "expression", default=None
)
_caller: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "caller", default=None
)


def set_evaluation_context(expression: str, caller: str | None = None) -> None:
    """Set the current evaluation context.

    Args:
        expression: Expression text being evaluated.
        caller: Optional label for the caller context (e.g. a player name).
    """
    _expression.set(expression)
    _caller.set(caller)


def clear_evaluation_context() -> None:
    """Clear the current evaluation context."""
    _expression.set(None)
    _caller.set(None)


@contextmanager
def evaluation_context(
    expression: str, caller: str | None = None
) -> Generator[None, None, None]:
    """Context manager for an expression evaluation.

    Sets the context on entry and restores the previous one on exit, so
    nested evaluations (e.g. multi-line checks) log correctly.

    Example:
        with evaluation_context("%level% > 10", "Steve"):
            logger.debug("Evaluating")  # Record carries expression and caller
    """
    old_expression = _expression.get()
    old_caller = _caller.get()
    try:
        set_evaluation_context(expression, caller)
        yield
    finally:
        _expression.set(old_expression)
        _caller.set(old_caller)


def get_evaluation_context() -> tuple[str | None, str | None]:
    """Get current evaluation context as (expression, caller)."""
    return _expression.get(), _caller.get()


class EvaluationContextFilter(logging.Filter):
    """Logging filter that injects evaluation context into log records.

    Adds expression and caller attributes, plus a compact expr_tag such as
    `[Steve: %level% > 10] ` for the text format.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        expression, caller = get_evaluation_context()

        record.expression = expression
        record.caller = caller

        if expression is not None:
            shown = expression
            if len(shown) > _TAG_MAX_LENGTH:
                shown = shown[: _TAG_MAX_LENGTH - 3] + "..."
            if caller:
                record.expr_tag = f"[{caller}: {shown}] "
            else:
                record.expr_tag = f"[{shown}] "
        else:
            record.expr_tag = ""

        return True  # Never filter out records
