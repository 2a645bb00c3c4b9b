"""Structured logging module for condexpr.

Provides configurable logging with JSON format support and file rotation.
Includes evaluation context support for worker threads.
"""

from condexpr.logging.config import configure_logging
from condexpr.logging.context import (
    EvaluationContextFilter,
    clear_evaluation_context,
    evaluation_context,
    get_evaluation_context,
    set_evaluation_context,
)
from condexpr.logging.handlers import JSONFormatter

__all__ = [
    "EvaluationContextFilter",
    "JSONFormatter",
    "clear_evaluation_context",
    "configure_logging",
    "evaluation_context",
    "get_evaluation_context",
    "set_evaluation_context",
]
