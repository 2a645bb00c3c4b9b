"""Centralized exit codes for all CLI commands.

Exit code ranges:
    0: Condition true / success
    1-9: Condition false and interruption
    10-19: Configuration and input errors
    20-29: Target/file errors
    50-59: Expression errors
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for condexpr CLI commands."""

    # Success (0)
    SUCCESS = 0

    # Condition false / interrupted (1-9)
    CONDITION_FALSE = 1
    INTERRUPTED = 3

    # Configuration and input errors (10-19)
    CONFIG_ERROR = 11
    INVALID_INPUT = 12

    # Target/file errors (20-29)
    TARGET_NOT_FOUND = 20

    # Expression errors (50-59)
    PARSE_ERROR = 51
