"""Error types for the condition expression language."""

from __future__ import annotations


class ExpressionError(Exception):
    """Base class for expression language errors."""

    def __init__(
        self,
        message: str,
        source: str = "",
        position: int = 0,
        token: str = "",
    ) -> None:
        self.source = source
        self.position = position
        self.token = token
        super().__init__(message)

    @property
    def column(self) -> int:
        """1-based column of the offending token."""
        return self.position + 1

    def format_error(self) -> str:
        """Format error with caret pointing at the problem position."""
        msg = str(self)
        if not self.source:
            return msg
        caret = " " * (self.column - 1) + "^"
        return f"{msg}\n  {self.source}\n  {caret}"


class ParseError(ExpressionError):
    """Raised when an expression is structurally malformed."""


class LexError(ParseError):
    """Raised when tokenization fails."""
