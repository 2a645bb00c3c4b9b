"""AST node types for condition expressions.

The node set is closed: OrNode, AndNode and ComparisonNode. Nodes are
immutable and hold no resolved values, so a parsed tree can be evaluated
any number of times for different callers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from condexpr.expressions.errors import ParseError


class Comparator(Enum):
    """Comparison operators, valued by their expression symbol."""

    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    EQ = "=="
    NEQ = "!="
    CONTAINS = ">>"  # left contains right
    NOT_CONTAINS = "!>>"
    CONTAINED_IN = "<<"  # right contains left
    NOT_CONTAINED_IN = "!<<"

    @property
    def symbol(self) -> str:
        return self.value

    @property
    def is_numeric(self) -> bool:
        """True for the four ordering operators tried numerically first."""
        return self in _NUMERIC_COMPARATORS

    @classmethod
    def from_symbol(
        cls, symbol: str, source: str = "", position: int = 0
    ) -> Comparator:
        """Look up the comparator for an operator symbol.

        Raises:
            ParseError: If the symbol has no comparator (e.g. a lone "=").
        """
        try:
            return cls(symbol)
        except ValueError:
            raise ParseError(
                f"Unknown operator: '{symbol}'",
                source=source,
                position=position,
                token=symbol,
            ) from None

    def __str__(self) -> str:
        return self.value


_NUMERIC_COMPARATORS = frozenset(
    {Comparator.GT, Comparator.GTE, Comparator.LT, Comparator.LTE}
)


@dataclass(frozen=True)
class ComparisonNode:
    """Compare two operands after placeholder resolution."""

    left: str
    comparator: Comparator
    right: str


@dataclass(frozen=True)
class AndNode:
    """Both sides must be true; right is skipped when left is false."""

    left: Node
    right: Node


@dataclass(frozen=True)
class OrNode:
    """Either side must be true; right is skipped when left is true."""

    left: Node
    right: Node


Node = OrNode | AndNode | ComparisonNode
