"""Evaluation of parsed condition expressions.

Comparison operands are resolved through a PlaceholderResolver on every
call and then compared by type:

1. Ordering operators (>, >=, <, <=) first try both operands as plain
   decimal numbers (optionally with an exponent).
   If either operand is not numeric the comparison is false, not an error.
2. Otherwise, if either operand is a boolean literal ("true"/"false",
   case-insensitive), the operands are compared as booleans. Only == and
   != are meaningful there; every other operator yields false.
3. Otherwise the operands are compared as strings: equality, containment
   (>> and <<, with their ! negations) or lexicographic ordering.
"""

from __future__ import annotations

import operator
import re
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from condexpr.expressions.nodes import (
    AndNode,
    Comparator,
    ComparisonNode,
    Node,
    OrNode,
)

if TYPE_CHECKING:
    from condexpr.resolvers import PlaceholderResolver


# Plain decimal or scientific notation, ASCII digits only. Rejects "1_000",
# "inf" and "nan", which float() would accept.
_NUMBER_RE = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")

_ORDERING_OPS: dict[Comparator, Callable[[Any, Any], bool]] = {
    Comparator.GT: operator.gt,
    Comparator.GTE: operator.ge,
    Comparator.LT: operator.lt,
    Comparator.LTE: operator.le,
}

_STRING_OPS: dict[Comparator, Callable[[str, str], bool]] = {
    Comparator.EQ: operator.eq,
    Comparator.NEQ: operator.ne,
    Comparator.CONTAINS: lambda left, right: right in left,
    Comparator.NOT_CONTAINS: lambda left, right: right not in left,
    Comparator.CONTAINED_IN: lambda left, right: left in right,
    Comparator.NOT_CONTAINED_IN: lambda left, right: left not in right,
    **_ORDERING_OPS,
}


def evaluate_node(node: Node, context: Any, resolver: PlaceholderResolver) -> bool:
    """Evaluate an expression tree for a caller.

    Args:
        node: Root of the parsed expression.
        context: Caller identity handed to the resolver untouched.
        resolver: Placeholder resolver used for every comparison operand.

    Returns:
        True if the expression holds for the caller.
    """
    if isinstance(node, OrNode):
        return evaluate_node(node.left, context, resolver) or evaluate_node(
            node.right, context, resolver
        )

    if isinstance(node, AndNode):
        return evaluate_node(node.left, context, resolver) and evaluate_node(
            node.right, context, resolver
        )

    if isinstance(node, ComparisonNode):
        left = resolver.resolve(context, node.left)
        right = resolver.resolve(context, node.right)
        return compare_values(left, right, node.comparator)

    raise TypeError(f"Unknown expression node: {type(node).__name__}")


def compare_values(left: str, right: str, comparator: Comparator) -> bool:
    """Compare two resolved operands.

    Args:
        left: Resolved left operand.
        right: Resolved right operand.
        comparator: The operator to apply.

    Returns:
        Result of the comparison under the typing rules of this module.
    """
    if comparator.is_numeric:
        a = _parse_number(left)
        b = _parse_number(right)
        if a is None or b is None:
            return False
        return _ORDERING_OPS[comparator](a, b)

    if is_boolean_literal(left) or is_boolean_literal(right):
        return _compare_booleans(_as_bool(left), _as_bool(right), comparator)

    return _STRING_OPS[comparator](left, right)


def is_boolean_literal(value: str) -> bool:
    """Check whether a string is 'true' or 'false', ignoring case and padding."""
    return value.strip().lower() in ("true", "false")


def _as_bool(value: str) -> bool:
    return value.strip().lower() == "true"


def _compare_booleans(a: bool, b: bool, comparator: Comparator) -> bool:
    if comparator == Comparator.EQ:
        return a == b
    if comparator == Comparator.NEQ:
        return a != b
    return False


def _parse_number(value: str) -> float | None:
    text = value.strip()
    if _NUMBER_RE.fullmatch(text) is None:
        return None
    return float(text)
