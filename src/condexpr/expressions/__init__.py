"""Condition expression language.

Provides parse_expression() to convert expression strings like
'%player_level% >= 10 && %player_world% == world' into an AST, and
evaluate_node() to evaluate that AST for a caller.
"""

from condexpr.expressions.errors import ExpressionError, LexError, ParseError
from condexpr.expressions.evaluator import compare_values, evaluate_node
from condexpr.expressions.lexer import Tokenizer, tokenize
from condexpr.expressions.nodes import (
    AndNode,
    Comparator,
    ComparisonNode,
    Node,
    OrNode,
)
from condexpr.expressions.parser import parse_expression

__all__ = [
    "AndNode",
    "Comparator",
    "ComparisonNode",
    "ExpressionError",
    "LexError",
    "Node",
    "OrNode",
    "ParseError",
    "Tokenizer",
    "compare_values",
    "evaluate_node",
    "parse_expression",
    "tokenize",
]
