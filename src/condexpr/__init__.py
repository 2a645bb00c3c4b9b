"""condexpr: placeholder-aware condition expressions.

Evaluates predicates such as '%player_level% >= 10 && %world% == nether'
from configuration strings, with blocking and worker-thread surfaces.
"""

from condexpr.engine import ConditionEvaluator, inline_dispatcher, loop_dispatcher
from condexpr.expressions import (
    Comparator,
    ExpressionError,
    LexError,
    ParseError,
    parse_expression,
)
from condexpr.resolvers import (
    MappingResolver,
    PassthroughResolver,
    PlaceholderResolver,
    convert_outer_to_percent,
    split_args,
)

__version__ = "0.1.0"

__all__ = [
    "Comparator",
    "ConditionEvaluator",
    "ExpressionError",
    "LexError",
    "MappingResolver",
    "ParseError",
    "PassthroughResolver",
    "PlaceholderResolver",
    "__version__",
    "convert_outer_to_percent",
    "inline_dispatcher",
    "loop_dispatcher",
    "parse_expression",
    "split_args",
]
