"""Token types and data structures for the expression tokenizer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    """All token types in the expression language."""

    LPAREN = auto()  # (
    RPAREN = auto()  # )
    AND = auto()  # &&
    OR = auto()  # ||
    OPERATOR = auto()  # ==, !>>, <=, ...
    LITERAL = auto()  # anything else, quotes included
    EOF = auto()


# Logical connectives, matched before any operator
CONNECTIVES: dict[str, TokenType] = {
    "&&": TokenType.AND,
    "||": TokenType.OR,
}

# Comparison operator symbols in matching order. Longer symbols come
# before their prefixes so "!>>" never lexes as "!" + ">>" and ">=" never
# as ">" + "=". A lone "=" is lexed but has no comparator.
OPERATORS: tuple[str, ...] = (
    "!>>",
    "!<<",
    ">=",
    "<=",
    "==",
    "!=",
    ">>",
    "<<",
    ">",
    "<",
    "=",
)

QUOTES = frozenset({'"', "'"})


@dataclass(frozen=True)
class Token:
    """A single token produced by the tokenizer."""

    type: TokenType
    value: str
    position: int  # character offset in source
