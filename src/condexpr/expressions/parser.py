"""Recursive descent parser for the condition expression language.

Parses expression strings into the node types from
condexpr.expressions.nodes. The grammar is:

    expression = or_expr
    or_expr    = and_expr ('||' and_expr)*
    and_expr   = primary ('&&' primary)*
    primary    = '(' expression ')' | comparison
    comparison = LITERAL OPERATOR LITERAL

Both connectives fold to the left, so 'a || b || c' becomes
OrNode(OrNode(a, b), c).
"""

from __future__ import annotations

from condexpr.expressions.errors import ParseError
from condexpr.expressions.lexer import Tokenizer
from condexpr.expressions.nodes import (
    AndNode,
    Comparator,
    ComparisonNode,
    Node,
    OrNode,
)
from condexpr.expressions.tokens import QUOTES, Token, TokenType

_MAX_DEPTH = 50  # Guard against pathological nesting


def parse_expression(source: str | None) -> Node:
    """Parse an expression string into an AST.

    Args:
        source: The expression string to parse.

    Returns:
        The root node of the expression.

    Raises:
        ParseError: If the expression is empty or malformed, including
            any content left over after a complete expression.
    """
    if source is not None and not source.strip():
        raise ParseError("Empty expression", source=source, position=0)

    tokenizer = Tokenizer(source)
    parser = Parser(tokenizer)
    result = parser.parse_expression()

    # Ensure all tokens consumed
    if not tokenizer.at_eof():
        tok = tokenizer.current
        raise ParseError(
            f"Unexpected trailing content '{tok.value}' after expression",
            source=tokenizer.source,
            position=tok.position,
            token=tok.value,
        )

    return result


def unquote(literal: str) -> str:
    """Strip one pair of enclosing quotes and resolve backslash escapes.

    Literals that are not wrapped in a matching pair of quotes as a whole,
    such as 'abc' "def" or prefix'quoted', are returned verbatim.
    """
    if len(literal) < 2 or literal[0] not in QUOTES or literal[-1] != literal[0]:
        return literal

    quote = literal[0]
    chars: list[str] = []
    pos = 1
    end = len(literal) - 1
    while pos < end:
        ch = literal[pos]
        if ch == "\\" and pos + 1 < end:
            chars.append(literal[pos + 1])
            pos += 2
            continue
        if ch == quote:
            # Closing quote before the end: not a single quoted run
            return literal
        chars.append(ch)
        pos += 1
    return "".join(chars)


class Parser:
    """Recursive descent parser over a lazy token stream.

    The tokenizer is the only mutable state; it is owned by the caller and
    advanced in place, so a Parser can be driven on a partial stream in
    tests.
    """

    def __init__(self, tokenizer: Tokenizer) -> None:
        self._tokenizer = tokenizer
        self._depth = 0

    def current(self) -> Token:
        """Return the current token without consuming it."""
        return self._tokenizer.current

    def advance(self) -> Token:
        """Consume and return the current token."""
        return self._tokenizer.advance()

    def expect(self, token_type: TokenType, what: str) -> Token:
        """Consume the current token, raising if it doesn't match."""
        tok = self.current()
        if tok.type != token_type:
            raise self._error(f"Expected {what}, got {_describe(tok)}")
        return self.advance()

    def _error(self, message: str) -> ParseError:
        """Create a ParseError at the current token."""
        tok = self.current()
        return ParseError(
            message,
            source=self._tokenizer.source,
            position=tok.position,
            token=tok.value,
        )

    # --- Grammar productions ---

    def parse_expression(self) -> Node:
        """expression = or_expr"""
        return self._parse_or_expr()

    def _parse_or_expr(self) -> Node:
        """or_expr = and_expr ('||' and_expr)*"""
        node = self._parse_and_expr()
        while self.current().type == TokenType.OR:
            self.advance()
            node = OrNode(node, self._parse_and_expr())
        return node

    def _parse_and_expr(self) -> Node:
        """and_expr = primary ('&&' primary)*"""
        node = self._parse_primary()
        while self.current().type == TokenType.AND:
            self.advance()
            node = AndNode(node, self._parse_primary())
        return node

    def _parse_primary(self) -> Node:
        """primary = '(' expression ')' | comparison"""
        if self.current().type == TokenType.LPAREN:
            self._depth += 1
            if self._depth > _MAX_DEPTH:
                raise self._error(
                    f"Expression nesting exceeds maximum depth of {_MAX_DEPTH}"
                )
            self.advance()
            node = self.parse_expression()
            self.expect(TokenType.RPAREN, "')'")
            self._depth -= 1
            return node
        return self._parse_comparison()

    def _parse_comparison(self) -> ComparisonNode:
        """comparison = LITERAL OPERATOR LITERAL"""
        left = self.expect(TokenType.LITERAL, "left operand")
        op_tok = self.expect(TokenType.OPERATOR, "comparison operator")
        comparator = Comparator.from_symbol(
            op_tok.value, source=self._tokenizer.source, position=op_tok.position
        )
        right = self.expect(TokenType.LITERAL, "right operand")
        return ComparisonNode(unquote(left.value), comparator, unquote(right.value))


def _describe(tok: Token) -> str:
    if tok.type == TokenType.EOF:
        return "end of expression"
    return f"'{tok.value}'"
