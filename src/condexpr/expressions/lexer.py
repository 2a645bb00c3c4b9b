"""Tokenizer for the condition expression language.

Tokens are produced lazily: the tokenizer holds only its cursor and the
current token, and the parser pulls the next one with advance().
"""

from __future__ import annotations

from condexpr.expressions.errors import LexError
from condexpr.expressions.tokens import (
    CONNECTIVES,
    OPERATORS,
    QUOTES,
    Token,
    TokenType,
)

_SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
}


class Tokenizer:
    """Single-pass cursor over an expression string.

    The first token is scanned on construction. Once the end of input is
    reached, current stays at EOF no matter how often advance() is called.
    """

    def __init__(self, source: str | None) -> None:
        if source is None:
            raise LexError("Expression is missing")
        self._source = source
        self._pos = 0
        self._current = self._scan()

    @property
    def source(self) -> str:
        return self._source

    @property
    def current(self) -> Token:
        """Return the current token without consuming it."""
        return self._current

    def advance(self) -> Token:
        """Consume the current token and return it."""
        tok = self._current
        if tok.type != TokenType.EOF:
            self._current = self._scan()
        return tok

    def at_eof(self) -> bool:
        return self._current.type == TokenType.EOF

    # --- Scanning ---

    def _scan(self) -> Token:
        source = self._source
        length = len(source)

        while self._pos < length and source[self._pos].isspace():
            self._pos += 1

        start = self._pos
        if start >= length:
            return Token(TokenType.EOF, "", start)

        ch = source[start]
        single_type = _SINGLE_CHAR_TOKENS.get(ch)
        if single_type is not None:
            self._pos += 1
            return Token(single_type, ch, start)

        for symbol, connective_type in CONNECTIVES.items():
            if source.startswith(symbol, start):
                self._pos += len(symbol)
                return Token(connective_type, symbol, start)

        op = self._match_operator(start)
        if op is not None:
            self._pos += len(op)
            return Token(TokenType.OPERATOR, op, start)

        return Token(TokenType.LITERAL, self._scan_literal(start), start)

    def _match_operator(self, pos: int) -> str | None:
        for symbol in OPERATORS:
            if self._source.startswith(symbol, pos):
                return symbol
        return None

    def _starts_delimiter(self, pos: int) -> bool:
        """Check whether a connective or operator begins at pos."""
        if any(self._source.startswith(s, pos) for s in CONNECTIVES):
            return True
        return self._match_operator(pos) is not None

    def _scan_literal(self, start: int) -> str:
        """Scan a literal, honoring quotes and backslash escapes.

        The returned text keeps its quotes; unquoting is the parser's job.
        """
        source = self._source
        length = len(source)
        pos = start
        quote: str | None = None
        quote_pos = start

        while pos < length:
            ch = source[pos]
            if quote is not None:
                if ch == "\\":
                    pos += 2
                    continue
                if ch == quote:
                    quote = None
                pos += 1
                continue
            if ch in QUOTES:
                quote = ch
                quote_pos = pos
                pos += 1
                continue
            if ch.isspace() or ch in _SINGLE_CHAR_TOKENS:
                break
            if self._starts_delimiter(pos):
                break
            pos += 1

        if quote is not None:
            raise LexError(
                f"Unterminated string starting with {quote}",
                source=source,
                position=quote_pos,
                token=source[start:],
            )

        self._pos = pos
        return source[start:pos]


def tokenize(source: str | None) -> list[Token]:
    """Tokenize an expression string into a list.

    Args:
        source: The expression string to tokenize.

    Returns:
        List of tokens, always ending with an EOF token.

    Raises:
        LexError: On missing input or an unterminated quoted literal.
    """
    tokenizer = Tokenizer(source)
    tokens = [tokenizer.current]
    while tokenizer.current.type != TokenType.EOF:
        tokenizer.advance()
        tokens.append(tokenizer.current)
    return tokens
