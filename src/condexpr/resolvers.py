"""Placeholder resolvers.

The engine never looks placeholders up itself. Every comparison operand is
passed through a PlaceholderResolver, which receives the caller context
untouched and returns the text with all references it knows substituted.

MappingResolver is a small in-process implementation for `%key%` and
`%key_args%` references, used by the CLI and handy in tests.
"""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Callable, Mapping
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

# Upper bound on expansion passes for nested references
MAX_PARSE_ITERATIONS = 10

_REFERENCE_RE = re.compile(r"%([^%\s]+)%")
# Innermost brace reference, e.g. {player} inside %stat_{player}%
_BRACE_RE = re.compile(r"\{([^{}%\s]+)\}")

Handler = Callable[[Any, str], str]


@runtime_checkable
class PlaceholderResolver(Protocol):
    """Protocol for placeholder resolution.

    Implementations must accept arbitrary text, be safe to call many times
    per evaluation (once per comparison operand), and return references
    they cannot resolve unchanged instead of raising.
    """

    def resolve(self, context: Any, text: str) -> str:
        """Return text with every known reference substituted."""
        ...


class PassthroughResolver:
    """Resolver that performs no substitution."""

    def resolve(self, context: Any, text: str) -> str:
        return text


def convert_outer_to_percent(
    text: str, open_char: str = "{", close_char: str = "}"
) -> str:
    """Replace one outermost open/close pair with percent signs.

    Inner pairs are kept, so "{stat_{player}}" becomes "%stat_{player}%".
    Text that is not wrapped in a single balanced pair is returned as is.
    """
    if not text or text[0] != open_char or text[-1] != close_char:
        return text
    depth = 0
    for i, ch in enumerate(text):
        if ch == open_char:
            depth += 1
        elif ch == close_char:
            depth -= 1
            if depth < 0 or (depth == 0 and i != len(text) - 1):
                return text
    if depth != 0:
        return text
    return f"%{text[1:-1]}%"


def split_args(raw_args: str) -> list[str]:
    """Split a raw argument string on underscores.

    Example:
        split_args("a_b_c")  # ["a", "b", "c"]
        split_args("")       # []
    """
    if not raw_args:
        return []
    return raw_args.split("_")


class MappingResolver:
    """Expand `%key%` and `%key_args%` references from registered handlers.

    A handler is either a fixed string or a callable receiving the caller
    context and the raw argument string (everything after the first
    underscore). Keys are case-insensitive. A reference whose full name is
    registered wins over the key/args split, so `%max_hp%` can be
    registered directly.

    References may also be written `{key}`, which lets them nest inside
    another reference's arguments: in `%stat_{player}%` the inner `{player}`
    is expanded first. Expansion is repeated so handlers may return further
    references; it stops once the text is stable or after
    MAX_PARSE_ITERATIONS passes.

    Example:
        resolver = MappingResolver({"world": "nether"})
        resolver.register("level", lambda ctx, args: str(ctx.level))
        resolver.resolve(player, "%level% in %world%")
        resolver.resolve(player, "{greeting}!", {"greeting": "hi"})
    """

    def __init__(self, values: Mapping[str, str | Handler] | None = None) -> None:
        self._handlers: dict[str, Handler] = {}
        self._lock = threading.Lock()
        for key, value in (values or {}).items():
            self.register(key, value)

    def register(self, key: str, handler: str | Handler) -> None:
        """Register a handler for a placeholder key.

        Args:
            key: Placeholder key without percent signs or arguments.
            handler: Fixed replacement text, or (context, raw_args) -> str.
        """
        if isinstance(handler, str):
            text = handler
            handler = lambda context, raw_args: text  # noqa: E731
        with self._lock:
            self._handlers[key.lower()] = handler

    def unregister(self, key: str) -> None:
        with self._lock:
            self._handlers.pop(key.lower(), None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._handlers)

    def resolve(
        self,
        context: Any,
        text: str,
        custom: Mapping[str, str] | None = None,
    ) -> str:
        """Expand references until the text no longer changes.

        Args:
            context: Caller context handed to callable handlers.
            text: Text to expand.
            custom: Literal `{key}` replacements applied once, before any
                handler runs.
        """
        current = text
        for key, value in (custom or {}).items():
            current = current.replace(f"{{{key}}}", value)

        for _ in range(MAX_PARSE_ITERATIONS):
            expanded = _BRACE_RE.sub(
                lambda match: self._expand(context, match), current
            )
            expanded = _REFERENCE_RE.sub(
                lambda match: self._expand(context, match), expanded
            )
            if expanded == current or ("%" not in expanded and "{" not in expanded):
                return expanded
            current = expanded
        logger.warning(
            "Placeholder expansion did not converge after %d passes: %s",
            MAX_PARSE_ITERATIONS,
            current,
        )
        return current

    def _expand(self, context: Any, match: re.Match[str]) -> str:
        name = match.group(1)
        with self._lock:
            handler = self._handlers.get(name.lower())
            raw_args = ""
            if handler is None and "_" in name:
                key, raw_args = name.split("_", 1)
                handler = self._handlers.get(key.lower())
        if handler is None:
            return match.group(0)
        return handler(context, raw_args)
