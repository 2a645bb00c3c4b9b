"""Shared test fixtures for condexpr."""

from __future__ import annotations

import threading
from typing import Any

import pytest

from condexpr.engine import ConditionEvaluator


class RecordingResolver:
    """Resolver that substitutes whole operands from a mapping and records calls.

    Values may be strings or callables taking the caller context, so tests
    can give different callers different values.
    """

    def __init__(self, values: dict[str, Any] | None = None) -> None:
        self.values = dict(values or {})
        self.calls: list[tuple[Any, str]] = []
        self._lock = threading.Lock()

    def resolve(self, context: Any, text: str) -> str:
        with self._lock:
            self.calls.append((context, text))
        value = self.values.get(text, text)
        if callable(value):
            return value(context)
        return value

    @property
    def resolved(self) -> list[str]:
        """Operand texts passed to resolve(), in call order."""
        return [text for _, text in self.calls]


@pytest.fixture
def resolver() -> RecordingResolver:
    """Return an empty recording resolver."""
    return RecordingResolver()


@pytest.fixture
def make_resolver():
    """Return a factory for recording resolvers with preset values."""
    return RecordingResolver


@pytest.fixture
def evaluator(resolver: RecordingResolver):
    """ConditionEvaluator over the recording resolver, closed after the test."""
    with ConditionEvaluator(resolver) as ev:
        yield ev
