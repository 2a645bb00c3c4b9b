"""Execution surfaces for condition expressions.

ConditionEvaluator wraps the tokenize, parse, evaluate pipeline in four
operations:

    evaluate            blocking, raises ParseError on malformed input
    evaluate_all        blocking AND over lines, false on the first bad line
    evaluate_async      worker-thread evaluation, never fails (false instead)
    evaluate_all_async  sequential async AND over lines

Async results are concurrent.futures.Future objects. The worker sets no
result itself: it hands a completion callback to the configured dispatcher,
which decides where the future is completed (inline on the worker by
default, or on an asyncio loop via loop_dispatcher()).

Usage:
    from condexpr import ConditionEvaluator, MappingResolver

    resolver = MappingResolver({"level": "12"})
    with ConditionEvaluator(resolver) as evaluator:
        evaluator.evaluate(None, "%level% >= 10")  # True
        future = evaluator.evaluate_all_async(None, ["1 > 0", "a == a"])
        future.result()  # True
"""

from __future__ import annotations

import asyncio
import functools
import logging
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any

from condexpr.config.models import EngineConfig
from condexpr.expressions.errors import ParseError
from condexpr.expressions.evaluator import evaluate_node
from condexpr.expressions.nodes import Node
from condexpr.expressions.parser import parse_expression
from condexpr.logging.context import evaluation_context
from condexpr.resolvers import PlaceholderResolver

logger = logging.getLogger(__name__)

Dispatcher = Callable[[Callable[[], None]], None]


def inline_dispatcher(callback: Callable[[], None]) -> None:
    """Run the completion callback on the current (worker) thread."""
    callback()


def loop_dispatcher(loop: asyncio.AbstractEventLoop) -> Dispatcher:
    """Build a dispatcher that completes futures on an asyncio event loop.

    Example:
        loop = asyncio.get_running_loop()
        evaluator = ConditionEvaluator(resolver, dispatcher=loop_dispatcher(loop))
        passed = await asyncio.wrap_future(evaluator.evaluate_async(ctx, expr))
    """

    def dispatch(callback: Callable[[], None]) -> None:
        loop.call_soon_threadsafe(callback)

    return dispatch


def _caller_label(context: Any) -> str | None:
    """Short label for a caller context, used only for log records."""
    if context is None:
        return None
    if isinstance(context, str):
        return context
    name = getattr(context, "name", None)
    return name if isinstance(name, str) else None


class ConditionEvaluator:
    """Parse and evaluate condition expressions for callers.

    Args:
        resolver: Placeholder resolver applied to every comparison operand.
        executor: Worker for async evaluation. When None, a thread pool
            sized by config.max_workers is created on first use and shut
            down by close(). An injected executor is never shut down here.
        dispatcher: Where async completions run. Defaults to
            inline_dispatcher.
        config: Engine settings, defaults when None.
    """

    def __init__(
        self,
        resolver: PlaceholderResolver,
        *,
        executor: Executor | None = None,
        dispatcher: Dispatcher | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self._resolver = resolver
        self._config = config if config is not None else EngineConfig()
        self._executor = executor
        self._owns_executor = executor is None
        self._dispatcher = dispatcher if dispatcher is not None else inline_dispatcher
        self._lock = threading.Lock()
        self._closed = False

        if self._config.cache_size > 0:
            self._compile: Callable[[str], Node] = functools.lru_cache(
                maxsize=self._config.cache_size
            )(parse_expression)
        else:
            self._compile = parse_expression

        logger.debug(
            "ConditionEvaluator initialized (cache_size=%d, own_executor=%s)",
            self._config.cache_size,
            self._owns_executor,
        )

    # --- Lifecycle ---

    def __enter__(self) -> ConditionEvaluator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Shut down the owned worker pool, waiting for running evaluations."""
        with self._lock:
            self._closed = True
            executor = None
            if self._owns_executor:
                executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    def _get_executor(self) -> Executor:
        with self._lock:
            if self._closed and self._owns_executor:
                raise RuntimeError("ConditionEvaluator is closed")
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._config.max_workers,
                    thread_name_prefix=self._config.thread_name_prefix,
                )
            return self._executor

    # --- Blocking API ---

    def parse(self, expression: str) -> Node:
        """Compile an expression without evaluating it.

        Raises:
            ParseError: If the expression is malformed.
        """
        return self._compile(expression)

    def evaluate(self, context: Any, expression: str) -> bool:
        """Evaluate a single expression for a caller.

        Args:
            context: Caller identity passed to the resolver.
            expression: Expression text.

        Returns:
            Whether the condition holds.

        Raises:
            ParseError: If the expression is malformed.
        """
        with evaluation_context(expression or "", _caller_label(context)):
            node = self.parse(expression)
            result = evaluate_node(node, context, self._resolver)
            logger.debug("Expression %r evaluated to %s", expression, result)
        return result

    def evaluate_all(self, context: Any, expressions: Iterable[str] | None) -> bool:
        """Evaluate lines with AND semantics, in order.

        Stops at the first line that is false or fails to parse. An empty
        or missing list is true.
        """
        if not expressions:
            return True
        for line in expressions:
            try:
                if not self.evaluate(context, line):
                    logger.debug("Condition not met: %s", line)
                    return False
            except ParseError as e:
                logger.warning("Failed to parse condition %r: %s", line, e)
                return False
        return True

    # --- Async API ---

    def evaluate_async(self, context: Any, expression: str) -> Future[bool]:
        """Evaluate a single expression on the worker.

        The returned future always resolves to a bool: parse and runtime
        errors are logged and resolve to False. Cancelling the future
        before the worker picks it up skips the evaluation.
        """
        future: Future[bool] = Future()

        def task() -> None:
            if future.cancelled():
                return
            try:
                result = self.evaluate(context, expression)
            except Exception as e:
                logger.warning("Async evaluation of %r failed: %s", expression, e)
                result = False
            self._complete(future, result)

        try:
            self._get_executor().submit(task)
        except RuntimeError as e:
            logger.warning("Cannot schedule evaluation of %r: %s", expression, e)
            self._complete(future, False)
        return future

    def evaluate_all_async(
        self, context: Any, expressions: Iterable[str] | None
    ) -> Future[bool]:
        """Evaluate lines with AND semantics, one worker task at a time.

        Line i+1 is only submitted after line i resolved True, so lines
        after the first failure are never evaluated. Cancelling the
        returned future stops the chain before its next line.
        """
        outer: Future[bool] = Future()
        lines = list(expressions) if expressions else []
        if not lines:
            outer.set_result(True)
            return outer
        self._run_line(context, lines, 0, outer)
        return outer

    def _run_line(
        self, context: Any, lines: list[str], index: int, outer: Future[bool]
    ) -> None:
        # Steps that are already done (synchronous executors, inline
        # completion) are consumed in this loop; only a pending step
        # resumes the chain from its done callback.
        while True:
            if outer.cancelled():
                logger.debug(
                    "Async condition check cancelled before line %d", index + 1
                )
                return
            if index >= len(lines):
                _resolve(outer, True)
                return

            step = self.evaluate_async(context, lines[index])
            if not step.done():
                step.add_done_callback(
                    functools.partial(
                        self._resume_chain, context, lines, index, outer
                    )
                )
                return
            if not _step_passed(step, lines[index], outer):
                return
            index += 1

    def _resume_chain(
        self,
        context: Any,
        lines: list[str],
        index: int,
        outer: Future[bool],
        step: Future[bool],
    ) -> None:
        if _step_passed(step, lines[index], outer):
            self._run_line(context, lines, index + 1, outer)

    def _complete(self, future: Future[bool], result: bool) -> None:
        """Hand the completion of future to the dispatcher."""
        try:
            self._dispatcher(lambda: _resolve(future, result))
        except RuntimeError as e:
            # Target context is gone (e.g. closed event loop)
            logger.warning("Dispatcher rejected completion, completing inline: %s", e)
            _resolve(future, result)


def _step_passed(step: Future[bool], line: str, outer: Future[bool]) -> bool:
    """Settle outer when a chain step was cancelled or false."""
    if step.cancelled():
        outer.cancel()
        return False
    if not step.result():
        logger.debug("Async condition check failed at: %s", line)
        _resolve(outer, False)
        return False
    return True


def _resolve(future: Future[bool], result: bool) -> None:
    if future.set_running_or_notify_cancel():
        future.set_result(result)
