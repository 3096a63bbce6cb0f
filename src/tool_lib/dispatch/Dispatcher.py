"""Dispatcher - validates model-issued tool calls and runs them behind a catch boundary.

Every request produces exactly one ToolCallResult. Unknown tools, arguments that don't
match the tool's schema, and errors raised by handlers all become Failure outcomes;
nothing raised by a tool crosses the dispatcher boundary, so one bad call can't abort
the rest of a batch.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from tool_lib.errors import ToolExecutionError, ValidationError
from tool_lib.tool.Tool import Tool
from tool_lib.tool.ToolCall import FailureKind, ToolCallRequest, ToolCallResult
from tool_lib.tool.ToolRegistry import ToolRegistry

logger = logging.getLogger(__name__)

UNKNOWN_TOOL = "unknown tool"


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class Dispatcher:
    """Routes ToolCallRequests to tools in a ToolRegistry.

    Usage:
        dispatcher = Dispatcher(registry)
        result = dispatcher.dispatch(ToolCallRequest("multiply", {"a": 6, "b": 7}))
        result.outcome  # Success(value=42)

        results = await dispatcher.dispatch_batch_async(requests)  # same order as requests
    """

    _registry: ToolRegistry

    def __init__(self, registry: ToolRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def _resolve(
        self, request: ToolCallRequest
    ) -> tuple[Tool[Any, Any], dict[str, Any]] | ToolCallResult:
        """Look up and validate. Returns the tool and a private copy of the arguments, or a failed result."""
        tool = self._registry.lookup(request.tool_name)
        if tool is None:
            return ToolCallResult.failure(request, UNKNOWN_TOOL, FailureKind.UNKNOWN_TOOL)

        if not isinstance(request.arguments, Mapping):
            return ToolCallResult.failure(
                request,
                "invalid arguments: arguments must be an object",
                FailureKind.INVALID_ARGUMENTS,
            )

        arguments = dict(request.arguments)
        try:
            tool.validate(arguments)
        except ValidationError as e:
            return ToolCallResult.failure(
                request, f"invalid arguments: {e.detail}", FailureKind.INVALID_ARGUMENTS
            )
        return tool, arguments

    def _execution_failure(
        self, request: ToolCallRequest, exc: Exception
    ) -> ToolCallResult:
        if isinstance(exc, ToolExecutionError):
            logger.debug("Tool %s reported an error: %s", request.tool_name, exc)
        else:
            logger.warning(
                "Tool %s raised %s", request.tool_name, type(exc).__name__, exc_info=exc
            )
        return ToolCallResult.failure(request, _describe(exc), FailureKind.EXECUTION_ERROR)

    def _report(self, result: ToolCallResult) -> ToolCallResult:
        if result.ok:
            logger.debug("Tool call %s(%s) succeeded", result.tool_name, result.arguments)
        else:
            logger.warning(
                "Tool call %s(%s) failed: %s",
                result.tool_name,
                result.arguments,
                result.outcome.message,  # type: ignore[union-attr]
            )
        return result

    def dispatch(self, request: ToolCallRequest) -> ToolCallResult:
        """Validate and execute one tool call.

        Async tools can't be run from here; they yield a failure pointing at dispatch_async().
        """
        resolved = self._resolve(request)
        if isinstance(resolved, ToolCallResult):
            return self._report(resolved)
        tool, arguments = resolved

        if tool.is_async:
            return self._report(
                ToolCallResult.failure(
                    request,
                    f"tool '{tool.name}' is async; use dispatch_async",
                    FailureKind.EXECUTION_ERROR,
                )
            )

        try:
            value = tool(arguments)
        except Exception as e:
            return self._report(self._execution_failure(request, e))

        if inspect.iscoroutine(value):
            value.close()
            return self._report(
                ToolCallResult.failure(
                    request,
                    f"tool '{tool.name}' is async; use dispatch_async",
                    FailureKind.EXECUTION_ERROR,
                )
            )
        return self._report(ToolCallResult.success(request, value))

    def dispatch_batch(self, requests: Iterable[ToolCallRequest]) -> list[ToolCallResult]:
        """Dispatch each request in order. A failure never stops the calls after it."""
        return [self.dispatch(request) for request in requests]

    async def dispatch_async(self, request: ToolCallRequest) -> ToolCallResult:
        """Validate and execute one tool call, awaiting the handler if it's async."""
        resolved = self._resolve(request)
        if isinstance(resolved, ToolCallResult):
            return self._report(resolved)
        tool, arguments = resolved

        try:
            value = tool(arguments)
            if inspect.isawaitable(value):
                value = await value
        except Exception as e:
            return self._report(self._execution_failure(request, e))
        return self._report(ToolCallResult.success(request, value))

    async def dispatch_batch_async(
        self, requests: Iterable[ToolCallRequest], concurrent: bool = True
    ) -> list[ToolCallResult]:
        """Dispatch a batch of calls.

        Args:
            requests: The calls, in the order the model listed them
            concurrent: Run async handlers concurrently. Results are in request order either way.

        Returns:
            One result per request, in request order
        """
        requests = list(requests)
        if concurrent:
            return list(await asyncio.gather(*(self.dispatch_async(r) for r in requests)))
        return [await self.dispatch_async(r) for r in requests]
