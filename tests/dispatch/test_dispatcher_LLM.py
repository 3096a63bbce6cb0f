"""Tests for Dispatcher."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import pytest

from tool_lib.dispatch.Dispatcher import Dispatcher
from tool_lib.errors import ToolExecutionError
from tool_lib.examples.arithmetic import arithmetic_registry
from tool_lib.tool.Tool import define_tool
from tool_lib.tool.ToolCall import (
    Failure,
    FailureKind,
    Success,
    ToolCallRequest,
    ToolCallResult,
)
from tool_lib.tool.ToolRegistry import ToolRegistry


ANY_OBJECT = {"type": "object", "additionalProperties": True}


def call(name: str, **arguments: Any) -> ToolCallRequest:
    return ToolCallRequest(tool_name=name, arguments=arguments)


@pytest.fixture
def dispatcher() -> Dispatcher:
    return Dispatcher(arithmetic_registry())


class TestDispatch:
    """Tests for dispatching single calls."""

    def test_multiply(self, dispatcher: Dispatcher) -> None:
        result = dispatcher.dispatch(call("multiply", a=6, b=7))

        assert result.outcome == Success(42)
        assert result.ok

    def test_divide_by_zero_is_a_failure(self, dispatcher: Dispatcher) -> None:
        """The handler's error becomes a failure result instead of raising."""
        result = dispatcher.dispatch(call("divide", a=10, b=0))

        assert result.outcome == Failure("Cannot divide by zero", FailureKind.EXECUTION_ERROR)
        assert not result.ok

    def test_unknown_tool(self, dispatcher: Dispatcher) -> None:
        """Unknown tools fail without touching the registry."""
        result = dispatcher.dispatch(call("unknown_tool"))

        assert result.outcome == Failure("unknown tool", FailureKind.UNKNOWN_TOOL)
        assert dispatcher.registry.names() == ["multiply", "divide"]

    def test_result_records_request(self, dispatcher: Dispatcher) -> None:
        request = ToolCallRequest("multiply", {"a": 2, "b": 3}, call_id="toolu_1")

        result = dispatcher.dispatch(request)

        assert result == ToolCallResult("multiply", {"a": 2, "b": 3}, Success(6), "toolu_1")

    def test_same_request_twice_gives_same_outcome(self, dispatcher: Dispatcher) -> None:
        request = call("multiply", a=3, b=4)

        assert dispatcher.dispatch(request).outcome == dispatcher.dispatch(request).outcome


class TestValidation:
    """Arguments are checked before the handler runs."""

    def make_dispatcher(self, calls: list[Any]) -> Dispatcher:
        def handler(payload: dict[str, Any]) -> str:
            calls.append(payload)
            return "ran"

        t = define_tool(
            "echo",
            "Echo",
            {"type": "object", "properties": {"x": {"type": "integer"}}, "required": ["x"]},
            handler,
        )
        return Dispatcher(ToolRegistry([t]))

    @pytest.mark.parametrize(
        "arguments",
        [{}, {"x": "1"}, {"x": 1, "y": 2}],
        ids=["missing", "wrong-type", "extra-field"],
    )
    def test_mismatch_never_invokes_handler(self, arguments: dict[str, Any]) -> None:
        calls: list[Any] = []
        dispatcher = self.make_dispatcher(calls)

        result = dispatcher.dispatch(ToolCallRequest("echo", arguments))

        assert isinstance(result.outcome, Failure)
        assert result.outcome.kind is FailureKind.INVALID_ARGUMENTS
        assert result.outcome.message.startswith("invalid arguments: ")
        assert calls == []

    def test_schema_fixed_at_definition(self) -> None:
        """Changing the caller's schema dict after define_tool doesn't loosen validation."""
        schema: dict[str, Any] = {
            "type": "object",
            "properties": {"a": {"type": "number"}},
            "required": ["a"],
        }
        double = define_tool("double", "Double a value", schema, lambda payload: payload["a"] * 2)
        dispatcher = Dispatcher(ToolRegistry([double]))
        request = call("double", a="x")
        assert dispatcher.dispatch(request).outcome.kind is FailureKind.INVALID_ARGUMENTS  # type: ignore[union-attr]

        schema["properties"]["a"]["type"] = "string"
        result = dispatcher.dispatch(request)

        assert isinstance(result.outcome, Failure)
        assert result.outcome.kind is FailureKind.INVALID_ARGUMENTS

    def test_non_mapping_arguments(self) -> None:
        calls: list[Any] = []
        dispatcher = self.make_dispatcher(calls)

        result = dispatcher.dispatch(ToolCallRequest("echo", [1, 2]))  # type: ignore[arg-type]

        assert result.outcome == Failure(
            "invalid arguments: arguments must be an object", FailureKind.INVALID_ARGUMENTS
        )
        assert calls == []

    def test_handler_gets_a_copy(self) -> None:
        """A handler mutating its payload doesn't change the recorded arguments."""

        def mutate(payload: dict[str, Any]) -> None:
            payload["x"] = 99

        dispatcher = Dispatcher(ToolRegistry([define_tool("mutate", "", ANY_OBJECT, mutate)]))

        result = dispatcher.dispatch(call("mutate", x=1))

        assert result.arguments == {"x": 1}


class TestCatchBoundary:
    """Nothing a handler raises escapes dispatch."""

    def test_unexpected_exception(self) -> None:
        def broken(payload: dict[str, Any]) -> None:
            raise KeyError("missing")

        dispatcher = Dispatcher(ToolRegistry([define_tool("broken", "", ANY_OBJECT, broken)]))

        result = dispatcher.dispatch(call("broken"))

        assert result.outcome == Failure("'missing'", FailureKind.EXECUTION_ERROR)

    def test_exception_without_message_uses_class_name(self) -> None:
        def broken(payload: dict[str, Any]) -> None:
            raise RuntimeError()

        dispatcher = Dispatcher(ToolRegistry([define_tool("broken", "", ANY_OBJECT, broken)]))

        assert dispatcher.dispatch(call("broken")).outcome == Failure(
            "RuntimeError", FailureKind.EXECUTION_ERROR
        )

    def test_failures_are_logged(
        self, dispatcher: Dispatcher, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="tool_lib.dispatch.Dispatcher"):
            dispatcher.dispatch(call("divide", a=1, b=0))

        assert "Cannot divide by zero" in caplog.text

    def test_async_tool_from_sync_dispatch(self) -> None:
        async def slow(payload: dict[str, Any]) -> int:
            return 1

        dispatcher = Dispatcher(ToolRegistry([define_tool("slow", "", ANY_OBJECT, slow)]))

        result = dispatcher.dispatch(call("slow"))

        assert result.outcome == Failure(
            "tool 'slow' is async; use dispatch_async", FailureKind.EXECUTION_ERROR
        )


class TestBatch:
    """Tests for dispatching batches."""

    BATCH = [
        ToolCallRequest("multiply", {"a": 2, "b": 3}),
        ToolCallRequest("divide", {"a": 10, "b": 0}),
        ToolCallRequest("multiply", {"a": 4, "b": 5}),
    ]

    def check(self, results: list[ToolCallResult]) -> None:
        assert [r.tool_name for r in results] == ["multiply", "divide", "multiply"]
        assert results[0].outcome == Success(6)
        assert isinstance(results[1].outcome, Failure)
        assert results[2].outcome == Success(20)

    def test_failure_does_not_stop_batch(self, dispatcher: Dispatcher) -> None:
        self.check(dispatcher.dispatch_batch(self.BATCH))

    @pytest.mark.asyncio
    async def test_async_batch(self, dispatcher: Dispatcher) -> None:
        self.check(await dispatcher.dispatch_batch_async(self.BATCH))

    @pytest.mark.asyncio
    async def test_async_batch_sequential(self, dispatcher: Dispatcher) -> None:
        self.check(await dispatcher.dispatch_batch_async(self.BATCH, concurrent=False))

    @pytest.mark.asyncio
    async def test_concurrent_results_keep_request_order(self) -> None:
        """Results follow request order even when later calls finish first."""
        finished: list[int] = []

        async def wait(payload: dict[str, Any]) -> int:
            await asyncio.sleep(payload["delay"])
            finished.append(payload["n"])
            return payload["n"]

        dispatcher = Dispatcher(ToolRegistry([define_tool("wait", "", ANY_OBJECT, wait)]))
        requests = [
            call("wait", n=0, delay=0.03),
            call("wait", n=1, delay=0.0),
            call("wait", n=2, delay=0.01),
        ]

        results = await dispatcher.dispatch_batch_async(requests)

        assert [r.outcome for r in results] == [Success(0), Success(1), Success(2)]
        assert finished == [1, 2, 0]

    @pytest.mark.asyncio
    async def test_async_handler_error(self) -> None:
        async def fail(payload: dict[str, Any]) -> None:
            raise ToolExecutionError("remote service unavailable")

        dispatcher = Dispatcher(ToolRegistry([define_tool("fail", "", ANY_OBJECT, fail)]))

        result = await dispatcher.dispatch_async(call("fail"))

        assert result.outcome == Failure(
            "remote service unavailable", FailureKind.EXECUTION_ERROR
        )
