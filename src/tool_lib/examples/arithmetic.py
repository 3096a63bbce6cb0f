"""Binding arithmetic tools to a chat model and executing the calls it makes.

Each scenario opens a fresh Session over the same registry, asks the model a question,
and prints the tool calls it made and their outcomes.
"""

from __future__ import annotations

from typing import TypedDict

from tool_lib.dispatch.Dispatcher import Dispatcher
from tool_lib.errors import ModelCommunicationError, ToolExecutionError
from tool_lib.session.ModelClient import ModelClient
from tool_lib.session.Session import Session
from tool_lib.tool.Tool import tool
from tool_lib.tool.ToolCall import Success, ToolCallResult
from tool_lib.tool.ToolRegistry import ToolRegistry
from tool_lib.util.json_utils import to_string

TWO_NUMBERS_SCHEMA = {
    "type": "object",
    "properties": {
        "a": {"type": "number"},
        "b": {"type": "number"},
    },
    "required": ["a", "b"],
}


class TwoNumbers(TypedDict):
    a: float
    b: float


@tool(TWO_NUMBERS_SCHEMA, description="Multiply two numbers")
def multiply(payload: TwoNumbers) -> float:
    return payload["a"] * payload["b"]


@tool(TWO_NUMBERS_SCHEMA, description="Divide two numbers")
def divide(payload: TwoNumbers) -> float:
    if payload["b"] == 0:
        raise ToolExecutionError("Cannot divide by zero")
    return payload["a"] / payload["b"]


def arithmetic_registry() -> ToolRegistry:
    return ToolRegistry([multiply, divide])


def format_result(result: ToolCallResult) -> str:
    args = to_string(dict(result.arguments))
    match result.outcome:
        case Success(value=value):
            return f"{result.tool_name}({args}) = {value}"
        case failure:
            return f"{result.tool_name}({args}) failed: {failure.message}"


async def basic_usage(client: ModelClient, registry: ToolRegistry) -> None:
    print("=== Example 1: Basic Tool Usage ===")
    result = await Session(client, registry).run("What is 15 multiplied by 23?")
    print("AI Response:", result.final_content)
    print("Tool calls:", [format_result(r) for r in result.results])


async def manual_execution(client: ModelClient, registry: ToolRegistry) -> None:
    print("\n=== Example 2: Manual Tool Execution ===")
    session = Session(client, registry)
    session.add_user_message("Calculate 144 divided by 12, then multiply the result by 7")
    round_result = await session.run_round()
    session.close()

    if round_result.tool_calls:
        print("AI wants to use tools:", [c.tool_name for c in round_result.tool_calls])
        for r in round_result.results:
            print(format_result(r))


async def conversational_usage(client: ModelClient, registry: ToolRegistry) -> None:
    print("\n=== Example 3: Conversational Tool Usage ===")
    session = Session(client, registry, max_rounds=3, feed_back_results=True)
    result = await session.run(
        "I need to calculate the area of a rectangle that is 25 units wide and 18 units tall"
    )
    for r in result.results:
        if r.tool_name == "multiply" and r.ok:
            print(
                f"Area calculation: {r.arguments['a']} × {r.arguments['b']} "
                f"= {r.outcome.value} square units"  # type: ignore[union-attr]
            )
    print("AI Response:", result.final_content)


async def error_handling(client: ModelClient, registry: ToolRegistry) -> None:
    print("\n=== Example 4: Error Handling ===")
    try:
        result = await Session(client, registry).run("What is 10 divided by 0?")
    except ModelCommunicationError as e:
        print(f"LLM error: {e}")
        return

    for r in result.results:
        if r.ok:
            print(f"Result: {r.outcome.value}")  # type: ignore[union-attr]
        else:
            print(f"Tool execution error: {r.outcome.message}")  # type: ignore[union-attr]


async def run_examples(client: ModelClient) -> None:
    registry = arithmetic_registry()
    await basic_usage(client, registry)
    await manual_execution(client, registry)
    await conversational_usage(client, registry)
    await error_handling(client, registry)


if __name__ == "__main__":
    from tool_lib.tool.ToolCall import ToolCallRequest

    dispatcher = Dispatcher(arithmetic_registry())
    for request in [
        ToolCallRequest("multiply", {"a": 2, "b": 3}),
        ToolCallRequest("divide", {"a": 10, "b": 0}),
        ToolCallRequest("multiply", {"a": 4, "b": 5}),
    ]:
        print(format_result(dispatcher.dispatch(request)))
