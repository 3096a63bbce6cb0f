"""Protocol for model clients, and the conversation messages passed to them.

Any class with an async invoke(messages, tools) -> ModelResponse can drive a Session.
This allows swapping between different LLM providers (Anthropic, OpenAI, etc.) or a
scripted client in tests.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from tool_lib.tool.ToolCall import ToolCallRequest, ToolCallResult
from tool_lib.tool.ToolMetadata import ToolMetadata


@dataclass(frozen=True)
class UserMessage:
    text: str


@dataclass(frozen=True)
class AssistantMessage:
    """A model turn. tool_calls is empty when the model answered directly."""

    content: str
    tool_calls: tuple[ToolCallRequest, ...] = ()


@dataclass(frozen=True)
class ToolResultsMessage:
    """Results of a batch of tool calls, fed back to the model."""

    results: tuple[ToolCallResult, ...]


type Message = UserMessage | AssistantMessage | ToolResultsMessage


@dataclass(frozen=True)
class ModelResponse:
    """What a model returned for one request.

    Attributes:
        content: Text content of the response (the final answer when there are no tool calls)
        tool_calls: Tool calls the model wants made, in the order it listed them
    """

    content: str
    tool_calls: list[ToolCallRequest] = field(default_factory=list)


class ModelClient(Protocol):
    """Protocol for model clients.

    Any class with an invoke method matching this signature satisfies the protocol.
    """

    async def invoke(
        self, messages: Sequence[Message], tools: Sequence[ToolMetadata]
    ) -> ModelResponse:
        """Send the conversation so far to the model.

        Args:
            messages: The conversation, oldest first
            tools: Metadata of the tools the model may call

        Returns:
            The model's response

        Raises:
            ModelCommunicationError: If the model can't be reached or its response can't be understood
        """
        ...
