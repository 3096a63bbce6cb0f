from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Literal, Unpack

import anthropic
from anthropic.types import MessageParam, ToolParam
from anthropic.types.message_create_params import MessageCreateParamsBase

from tool_lib.environment import anthropic_api_key
from tool_lib.errors import ModelCommunicationError
from tool_lib.session.ModelClient import (
    AssistantMessage,
    Message,
    ModelResponse,
    ToolResultsMessage,
    UserMessage,
)
from tool_lib.tool.ToolCall import Success, ToolCallRequest, ToolCallResult
from tool_lib.tool.ToolMetadata import ToolMetadata
from tool_lib.util.json_utils import to_string

logger = logging.getLogger(__name__)

CLAUDE_MODELS = {
    "sonnet": "claude-sonnet-4-5",
    "haiku": "claude-haiku-4-5",
    "opus": "claude-opus-4-5",
}

type ModelSize = Literal["sonnet", "haiku", "opus"]


def _call_id(call_id: str | None, index: int) -> str:
    return call_id or f"call_{index}"


def _result_text(result: ToolCallResult) -> str:
    match result.outcome:
        case Success(value=value):
            return value if isinstance(value, str) else to_string(value)
        case failure:
            return failure.message


# Claude as a ModelClient
class ClaudeClient:
    config: MessageCreateParamsBase

    def __init__(
        self,
        model: ModelSize = "haiku",
        api_key: str = anthropic_api_key,
        client: anthropic.AsyncAnthropic | None = None,
    ):
        self.client = client or anthropic.AsyncAnthropic(api_key=api_key or None)
        self.config = {
            "max_tokens": 1024,
            "temperature": 0,
            "model": CLAUDE_MODELS[model],
            "messages": [],
        }

    def set_model(self, model: ModelSize) -> None:
        self.config["model"] = CLAUDE_MODELS[model]

    def set_config(self, **kwargs: Unpack[MessageCreateParamsBase]) -> None:
        """Update the config with the provided kwargs.

        Args:
            **kwargs: Any valid MessageCreateParamsBase fields (max_tokens, temperature, top_p, top_k, stop_sequences, system, etc.)
        """
        self.config.update(kwargs)

    @staticmethod
    def to_tool_param(tool: ToolMetadata) -> ToolParam:
        """Advertise a tool in Anthropic's format."""
        return {
            "name": tool.name,
            "description": tool.description,
            "input_schema": dict(tool.payload_json_schema),
        }

    @staticmethod
    def to_message_params(messages: Sequence[Message]) -> list[MessageParam]:
        """Convert the conversation to Anthropic API messages.

        Tool calls become tool_use blocks on the assistant turn and their results become
        tool_result blocks on the following user turn. Calls without a provider id are
        paired with their results by position.
        """
        params: list[MessageParam] = []
        for msg in messages:
            match msg:
                case UserMessage(text=text):
                    params.append({"role": "user", "content": text})
                case AssistantMessage(content="", tool_calls=()):
                    # the API rejects empty assistant turns
                    continue
                case AssistantMessage(content=content, tool_calls=()):
                    params.append({"role": "assistant", "content": content})
                case AssistantMessage(content=content, tool_calls=tool_calls):
                    blocks: list[Any] = []
                    if content:
                        blocks.append({"type": "text", "text": content})
                    for i, call in enumerate(tool_calls):
                        blocks.append(
                            {
                                "type": "tool_use",
                                "id": _call_id(call.call_id, i),
                                "name": call.tool_name,
                                "input": dict(call.arguments),
                            }
                        )
                    params.append({"role": "assistant", "content": blocks})
                case ToolResultsMessage(results=results):
                    params.append(
                        {
                            "role": "user",
                            "content": [
                                {
                                    "type": "tool_result",
                                    "tool_use_id": _call_id(result.call_id, i),
                                    "content": _result_text(result),
                                    "is_error": not result.ok,
                                }
                                for i, result in enumerate(results)
                            ],
                        }
                    )
        return params

    @staticmethod
    def parse_response(message: Any) -> ModelResponse:
        """Turn an Anthropic Message into a ModelResponse.

        Text blocks are joined into content; tool_use blocks become tool calls, in order.
        Arguments are passed through untouched for the Dispatcher to validate.
        """
        texts: list[str] = []
        tool_calls: list[ToolCallRequest] = []
        for block in message.content:
            if block.type == "text":
                texts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(
                    ToolCallRequest(tool_name=block.name, arguments=block.input, call_id=block.id)
                )
        return ModelResponse(content="".join(texts), tool_calls=tool_calls)

    async def invoke(
        self, messages: Sequence[Message], tools: Sequence[ToolMetadata]
    ) -> ModelResponse:
        """Get a response from Claude with the given tools bound.

        Raises:
            ModelCommunicationError: On any Anthropic API error
        """
        params: dict[str, Any] = {
            **self.config,
            "messages": self.to_message_params(messages),
        }
        if tools:
            params["tools"] = [self.to_tool_param(t) for t in tools]

        try:
            message = await self.client.messages.create(**params)
        except anthropic.APIError as e:
            raise ModelCommunicationError(f"Claude API error: {e}") from e

        logger.debug("Claude stop_reason=%s", getattr(message, "stop_reason", None))
        return self.parse_response(message)


if __name__ == "__main__":
    import asyncio

    client = ClaudeClient()
    response = asyncio.run(client.invoke([UserMessage("Tell me a short joke")], []))
    print(response.content)
