"""Session - drives request/response rounds between a model and a ToolRegistry.

One round sends the conversation and the registry's tool metadata to the model, then
dispatches any tool calls the model returned, in the order it listed them. Awaiting
the model is the only suspension point; a session never has more than one request
outstanding.

States:
    IDLE -> AWAITING_MODEL -> HAS_TOOL_CALLS | DONE -> (AWAITING_MODEL ...) -> TERMINATED
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass

from tool_lib.dispatch.Dispatcher import Dispatcher
from tool_lib.errors import ConfigurationError, ModelCommunicationError, SessionStateError
from tool_lib.session.ModelClient import (
    AssistantMessage,
    Message,
    ModelClient,
    ModelResponse,
    ToolResultsMessage,
    UserMessage,
)
from tool_lib.tool.ToolCall import ToolCallRequest, ToolCallResult
from tool_lib.tool.ToolRegistry import ToolRegistry

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    IDLE = "idle"
    AWAITING_MODEL = "awaiting_model"
    HAS_TOOL_CALLS = "has_tool_calls"
    DONE = "done"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class RoundResult:
    """One request/response exchange and the tool calls it produced.

    Attributes:
        content: Text the model returned
        tool_calls: Tool calls the model asked for, in its order
        results: One result per tool call, in the same order
    """

    content: str
    tool_calls: tuple[ToolCallRequest, ...] = ()
    results: tuple[ToolCallResult, ...] = ()

    @property
    def failures(self) -> list[ToolCallResult]:
        return [r for r in self.results if not r.ok]

    @property
    def succeeded(self) -> bool:
        """True if every tool call in the round succeeded (vacuously true with no calls)."""
        return not self.failures


@dataclass(frozen=True)
class SessionResult:
    rounds: tuple[RoundResult, ...]

    @property
    def final_content(self) -> str:
        return self.rounds[-1].content if self.rounds else ""

    @property
    def results(self) -> list[ToolCallResult]:
        """Results of every round, flattened in order."""
        return [r for rnd in self.rounds for r in rnd.results]

    @property
    def failures(self) -> list[ToolCallResult]:
        return [r for r in self.results if not r.ok]


class Session:
    """Runs rounds against a model client, routing tool calls through a Dispatcher.

    Usage:
        session = Session(ClaudeClient(), ToolRegistry([multiply, divide]))
        result = await session.run("What is 15 multiplied by 23?")
        for r in result.results:
            print(r.tool_name, r.outcome)

    With feed_back_results=True, tool results are sent back to the model for a further
    round, until the model stops calling tools or max_rounds is reached.
    """

    _client: ModelClient
    _registry: ToolRegistry
    _dispatcher: Dispatcher
    _messages: list[Message]
    _state: SessionState

    def __init__(
        self,
        client: ModelClient,
        registry: ToolRegistry,
        dispatcher: Dispatcher | None = None,
        max_rounds: int = 1,
        feed_back_results: bool = False,
        concurrent_tools: bool = False,
    ) -> None:
        """Create a session.

        Args:
            client: The model collaborator
            registry: Tools offered to the model
            dispatcher: Dispatcher to route calls through (default: one over registry)
            max_rounds: Upper bound on rounds per run()
            feed_back_results: Send tool results back to the model for another round
            concurrent_tools: Let async tool handlers in one batch run concurrently

        Raises:
            ConfigurationError: If max_rounds is less than 1
        """
        if max_rounds < 1:
            raise ConfigurationError("max_rounds must be at least 1")
        self._client = client
        self._registry = registry
        self._dispatcher = dispatcher or Dispatcher(registry)
        self._max_rounds = max_rounds
        self._feed_back_results = feed_back_results
        self._concurrent_tools = concurrent_tools
        self._messages = []
        self._state = SessionState.IDLE

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def _check_usable(self) -> None:
        if self._state is SessionState.TERMINATED:
            raise SessionStateError("Session is terminated")
        if self._state is SessionState.AWAITING_MODEL:
            raise SessionStateError("Session is already awaiting the model")

    def add_user_message(self, text: str) -> None:
        self._check_usable()
        self._messages.append(UserMessage(text))

    async def _request(self) -> ModelResponse:
        self._state = SessionState.AWAITING_MODEL
        try:
            response = await self._client.invoke(
                tuple(self._messages), self._registry.list_metadata()
            )
        except ModelCommunicationError:
            self._state = SessionState.TERMINATED
            raise
        except asyncio.CancelledError:
            self._state = SessionState.TERMINATED
            raise
        except Exception as e:
            self._state = SessionState.TERMINATED
            raise ModelCommunicationError(f"Model request failed: {e}") from e

        if not isinstance(response, ModelResponse):
            self._state = SessionState.TERMINATED
            raise ModelCommunicationError(
                f"Model client returned {type(response).__name__}, expected ModelResponse"
            )
        return response

    async def run_round(self) -> RoundResult:
        """Send the conversation to the model and dispatch whatever tool calls come back.

        The assistant turn, and the tool results if there were calls, are appended to
        the conversation.

        Raises:
            ModelCommunicationError: If the model request fails. The session is terminated.
            SessionStateError: If the session is terminated or a round is already in flight
        """
        self._check_usable()
        response = await self._request()
        tool_calls = tuple(response.tool_calls)
        self._messages.append(AssistantMessage(response.content, tool_calls))

        if not tool_calls:
            self._state = SessionState.DONE
            return RoundResult(content=response.content)

        self._state = SessionState.HAS_TOOL_CALLS
        logger.debug("Model requested %d tool call(s)", len(tool_calls))
        results = tuple(
            await self._dispatcher.dispatch_batch_async(
                tool_calls, concurrent=self._concurrent_tools
            )
        )
        self._messages.append(ToolResultsMessage(results))

        round_result = RoundResult(response.content, tool_calls, results)
        if round_result.failures:
            logger.info(
                "%d of %d tool call(s) failed", len(round_result.failures), len(results)
            )
        return round_result

    async def run(self, prompt: str | None = None) -> SessionResult:
        """Run rounds for a prompt, then terminate the session.

        Args:
            prompt: User message to append before the first round (None to use the conversation as is)

        Returns:
            Every round that was run, in order
        """
        if prompt is not None:
            self.add_user_message(prompt)

        rounds: list[RoundResult] = []
        while True:
            round_result = await self.run_round()
            rounds.append(round_result)
            if (
                not round_result.tool_calls
                or not self._feed_back_results
                or len(rounds) >= self._max_rounds
            ):
                break

        self.close()
        return SessionResult(tuple(rounds))

    def close(self) -> None:
        self._state = SessionState.TERMINATED
