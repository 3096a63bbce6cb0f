"""Records for a single model-issued tool call and its outcome.

A ToolCallRequest is produced by the model and is not trusted. The Dispatcher turns
each request into exactly one ToolCallResult, whose outcome is either Success or
Failure. Both records are immutable.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class ToolCallRequest:
    """A tool call as issued by the model.

    Attributes:
        tool_name: Name of the tool the model wants to call
        arguments: Candidate arguments, unvalidated
        call_id: Provider id for the call, used to pair results with calls when feeding them back
    """

    tool_name: str
    arguments: Mapping[str, Any] = field(default_factory=dict)
    call_id: str | None = None


class FailureKind(Enum):
    UNKNOWN_TOOL = "unknown_tool"
    INVALID_ARGUMENTS = "invalid_arguments"
    EXECUTION_ERROR = "execution_error"


@dataclass(frozen=True)
class Success:
    value: Any


@dataclass(frozen=True)
class Failure:
    message: str
    kind: FailureKind = FailureKind.EXECUTION_ERROR


type Outcome = Success | Failure


@dataclass(frozen=True)
class ToolCallResult:
    """The outcome of dispatching one ToolCallRequest.

    Attributes:
        tool_name: Name of the tool that was requested
        arguments: The arguments as the model sent them
        outcome: Success(value) or Failure(message)
        call_id: Copied from the request
    """

    tool_name: str
    arguments: Mapping[str, Any]
    outcome: Outcome
    call_id: str | None = None

    @property
    def ok(self) -> bool:
        return isinstance(self.outcome, Success)

    @classmethod
    def success(cls, request: ToolCallRequest, value: Any) -> ToolCallResult:
        return cls(request.tool_name, request.arguments, Success(value), request.call_id)

    @classmethod
    def failure(
        cls, request: ToolCallRequest, message: str, kind: FailureKind
    ) -> ToolCallResult:
        return cls(
            request.tool_name, request.arguments, Failure(message, kind), request.call_id
        )
