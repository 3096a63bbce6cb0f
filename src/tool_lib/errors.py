"""Error taxonomy for tool_lib.

ConfigurationError is raised eagerly when tools are defined or registered.
ValidationError and ToolExecutionError are caught by the Dispatcher and turned
into failed ToolCallResults. ModelCommunicationError propagates to whoever is
driving the Session.
"""

from __future__ import annotations


class ToolLibError(Exception):
    """Base class for all tool_lib errors."""


class ConfigurationError(ToolLibError, ValueError):
    """A tool definition or registration is malformed (empty name, bad schema, duplicate name)."""


class ValidationError(ToolLibError):
    """Tool call arguments do not match the tool's JSON schema.

    Attributes:
        detail: Human-readable description of every violation found
    """

    detail: str

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ToolExecutionError(ToolLibError):
    """Raised by a tool handler to report a domain failure (e.g. division by zero)."""


class ModelCommunicationError(ToolLibError):
    """Reaching the model, or making sense of its response, failed."""


class SessionStateError(ToolLibError, RuntimeError):
    """A Session was asked to do something its current state doesn't allow."""
