"""ToolRegistry - name-keyed lookup of the tools available for dispatch."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from tool_lib.errors import ConfigurationError
from tool_lib.tool.Tool import Tool
from tool_lib.tool.ToolMetadata import ToolMetadata

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Holds tools by name, in registration order.

    Registration happens at startup; after that the registry is only read, so it can
    be shared between sessions.

    Usage:
        registry = ToolRegistry([multiply, divide])
        registry.lookup("multiply")   # -> Tool
        registry.list_metadata()      # -> advertised to the model
    """

    _tools: dict[str, Tool[Any, Any]]

    def __init__(self, tools: Iterable[Tool[Any, Any]] = ()) -> None:
        self._tools = {}
        for t in tools:
            self.register(t)

    def register(self, tool: Tool[Any, Any]) -> None:
        """Add a tool.

        Raises:
            ConfigurationError: If a tool with the same name is already registered. The existing tool is kept.
        """
        if not isinstance(tool, Tool):
            raise ConfigurationError(f"Expected a Tool, got {type(tool).__name__}")
        if tool.name in self._tools:
            raise ConfigurationError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool
        logger.debug("Registered tool %s", tool.name)

    def lookup(self, name: str) -> Tool[Any, Any] | None:
        """Get a tool by name, or None if not found."""
        return self._tools.get(name)

    def list_all(self) -> list[Tool[Any, Any]]:
        """All tools, in registration order."""
        return list(self._tools.values())

    def list_metadata(self) -> list[ToolMetadata]:
        """Metadata for all tools, in registration order."""
        return [t.to_metadata() for t in self._tools.values()]

    def names(self) -> list[str]:
        return list(self._tools.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
