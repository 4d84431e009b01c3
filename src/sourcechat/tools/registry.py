"""
Registry mapping tool names to executable tools.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..exceptions import InvalidRequestError, UnknownToolError
from ..types import ToolCall
from .base import Tool, ToolContext, ToolParameter

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    Name-keyed collection of the tools available to one completion.

    Names are unique: registering a second tool under an existing name is a
    request error rather than a silent overwrite.
    """

    def __init__(self, tools: Optional[Iterable[Tool]] = None) -> None:
        self._tools: Dict[str, Tool] = {}
        for tool_instance in tools or ():
            self.register(tool_instance)

    def register(self, tool_instance: Tool) -> None:
        """
        Register a Tool instance.

        Raises:
            InvalidRequestError: If a tool with the same name is already registered.
        """
        if tool_instance.name in self._tools:
            raise InvalidRequestError(f"duplicate tool name '{tool_instance.name}'")
        self._tools[tool_instance.name] = tool_instance

    def get(self, name: str) -> Optional[Tool]:
        """Get a tool by name."""
        return self._tools.get(name)

    def resolve(self, call: ToolCall) -> Tool:
        """
        Return the tool a call refers to.

        Raises:
            UnknownToolError: If no tool is registered under the call's name.
        """
        tool_instance = self._tools.get(call.tool_name)
        if tool_instance is None:
            raise UnknownToolError(call.tool_name, available=self.names())
        return tool_instance

    def execute(self, call: ToolCall, context: ToolContext) -> str:
        """
        Run the tool named by `call` and return its JSON result string.

        Raises:
            UnknownToolError: If the tool is not registered.
            ToolExecutionError: If the handler fails.
        """
        tool_instance = self.resolve(call)
        logger.debug("Executing tool %s (call %s)", call.tool_name, call.id)
        return tool_instance.execute(context, call.parameters)

    def names(self) -> List[str]:
        return list(self._tools)

    def list_tools(self) -> List[Tool]:
        """Return all registered tools, in registration order."""
        return list(self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def tool(
        self,
        *,
        name: str,
        description: str,
        parameters: Optional[List[ToolParameter]] = None,
    ) -> Callable[[Callable[[ToolContext, Dict[str, Any]], Any]], Tool]:
        """
        Decorator to register a handler as a tool in this registry.

        Example:
            >>> registry = ToolRegistry()
            >>> @registry.tool(name="echo", description="Echo the text back.",
            ...                parameters=[ToolParameter("text", str, "Text to echo")])
            ... def echo(ctx, args):
            ...     return {"echo": args["text"]}
        """

        def decorator(func: Callable[[ToolContext, Dict[str, Any]], Any]) -> Tool:
            tool_instance = Tool(
                name=name,
                description=description,
                parameters=parameters or [],
                handler=func,
            )
            self.register(tool_instance)
            return tool_instance

        return decorator
