"""SentinelQA Tool Registry -- routes tool calls to the tool set that owns them.

Tool sets are consulted in registration order and the first one whose
``is_supported`` returns True handles the call.  By default a tool set that
declares a name another registered set already supports is rejected with
:class:`ToolConflictError`; with ``reject_duplicates=False`` the overlap is
logged and first-match dispatch applies.

``execute`` never raises: unknown tools and handler exceptions come back as
``ToolResponse(success=False)``.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

from sentinelqa.config import ToolConfig
from sentinelqa.engine.messages import ToolCall, ToolResponse
from sentinelqa.errors import ToolConflictError, ToolNotFoundError
from sentinelqa.log import format_arguments

logger = logging.getLogger("sentinelqa.engine.tool_registry")

# A handler takes the call's arguments and returns (content, success)
ToolHandler = Callable[[dict[str, Any]], Awaitable[tuple[str, bool]]]


@runtime_checkable
class ToolSet(Protocol):
    """A group of tools with a side-effect-free capability check."""

    def tool_names(self) -> list[str]: ...

    def is_supported(self, tool_name: str) -> bool: ...

    async def execute(self, call: ToolCall) -> ToolResponse: ...


class HandlerToolSet:
    """Tool set backed by a ``name -> async handler`` mapping."""

    def __init__(
        self,
        handlers: dict[str, ToolHandler] | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._handlers: dict[str, ToolHandler] = {}
        self._declarations: dict[str, ToolConfig] = {}
        self._log = log or logger
        for name, handler in (handlers or {}).items():
            self.add_tool(name, handler)

    def add_tool(
        self,
        name: str,
        handler: ToolHandler,
        description: str = "",
        parameters: dict[str, Any] | None = None,
    ) -> None:
        self._handlers[name] = handler
        declaration = ToolConfig(name=name, description=description)
        if parameters is not None:
            declaration.parameters = parameters
        self._declarations[name] = declaration

    def tool_names(self) -> list[str]:
        return list(self._handlers)

    def is_supported(self, tool_name: str) -> bool:
        return tool_name in self._handlers

    def declarations(self) -> list[ToolConfig]:
        """Tool declarations to offer the model, in registration order."""
        return list(self._declarations.values())

    async def execute(self, call: ToolCall) -> ToolResponse:
        handler = self._handlers.get(call.name)
        if handler is None:
            raise ToolNotFoundError(call.name)
        content, success = await handler(dict(call.arguments))
        return ToolResponse(tool_call_id=call.id, content=content, success=success, tool_name=call.name)


class ToolRegistry:
    """Ordered collection of tool sets with first-match dispatch."""

    def __init__(self, reject_duplicates: bool = True, log: logging.Logger | None = None) -> None:
        self._tool_sets: dict[str, ToolSet] = {}
        self._reject_duplicates = reject_duplicates
        self._log = log or logger

    def __len__(self) -> int:
        return len(self._tool_sets)

    # -- Registration --------------------------------------------------------

    def register(self, tool_set: ToolSet, name: str | None = None) -> str:
        """Register *tool_set* under *name* (default: its class name).

        Re-registering an existing name replaces that tool set in place.

        Raises:
            ToolConflictError: If duplicates are rejected and another
                registered set already supports one of this set's tools.
        """
        set_name = name or type(tool_set).__name__
        overlaps = {
            tool: other_name
            for tool in tool_set.tool_names()
            for other_name, other in self._tool_sets.items()
            if other_name != set_name and other.is_supported(tool)
        }
        if overlaps:
            detail = ", ".join(f"{tool} (owned by {owner})" for tool, owner in sorted(overlaps.items()))
            if self._reject_duplicates:
                raise ToolConflictError(f"Tool set {set_name} declares tools already registered: {detail}")
            self._log.warning("Tool set %s overlaps existing tools, first match wins: %s", set_name, detail)

        self._tool_sets[set_name] = tool_set
        self._log.info("ToolSet %s registered.", set_name)
        return set_name

    def unregister(self, name: str) -> bool:
        if self._tool_sets.pop(name, None) is None:
            return False
        self._log.info("ToolSet %s unregistered", name)
        return True

    def registered_tool_sets(self) -> list[str]:
        return list(self._tool_sets)

    # -- Dispatch ------------------------------------------------------------

    def find(self, tool_name: str) -> ToolSet | None:
        for tool_set in self._tool_sets.values():
            if tool_set.is_supported(tool_name):
                return tool_set
        return None

    def is_supported(self, tool_name: str) -> bool:
        return self.find(tool_name) is not None

    async def execute(
        self,
        tool_name: str,
        arguments: dict[str, Any] | None = None,
        tool_call_id: str | None = None,
    ) -> ToolResponse:
        call = ToolCall(name=tool_name, arguments=dict(arguments or {}))
        if tool_call_id:
            call = ToolCall(name=tool_name, arguments=call.arguments, id=tool_call_id)
        return await self.execute_call(call)

    async def execute_call(self, call: ToolCall) -> ToolResponse:
        """Route *call* to its tool set; failures become ``success=False``."""
        self._log.info("[TOOL_CALL:%s] Arguments: %s", call.name, format_arguments(call.arguments))
        tool_set = self.find(call.name)
        try:
            if tool_set is None:
                raise ToolNotFoundError(call.name)
            response = await tool_set.execute(call)
        except Exception as exc:
            self._log.warning("[TOOL_RESPONSE:%s] Error: %s", call.name, exc)
            return ToolResponse(tool_call_id=call.id, content=str(exc), success=False, tool_name=call.name)

        self._log.info("[TOOL_RESPONSE:%s] %s", call.name, _preview(response.content))
        return response


def _preview(text: str, limit: int = 200) -> str:
    text = text.replace("\n", " ")
    return text if len(text) <= limit else text[:limit] + "..."
