"""SentinelQA error taxonomy.

Every error here is recovered at the tool-execution boundary as a failed
``ToolResponse`` or at the turn boundary as a failed ``AgentResponse``.
"""

from __future__ import annotations


class SentinelError(Exception):
    """Base class for SentinelQA runtime errors."""

    pass


class ToolNotFoundError(SentinelError):
    """No registered tool set supports the requested tool name."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Tool not found: {tool_name}")
        self.tool_name = tool_name


class ToolConflictError(SentinelError):
    """A tool set declares a tool name that another registered set already owns."""

    pass


class ElementNotFoundError(SentinelError):
    """The element path resolved in neither UI paradigm."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Element not found in any UI system: {path}")
        self.path = path


class ActionUnsupportedError(SentinelError):
    """The element exists but lacks the capability the action needs."""

    def __init__(self, path: str, action: str, reason: str = "") -> None:
        message = f"Cannot {action} '{path}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.path = path
        self.action = action


class GatewayError(SentinelError):
    """Transport or parse failure talking to the language model."""

    pass


class WaitTimeoutError(SentinelError):
    """A bounded wait elapsed before the element became visible."""

    def __init__(self, path: str, timeout: float) -> None:
        super().__init__(f"Timeout after {timeout:g}s waiting for: {path}")
        self.path = path
        self.timeout = timeout


class AgentConfigError(SentinelError):
    """The agent configuration is missing, disabled or malformed."""

    pass
