"""SentinelQA conversation model -- messages, tool calls and the context log."""

from __future__ import annotations

import dataclasses
import enum
import uuid
from datetime import datetime, timezone
from typing import Any


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, enum.Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclasses.dataclass(frozen=True)
class ToolCall:
    """A model's request to invoke a named tool."""

    name: str
    arguments: dict[str, Any] = dataclasses.field(default_factory=dict)
    id: str = dataclasses.field(default_factory=lambda: f"call_{uuid.uuid4().hex[:16]}")


@dataclasses.dataclass(frozen=True)
class ToolResponse:
    """Outcome of one tool call, fed back to the model as a Tool message."""

    tool_call_id: str
    content: str
    success: bool
    tool_name: str = ""
    timestamp: datetime = dataclasses.field(default_factory=_utcnow)


@dataclasses.dataclass(frozen=True)
class Message:
    role: Role
    content: str
    timestamp: datetime = dataclasses.field(default_factory=_utcnow)
    tool_call_id: str | None = None
    tool_calls: tuple[ToolCall, ...] = ()
    tool_name: str | None = None


class ConversationContext:
    """Append-only, ordered message log for one conversation.

    Tool messages are only accepted when they answer a call carried by the
    most recent Assistant message, so the log never holds an orphaned tool
    result.
    """

    def __init__(self, context_id: str | None = None) -> None:
        self.context_id = context_id or f"context-{uuid.uuid4()}"
        self._messages: list[Message] = []
        self._pending_calls: dict[str, ToolCall] = {}

    def __len__(self) -> int:
        return len(self._messages)

    def __repr__(self) -> str:
        return f"ConversationContext({self.context_id!r}, messages={len(self._messages)})"

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def last_message(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    def add_system_message(self, content: str) -> Message:
        return self._append(Message(Role.SYSTEM, content))

    def add_user_message(self, content: str) -> Message:
        return self._append(Message(Role.USER, content))

    def add_assistant_message(self, content: str, tool_calls: list[ToolCall] | None = None) -> Message:
        calls = tuple(tool_calls or ())
        message = self._append(Message(Role.ASSISTANT, content or "", tool_calls=calls))
        self._pending_calls = {call.id: call for call in calls}
        return message

    def add_tool_message(self, content: str, tool_call_id: str) -> Message:
        """Append a tool result.

        Raises:
            ValueError: If *tool_call_id* does not match a call from the
                latest Assistant message.
        """
        call = self._pending_calls.get(tool_call_id)
        if call is None:
            raise ValueError(f"Tool message for unknown tool_call_id: {tool_call_id}")
        return self._append(
            Message(Role.TOOL, content, tool_call_id=tool_call_id, tool_name=call.name),
            keep_pending=True,
        )

    def _append(self, message: Message, keep_pending: bool = False) -> Message:
        if not keep_pending:
            self._pending_calls = {}
        self._messages.append(message)
        return message
