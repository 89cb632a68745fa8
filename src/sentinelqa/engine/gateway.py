"""SentinelQA Language-Model Gateway -- stateless request/response exchange.

The agent loop talks to every provider through :class:`LLMGateway`:
``await gateway.complete(request) -> LLMResponse``.  Transport and parse
errors never raise out of ``complete``; they come back as
``LLMResponse(success=False)`` with the error text in ``content``.

Implementations:
    AnthropicGateway   Anthropic Messages API (tool_use / tool_result blocks)
    OpenAIGateway      OpenAI-compatible chat completions (OpenAI, Qwen)
    SimulatedGateway   Offline fixed reply, no tool calls
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from sentinelqa.config import AgentConfig, ServiceProvider, ToolConfig
from sentinelqa.engine.messages import Message, Role, ToolCall
from sentinelqa.models import QWEN_BASE_URL

logger = logging.getLogger("sentinelqa.engine.gateway")

_CLIENT_MAX_RETRIES = 5
_CLIENT_TIMEOUT_SECONDS = 60.0
_SIMULATED_REPLY = "I understand your request and I'm here to help."


# ---------------------------------------------------------------------------
# Request / response contract
# ---------------------------------------------------------------------------

@dataclasses.dataclass
class LLMRequest:
    messages: list[Message]
    tools: list[ToolConfig]
    max_tokens: int
    temperature: float
    model: str
    provider: ServiceProvider


@dataclasses.dataclass
class LLMResponse:
    content: str = ""
    tool_calls: list[ToolCall] = dataclasses.field(default_factory=list)
    model: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    success: bool = True
    timestamp: datetime = dataclasses.field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def failure(cls, message: str, model: str = "") -> LLMResponse:
        return cls(content=message, model=model, success=False)


@runtime_checkable
class LLMGateway(Protocol):
    """Anything that can answer an :class:`LLMRequest`."""

    async def complete(self, request: LLMRequest) -> LLMResponse: ...


# ---------------------------------------------------------------------------
# Anthropic
# ---------------------------------------------------------------------------

def to_anthropic_messages(messages: list[Message]) -> tuple[str, list[dict[str, Any]]]:
    """Convert context messages to ``(system, messages)`` for the Messages API.

    System messages are folded into the system prompt.  Messages always use
    block-list content, and consecutive messages that map to the same role
    are merged, so a run of Tool messages becomes one user turn of
    ``tool_result`` blocks.
    """
    system_parts: list[str] = []
    out: list[dict[str, Any]] = []

    def append(role: str, blocks: list[dict[str, Any]]) -> None:
        if not blocks:
            return
        if out and out[-1]["role"] == role:
            out[-1]["content"].extend(blocks)
        else:
            out.append({"role": role, "content": blocks})

    for message in messages:
        if message.role is Role.SYSTEM:
            if message.content:
                system_parts.append(message.content)
        elif message.role is Role.USER:
            if message.content:
                append("user", [{"type": "text", "text": message.content}])
        elif message.role is Role.ASSISTANT:
            blocks: list[dict[str, Any]] = []
            if message.content:
                blocks.append({"type": "text", "text": message.content})
            for call in message.tool_calls:
                blocks.append({"type": "tool_use", "id": call.id, "name": call.name, "input": dict(call.arguments)})
            append("assistant", blocks)
        elif message.role is Role.TOOL:
            append(
                "user",
                [{"type": "tool_result", "tool_use_id": message.tool_call_id, "content": message.content}],
            )

    return "\n\n".join(system_parts), out


def to_anthropic_tools(tools: list[ToolConfig]) -> list[dict[str, Any]]:
    return [{"name": t.name, "description": t.description, "input_schema": t.parameters} for t in tools]


class AnthropicGateway:
    """Gateway backed by the Anthropic async SDK."""

    def __init__(self, api_key: str = "", base_url: str | None = None, client: Any = None) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._client = client

    def _get_client(self) -> Any:
        """Return the cached Anthropic client, creating it lazily on first use."""
        if self._client is None:
            import anthropic

            kwargs: dict[str, Any] = {"max_retries": _CLIENT_MAX_RETRIES, "timeout": _CLIENT_TIMEOUT_SECONDS}
            if self._api_key:
                kwargs["api_key"] = self._api_key
            if self._base_url:
                kwargs["base_url"] = self._base_url
            self._client = anthropic.AsyncAnthropic(**kwargs)
        return self._client

    async def complete(self, request: LLMRequest) -> LLMResponse:
        system, messages = to_anthropic_messages(request.messages)
        kwargs: dict[str, Any] = {
            "model": request.model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "messages": messages,
        }
        if system:
            kwargs["system"] = system
        if request.tools:
            kwargs["tools"] = to_anthropic_tools(request.tools)

        try:
            response = await self._get_client().messages.create(**kwargs)
        except Exception as exc:
            logger.error("Anthropic API call failed: %s", exc)
            return LLMResponse.failure(f"Gateway error: {exc}", model=request.model)

        text_parts: list[str] = []
        tool_calls: list[ToolCall] = []
        for block in response.content:
            block_type = getattr(block, "type", "")
            if block_type == "text":
                text_parts.append(block.text)
            elif block_type == "tool_use":
                tool_calls.append(ToolCall(name=block.name, arguments=dict(block.input or {}), id=block.id))

        usage = getattr(response, "usage", None)
        return LLMResponse(
            content="".join(text_parts),
            tool_calls=tool_calls,
            model=getattr(response, "model", request.model) or request.model,
            input_tokens=getattr(usage, "input_tokens", 0) or 0,
            output_tokens=getattr(usage, "output_tokens", 0) or 0,
        )


# ---------------------------------------------------------------------------
# OpenAI-compatible (OpenAI, Qwen via DashScope)
# ---------------------------------------------------------------------------

def to_openai_messages(messages: list[Message]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for message in messages:
        if message.role is Role.ASSISTANT and message.tool_calls:
            out.append({
                "role": "assistant",
                "content": message.content or None,
                "tool_calls": [
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {"name": call.name, "arguments": json.dumps(call.arguments)},
                    }
                    for call in message.tool_calls
                ],
            })
        elif message.role is Role.TOOL:
            out.append({"role": "tool", "tool_call_id": message.tool_call_id, "content": message.content})
        else:
            out.append({"role": message.role.value, "content": message.content})
    return out


def to_openai_tools(tools: list[ToolConfig]) -> list[dict[str, Any]]:
    return [
        {"type": "function", "function": {"name": t.name, "description": t.description, "parameters": t.parameters}}
        for t in tools
    ]


def parse_tool_arguments(raw: str | None, tool_name: str = "") -> dict[str, Any]:
    """Decode a JSON argument string.  Malformed or non-object input yields ``{}``."""
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Malformed arguments for tool %s: %r", tool_name or "?", raw[:200])
        return {}
    if not isinstance(parsed, dict):
        logger.warning("Arguments for tool %s are not an object: %r", tool_name or "?", raw[:200])
        return {}
    return parsed


class OpenAIGateway:
    """Gateway for OpenAI-compatible chat completion endpoints."""

    def __init__(self, api_key: str = "", base_url: str | None = None, client: Any = None) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            from openai import AsyncOpenAI

            kwargs: dict[str, Any] = {"max_retries": _CLIENT_MAX_RETRIES, "timeout": _CLIENT_TIMEOUT_SECONDS}
            if self._api_key:
                kwargs["api_key"] = self._api_key
            if self._base_url:
                kwargs["base_url"] = self._base_url
            self._client = AsyncOpenAI(**kwargs)
        return self._client

    async def complete(self, request: LLMRequest) -> LLMResponse:
        create_kwargs: dict[str, Any] = {
            "model": request.model,
            "messages": to_openai_messages(request.messages),
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
        }
        if request.tools:
            create_kwargs["tools"] = to_openai_tools(request.tools)

        try:
            response = await self._get_client().chat.completions.create(**create_kwargs)
            message = response.choices[0].message
        except Exception as exc:
            logger.error("%s API call failed: %s", request.provider.value, exc)
            return LLMResponse.failure(f"Gateway error: {exc}", model=request.model)

        tool_calls = [
            ToolCall(
                name=call.function.name,
                arguments=parse_tool_arguments(call.function.arguments, call.function.name),
                id=call.id,
            )
            for call in (message.tool_calls or [])
        ]
        usage = getattr(response, "usage", None)
        return LLMResponse(
            content=message.content or "",
            tool_calls=tool_calls,
            model=getattr(response, "model", request.model) or request.model,
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
        )


# ---------------------------------------------------------------------------
# Simulated
# ---------------------------------------------------------------------------

class SimulatedGateway:
    """Offline gateway: always answers with a fixed acknowledgement."""

    def __init__(self, reply: str = _SIMULATED_REPLY, delay_seconds: float = 0.0) -> None:
        self._reply = reply
        self._delay_seconds = delay_seconds

    async def complete(self, request: LLMRequest) -> LLMResponse:
        if self._delay_seconds > 0:
            await asyncio.sleep(self._delay_seconds)
        return LLMResponse(
            content=self._reply,
            model=request.model,
            output_tokens=len(self._reply.split()),
        )


def create_gateway(agent_config: AgentConfig) -> LLMGateway:
    """Pick the gateway implementation for the agent's provider."""
    provider = agent_config.model_config.provider
    if provider is ServiceProvider.ANTHROPIC:
        return AnthropicGateway(agent_config.api_key, agent_config.service_url)
    if provider is ServiceProvider.OPENAI:
        return OpenAIGateway(agent_config.api_key, agent_config.service_url)
    if provider is ServiceProvider.QWEN:
        return OpenAIGateway(agent_config.api_key, agent_config.service_url or QWEN_BASE_URL)
    logger.warning("Provider %s has no remote gateway; using simulated responses", provider.value)
    return SimulatedGateway()
