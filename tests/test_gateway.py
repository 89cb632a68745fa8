"""Unit tests for sentinelqa.engine.gateway -- provider conversion and fake clients."""

from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace

from sentinelqa.config import AgentConfig, ModelConfig, ServiceProvider, ToolConfig
from sentinelqa.engine.gateway import (
    AnthropicGateway,
    LLMRequest,
    OpenAIGateway,
    SimulatedGateway,
    create_gateway,
    parse_tool_arguments,
    to_anthropic_messages,
    to_anthropic_tools,
    to_openai_messages,
    to_openai_tools,
)
from sentinelqa.engine.messages import ConversationContext, ToolCall
from sentinelqa.models import QWEN_BASE_URL


def _make_context() -> tuple[ConversationContext, ToolCall, ToolCall]:
    """System, goal, an assistant turn with two calls, and both results."""
    context = ConversationContext()
    context.add_system_message("rules")
    context.add_user_message("TEST GOAL: log in")
    first = ToolCall("query_ui", {}, id="call_1")
    second = ToolCall("click", {"elementPath": "Submit"}, id="call_2")
    context.add_assistant_message("Looking", [first, second])
    context.add_tool_message("{}", first.id)
    context.add_tool_message("Clicked element: Submit", second.id)
    return context, first, second


def _make_request(provider: ServiceProvider = ServiceProvider.ANTHROPIC, tools=None) -> LLMRequest:
    context, _, _ = _make_context()
    return LLMRequest(
        messages=list(context.messages),
        tools=tools if tools is not None else [ToolConfig("click", "Click an element.")],
        max_tokens=256,
        temperature=0.2,
        model="test-model",
        provider=provider,
    )


class _Recorder:
    """Async ``create`` that records kwargs and returns or raises a canned value."""

    def __init__(self, result=None, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.kwargs: dict = {}

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self.result


# ---------------------------------------------------------------------------
# 1. Anthropic conversion
# ---------------------------------------------------------------------------

class TestAnthropicConversion:
    def test_system_messages_fold_into_system_prompt(self):
        context, _, _ = _make_context()
        system, messages = to_anthropic_messages(list(context.messages))
        assert system == "rules"
        assert all(m["role"] in ("user", "assistant") for m in messages)

    def test_tool_results_merge_into_one_user_turn(self):
        context, first, second = _make_context()
        _, messages = to_anthropic_messages(list(context.messages))

        assert [m["role"] for m in messages] == ["user", "assistant", "user"]
        assistant = messages[1]["content"]
        assert assistant[0] == {"type": "text", "text": "Looking"}
        assert assistant[1]["type"] == "tool_use"
        assert assistant[2]["input"] == {"elementPath": "Submit"}
        results = messages[2]["content"]
        assert [r["tool_use_id"] for r in results] == [first.id, second.id]
        assert results[1]["content"] == "Clicked element: Submit"

    def test_consecutive_user_messages_merge(self):
        context = ConversationContext()
        context.add_user_message("one")
        context.add_user_message("two")
        _, messages = to_anthropic_messages(list(context.messages))
        assert len(messages) == 1
        assert [b["text"] for b in messages[0]["content"]] == ["one", "two"]

    def test_tools_use_input_schema(self):
        tool = ToolConfig("click", "Click", {"type": "object", "properties": {}})
        assert to_anthropic_tools([tool]) == [
            {"name": "click", "description": "Click", "input_schema": {"type": "object", "properties": {}}}
        ]


class TestAnthropicGateway:
    def test_parses_text_and_tool_use(self):
        response = SimpleNamespace(
            content=[
                SimpleNamespace(type="text", text="Clicking"),
                SimpleNamespace(type="tool_use", id="tu_1", name="click", input={"elementPath": "Submit"}),
            ],
            model="claude-x",
            usage=SimpleNamespace(input_tokens=50, output_tokens=7),
        )
        recorder = _Recorder(result=response)
        gateway = AnthropicGateway(client=SimpleNamespace(messages=recorder))

        result = asyncio.run(gateway.complete(_make_request()))

        assert result.success is True
        assert result.content == "Clicking"
        assert result.tool_calls == [ToolCall("click", {"elementPath": "Submit"}, id="tu_1")]
        assert (result.input_tokens, result.output_tokens, result.model) == (50, 7, "claude-x")
        assert recorder.kwargs["system"] == "rules"
        assert recorder.kwargs["tools"][0]["name"] == "click"

    def test_client_error_becomes_failed_response(self):
        gateway = AnthropicGateway(client=SimpleNamespace(messages=_Recorder(error=RuntimeError("overloaded"))))
        result = asyncio.run(gateway.complete(_make_request()))
        assert result.success is False
        assert result.content == "Gateway error: overloaded"

    def test_no_tools_key_when_no_tools(self):
        recorder = _Recorder(result=SimpleNamespace(content=[], model="m", usage=None))
        asyncio.run(AnthropicGateway(client=SimpleNamespace(messages=recorder)).complete(_make_request(tools=[])))
        assert "tools" not in recorder.kwargs


# ---------------------------------------------------------------------------
# 2. OpenAI-compatible conversion
# ---------------------------------------------------------------------------

class TestOpenAIConversion:
    def test_messages(self):
        context, first, second = _make_context()
        messages = to_openai_messages(list(context.messages))

        assert [m["role"] for m in messages] == ["system", "user", "assistant", "tool", "tool"]
        calls = messages[2]["tool_calls"]
        assert calls[1]["function"]["name"] == "click"
        assert json.loads(calls[1]["function"]["arguments"]) == {"elementPath": "Submit"}
        assert messages[3] == {"role": "tool", "tool_call_id": first.id, "content": "{}"}

    def test_empty_assistant_content_is_none(self):
        context = ConversationContext()
        context.add_assistant_message("", [ToolCall("query_ui")])
        assert to_openai_messages(list(context.messages))[0]["content"] is None

    def test_tools(self):
        tool = ToolConfig("click", "Click")
        assert to_openai_tools([tool])[0]["function"]["name"] == "click"

    def test_parse_tool_arguments(self):
        assert parse_tool_arguments('{"elementPath": "Submit"}') == {"elementPath": "Submit"}
        assert parse_tool_arguments("{not json") == {}
        assert parse_tool_arguments("[1, 2]") == {}
        assert parse_tool_arguments(None) == {}
        assert parse_tool_arguments("") == {}


class TestOpenAIGateway:
    def test_parses_tool_calls(self):
        message = SimpleNamespace(
            content=None,
            tool_calls=[
                SimpleNamespace(id="c1", function=SimpleNamespace(name="click", arguments='{"elementPath": "Play"}')),
                SimpleNamespace(id="c2", function=SimpleNamespace(name="query_ui", arguments="oops")),
            ],
        )
        response = SimpleNamespace(
            choices=[SimpleNamespace(message=message)],
            model="gpt-x",
            usage=SimpleNamespace(prompt_tokens=30, completion_tokens=4),
        )
        recorder = _Recorder(result=response)
        gateway = OpenAIGateway(client=SimpleNamespace(chat=SimpleNamespace(completions=recorder)))

        result = asyncio.run(gateway.complete(_make_request(ServiceProvider.OPENAI)))

        assert result.content == ""
        assert [c.name for c in result.tool_calls] == ["click", "query_ui"]
        assert result.tool_calls[0].arguments == {"elementPath": "Play"}
        assert result.tool_calls[1].arguments == {}
        assert result.input_tokens == 30
        assert recorder.kwargs["tools"][0]["type"] == "function"

    def test_client_error_becomes_failed_response(self):
        recorder = _Recorder(error=ConnectionError("refused"))
        gateway = OpenAIGateway(client=SimpleNamespace(chat=SimpleNamespace(completions=recorder)))
        result = asyncio.run(gateway.complete(_make_request(ServiceProvider.QWEN)))
        assert result.success is False
        assert "refused" in result.content


# ---------------------------------------------------------------------------
# 3. Gateway selection
# ---------------------------------------------------------------------------

class TestCreateGateway:
    def _config(self, provider: ServiceProvider, service_url: str | None = None) -> AgentConfig:
        return AgentConfig("a", model_config=ModelConfig(provider=provider), service_url=service_url)

    def test_provider_mapping(self):
        assert isinstance(create_gateway(self._config(ServiceProvider.ANTHROPIC)), AnthropicGateway)
        assert isinstance(create_gateway(self._config(ServiceProvider.OPENAI)), OpenAIGateway)
        assert isinstance(create_gateway(self._config(ServiceProvider.CUSTOM)), SimulatedGateway)

    def test_qwen_defaults_to_dashscope_endpoint(self):
        gateway = create_gateway(self._config(ServiceProvider.QWEN))
        assert isinstance(gateway, OpenAIGateway)
        assert gateway._base_url == QWEN_BASE_URL

    def test_service_url_overrides_endpoint(self):
        gateway = create_gateway(self._config(ServiceProvider.QWEN, "http://localhost:8000/v1"))
        assert gateway._base_url == "http://localhost:8000/v1"

    def test_simulated_reply_has_no_tool_calls(self):
        result = asyncio.run(SimulatedGateway().complete(_make_request(ServiceProvider.CUSTOM)))
        assert result.success is True
        assert result.tool_calls == []
        assert result.content == "I understand your request and I'm here to help."
        assert result.model == "test-model"
