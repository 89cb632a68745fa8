"""SentinelQA Agent Executor -- one tool-calling turn against the model.

A turn:
    1. Build a request: system prompt + every context message + enabled tools.
    2. Call the gateway.
    3. No tool calls: the reply is the answer.  Otherwise append the
       Assistant message (with at most ``max_tool_calls`` calls), run those
       calls sequentially through the tool registry, append one Tool message
       per result, and call the gateway again for the answer.
    4. Append the answer to the context as an Assistant message.

Tool failures become failed ``ToolResponse`` objects and never stop the
batch.  Anything that escapes the turn (gateway failure, budget exceeded,
unknown or disabled agent) becomes ``AgentResponse(success=False)``.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable
from datetime import datetime, timezone

from sentinelqa.config import AgentConfig
from sentinelqa.engine.cost_tracker import CostTracker
from sentinelqa.engine.gateway import LLMGateway, LLMRequest, LLMResponse, create_gateway
from sentinelqa.engine.messages import ConversationContext, Message, Role, ToolCall, ToolResponse
from sentinelqa.engine.tool_registry import ToolRegistry, ToolSet
from sentinelqa.errors import GatewayError

logger = logging.getLogger("sentinelqa.engine.agent_executor")


@dataclasses.dataclass
class AgentResponse:
    """Outcome of one turn.  ``tool_calls`` holds the calls actually executed."""

    agent_id: str
    content: str
    success: bool
    tool_calls: list[ToolCall] = dataclasses.field(default_factory=list)
    tool_responses: list[ToolResponse] = dataclasses.field(default_factory=list)
    timestamp: datetime = dataclasses.field(default_factory=lambda: datetime.now(timezone.utc))


class AgentExecutor:
    """Runs tool-calling turns for registered agents.

    Usage::

        executor = AgentExecutor(gateway=AnthropicGateway(api_key))
        executor.register_tool_set(SentinelToolSet(...))
        executor.register_agent(agent_config)
        response = await executor.execute_agent("sentinel", context)
    """

    def __init__(
        self,
        gateway: LLMGateway | None = None,
        registry: ToolRegistry | None = None,
        cost_tracker: CostTracker | None = None,
        gateway_factory: Callable[[AgentConfig], LLMGateway] = create_gateway,
        log: logging.Logger | None = None,
    ) -> None:
        """
        Args:
            gateway: Gateway shared by every agent.  When omitted, one is
                built per agent with *gateway_factory*.
            registry: Tool registry; a fresh one rejecting duplicate tool
                names is created when omitted.
            cost_tracker: Optional tracker charged for every gateway call.
            gateway_factory: ``(AgentConfig) -> LLMGateway``.
            log: Logger to use instead of the module logger.
        """
        self._log = log or logger
        self._gateway = gateway
        self._gateway_factory = gateway_factory
        self._agent_gateways: dict[str, LLMGateway] = {}
        self._registry = registry or ToolRegistry(log=self._log)
        self._cost_tracker = cost_tracker
        self._agents: dict[str, AgentConfig] = {}

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    # -- Registration --------------------------------------------------------

    def register_agent(self, agent_config: AgentConfig) -> bool:
        if agent_config is None or not agent_config.agent_id:
            self._log.error("Invalid agent configuration")
            return False
        self._agents[agent_config.agent_id] = agent_config
        self._agent_gateways.pop(agent_config.agent_id, None)
        return True

    def register_tool_set(self, tool_set: ToolSet, name: str | None = None) -> str:
        return self._registry.register(tool_set, name)

    def unregister_tool_set(self, name: str) -> bool:
        return self._registry.unregister(name)

    def registered_tool_sets(self) -> list[str]:
        return self._registry.registered_tool_sets()

    # -- Public API ----------------------------------------------------------

    async def execute_agent(self, agent: str | AgentConfig, context: ConversationContext) -> AgentResponse:
        """Run one turn.  Never raises; failures come back with ``success=False``."""
        if isinstance(agent, AgentConfig):
            if agent.agent_id not in self._agents:
                self.register_agent(agent)
            agent_id = agent.agent_id or "unknown"
        else:
            agent_id = agent

        self._log.info("[AGENT:%s] Context: %s", agent_id, context)
        config = self._agents.get(agent_id)
        if config is None:
            self._log.error("Agent %s not found", agent_id)
            return self._error_response(agent_id, "Agent configuration not found")
        if not config.enabled:
            self._log.warning("Agent %s is disabled", agent_id)
            return self._error_response(agent_id, "Agent is disabled")

        executed: list[ToolCall] = []
        tool_responses: list[ToolResponse] = []
        try:
            config.validate()
            response = await self._call_model(config, context, purpose="turn")

            if response.tool_calls:
                executed = response.tool_calls[: config.max_tool_calls]
                dropped = len(response.tool_calls) - len(executed)
                if dropped:
                    self._log.info(
                        "[AGENT:%s] Dropping %d tool call(s) beyond max_tool_calls=%d",
                        agent_id, dropped, config.max_tool_calls,
                    )
                context.add_assistant_message(response.content, executed)
                tool_responses = await self._execute_tool_calls(executed)
                for tool_response in tool_responses:
                    context.add_tool_message(tool_response.content, tool_response.tool_call_id)

                response = await self._call_model(config, context, purpose="follow_up")
                if response.tool_calls:
                    self._log.info(
                        "[AGENT:%s] Follow-up requested %d more tool call(s); not executed this turn",
                        agent_id, len(response.tool_calls),
                    )

            if response.content:
                context.add_assistant_message(response.content)
        except Exception as exc:
            self._log.error("Agent %s execution failed: %s", agent_id, exc)
            return self._error_response(agent_id, str(exc), executed, tool_responses)

        self._log.info("[AGENT:%s] Completed", agent_id)
        return AgentResponse(
            agent_id=agent_id,
            content=response.content,
            success=True,
            tool_calls=list(executed),
            tool_responses=tool_responses,
        )

    def build_request(self, config: AgentConfig, context: ConversationContext) -> LLMRequest:
        messages: list[Message] = []
        system_prompt = config.full_system_prompt()
        if system_prompt is not None:
            messages.append(Message(Role.SYSTEM, system_prompt))
        messages.extend(context.messages)
        return LLMRequest(
            messages=messages,
            tools=config.enabled_tools(),
            max_tokens=config.max_response_tokens,
            temperature=config.model_config.temperature,
            model=config.model_config.model_name,
            provider=config.model_config.provider,
        )

    # -- Internals -----------------------------------------------------------

    async def _call_model(self, config: AgentConfig, context: ConversationContext, purpose: str) -> LLMResponse:
        request = self.build_request(config, context)
        response = await self._gateway_for(config).complete(request)
        if not response.success:
            raise GatewayError(response.content or "Gateway returned an unsuccessful response")
        if self._cost_tracker is not None:
            self._cost_tracker.record_call(
                response.model or request.model,
                response.input_tokens,
                response.output_tokens,
                purpose=f"{config.agent_id}:{purpose}",
            )
        return response

    def _gateway_for(self, config: AgentConfig) -> LLMGateway:
        if self._gateway is not None:
            return self._gateway
        gateway = self._agent_gateways.get(config.agent_id)
        if gateway is None:
            gateway = self._gateway_factory(config)
            self._agent_gateways[config.agent_id] = gateway
        return gateway

    async def _execute_tool_calls(self, calls: list[ToolCall]) -> list[ToolResponse]:
        responses: list[ToolResponse] = []
        for call in calls:
            try:
                result = await self._registry.execute_call(call)
                response = ToolResponse(
                    tool_call_id=call.id,
                    content=result.content,
                    success=result.success,
                    tool_name=call.name,
                )
            except Exception as exc:
                self._log.warning("[TOOL_RESPONSE:%s] Error: %s", call.name, exc)
                response = ToolResponse(tool_call_id=call.id, content=str(exc), success=False, tool_name=call.name)
            responses.append(response)
        return responses

    @staticmethod
    def _error_response(
        agent_id: str,
        error: str,
        tool_calls: list[ToolCall] | None = None,
        tool_responses: list[ToolResponse] | None = None,
    ) -> AgentResponse:
        return AgentResponse(
            agent_id=agent_id,
            content=f"Error: {error}",
            success=False,
            tool_calls=list(tool_calls or []),
            tool_responses=list(tool_responses or []),
        )


