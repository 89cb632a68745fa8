"""SentinelQA engine -- the agent loop and the UI automation tools.

Provides:
- AgentExecutor: one tool-calling turn (request, tools, follow-up answer)
- SentinelAgentLoop: repeated turns until finish_test or the iteration budget
- SentinelToolSet: query_ui, click, type_text, scroll, waits, screenshots, reports
- UIInspector / UIInteractor: discovery and actions over Toolkit and Legacy UIs
- TestReporter: step log and Markdown report
- ToolRegistry: first-match tool dispatch with duplicate rejection
- Gateways: Anthropic, OpenAI-compatible and simulated model access
- CostTracker: token cost tracking and budget enforcement
"""

from sentinelqa.engine.agent_executor import AgentExecutor, AgentResponse
from sentinelqa.engine.cost_tracker import BudgetExceededError, CostTracker
from sentinelqa.engine.gateway import (
    AnthropicGateway,
    LLMGateway,
    LLMRequest,
    LLMResponse,
    OpenAIGateway,
    SimulatedGateway,
    create_gateway,
)
from sentinelqa.engine.inspector import ElementDescriptor, UIInspector
from sentinelqa.engine.interactor import UIInteractor
from sentinelqa.engine.messages import ConversationContext, Message, Role, ToolCall, ToolResponse
from sentinelqa.engine.sentinel_loop import SentinelAgentLoop, SentinelTestResult
from sentinelqa.engine.sentinel_toolset import SentinelToolSet
from sentinelqa.engine.test_reporter import ScreenshotCapturer, TestReporter
from sentinelqa.engine.tool_registry import HandlerToolSet, ToolRegistry, ToolSet

__all__ = [
    "AgentExecutor",
    "AgentResponse",
    "AnthropicGateway",
    "BudgetExceededError",
    "ConversationContext",
    "CostTracker",
    "ElementDescriptor",
    "HandlerToolSet",
    "LLMGateway",
    "LLMRequest",
    "LLMResponse",
    "Message",
    "OpenAIGateway",
    "Role",
    "ScreenshotCapturer",
    "SentinelAgentLoop",
    "SentinelTestResult",
    "SentinelToolSet",
    "SimulatedGateway",
    "TestReporter",
    "ToolCall",
    "ToolRegistry",
    "ToolResponse",
    "ToolSet",
    "UIInspector",
    "UIInteractor",
    "create_gateway",
]
