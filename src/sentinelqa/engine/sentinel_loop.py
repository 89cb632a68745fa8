"""SentinelQA Autonomous Test Loop -- the ReAct cycle around the agent executor.

Each iteration runs one agent turn on a shared conversation context.  After
every turn, in order:

    1. ``finish_test`` was called      -> stop with its success flag and summary
    2. ``max_iterations`` turns done   -> stop, failed ("Max iterations reached")
    3. the turn itself failed          -> stop, failed with the agent error

Otherwise the loop continues; a turn that made no tool call is followed by a
short user nudge so the model resumes the inspect/act/verify cycle.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from collections.abc import Callable
from datetime import datetime
from typing import Any

from sentinelqa.engine.agent_executor import AgentExecutor, AgentResponse
from sentinelqa.engine.messages import ConversationContext
from sentinelqa.engine.sentinel_toolset import FINISH_TEST, get_bool, get_string
from sentinelqa.models import DEFAULT_MAX_ITERATIONS

logger = logging.getLogger("sentinelqa.engine.sentinel_loop")

SYSTEM_PROMPT = """\
You are an automated UI testing agent. Your goal is to complete the test described by the user.

STRICT RULES:
1. ALWAYS start with query_ui to understand the current state of the UI
2. Perform ONE action per turn (click, type_text, wait_seconds, etc.)
3. After every action, use query_ui to verify the result
4. Use wait_for_element when you expect the UI to change (transitions, loading)
5. Capture screenshots at key moments with descriptive labels
6. When the goal is complete (or has failed), call finish_test with success=true/false

AVAILABLE TOOLS:
- query_ui: Get the hierarchy of visible UI elements
- click(elementPath): Click an element
- type_text(elementPath, text): Type text into a field
- scroll(elementPath, delta): Scroll an element
- wait_seconds(seconds): Fixed wait
- wait_for_element(elementPath, timeout): Wait until an element appears
- check_element_state(elementPath): Check the state of an element
- screenshot(label): Capture the screen with a label
- start_test(testName): Start recording the test
- finish_test(success, summary): Finish and generate the report

NEVER assume the state of the UI. Always verify with query_ui.
NEVER perform several actions without verifying between them."""

GOAL_TEMPLATE = "TEST GOAL: {goal}\n\nStart the test."

CONTINUE_NUDGE = (
    "Continue the test: use query_ui to check the current UI, then take the next single action, "
    "or call finish_test if the goal is complete or cannot be completed."
)

_REPORT_PREFIX = "Test finished. Report: "


@dataclasses.dataclass(frozen=True)
class SentinelTestResult:
    goal: str
    success: bool
    summary: str
    iterations: int
    start_time: datetime
    end_time: datetime
    report_path: str | None = None

    @property
    def duration_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "goal": self.goal,
            "success": self.success,
            "summary": self.summary,
            "iterations": self.iterations,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_seconds": round(self.duration_seconds, 3),
            "report_path": self.report_path,
        }


class SentinelAgentLoop:
    """Drives agent turns until the test finishes or the iteration budget runs out."""

    def __init__(
        self,
        executor: AgentExecutor,
        agent_id: str,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        on_iteration: Callable[[int, AgentResponse], None] | None = None,
        clock: Callable[[], datetime] = datetime.now,
        log: logging.Logger | None = None,
    ) -> None:
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1 (got {max_iterations})")
        self._executor = executor
        self._agent_id = agent_id
        self._max_iterations = max_iterations
        self._on_iteration = on_iteration
        self._clock = clock
        self._log = log or logger

    async def run_test(self, goal: str) -> SentinelTestResult:
        self._log.info("Starting test: %s", goal)
        context = ConversationContext(f"sentinel-test-{uuid.uuid4()}")
        context.add_system_message(SYSTEM_PROMPT)
        context.add_user_message(GOAL_TEMPLATE.format(goal=goal))
        start_time = self._clock()

        iteration = 0
        while True:
            iteration += 1
            self._log.info("Iteration %d/%d", iteration, self._max_iterations)
            response = await self._executor.execute_agent(self._agent_id, context)
            if self._on_iteration is not None:
                self._on_iteration(iteration, response)

            finish_call = next((call for call in response.tool_calls if call.name == FINISH_TEST), None)
            if finish_call is not None:
                success = get_bool(finish_call.arguments, "success", False)
                summary = get_string(finish_call.arguments, "summary", "Test completed")
                self._log.info("Test finished: %s", "PASSED" if success else "FAILED")
                return self._result(
                    goal, success, summary, iteration, start_time,
                    report_path=_report_path(response, finish_call.id),
                )

            if iteration >= self._max_iterations:
                self._log.warning("Test timeout - max iterations reached")
                return self._result(
                    goal, False,
                    f"Max iterations reached ({self._max_iterations}) without completion",
                    iteration, start_time,
                )

            if not response.success:
                self._log.error("Agent execution failed: %s", response.content)
                return self._result(goal, False, f"Agent error: {response.content}", iteration, start_time)

            if not response.tool_calls:
                context.add_user_message(CONTINUE_NUDGE)

    def _result(
        self,
        goal: str,
        success: bool,
        summary: str,
        iterations: int,
        start_time: datetime,
        report_path: str | None = None,
    ) -> SentinelTestResult:
        return SentinelTestResult(
            goal=goal,
            success=success,
            summary=summary,
            iterations=iterations,
            start_time=start_time,
            end_time=self._clock(),
            report_path=report_path,
        )


def _report_path(response: AgentResponse, call_id: str) -> str | None:
    for tool_response in response.tool_responses:
        if tool_response.tool_call_id == call_id and tool_response.content.startswith(_REPORT_PREFIX):
            return tool_response.content[len(_REPORT_PREFIX):]
    return None
