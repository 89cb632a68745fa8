"""SentinelQA UI Automation Tool Set -- the tools the testing agent can call.

Composes one UIInspector, one UIInteractor and one TestReporter behind the
tool registry interface.  Every action is logged to the reporter as a step
(``OK``/``FAILED``, ``FOUND``/``TIMEOUT``), so the final report replays the
whole run.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from sentinelqa.config import ToolConfig
from sentinelqa.engine.inspector import UIInspector
from sentinelqa.engine.interactor import UIInteractor
from sentinelqa.engine.test_reporter import UNNAMED_TEST, ScreenshotCapturer, TestReporter
from sentinelqa.engine.tool_registry import HandlerToolSet
from sentinelqa.models import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_SCROLL_DELTA,
    DEFAULT_SETTLE_SECONDS,
    DEFAULT_WAIT_TIMEOUT,
)
from sentinelqa.ui.resolver import ElementResolver, RootProvider, SceneProvider

logger = logging.getLogger("sentinelqa.engine.sentinel_toolset")

TOOL_SET_ID = "sentinel-testing-toolset"
FINISH_TEST = "finish_test"


def _schema(properties: dict[str, Any] | None = None, required: list[str] | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "object", "properties": properties or {}}
    if required:
        schema["required"] = required
    return schema


_ELEMENT_PATH = {
    "type": "string",
    "description": "Element path from query_ui (e.g. 'LoginPanel/Submit') or a bare element name.",
}

TOOL_DECLARATIONS: list[ToolConfig] = [
    ToolConfig(
        "query_ui",
        "Get the hierarchy of visible UI elements as JSON (paths, types, text, enabled state).",
        _schema(),
    ),
    ToolConfig("click", "Click an element.", _schema({"elementPath": _ELEMENT_PATH}, ["elementPath"])),
    ToolConfig(
        "type_text",
        "Type text into a text input, replacing its current value.",
        _schema({"elementPath": _ELEMENT_PATH, "text": {"type": "string"}}, ["elementPath", "text"]),
    ),
    ToolConfig(
        "scroll",
        "Scroll a scrollable container by delta pixels. Positive scrolls down (toward the end).",
        _schema({"elementPath": _ELEMENT_PATH, "delta": {"type": "number", "default": DEFAULT_SCROLL_DELTA}}, ["elementPath"]),
    ),
    ToolConfig(
        "wait_seconds",
        "Wait a fixed number of seconds.",
        _schema({"seconds": {"type": "number", "default": 1}}),
    ),
    ToolConfig(
        "wait_for_element",
        "Wait until an element exists and is visible, up to timeout seconds.",
        _schema(
            {"elementPath": _ELEMENT_PATH, "timeout": {"type": "number", "default": DEFAULT_WAIT_TIMEOUT}},
            ["elementPath"],
        ),
    ),
    ToolConfig(
        "check_element_state",
        "Get the current state of one element (text, enabled, visible).",
        _schema({"elementPath": _ELEMENT_PATH}, ["elementPath"]),
    ),
    ToolConfig(
        "screenshot",
        "Capture a screenshot with a descriptive label.",
        _schema({"label": {"type": "string"}}),
    ),
    ToolConfig(
        "start_test",
        "Start recording a named test. Call once before the first action.",
        _schema({"testName": {"type": "string"}}),
    ),
    ToolConfig(
        FINISH_TEST,
        "Finish the test and write the report. success=true only if the goal was achieved.",
        _schema({"success": {"type": "boolean"}, "summary": {"type": "string"}}, ["success", "summary"]),
    ),
]


# ---------------------------------------------------------------------------
# Argument helpers
# ---------------------------------------------------------------------------

def get_string(args: dict[str, Any], key: str, default: str = "") -> str:
    value = args.get(key)
    return default if value is None else str(value)


def get_float(args: dict[str, Any], key: str, default: float = 0.0) -> float:
    value = args.get(key)
    if isinstance(value, bool) or value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def get_bool(args: dict[str, Any], key: str, default: bool = False) -> bool:
    value = args.get(key)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
    return default


# ---------------------------------------------------------------------------
# SentinelToolSet
# ---------------------------------------------------------------------------

class SentinelToolSet(HandlerToolSet):
    """Inspector, interactor and reporter exposed as ten tools."""

    tool_set_id = TOOL_SET_ID

    def __init__(
        self,
        inspector: UIInspector,
        interactor: UIInteractor,
        reporter: TestReporter,
        log: logging.Logger | None = None,
    ) -> None:
        super().__init__(log=log or logger)
        self.inspector = inspector
        self.interactor = interactor
        self.reporter = reporter

        handlers = {
            "query_ui": self._query_ui,
            "click": self._click,
            "type_text": self._type_text,
            "scroll": self._scroll,
            "wait_seconds": self._wait_seconds,
            "wait_for_element": self._wait_for_element,
            "check_element_state": self._check_element_state,
            "screenshot": self._screenshot,
            "start_test": self._start_test,
            FINISH_TEST: self._finish_test,
        }
        for declaration in TOOL_DECLARATIONS:
            self.add_tool(declaration.name, handlers[declaration.name], declaration.description, declaration.parameters)

    @classmethod
    def create(
        cls,
        root_provider: RootProvider | None = None,
        scene_provider: SceneProvider | None = None,
        report_dir: Path = Path(".sentinelqa/reports"),
        settle_seconds: float = DEFAULT_SETTLE_SECONDS,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        screenshot_mode: str = "auto",
        capture_fn: Callable[[], Any] | None = None,
        log: logging.Logger | None = None,
    ) -> SentinelToolSet:
        """Build a tool set with its own inspector, interactor and reporter."""
        log = log or logger
        resolver = ElementResolver(root_provider, scene_provider)
        return cls(
            inspector=UIInspector(resolver, log=log),
            interactor=UIInteractor(resolver, settle_seconds=settle_seconds, poll_interval=poll_interval, log=log),
            reporter=TestReporter(report_dir, capturer=ScreenshotCapturer(screenshot_mode, capture_fn, log=log), log=log),
            log=log,
        )

    # -- Tool implementations -------------------------------------------------

    async def _query_ui(self, args: dict[str, Any]) -> tuple[str, bool]:
        hierarchy = self.inspector.get_ui_hierarchy()
        self.reporter.log_step("query_ui", "Retrieved UI hierarchy")
        return hierarchy, True

    async def _click(self, args: dict[str, Any]) -> tuple[str, bool]:
        path = get_string(args, "elementPath")
        ok = await self.interactor.click(path)
        self.reporter.log_step(f"click({path})", "OK" if ok else "FAILED")
        if ok:
            return f"Clicked element: {path}", True
        return self._failure(f"Failed to click: {path}"), False

    async def _type_text(self, args: dict[str, Any]) -> tuple[str, bool]:
        path = get_string(args, "elementPath")
        text = get_string(args, "text")
        ok = await self.interactor.type_text(path, text)
        self.reporter.log_step(f"type_text({path}, '{text}')", "OK" if ok else "FAILED")
        if ok:
            return f"Typed '{text}' into: {path}", True
        return self._failure(f"Failed to type into: {path}"), False

    async def _scroll(self, args: dict[str, Any]) -> tuple[str, bool]:
        path = get_string(args, "elementPath")
        delta = get_float(args, "delta", DEFAULT_SCROLL_DELTA)
        ok = await self.interactor.scroll(path, delta)
        self.reporter.log_step(f"scroll({path}, {delta:g})", "OK" if ok else "FAILED")
        if ok:
            return f"Scrolled {path} by {delta:g}", True
        return self._failure(f"Failed to scroll: {path}"), False

    async def _wait_seconds(self, args: dict[str, Any]) -> tuple[str, bool]:
        seconds = get_float(args, "seconds", 1.0)
        await self.interactor.wait_seconds(seconds)
        self.reporter.log_step(f"wait_seconds({seconds:g})", "OK")
        return f"Waited {seconds:g} seconds", True

    async def _wait_for_element(self, args: dict[str, Any]) -> tuple[str, bool]:
        path = get_string(args, "elementPath")
        timeout = get_float(args, "timeout", DEFAULT_WAIT_TIMEOUT)
        found = await self.interactor.wait_for_element(path, timeout)
        self.reporter.log_step(f"wait_for_element({path}, {timeout:g}s)", "FOUND" if found else "TIMEOUT")
        if found:
            return f"Element found: {path}", True
        return f"Timeout waiting for: {path}", False

    async def _check_element_state(self, args: dict[str, Any]) -> tuple[str, bool]:
        path = get_string(args, "elementPath")
        found = self.inspector.element_exists(path)
        state = self.inspector.get_element_state(path)
        self.reporter.log_step(f"check_element_state({path})", "Retrieved" if found else "NOT FOUND")
        return state, found

    async def _screenshot(self, args: dict[str, Any]) -> tuple[str, bool]:
        label = get_string(args, "label", "screenshot") or "screenshot"
        # Let pending UI callbacks run before grabbing pixels
        await asyncio.sleep(0)
        path = self.reporter.capture_screenshot(label)
        if path is None:
            return "Failed to capture screenshot", False
        return f"Screenshot saved: {path}", True

    async def _start_test(self, args: dict[str, Any]) -> tuple[str, bool]:
        name = get_string(args, "testName", UNNAMED_TEST) or UNNAMED_TEST
        self.reporter.start_test(name)
        return f"Test started: {name}", True

    async def _finish_test(self, args: dict[str, Any]) -> tuple[str, bool]:
        success = get_bool(args, "success", False)
        summary = get_string(args, "summary", "Test completed")
        report_path = self.reporter.finish_test(success, summary)
        if report_path is None:
            return "Failed to generate report", False
        return f"Test finished. Report: {report_path}", True

    def _failure(self, message: str) -> str:
        reason = self.interactor.last_error
        return f"{message} ({reason})" if reason else message
