"""SentinelQA UI Interactor -- click, type, scroll and bounded waits.

Every operation re-resolves its target (Toolkit first, then Legacy) and
returns a bool instead of raising.  The reason for the last failure is kept
in :attr:`UIInteractor.last_error` so tool results can explain it.
"""

from __future__ import annotations

import asyncio
import logging

from sentinelqa.errors import ActionUnsupportedError, ElementNotFoundError, WaitTimeoutError
from sentinelqa.models import DEFAULT_POLL_INTERVAL, DEFAULT_SETTLE_SECONDS
from sentinelqa.ui.adapters import UIControl
from sentinelqa.ui.resolver import ElementResolver

logger = logging.getLogger("sentinelqa.engine.interactor")


class UIInteractor:
    def __init__(
        self,
        resolver: ElementResolver,
        settle_seconds: float = DEFAULT_SETTLE_SECONDS,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        log: logging.Logger | None = None,
    ) -> None:
        """
        Args:
            resolver: Path resolver over the live UI trees.
            settle_seconds: Pause after each successful action so UI
                callbacks can run before the next inspection.
            poll_interval: Default interval between ``wait_for_element``
                checks; each call may override it.
        """
        self._resolver = resolver
        self._settle_seconds = settle_seconds
        self._poll_interval = poll_interval
        self._log = log or logger
        self.last_error: str | None = None

    # -- Actions -------------------------------------------------------------

    async def click(self, path: str) -> bool:
        control = self._find(path)
        if control is None:
            return False
        try:
            control.invoke_click()
        except ActionUnsupportedError as exc:
            return self._fail(str(exc))
        self._log.info("Clicked %s element: %s", control.ui_system, path)
        await self._settle()
        return True

    async def type_text(self, path: str, text: str) -> bool:
        control = self._find(path)
        if control is None:
            return False
        try:
            control.set_text(text)
        except ActionUnsupportedError as exc:
            return self._fail(str(exc))
        self._log.info("Typed into %s %s: %s", control.ui_system, control.type_name, path)
        await self._settle()
        return True

    async def scroll(self, path: str, delta: float) -> bool:
        """Scroll by *delta* pixels; positive moves toward the end of the content."""
        control = self._find(path)
        if control is None:
            return False
        try:
            position = control.scroll_by(float(delta))
        except ActionUnsupportedError as exc:
            return self._fail(str(exc))
        self._log.info("Scrolled %s %s by %s (now at %s)", control.ui_system, path, delta, position)
        await self._settle()
        return True

    # -- Waits ---------------------------------------------------------------

    async def wait_seconds(self, seconds: float) -> None:
        seconds = max(float(seconds), 0.0)
        self._log.info("Waiting %ss...", seconds)
        await asyncio.sleep(seconds)

    async def wait_for_element(self, path: str, timeout: float, poll_interval: float | None = None) -> bool:
        """Poll until *path* resolves to a displayed element or *timeout* elapses.

        Returns False on timeout without raising.  A timeout of 0 or less
        returns False without checking.
        """
        self.last_error = None
        if timeout <= 0:
            return self._fail(str(WaitTimeoutError(path, timeout)))

        interval = poll_interval if poll_interval is not None else self._poll_interval
        interval = max(interval, 0.001)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            control = self._resolver.resolve(path)
            if control is not None and control.is_displayed():
                self._log.info("%s element found: %s", control.ui_system, path)
                return True
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            await asyncio.sleep(min(interval, remaining))
            if loop.time() >= deadline:
                break

        return self._fail(str(WaitTimeoutError(path, timeout)))

    # -- Internals -----------------------------------------------------------

    def _find(self, path: str) -> UIControl | None:
        self.last_error = None
        control = self._resolver.resolve(path)
        if control is None:
            self._fail(str(ElementNotFoundError(path)))
        return control

    def _fail(self, reason: str) -> bool:
        self.last_error = reason
        self._log.warning("%s", reason)
        return False

    async def _settle(self) -> None:
        if self._settle_seconds > 0:
            await asyncio.sleep(self._settle_seconds)
