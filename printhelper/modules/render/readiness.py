"""Readiness gate - wait for busy/loading indicators to clear before mutation."""

import asyncio

from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from printhelper.shared.errors import ReadinessTimeoutError
from printhelper.shared.logging import get_logger

logger = get_logger(__name__)

BUSY_SELECTORS = [
    ".loading",
    ".spinner",
    '[class*="loading"]',
    '[class*="spinner"]',
    '[aria-busy="true"]',
]

# True when no busy marker exists or the first one has no layout box
READY_PREDICATE = """(selectors) => {
    const spinner = selectors
        .map(s => document.querySelector(s))
        .find(el => el !== null);
    return !spinner || spinner.offsetParent === null;
}"""

# XML and SVG documents have no body, so read the root element
REFLOW_SCRIPT = "() => document.documentElement.offsetHeight"


class ReadinessGate:
    """Poll the page until it looks idle, then let layout settle."""

    def __init__(
        self,
        timeout_ms: int = 30_000,
        poll_ms: int = 300,
        settle_seconds: float = 1.0,
    ) -> None:
        self.timeout_ms = timeout_ms
        self.poll_ms = poll_ms
        self.settle_seconds = settle_seconds

    async def wait(self, page: Page) -> bool:
        """
        Wait for readiness.

        Returns False when the busy indicators never cleared; rendering then
        continues with whatever is on screen.
        """
        ready = True
        try:
            await self.wait_until_idle(page)
        except ReadinessTimeoutError as e:
            logger.warning(f"{e.message}; continuing with current page state")
            ready = False

        await asyncio.sleep(self.settle_seconds)
        # Force a reflow so pending layout is flushed before mutation
        await page.evaluate(REFLOW_SCRIPT)
        return ready

    async def wait_until_idle(self, page: Page) -> None:
        try:
            await page.wait_for_function(
                READY_PREDICATE,
                arg=BUSY_SELECTORS,
                polling=self.poll_ms,
                timeout=self.timeout_ms,
            )
        except PlaywrightTimeoutError as e:
            raise ReadinessTimeoutError(
                f"Busy indicators still visible after {self.timeout_ms} ms"
            ) from e
