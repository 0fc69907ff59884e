"""
Browser session manager.

Each render gets its own headless Chromium process, context and page.
A semaphore caps how many sessions may be open at once; the permit is held
from acquire() until release().
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from playwright.async_api import (
    Browser,
    BrowserContext,
    ConsoleMessage,
    Page,
    Playwright,
    async_playwright,
)
from playwright.async_api import Error as PlaywrightError

from printhelper.shared.errors import PrintHelperError
from printhelper.shared.logging import get_logger

logger = get_logger(__name__)

VIEWPORT = {"width": 1920, "height": 1080}

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--window-size=1920x1080",
    "--no-zygote",
    "--disable-accelerated-2d-canvas",
]


class BrowserSession:
    """One browser + context + page, owned by a single request."""

    def __init__(self, manager: "BrowserSessionManager") -> None:
        self._manager = manager
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._released = False

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("Browser session is not open")
        return self._page

    @property
    def released(self) -> bool:
        return self._released

    async def open(self, launch_options: dict[str, Any]) -> None:
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(**launch_options)
        self._context = await self._browser.new_context(viewport=VIEWPORT)
        self._page = await self._context.new_page()
        self._page.on("console", _log_console)

    async def release(self) -> None:
        """Close whatever was opened and free the slot. Idempotent."""
        if self._released:
            return
        self._released = True

        try:
            for closeable in (self._page, self._context, self._browser):
                if closeable is None:
                    continue
                try:
                    await closeable.close()
                except PlaywrightError as e:
                    logger.warning(f"Error closing browser resource: {e}")
            if self._playwright is not None:
                await self._playwright.stop()
        finally:
            self._page = self._context = self._browser = self._playwright = None
            self._manager._free_slot()


class BrowserSessionManager:
    """Admission control and launch configuration for browser sessions."""

    def __init__(self, max_sessions: int = 4, executable_path: str | None = None) -> None:
        self.max_sessions = max_sessions
        self.executable_path = executable_path
        self._semaphore = asyncio.Semaphore(max_sessions)
        self._open = 0

    @property
    def open_sessions(self) -> int:
        return self._open

    def launch_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"headless": True, "args": list(CHROMIUM_ARGS)}
        if self.executable_path:
            options["executable_path"] = self.executable_path
        return options

    async def acquire(self) -> BrowserSession:
        """Wait for a free slot, then launch an isolated browser session."""
        await self._semaphore.acquire()
        self._open += 1
        session = BrowserSession(self)
        try:
            await session.open(self.launch_options())
        except PlaywrightError as e:
            await session.release()
            raise PrintHelperError(
                f"Browser launch failed: {e}", title="Failed to launch browser"
            ) from e
        except BaseException:
            await session.release()
            raise
        logger.debug(f"Browser session acquired ({self._open}/{self.max_sessions} open)")
        return session

    async def release(self, session: BrowserSession) -> None:
        await session.release()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[BrowserSession]:
        """Scoped session: released on every exit path."""
        session = await self.acquire()
        try:
            yield session
        finally:
            await session.release()

    def _free_slot(self) -> None:
        self._open -= 1
        self._semaphore.release()
        logger.debug(f"Browser session released ({self._open}/{self.max_sessions} open)")


def _log_console(msg: ConsoleMessage) -> None:
    logger.debug(f"PAGE: {msg.text}")
