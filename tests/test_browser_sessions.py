"""Tests for browser session admission and teardown (no Chromium launched)."""

import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError

from printhelper.modules.render import browser as browser_module
from printhelper.modules.render.browser import BrowserSession, BrowserSessionManager
from printhelper.shared.errors import PrintHelperError


@pytest.fixture
def no_launch(monkeypatch):
    """Replace the Chromium launch with a no-op that records options."""
    launched: list[dict] = []

    async def fake_open(self: BrowserSession, launch_options: dict) -> None:
        launched.append(launch_options)

    monkeypatch.setattr(browser_module.BrowserSession, "open", fake_open)
    return launched


def test_launch_options_are_headless_and_deterministic() -> None:
    """Launch options should be headless with the fixed flag set."""
    options = BrowserSessionManager(executable_path="/usr/bin/google-chrome-stable").launch_options()

    assert options["headless"] is True
    assert options["executable_path"] == "/usr/bin/google-chrome-stable"
    assert "--disable-gpu" in options["args"]
    assert "--disable-accelerated-2d-canvas" in options["args"]
    assert "--window-size=1920x1080" in options["args"]


def test_launch_options_without_executable() -> None:
    """No executable path should be passed when none is configured."""
    assert "executable_path" not in BrowserSessionManager().launch_options()


def test_release_is_idempotent(no_launch) -> None:
    """Releasing a session twice should free its slot once."""
    async def scenario() -> BrowserSessionManager:
        manager = BrowserSessionManager(max_sessions=1)
        session = await manager.acquire()
        assert manager.open_sessions == 1
        await session.release()
        await session.release()
        await manager.release(session)
        return manager

    manager = asyncio.run(scenario())
    assert manager.open_sessions == 0


def test_unopened_session_has_no_page(no_launch) -> None:
    """An unopened session should refuse page access."""
    async def scenario() -> None:
        manager = BrowserSessionManager(max_sessions=1)
        session = await manager.acquire()
        with pytest.raises(RuntimeError):
            session.page
        await session.release()

    asyncio.run(scenario())


def test_concurrency_is_capped(no_launch) -> None:
    """Acquire should wait once the session cap is reached."""
    async def scenario() -> None:
        manager = BrowserSessionManager(max_sessions=2)
        first = await manager.acquire()
        await manager.acquire()

        third = asyncio.create_task(manager.acquire())
        await asyncio.sleep(0.05)
        assert not third.done()
        assert manager.open_sessions == 2

        await first.release()
        session = await asyncio.wait_for(third, timeout=1)
        assert manager.open_sessions == 2
        await session.release()

    asyncio.run(scenario())


def test_scoped_session_released_on_error(no_launch) -> None:
    """The session context manager should release on error."""
    async def scenario() -> BrowserSessionManager:
        manager = BrowserSessionManager(max_sessions=1)
        with pytest.raises(ValueError):
            async with manager.session():
                assert manager.open_sessions == 1
                raise ValueError("boom")
        return manager

    assert asyncio.run(scenario()).open_sessions == 0


def test_launch_failure_frees_the_slot(monkeypatch) -> None:
    """A failed launch should surface an error and free its slot."""
    async def failing_open(self: BrowserSession, launch_options: dict) -> None:
        raise PlaywrightError("Executable doesn't exist at /nope/chrome")

    monkeypatch.setattr(browser_module.BrowserSession, "open", failing_open)

    async def scenario() -> BrowserSessionManager:
        manager = BrowserSessionManager(max_sessions=1)
        with pytest.raises(PrintHelperError, match="Browser launch failed"):
            await manager.acquire()
        # Slot is free again: a second attempt fails the same way instead of blocking
        with pytest.raises(PrintHelperError):
            await asyncio.wait_for(manager.acquire(), timeout=1)
        return manager

    assert asyncio.run(scenario()).open_sessions == 0
