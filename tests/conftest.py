"""Shared fixtures: fast settings, an in-memory page and session manager, app client."""

import asyncio
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from printhelper.app import build_app
from printhelper.config import Settings, reset_settings


class FakeResponse:
    """Stand-in for a Playwright navigation response."""

    def __init__(self, status: int = 200, content_type: str = "text/html; charset=utf-8"):
        self.status = status
        self.headers = {"content-type": content_type}


class FakePage:
    """
    Records the calls the pipeline makes on a Playwright page.

    Set the *_error attributes to make a call raise, or the *_delay
    attributes to make it slow.
    """

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.response: FakeResponse | None = FakeResponse()
        self.goto_error: Exception | None = None
        self.goto_delay: float = 0
        self.ready_error: Exception | None = None
        self.pdf_error: Exception | None = None
        self.evaluate_error: Exception | None = None
        self.evaluate_returns: dict[str, object] = {}
        self.pdf_bytes = b"%PDF-1.4\n% fake\n%%EOF"
        self.html = "<html><body></body></html>"
        self.handlers: dict[str, object] = {}

    def respond_with(self, status: int = 200, content_type: str = "text/html") -> None:
        self.response = FakeResponse(status, content_type)

    def on(self, event: str, handler) -> None:
        self.handlers[event] = handler

    async def goto(self, url: str, **kwargs):
        self.calls.append(("goto", url, kwargs))
        if self.goto_delay:
            await asyncio.sleep(self.goto_delay)
        if self.goto_error:
            raise self.goto_error
        return self.response

    async def set_content(self, html: str, **kwargs) -> None:
        self.calls.append(("set_content", html, kwargs))
        self.html = html

    async def wait_for_function(self, expression: str, **kwargs) -> None:
        self.calls.append(("wait_for_function", expression, kwargs))
        if self.ready_error:
            raise self.ready_error

    async def evaluate(self, expression: str, arg=None):
        self.calls.append(("evaluate", expression, arg))
        if self.evaluate_error:
            raise self.evaluate_error
        return self.evaluate_returns.get(expression)

    async def emulate_media(self, **kwargs) -> None:
        self.calls.append(("emulate_media", kwargs))

    async def add_style_tag(self, **kwargs) -> None:
        self.calls.append(("add_style_tag", kwargs))

    async def pdf(self, **kwargs) -> bytes:
        self.calls.append(("pdf", kwargs))
        if self.pdf_error:
            raise self.pdf_error
        return self.pdf_bytes

    async def content(self) -> str:
        return self.html

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def calls_named(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]


class FakeSession:
    def __init__(self, manager: "FakeSessionManager", page: FakePage) -> None:
        self._manager = manager
        self.page = page
        self.released = False

    async def release(self) -> None:
        if self.released:
            return
        self.released = True
        self._manager.released += 1


class FakeSessionManager:
    """Counts acquire/release instead of launching Chromium."""

    max_sessions = 4

    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.acquired = 0
        self.released = 0
        self.sessions: list[FakeSession] = []
        self.acquire_error: Exception | None = None

    @property
    def open_sessions(self) -> int:
        return self.acquired - self.released

    async def acquire(self) -> FakeSession:
        self.acquired += 1
        if self.acquire_error:
            self.released += 1
            raise self.acquire_error
        session = FakeSession(self, self.page)
        self.sessions.append(session)
        return session


@pytest.fixture
def settings(tmp_path: Path):
    """Settings with no settle delays and a short request deadline."""
    reset_settings()
    yield Settings(
        log_level="DEBUG",
        settle_delay_seconds=0,
        final_settle_seconds=0,
        readiness_timeout_ms=1_000,
        request_timeout_seconds=5,
        asset_fetch_timeout_seconds=2,
    )
    reset_settings()


@pytest.fixture
def fake_page() -> FakePage:
    return FakePage()


@pytest.fixture
def fake_sessions(fake_page: FakePage) -> FakeSessionManager:
    return FakeSessionManager(fake_page)


@pytest.fixture
def app(settings: Settings, fake_sessions: FakeSessionManager):
    application = build_app(settings)
    application.state.session_manager = fake_sessions
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
