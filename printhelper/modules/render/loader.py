"""
Document loader - put the template into the page.

URL mode navigates; markup mode sets the content directly. Both wait for
DOMContentLoaded only, since readiness is handled separately.
"""

from urllib.parse import urlparse

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from printhelper.shared.errors import InputValidationError, NavigationError, RenderTimeoutError
from printhelper.shared.logging import get_logger

from .schemas import RenderPdfRequest

logger = get_logger(__name__)

ALLOWED_SCHEMES = ("http", "https")
DOCUMENT_CONTENT_TYPES = ("html", "xml", "text/")

# net:: error code -> public error title
NAVIGATION_ERRORS = {
    "net::ERR_CONNECTION_REFUSED": "Cannot connect to the URL or domain not found",
    "net::ERR_NAME_NOT_RESOLVED": "Cannot connect to the URL or domain not found",
    "net::ERR_ABORTED": "Navigation was aborted",
}


def validate_url(url: str) -> str:
    """Accept only absolute http(s) URLs with a host."""
    parsed = urlparse(url.strip())
    if parsed.scheme.lower() not in ALLOWED_SCHEMES or not parsed.netloc:
        raise InputValidationError(
            "Valid URL is required (must include http:// or https://)",
            details={"url": url},
        )
    return url.strip()


def validate_source(request: RenderPdfRequest) -> None:
    """Exactly one of html/url must be supplied; a url must be http(s)."""
    if request.html and request.url:
        raise InputValidationError("Provide either html or url, not both")
    if not request.html and not request.url:
        raise InputValidationError("Missing html or url")
    if request.url:
        validate_url(request.url)


class DocumentLoader:
    """Load a request's source document into a page."""

    def __init__(self, navigation_timeout_ms: int = 60_000) -> None:
        self.navigation_timeout_ms = navigation_timeout_ms

    async def load(self, page: Page, request: RenderPdfRequest) -> None:
        if request.url:
            await self.navigate(page, request.url)
        else:
            await self.set_markup(page, request.html or "")

    async def navigate(self, page: Page, url: str) -> None:
        logger.info(f"Navigating to {url}")
        try:
            response = await page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.navigation_timeout_ms,
            )
        except PlaywrightTimeoutError as e:
            raise RenderTimeoutError(str(e), details={"url": url}) from e
        except PlaywrightError as e:
            raise _navigation_error(e, url) from e

        if response is None:
            return
        if response.status >= 400:
            raise NavigationError(
                f"{url} responded with HTTP {response.status}",
                title="Target page returned an error",
                details={"url": url},
            )
        content_type = response.headers.get("content-type", "")
        if content_type and not any(t in content_type for t in DOCUMENT_CONTENT_TYPES):
            raise NavigationError(
                f"{url} is not a document (content-type: {content_type})",
                title="Target is not a document",
                details={"url": url},
            )

    async def set_markup(self, page: Page, html: str) -> None:
        logger.info(f"Loading inline markup ({len(html)} chars)")
        try:
            await page.set_content(
                html,
                wait_until="domcontentloaded",
                timeout=self.navigation_timeout_ms,
            )
        except PlaywrightTimeoutError as e:
            raise RenderTimeoutError(str(e)) from e


def _navigation_error(exc: PlaywrightError, url: str) -> NavigationError:
    message = str(exc)
    for code, title in NAVIGATION_ERRORS.items():
        if code in message:
            return NavigationError(message, title=title, details={"url": url})
    return NavigationError(message, title="Navigation failed", details={"url": url})
