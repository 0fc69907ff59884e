"""
Error taxonomy for the render service.

Every error knows its HTTP status and renders to the public
{error, message, timestamp} body.
"""

from typing import Any

from .time import utcnow_iso


class PrintHelperError(Exception):
    """Base class for errors that map onto an HTTP response."""

    code: str = "INTERNAL_ERROR"
    http_status: int = 500
    title: str = "PDF generation failed"

    def __init__(
        self,
        message: str,
        *,
        title: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if title is not None:
            self.title = title
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.title,
            "message": self.message,
            "timestamp": utcnow_iso(),
        }


class InputValidationError(PrintHelperError):
    """Bad request input, detected before any browser session exists."""
    code = "INPUT_VALIDATION"
    http_status = 400
    title = "Invalid request"


class NavigationError(PrintHelperError):
    """The target URL could not be loaded."""
    code = "NAVIGATION_FAILED"
    http_status = 400
    title = "Cannot connect to the URL or domain not found"


class RenderTimeoutError(PrintHelperError):
    """Navigation or the overall request deadline was exceeded."""
    code = "TIMEOUT"
    http_status = 408
    title = "Request timeout - the page took too long to load"


class ReadinessTimeoutError(RenderTimeoutError):
    """Busy indicators never cleared. The pipeline continues past this one."""
    code = "READINESS_TIMEOUT"
    title = "Timeout waiting for UI"


class SynthesisError(PrintHelperError):
    """The print-to-PDF capture itself failed."""
    code = "SYNTHESIS_FAILED"
    http_status = 500
    title = "PDF generation failed"


class AssetResolutionError(PrintHelperError):
    """A single asset fetch failed. Never surfaced to the caller."""
    code = "ASSET_RESOLUTION_FAILED"
    http_status = 502
    title = "Asset fetch failed"
