"""Render module - template to PDF rendering using Playwright."""

from .router import router
from .schemas import RenderPdfRequest, RenderedDocument
from .service import RenderService

__all__ = ["router", "RenderService", "RenderPdfRequest", "RenderedDocument"]
