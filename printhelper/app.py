"""
Application factory - builds the FastAPI app with middleware, error
handlers and routes.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from printhelper import __version__
from printhelper.config import Settings, get_settings, init_settings
from printhelper.modules.health import router as health_router
from printhelper.modules.render import router as render_router
from printhelper.modules.render.browser import BrowserSessionManager
from printhelper.shared.errors import PrintHelperError
from printhelper.shared.ids import generate_request_id
from printhelper.shared.logging import (
    clear_request_context,
    get_logger,
    set_request_context,
    setup_logging,
)
from printhelper.shared.time import utcnow_iso
from printhelper.shared.types import RequestContext

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - startup and shutdown."""
    settings: Settings = app.state.settings
    setup_logging(settings.log_level)
    logger.info(
        f"Starting printhelper (max {settings.max_concurrent_sessions} browser sessions, "
        f"chrome: {settings.chrome_bin or 'playwright default'})"
    )

    yield

    logger.info(f"printhelper stopped ({app.state.session_manager.open_sessions} sessions open)")


def build_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Optional settings override (useful for testing)

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        settings = get_settings()
    init_settings(settings)
    setup_logging(settings.log_level)

    app = FastAPI(
        title="printhelper",
        description="Template rendering and PDF synthesis service",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.session_manager = BrowserSessionManager(
        max_sessions=settings.max_concurrent_sessions,
        executable_path=settings.chrome_bin,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next: Any) -> Response:
        """Attach request context for logging and tracing."""
        ctx = RequestContext(
            request_id=request.headers.get("X-Request-ID", generate_request_id()),
            actor=request.headers.get("X-Actor", "system"),
            client_ip=request.client.host if request.client else None,
        )
        request.state.context = ctx
        set_request_context(ctx)

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = ctx.request_id
            return response
        finally:
            clear_request_context()

    @app.exception_handler(PrintHelperError)
    async def printhelper_error_handler(request: Request, exc: PrintHelperError) -> JSONResponse:
        """Render service errors as {error, message, timestamp}."""
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed request bodies are client errors, not 422s."""
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
            for err in exc.errors()
        )
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "message": problems, "timestamp": utcnow_iso()},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "message": str(exc), "timestamp": utcnow_iso()},
        )

    app.include_router(health_router)
    app.include_router(render_router)

    @app.get("/")
    async def root() -> dict[str, Any]:
        return {
            "service": "printhelper",
            "version": __version__,
            "endpoints": {
                "health": "GET /health",
                "pdf": "POST /pdf",
                "pdf_base64": "POST /pdf/base64",
            },
        }

    return app
