"""Render module routes."""

import base64

from fastapi import APIRouter, Depends, Request, Response

from printhelper.shared.logging import get_logger
from printhelper.shared.time import utcnow_iso

from .schemas import ErrorResponse, RenderPdfBase64Response, RenderPdfRequest
from .service import RenderService

logger = get_logger(__name__)
router = APIRouter(tags=["render"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input or unreachable URL"},
    408: {"model": ErrorResponse, "description": "Page load or request deadline exceeded"},
    500: {"model": ErrorResponse, "description": "PDF generation failed"},
}


def get_service(request: Request) -> RenderService:
    """Dependency injection for the render service."""
    return RenderService(
        sessions=request.app.state.session_manager,
        settings=request.app.state.settings,
    )


@router.post(
    "/pdf",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}, **ERROR_RESPONSES},
)
async def render_pdf(
    request: RenderPdfRequest,
    service: RenderService = Depends(get_service),
) -> Response:
    """
    Render a URL or inline HTML to PDF, filling form fields first.

    Returns the PDF as an attachment. Failures are returned as
    {error, message, timestamp} by the application error handlers.
    """
    document = await service.render_pdf(request)

    return Response(
        content=document.content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{document.filename}"',
            "Content-Length": str(document.size),
        },
    )


@router.post(
    "/pdf/base64",
    response_model=RenderPdfBase64Response,
    responses=ERROR_RESPONSES,
)
async def render_pdf_base64(
    request: RenderPdfRequest,
    service: RenderService = Depends(get_service),
) -> RenderPdfBase64Response:
    """Same pipeline as POST /pdf, returning the PDF base64-encoded in JSON."""
    document = await service.render_pdf(request)

    return RenderPdfBase64Response(
        pdf=base64.b64encode(document.content).decode("ascii"),
        size=document.size,
        filename=document.filename,
        timestamp=utcnow_iso(),
    )
