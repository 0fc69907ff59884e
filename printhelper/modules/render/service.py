"""
Render service - the PDF pipeline orchestrator.

Stages run strictly in order:

    VALIDATING -> RESOLVING_ASSETS -> SESSION_ACQUIRED -> LOADED -> READY
    -> MUTATED -> SYNTHESIZED -> RELEASED

Validation failures end in REJECTED before any browser exists; any later
failure ends in FAILED. Both paths finish in RELEASED, and the browser
session is always closed. Nothing is retried.
"""

import asyncio
from dataclasses import dataclass, field

from printhelper.config import Settings, get_settings
from printhelper.shared.errors import InputValidationError, PrintHelperError, RenderTimeoutError
from printhelper.shared.logging import get_logger
from printhelper.shared.time import epoch_ms

from .assets import AssetResolver
from .browser import BrowserSession, BrowserSessionManager
from .loader import DocumentLoader, validate_source
from .mutator import DocumentMutator
from .readiness import ReadinessGate
from .schemas import PipelineState, RenderedDocument, RenderPdfRequest
from .synthesizer import PdfSynthesizer

logger = get_logger(__name__)


@dataclass
class RenderRun:
    """Trace of one pass through the pipeline."""
    target: str = ""
    states: list[PipelineState] = field(default_factory=list)
    ready: bool | None = None
    error: PrintHelperError | None = None

    @property
    def state(self) -> PipelineState | None:
        return self.states[-1] if self.states else None

    @property
    def failed_stage(self) -> PipelineState | None:
        """Last stage reached before a failure, if any."""
        for previous, current in zip(self.states, self.states[1:]):
            if current in (PipelineState.REJECTED, PipelineState.FAILED):
                return previous
        return None

    def enter(self, state: PipelineState) -> None:
        logger.debug(f"Render {self.target}: {self.state.value if self.state else '-'} -> {state.value}")
        self.states.append(state)


class RenderService:
    """Sequence the render stages under a single request deadline."""

    def __init__(
        self,
        sessions: BrowserSessionManager,
        settings: Settings | None = None,
        resolver: AssetResolver | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.sessions = sessions
        self.resolver = resolver or AssetResolver(timeout=self.settings.asset_fetch_timeout_seconds)
        self.loader = DocumentLoader(navigation_timeout_ms=self.settings.navigation_timeout_ms)
        self.gate = ReadinessGate(
            timeout_ms=self.settings.readiness_timeout_ms,
            poll_ms=self.settings.readiness_poll_ms,
            settle_seconds=self.settings.settle_delay_seconds,
        )
        self.mutator = DocumentMutator()
        self.synthesizer = PdfSynthesizer(final_settle_seconds=self.settings.final_settle_seconds)

    async def render_pdf(
        self,
        request: RenderPdfRequest,
        run: RenderRun | None = None,
    ) -> RenderedDocument:
        """
        Render a request to PDF.

        Raises:
            PrintHelperError: subclass matching the failed stage; the
                request deadline surfaces as RenderTimeoutError.
        """
        run = run if run is not None else RenderRun()
        run.target = request.url or f"inline markup ({len(request.html or '')} chars)"
        deadline = self.settings.request_timeout_seconds

        try:
            content = await asyncio.wait_for(self._execute(request, run), timeout=deadline)
        except TimeoutError as e:
            error = RenderTimeoutError(
                f"Rendering exceeded the {deadline:g}s request deadline",
                details={"target": run.target},
            )
            run.error = error
            logger.error(f"Render deadline exceeded for {run.target} at {run.failed_stage}")
            raise error from e

        return RenderedDocument(content=content, filename=f"document-{epoch_ms()}.pdf")

    async def _execute(self, request: RenderPdfRequest, run: RenderRun) -> bytes:
        run.enter(PipelineState.VALIDATING)
        try:
            validate_source(request)
        except InputValidationError as e:
            run.error = e
            run.enter(PipelineState.REJECTED)
            run.enter(PipelineState.RELEASED)
            logger.info(f"Rejected render request: {e.message}")
            raise

        session: BrowserSession | None = None
        try:
            run.enter(PipelineState.RESOLVING_ASSETS)
            assets = await self.resolver.resolve(request.fields, request.domainName)

            session = await self.sessions.acquire()
            run.enter(PipelineState.SESSION_ACQUIRED)
            page = session.page

            await self.loader.load(page, request)
            run.enter(PipelineState.LOADED)

            run.ready = await self.gate.wait(page)
            run.enter(PipelineState.READY)

            await self.synthesizer.prepare(page)
            await self.mutator.apply(page, request.fields, assets)
            run.enter(PipelineState.MUTATED)

            if self.settings.debug_dump_dir is not None:
                await self.mutator.dump_markup(page, self.settings.debug_dump_dir)

            pdf_bytes = await self.synthesizer.synthesize(page)
            run.enter(PipelineState.SYNTHESIZED)
            return pdf_bytes

        except PrintHelperError as e:
            stage = run.state
            run.error = e
            run.enter(PipelineState.FAILED)
            context = f" {e.details}" if e.details else ""
            logger.error(f"Render failed for {run.target} after {stage.value}: [{e.code}] {e.message}{context}")
            raise
        except asyncio.CancelledError:
            run.enter(PipelineState.FAILED)
            raise
        except Exception as e:
            stage = run.state
            run.enter(PipelineState.FAILED)
            logger.exception(f"Render failed for {run.target} after {stage.value}")
            error = PrintHelperError(str(e))
            run.error = error
            raise error from e
        finally:
            if session is not None:
                await session.release()
            if run.state is not PipelineState.RELEASED:
                run.enter(PipelineState.RELEASED)
