"""PDF synthesizer - print styling and print-to-PDF capture."""

import asyncio

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from printhelper.shared.errors import SynthesisError
from printhelper.shared.logging import get_logger

logger = get_logger(__name__)


PRINT_CSS = """
body { margin:0; padding:0; background:white; }
table { width:100%; border-collapse:collapse; page-break-inside:auto; }
tr { page-break-inside:avoid; }
thead { display:table-header-group; }
canvas { display:block; page-break-inside:avoid; }
.loading, .spinner { display:none !important; }
"""

FOOTER_TEMPLATE = """
<div style="font-size:10px;width:100%;text-align:center;">
  Page <span class="pageNumber"></span> of <span class="totalPages"></span>
</div>"""

PDF_OPTIONS = {
    "format": "A4",
    "print_background": True,
    "prefer_css_page_size": True,
    "margin": {"top": "40px", "bottom": "60px", "left": "40px", "right": "40px"},
    "display_header_footer": True,
    "header_template": "<div></div>",
    "footer_template": FOOTER_TEMPLATE,
}


class PdfSynthesizer:
    """Normalize the page for print and capture it as PDF bytes."""

    def __init__(self, final_settle_seconds: float = 0.5) -> None:
        self.final_settle_seconds = final_settle_seconds

    async def prepare(self, page: Page) -> None:
        """Switch to print media and inject the print stylesheet."""
        await page.emulate_media(media="print")
        await page.add_style_tag(content=PRINT_CSS)

    async def synthesize(self, page: Page) -> bytes:
        await asyncio.sleep(self.final_settle_seconds)
        try:
            pdf_bytes = await page.pdf(**PDF_OPTIONS)
        except PlaywrightError as e:
            raise SynthesisError(str(e)) from e

        logger.info(f"Generated PDF: {len(pdf_bytes)} bytes")
        return pdf_bytes
