"""
Render module schemas.

Request/response models for the HTTP surface plus the value types that flow
through the render pipeline.
"""

import enum
from dataclasses import dataclass

from pydantic import BaseModel, Field


# =============================================================================
# REQUESTS / RESPONSES
# =============================================================================

class RenderPdfRequest(BaseModel):
    """Request to render a template (URL or inline HTML) to PDF."""

    html: str | None = Field(default=None, description="Inline HTML markup to render")
    url: str | None = Field(default=None, description="http(s) URL of the page to render")
    domainName: str | None = Field(
        default=None,
        description="Base URL of the backing asset service used to resolve reference tokens",
    )
    fields: dict[str, str | bool | None] = Field(
        default_factory=dict,
        description="Field name -> value to inject into matching form controls",
    )


class RenderPdfBase64Response(BaseModel):
    """JSON rendition of a rendered PDF."""
    success: bool = True
    pdf: str
    size: int
    filename: str
    timestamp: str


class ErrorResponse(BaseModel):
    """Structured error body returned on every failure."""
    error: str
    message: str
    timestamp: str


# =============================================================================
# FIELD VALUES
# =============================================================================

TRUTHY_TOKENS = frozenset({"true", "yes", "on"})
REFERENCE_PREFIXES = ("http://", "https://")


@dataclass(frozen=True)
class TextValue:
    text: str


@dataclass(frozen=True)
class BooleanValue:
    flag: bool


@dataclass(frozen=True)
class ReferenceValue:
    """A URL token the backing service turns into inline binary data."""
    url: str


FieldValue = TextValue | BooleanValue | ReferenceValue


def classify_field(raw: str | bool | None) -> FieldValue | None:
    """
    Resolve a raw field value into its tagged form.

    Returns None for empty/falsy values, which are skipped by asset resolution.
    Literal booleans become BooleanValue; scheme-prefixed strings become
    ReferenceValue; everything else is text.
    """
    if isinstance(raw, bool):
        return BooleanValue(raw) if raw else None
    if not raw:
        return None
    if raw.startswith(REFERENCE_PREFIXES):
        return ReferenceValue(raw)
    if raw.lower() in TRUTHY_TOKENS:
        return BooleanValue(True)
    return TextValue(raw)


# =============================================================================
# PIPELINE VALUES
# =============================================================================

@dataclass(frozen=True)
class ResolvedAsset:
    """Inline data for a reference field, or None when the fetch failed."""
    field_name: str
    data: str | None

    @property
    def is_image(self) -> bool:
        return bool(self.data) and self.data.startswith("data:image")


@dataclass
class RenderedDocument:
    """Bytes of a synthesized PDF plus its download filename."""
    content: bytes
    filename: str

    @property
    def size(self) -> int:
        return len(self.content)


class PipelineState(str, enum.Enum):
    VALIDATING = "validating"
    RESOLVING_ASSETS = "resolving_assets"
    SESSION_ACQUIRED = "session_acquired"
    LOADED = "loaded"
    READY = "ready"
    MUTATED = "mutated"
    SYNTHESIZED = "synthesized"
    RELEASED = "released"
    REJECTED = "rejected"
    FAILED = "failed"
