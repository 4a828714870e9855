# =============================================================================
# core/models/favicon.py - Favicon API Schemas
# =============================================================================
# Request/response bodies for /api/v1/favicons. The candidate set itself is
# built by lib.favicon; these models only shape it for JSON.
# =============================================================================

from enum import Enum

from pydantic import BaseModel, Field, model_validator


class FaviconCandidates(BaseModel):
    """Ordered favicon sources for one website."""
    primary: str
    fallbacks: list[str]
    local_fallback: str = Field(..., serialization_alias="localFallback")


class CachedOutcome(BaseModel):
    """What the outcome cache remembers about a website."""
    source: str | None = None
    failed: bool = False


class FaviconLookupResponse(BaseModel):
    url: str
    domain: str
    size: int
    candidates: FaviconCandidates
    cached: CachedOutcome | None = None


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class FaviconOutcomeReport(BaseModel):
    """
    A client widget's report of how loading a favicon went.

    Example:
        {"url": "https://acme.dev", "outcome": "success",
         "source": "https://www.google.com/s2/favicons?domain=acme.dev&sz=64"}
    """
    url: str = Field(..., min_length=1)
    outcome: OutcomeKind
    source: str | None = None
    size: int | None = Field(default=None, ge=1, le=256, description="Size the widget requested")

    @model_validator(mode="after")
    def success_needs_source(self) -> "FaviconOutcomeReport":
        if self.outcome == OutcomeKind.SUCCESS and not self.source:
            raise ValueError("source is required when outcome is success")
        return self


class FaviconResolveRequest(BaseModel):
    url: str = Field(..., min_length=1)
    size: int | None = Field(default=None, ge=1, le=256)
    use_cache: bool = True


class FaviconResolveResponse(BaseModel):
    url: str
    source: str
    is_local_fallback: bool
    from_cache: bool
    attempts: list[str] = Field(default_factory=list)
