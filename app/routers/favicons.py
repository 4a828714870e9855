# =============================================================================
# app/routers/favicons.py - Favicon Endpoints
# =============================================================================
# Exposes the favicon fallback chain to clients:
# - GET  /favicons           candidate sources + cached outcome for a website
# - POST /favicons/outcomes  a client widget reports what loaded (or didn't)
# - POST /favicons/resolve   run the chain server-side and return the winner
#
# All three share the application-scoped FaviconOutcomeCache on app.state.
# None of them require authentication.
# =============================================================================

import logging
from typing import Annotated, Iterator

from fastapi import APIRouter, Depends, Query

from app.config import settings
from app.dependencies import FaviconCacheDep
from app.exceptions import ValidationFailedError
from core.models.favicon import (
    CachedOutcome,
    FaviconCandidates,
    FaviconLookupResponse,
    FaviconOutcomeReport,
    FaviconResolveRequest,
    FaviconResolveResponse,
    OutcomeKind,
)
from core.services.favicon_service import FaviconProber
from lib.favicon import FaviconOutcomeCache, get_domain_from_url, get_favicon_with_fallback

logger = logging.getLogger(__name__)

router = APIRouter()


def _cached(cache: FaviconOutcomeCache, url: str) -> CachedOutcome | None:
    outcome = cache.lookup(url)
    if outcome is None:
        return None
    return CachedOutcome(source=outcome.source, failed=outcome.failed)


def get_favicon_prober(cache: FaviconCacheDep) -> Iterator[FaviconProber]:
    """Per-request prober sharing the application cache."""
    with FaviconProber(cache) as prober:
        yield prober


# =============================================================================
# Endpoints
# =============================================================================

@router.get("", response_model=FaviconLookupResponse)
async def get_favicon_candidates(
    cache: FaviconCacheDep,
    url: Annotated[str, Query(min_length=1, description="Website URL")],
    size: Annotated[int | None, Query(ge=1, le=256, description="Icon size in pixels")] = None,
):
    """
    Get the ordered favicon sources for a website.

    Unparseable URLs still get a full candidate set (built for a
    placeholder domain), so the client always has something to render.
    """
    if size is None:
        size = settings.FAVICON_SIZE_DEFAULT
    candidates = get_favicon_with_fallback(url, size)

    return FaviconLookupResponse(
        url=url,
        domain=get_domain_from_url(url),
        size=size,
        candidates=FaviconCandidates(
            primary=candidates.primary,
            fallbacks=list(candidates.fallbacks),
            local_fallback=candidates.local_fallback,
        ),
        cached=_cached(cache, url),
    )


@router.post("/outcomes", response_model=FaviconLookupResponse)
async def report_favicon_outcome(
    report: FaviconOutcomeReport,
    cache: FaviconCacheDep,
):
    """
    Record which source a client widget ended up showing.

    A success stores the source that loaded; a failure means every remote
    candidate errored and the widget fell back to the placeholder.

    Returns 422 when a success names a source that is not one of the
    website's remote candidates for the reported size.
    """
    size = report.size if report.size is not None else settings.FAVICON_SIZE_DEFAULT

    if report.outcome == OutcomeKind.SUCCESS:
        candidates = get_favicon_with_fallback(report.url, size)
        if report.source not in candidates.remote_sources:
            raise ValidationFailedError(
                "source is not a favicon candidate for this url",
                details={"url": report.url, "size": size, "source": report.source},
            )
        cache.record_success(report.url, report.source)
    else:
        cache.record_failure(report.url)

    logger.debug(f"Favicon outcome for {report.url}: {report.outcome.value}")
    return await get_favicon_candidates(cache, report.url, size)


@router.post("/resolve", response_model=FaviconResolveResponse)
def resolve_favicon(
    request: FaviconResolveRequest,
    prober: Annotated[FaviconProber, Depends(get_favicon_prober)],
):
    """
    Walk the fallback chain server-side.

    Known outcomes are answered from the cache unless use_cache is false.
    """
    result = prober.probe(request.url, request.size, use_cache=request.use_cache)

    return FaviconResolveResponse(
        url=result.url,
        source=result.source,
        is_local_fallback=result.is_local_fallback,
        from_cache=result.from_cache,
        attempts=result.attempts,
    )
