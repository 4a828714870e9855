# =============================================================================
# core/services/favicon_service.py - Favicon Fallback State Machine
# =============================================================================
# Drives the fallback chain built by lib.favicon:
#
#   Trying(0) -> error -> Trying(1) -> ... -> Trying(N-1) -> error -> Failed
#        \-> load: record success, stay                         (placeholder)
#
# N is the number of remote candidates. Trying(N) and Failed both render the
# local placeholder; Failed also means a failure was written to the cache.
#
# Every input change bumps a generation number. Load/error events carry the
# generation they were issued under, and events from an older generation are
# dropped so a late event for URL A can never move the cursor for URL B.
#
# FaviconProber runs the same machine server-side, using httpx GETs as the
# load/error signal. The Celery worker uses it to pick a startup's icon.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Union

import httpx

from app.config import settings
from lib.favicon import (
    FaviconCandidateSet,
    FaviconOutcomeCache,
    get_favicon_with_fallback,
)

logger = logging.getLogger(__name__)


# =============================================================================
# States
# =============================================================================

@dataclass(frozen=True)
class Trying:
    """Currently requesting `sources[index]`. index == N means placeholder."""
    index: int


@dataclass(frozen=True)
class Failed:
    """Every remote candidate failed; showing the placeholder."""


LoaderState = Union[Trying, Failed]


# =============================================================================
# Loader
# =============================================================================

class FaviconLoader:
    """
    Sequential fallback over one candidate set at a time.

    The loader reads and writes a shared FaviconOutcomeCache but never owns
    it. It does not consult the cache before trying candidates.

    Example:
        loader = FaviconLoader(cache)
        gen = loader.set_input("https://lockedin.dev", 32)
        loader.current_source          # primary candidate
        loader.handle_error(gen)       # move to first fallback
        loader.handle_load(gen)        # record fallback as known-good
    """

    def __init__(self, cache: FaviconOutcomeCache):
        self._cache = cache
        self._generation = 0
        self._url: str | None = None
        self._size: int | None = None
        self._candidates: FaviconCandidateSet | None = None
        self._state: LoaderState = Trying(0)
        self.attempts: list[str] = []

    # -------------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------------

    def set_input(self, url: str, size: int | None = None) -> int:
        """
        Start over for a new (url, size).

        Rebuilds the candidate set, resets to Trying(0) and returns the new
        generation number that events for this input must carry.
        """
        if size is None:
            size = settings.FAVICON_SIZE_DEFAULT
        self._generation += 1
        self._url = url
        self._size = size
        self._candidates = get_favicon_with_fallback(url, size)
        self._state = Trying(0)
        self.attempts = [self._candidates.primary]
        return self._generation

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def state(self) -> LoaderState:
        return self._state

    @property
    def url(self) -> str | None:
        return self._url

    @property
    def candidates(self) -> FaviconCandidateSet:
        if self._candidates is None:
            raise RuntimeError("FaviconLoader.set_input() must be called first")
        return self._candidates

    @property
    def remote_count(self) -> int:
        return len(self.candidates.remote_sources)

    @property
    def is_local_fallback(self) -> bool:
        if isinstance(self._state, Failed):
            return True
        return self._state.index >= self.remote_count

    @property
    def current_source(self) -> str:
        """The image source that should be rendered right now."""
        if self.is_local_fallback:
            return self.candidates.local_fallback
        return self.candidates.remote_sources[self._state.index]

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def _is_stale(self, generation: int, event: str) -> bool:
        if generation != self._generation:
            logger.debug(
                f"Ignoring stale favicon {event} (generation {generation}, "
                f"current {self._generation})"
            )
            return True
        return False

    def handle_load(self, generation: int) -> bool:
        """
        The current source loaded.

        Records url -> source as known-good unless the source is the local
        placeholder. Returns False if the event was ignored.
        """
        if self._is_stale(generation, "load"):
            return False
        if self.is_local_fallback:
            return False

        self._cache.record_success(self._url, self.current_source)
        return True

    def handle_error(self, generation: int) -> bool:
        """
        The current source failed to load.

        Advances to the next remote candidate, or marks Failed and records
        the failure after the last one. The placeholder never fails.
        Returns False if the event was ignored.
        """
        if self._is_stale(generation, "error"):
            return False
        if self.is_local_fallback:
            return False

        index = self._state.index
        if index < self.remote_count - 1:
            self._state = Trying(index + 1)
            self.attempts.append(self.current_source)
            return True

        self._state = Failed()
        self._cache.record_failure(self._url)
        self.attempts.append(self.candidates.local_fallback)
        logger.info(f"All favicon candidates failed for {self._url}, using placeholder")
        return True


# =============================================================================
# Server-side Prober
# =============================================================================

@dataclass
class FaviconProbeResult:
    """Outcome of running the fallback chain for one website."""
    url: str
    source: str
    is_local_fallback: bool
    from_cache: bool = False
    attempts: list[str] = field(default_factory=list)


class FaviconProber:
    """
    Resolve a website's icon by fetching candidates one at a time.

    A candidate "loads" when the response is 2xx with an image content type.
    Any other status, content type or transport error is a load error.

    Unlike the bare loader, the prober checks the cache first and skips the
    network when the URL already has an outcome.

    Example:
        with FaviconProber(FaviconOutcomeCache()) as prober:
            result = prober.probe("https://lockedin.dev")
            result.source
    """

    def __init__(
        self,
        cache: FaviconOutcomeCache,
        client: httpx.Client | None = None,
        timeout: float | None = None,
    ):
        self.cache = cache
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=timeout or settings.FAVICON_PROBE_TIMEOUT,
            headers={"User-Agent": "lockedin-favicon-prober"},
            follow_redirects=True,
        )

    def __enter__(self) -> "FaviconProber":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _loads(self, source: str) -> bool:
        try:
            response = self._client.get(source)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # InvalidURL is not an HTTPError subclass
            logger.debug(f"Favicon candidate {source} errored: {e}")
            return False

        content_type = response.headers.get("content-type", "")
        return response.is_success and content_type.startswith("image/")

    def probe(
        self,
        url: str,
        size: int | None = None,
        use_cache: bool = True,
    ) -> FaviconProbeResult:
        """
        Run the fallback chain for `url` and return the source to display.

        Args:
            url: Website URL
            size: Icon size in pixels (defaults to FAVICON_SIZE_DEFAULT)
            use_cache: Return a cached outcome without touching the network

        Returns:
            FaviconProbeResult. Never raises for unreachable candidates.
        """
        loader = FaviconLoader(self.cache)
        generation = loader.set_input(url, size)

        if use_cache:
            cached = self.cache.lookup(url)
            if cached is not None:
                source = loader.candidates.local_fallback if cached.failed else cached.source
                return FaviconProbeResult(
                    url=url,
                    source=source,
                    is_local_fallback=cached.failed,
                    from_cache=True,
                )

        while not loader.is_local_fallback:
            if self._loads(loader.current_source):
                loader.handle_load(generation)
                break
            loader.handle_error(generation)

        logger.debug(f"Resolved favicon for {url} after {len(loader.attempts)} attempt(s)")

        return FaviconProbeResult(
            url=url,
            source=loader.current_source,
            is_local_fallback=loader.is_local_fallback,
            attempts=list(loader.attempts),
        )
