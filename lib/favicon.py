# =============================================================================
# lib/favicon.py - Favicon Candidate Resolver and Outcome Cache
# =============================================================================
# Builds the ordered list of image sources that can stand in for a website's
# icon, and keeps a small cache of which source last worked per website.
#
# Candidate order is fixed:
#   1. Google's favicon-by-domain service (primary)
#   2. DuckDuckGo's icon service, then the site's own /favicon.ico (fallbacks)
#   3. An inline SVG placeholder that never needs the network (local fallback)
#
# Nothing in this module performs network I/O. It only builds strings.
#
# Usage:
#   from lib.favicon import get_favicon_with_fallback, FaviconOutcomeCache
#   candidates = get_favicon_with_fallback("https://lockedin.dev", size=32)
#   candidates.sources  # [primary, *fallbacks, local_fallback]
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse

DEFAULT_FAVICON_SIZE = 64

# Used when the website URL cannot be parsed, so a URL is always produced
PLACEHOLDER_DOMAIN = "example.com"

GOOGLE_FAVICON_TEMPLATE = "https://www.google.com/s2/favicons?domain={domain}&sz={size}"

FALLBACK_TEMPLATES: tuple[str, ...] = (
    "https://icons.duckduckgo.com/ip3/{domain}.ico",
    "https://{domain}/favicon.ico",
)

LOCAL_FALLBACK_SVG = (
    "data:image/svg+xml,%3Csvg xmlns='http://www.w3.org/2000/svg' width='64' "
    "height='64' viewBox='0 0 24 24' fill='none' stroke='%23666' stroke-width='2' "
    "stroke-linecap='round' stroke-linejoin='round'%3E%3Ccircle cx='12' cy='12' "
    "r='10'/%3E%3Cpath d='M8 14s1.5 2 4 2 4-2 4-2'/%3E%3Cline x1='9' y1='9' "
    "x2='9.01' y2='9'/%3E%3Cline x1='15' y1='9' x2='15.01' y2='9'/%3E%3C/svg%3E"
)


# =============================================================================
# Candidate Set
# =============================================================================

@dataclass(frozen=True)
class FaviconCandidateSet:
    """
    Ordered image sources for one (website_url, size) pair.

    The widget walks `sources` front to back. The local fallback is always
    the last element and is guaranteed to render.
    """
    primary: str
    fallbacks: tuple[str, ...]
    local_fallback: str = LOCAL_FALLBACK_SVG

    @property
    def remote_sources(self) -> list[str]:
        """Sources that need a network fetch, in attempt order."""
        return [self.primary, *self.fallbacks]

    @property
    def sources(self) -> list[str]:
        """Every candidate, local placeholder last."""
        return [*self.remote_sources, self.local_fallback]

    def to_dict(self) -> dict[str, object]:
        """Serialize using the field names the front end expects."""
        return {
            "primary": self.primary,
            "fallbacks": list(self.fallbacks),
            "localFallback": self.local_fallback,
        }


def _extract_hostname(website_url: str) -> str | None:
    """
    Return the hostname of an absolute URL, or None if it doesn't parse.

    A URL counts as absolute when it has both a scheme and a hostname.
    """
    try:
        parsed = urlparse(website_url.strip())
        hostname = parsed.hostname
    except (ValueError, AttributeError):
        return None

    if not parsed.scheme or not hostname:
        return None
    if any(ch.isspace() for ch in hostname):
        return None
    return hostname


def _validate_size(size: int) -> int:
    if isinstance(size, bool) or not isinstance(size, int) or size < 1:
        raise ValueError(f"Favicon size must be a positive integer, got {size!r}")
    return size


def get_google_favicon(website_url: str, size: int = DEFAULT_FAVICON_SIZE) -> str:
    """
    Get a favicon URL from Google's favicon service.

    Args:
        website_url: The website URL to get the favicon for
        size: Pixel size of the favicon (default: 64)

    Returns:
        The Google favicon service URL. Falls back to the placeholder
        domain when `website_url` is not an absolute URL.

    Example:
        get_google_favicon("https://example.org", 64)
        # "https://www.google.com/s2/favicons?domain=example.org&sz=64"
    """
    size = _validate_size(size)
    domain = _extract_hostname(website_url) or PLACEHOLDER_DOMAIN
    return GOOGLE_FAVICON_TEMPLATE.format(domain=domain, size=size)


def get_favicon_with_fallback(
    website_url: str,
    size: int = DEFAULT_FAVICON_SIZE,
) -> FaviconCandidateSet:
    """
    Build the full candidate set for a website.

    Args:
        website_url: The website URL to get the favicon for
        size: Pixel size of the favicon (default: 64)

    Returns:
        FaviconCandidateSet with primary, fallbacks and the local placeholder.
        Identical input always yields identical output.
    """
    primary = get_google_favicon(website_url, size)
    domain = _extract_hostname(website_url) or PLACEHOLDER_DOMAIN

    return FaviconCandidateSet(
        primary=primary,
        fallbacks=tuple(template.format(domain=domain) for template in FALLBACK_TEMPLATES),
        local_fallback=LOCAL_FALLBACK_SVG,
    )


def get_domain_from_url(website_url: str) -> str:
    """
    Extract a display domain from a URL.

    Strips the protocol and a leading "www.". Returns the input unchanged
    when it isn't an absolute URL.

    Example:
        get_domain_from_url("https://www.foo.com/page")  # "foo.com"
        get_domain_from_url("not-a-url")                 # "not-a-url"
    """
    hostname = _extract_hostname(website_url)
    if hostname is None:
        return website_url
    return hostname.removeprefix("www.")


# =============================================================================
# Outcome Cache
# =============================================================================

@dataclass(frozen=True)
class FaviconOutcome:
    """Last known result for a website: a working source, or a failure."""
    source: str | None = None
    failed: bool = False


FAVICON_FAILED = FaviconOutcome(source=None, failed=True)


def normalize_website_url(website_url: str) -> str:
    """
    Normalize a website URL for use as a cache key.

    Lowercases scheme and host and drops a trailing slash. Strings that
    don't parse are only trimmed.
    """
    stripped = website_url.strip()
    if _extract_hostname(stripped) is None:
        return stripped

    parsed = urlparse(stripped)
    key = f"{parsed.scheme.lower()}://{parsed.netloc.lower()}{parsed.path.rstrip('/')}"
    if parsed.query:
        key += f"?{parsed.query}"
    return key


class FaviconOutcomeCache:
    """
    Mapping from website URL to the last known-good source or a failure.

    Construct one per scope that should share results: the API keeps one on
    `app.state` for the life of the process, and each worker prober keeps its
    own. There is no eviction; the number of distinct websites is small.
    Writes are keyed by URL, so widgets for different websites never collide.
    """

    def __init__(self) -> None:
        self._entries: dict[str, FaviconOutcome] = {}

    def record_success(self, url: str, source_used: str) -> None:
        self._entries[normalize_website_url(url)] = FaviconOutcome(source=source_used)

    def record_failure(self, url: str) -> None:
        self._entries[normalize_website_url(url)] = FAVICON_FAILED

    def lookup(self, url: str) -> FaviconOutcome | None:
        """Return the recorded outcome, or None if the URL was never resolved."""
        return self._entries.get(normalize_website_url(url))

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, url: object) -> bool:
        return isinstance(url, str) and normalize_website_url(url) in self._entries
