# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - favicon.py: Favicon candidate sources and the outcome cache
# - supabase_client.py: Typed Supabase wrapper for database operations
# - utils.py: Shared utilities (error handling, UUID normalization, parsing)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.favicon import (
    FaviconCandidateSet,
    FaviconOutcome,
    FaviconOutcomeCache,
    get_domain_from_url,
    get_favicon_with_fallback,
    get_google_favicon,
)
from lib.utils import ApplicationError, normalize_uuid

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Favicons
    "FaviconCandidateSet",
    "FaviconOutcome",
    "FaviconOutcomeCache",
    "get_domain_from_url",
    "get_favicon_with_fallback",
    "get_google_favicon",
    # Utils
    "ApplicationError",
    "normalize_uuid",
]
