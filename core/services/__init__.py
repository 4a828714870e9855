# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .profile_service import ProfileService
from .post_service import PostService
from .follow_service import FollowService
from .startup_service import StartupService
from .github_service import GitHubService, GitHubAPIError
from .billing_service import BillingService, BillingError
from .favicon_service import FaviconLoader, FaviconProber

__all__ = [
    "ProfileService",
    "PostService",
    "FollowService",
    "StartupService",
    "GitHubService",
    "GitHubAPIError",
    "BillingService",
    "BillingError",
    "FaviconLoader",
    "FaviconProber",
]
