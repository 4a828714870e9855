# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - common.py: ActionResponse envelope, error codes, pagination
# - profile.py: Profiles, stats and the builders directory
# - post.py: Posts, comments and likes
# - follow.py: Follower lists and suggestions
# - startup.py: Startups and milestones
# - github.py: Contribution calendar and contributors
# - sponsor.py: Sponsor plans, subscriptions and checkout
# - favicon.py: Favicon lookup/outcome/resolve bodies
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Common - Envelope shared by every service
# -----------------------------------------------------------------------------
from .common import (
    ActionResponse,
    AppErrorCode,
    Pagination,
    UserSummary,
)

# -----------------------------------------------------------------------------
# Profile Models
# -----------------------------------------------------------------------------
from .profile import (
    ActivityType,
    Builder,
    BuilderSort,
    ProfileStats,
    ProfileUpdate,
    UserProfile,
    UsernameAvailability,
)

# -----------------------------------------------------------------------------
# Post Models
# -----------------------------------------------------------------------------
from .post import (
    CommentCreate,
    LikeResult,
    PostComment,
    PostCreate,
    PostType,
    PostUpdate,
    PostWithDetails,
    PopularTag,
    ShareResult,
)

# -----------------------------------------------------------------------------
# Follow Models
# -----------------------------------------------------------------------------
from .follow import (
    FollowResult,
    FollowStats,
    FollowUser,
)

# -----------------------------------------------------------------------------
# Startup Models
# -----------------------------------------------------------------------------
from .startup import (
    MilestoneCreate,
    MilestoneType,
    SlugAvailability,
    StartupCreate,
    StartupMilestone,
    StartupStage,
    StartupStatus,
    StartupUpdate,
    StartupWithDetails,
)

# -----------------------------------------------------------------------------
# GitHub Models
# -----------------------------------------------------------------------------
from .github import (
    ContributorTier,
    GitHubContribution,
    GitHubContributionData,
    GitHubContributor,
)

# -----------------------------------------------------------------------------
# Sponsor Models
# -----------------------------------------------------------------------------
from .sponsor import (
    CheckoutRequest,
    PlanType,
    Sponsor,
    SponsorPlan,
    SubscriptionStatus,
    get_all_sponsor_plans,
    get_sponsor_plan,
)

# -----------------------------------------------------------------------------
# Favicon Models
# -----------------------------------------------------------------------------
from .favicon import (
    FaviconLookupResponse,
    FaviconOutcomeReport,
    FaviconResolveRequest,
    FaviconResolveResponse,
)

__all__ = [
    # Common
    "ActionResponse",
    "AppErrorCode",
    "Pagination",
    "UserSummary",
    # Profile
    "ActivityType",
    "Builder",
    "BuilderSort",
    "ProfileStats",
    "ProfileUpdate",
    "UserProfile",
    "UsernameAvailability",
    # Post
    "CommentCreate",
    "LikeResult",
    "PostComment",
    "PostCreate",
    "PostType",
    "PostUpdate",
    "PostWithDetails",
    "PopularTag",
    "ShareResult",
    # Follow
    "FollowResult",
    "FollowStats",
    "FollowUser",
    # Startup
    "MilestoneCreate",
    "MilestoneType",
    "SlugAvailability",
    "StartupCreate",
    "StartupMilestone",
    "StartupStage",
    "StartupStatus",
    "StartupUpdate",
    "StartupWithDetails",
    # GitHub
    "ContributorTier",
    "GitHubContribution",
    "GitHubContributionData",
    "GitHubContributor",
    # Sponsor
    "CheckoutRequest",
    "PlanType",
    "Sponsor",
    "SponsorPlan",
    "SubscriptionStatus",
    "get_all_sponsor_plans",
    "get_sponsor_plan",
    # Favicon
    "FaviconLookupResponse",
    "FaviconOutcomeReport",
    "FaviconResolveRequest",
    "FaviconResolveResponse",
]
