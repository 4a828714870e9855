# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - profiles.py: Profiles, streak activity and the builders directory
# - posts.py: Feed, likes, shares, comments and tags
# - follows.py: Follow graph and suggestions
# - startups.py: Startup pages and milestones
# - favicons.py: Favicon candidates, outcome reports and server-side resolve
# - github.py: Contribution calendars and repository contributors
# - sponsors.py: Sponsor plans, Polar checkout/portal and webhooks
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import profiles
from . import posts
from . import follows
from . import startups
from . import favicons
from . import github
from . import sponsors

__all__ = [
    "health",
    "profiles",
    "posts",
    "follows",
    "startups",
    "favicons",
    "github",
    "sponsors",
]
