# =============================================================================
# core/models/follow.py - Follow Graph Schemas
# =============================================================================
# Users as they appear in follower/following lists and suggestions, plus the
# small result objects returned by follow actions.
# =============================================================================

from pydantic import BaseModel


class FollowUser(BaseModel):
    id: str
    username: str | None = None
    name: str | None = None
    avatar: str | None = None
    bio: str | None = None
    verified: bool = False
    current_streak: int = 0
    followers_count: int = 0
    following_count: int = 0
    is_following: bool | None = None


class FollowResult(BaseModel):
    is_following: bool
    followers_count: int


class FollowStats(BaseModel):
    followers_count: int = 0
    following_count: int = 0
    mutual_follows_count: int = 0
