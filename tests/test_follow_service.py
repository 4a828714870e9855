# =============================================================================
# tests/test_follow_service.py - Follow Service Tests
# =============================================================================
# Tests for follow/unfollow, stats and suggestion ranking.
# =============================================================================

from core.models.common import AppErrorCode
from core.services.follow_service import FollowService, suggestion_score


class TestSuggestionScore:
    """Test the suggestion weights."""

    def test_weights(self):
        assert suggestion_score(10, 5, 3, True, 1) == 94

    def test_unverified_without_activity(self):
        assert suggestion_score(0, 0, 0, False, 0) == 0


class TestToggleFollow:
    """Test follow/unfollow."""

    def test_cannot_follow_self(self, fake_db, user_id):
        result = FollowService.toggle_follow(user_id, user_id)

        assert result.error == AppErrorCode.VALIDATION_ERROR
        assert fake_db.executed == []

    def test_unknown_target(self, fake_db, user_id, other_user_id):
        fake_db.queue_missing("users")
        assert FollowService.toggle_follow(user_id, other_user_id).error == AppErrorCode.NOT_FOUND

    def test_follow(self, fake_db, user_id, other_user_id):
        fake_db.queue("users", {"id": other_user_id})
        fake_db.queue("follows", [])
        fake_db.queue("follows", [{"id": "f-1"}])
        fake_db.queue("follows", count=8)

        result = FollowService.toggle_follow(user_id, other_user_id)

        assert result.data.is_following is True
        assert result.data.followers_count == 8
        assert fake_db.ops("follows", "insert")[0][0][0] == {
            "follower_id": user_id,
            "following_id": other_user_id,
        }

    def test_unfollow(self, fake_db, user_id, other_user_id):
        fake_db.queue("users", {"id": other_user_id})
        fake_db.queue("follows", [{"id": "f-1"}])
        fake_db.queue("follows", [])
        fake_db.queue("follows", count=7)

        result = FollowService.toggle_follow(user_id, other_user_id)

        assert result.data.is_following is False
        assert fake_db.ops("follows", "delete")


class TestFollowReads:
    """Test lists, status and stats."""

    def test_status(self, fake_db, user_id, other_user_id):
        fake_db.queue("follows", count=1)
        assert FollowService.check_follow_status(user_id, other_user_id).data is True

    def test_stats_with_mutuals(self, fake_db, user_id, other_user_id):
        fake_db.queue("follows", count=3)
        fake_db.queue("follows", count=2)
        fake_db.queue("follows", [{"following_id": "x"}, {"following_id": "y"}])
        fake_db.queue("follows", [{"following_id": "y"}, {"following_id": "z"}])

        result = FollowService.get_follow_stats(other_user_id, viewer_id=user_id)

        assert result.data.followers_count == 3
        assert result.data.following_count == 2
        assert result.data.mutual_follows_count == 1

    def test_followers_mark_viewer_follows(self, fake_db, user_id, other_user_id):
        fake_db.queue("follows", [
            {"user": {"id": "a", "username": "a", "followers": [{"count": 2}]}},
            {"user": {"id": "b", "username": "b"}},
        ])
        fake_db.queue("follows", [{"following_id": "a"}])

        result = FollowService.get_followers(other_user_id, viewer_id=user_id)

        assert [(u.id, u.is_following) for u in result.data] == [("a", True), ("b", False)]
        assert result.data[0].followers_count == 2

    def test_followers_without_viewer(self, fake_db, other_user_id):
        fake_db.queue("follows", [{"user": {"id": "a"}}])
        assert FollowService.get_followers(other_user_id).data[0].is_following is None

    def test_mutual_with_self_is_empty(self, fake_db, user_id):
        assert FollowService.get_mutual_followers(user_id, user_id).data == []


class TestSuggestions:
    """Test who-to-follow ranking."""

    def test_ranks_by_score(self, fake_db, user_id):
        fake_db.queue("follows", [{"following_id": "friend"}])
        fake_db.queue("users", [
            {"id": "quiet", "username": "quiet", "verified": False, "current_streak": 1},
            {"id": "busy", "username": "busy", "verified": False, "current_streak": 2,
             "posts": [{"count": 30}]},
            {"id": "shared", "username": "shared", "verified": False, "current_streak": 0},
        ])
        fake_db.queue("follows", [
            {"follower_id": "friend", "following_id": "shared"},
            {"follower_id": "stranger", "following_id": "quiet"},
        ])

        result = FollowService.get_suggested_users(user_id, limit=2)

        assert [u.id for u in result.data] == ["busy", "shared"]
        assert all(u.is_following is False for u in result.data)

        excluded = [args for args, _ in fake_db.ops("users", "filter") if args[0] == "id"][0]
        assert excluded == ("id", "not.in", f"({user_id},friend)")

    def test_no_candidates(self, fake_db, user_id):
        assert FollowService.get_suggested_users(user_id).data == []
