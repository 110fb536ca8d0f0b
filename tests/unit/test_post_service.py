"""Tests for post creation, stats maintenance and visibility."""

from datetime import timedelta

import pytest

from locki.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from locki.services.post_service import next_streak, parse_duration, parse_tags
from tests.util.service_setup import START, stats_of


class TestParsing:
    @pytest.mark.parametrize("hours, minutes, expected", [
        (1, 30, 90),
        ("2", "5", 125),
        (0, 45, 45),
        (3.0, None, 180),
    ])
    def test_valid_durations(self, hours, minutes, expected):
        assert parse_duration(hours, minutes) == expected

    @pytest.mark.parametrize("hours, minutes", [
        (0, 0),
        (-1, 30),
        (1, 60),
        (1.5, 0),
        ("one", 0),
        (True, 0),
    ])
    def test_invalid_durations(self, hours, minutes):
        with pytest.raises(ValidationError):
            parse_duration(hours, minutes)

    def test_tags_are_normalised(self):
        assert parse_tags([" Python ", "python", "Focus", ""]) == ["python", "focus"]
        with pytest.raises(ValidationError):
            parse_tags([f"tag{i}" for i in range(11)])


class TestStreak:
    def test_first_post_starts_streak(self):
        assert next_streak(None, 0, START) == 1

    def test_same_day_keeps_streak(self):
        assert next_streak(START, 4, START + timedelta(hours=5)) == 4
        assert next_streak(START, 0, START + timedelta(hours=1)) == 1

    def test_next_day_extends_streak(self):
        assert next_streak(START, 4, START + timedelta(days=1)) == 5

    def test_gap_resets_streak(self):
        assert next_streak(START, 4, START + timedelta(days=2)) == 1


class TestCreatePost:
    def test_updates_totals_and_buckets(self, ctx, db, users):
        post = ctx.posts.create_post(users.alice, "  Deep work  ", "Refactoring", hours=1, minutes=30, tags=["Code"])

        assert post.title == "Deep work"
        assert (post.hours, post.minutes) == (1, 30)
        assert post.tags == ["code"]
        assert post.username == "alice"

        stats = stats_of(db, users.alice)
        assert stats["totalPosts"] == 1
        assert stats["totalMinutes"] == 90
        assert stats["totalHours"] == 1
        assert stats["weeklyHours"] == {"2026-10-25": 1.5}
        assert stats["monthlyHours"] == {"2026-10": 1.5}
        assert stats["currentStreak"] == 1
        assert stats["longestStreak"] == 1
        assert stats["lastPostDate"] == post.createdAt

    def test_hours_accumulate_from_minutes(self, ctx, db, users):
        ctx.posts.create_post(users.alice, "First", minutes=40)
        ctx.posts.create_post(users.alice, "Second", minutes=40)
        stats = stats_of(db, users.alice)
        assert stats["totalMinutes"] == 80
        assert stats["totalHours"] == 1

    def test_streak_across_days(self, ctx, db, users, clock):
        ctx.posts.create_post(users.alice, "Day one", hours=1)
        clock.set(START + timedelta(days=1))
        ctx.posts.create_post(users.alice, "Day two", hours=1)
        clock.set(START + timedelta(days=2))
        ctx.posts.create_post(users.alice, "Day three", hours=1)
        assert stats_of(db, users.alice)["currentStreak"] == 3

        clock.set(START + timedelta(days=5))
        ctx.posts.create_post(users.alice, "After a break", hours=1)
        stats = stats_of(db, users.alice)
        assert stats["currentStreak"] == 1
        assert stats["longestStreak"] == 3
        # Saturday still belongs to the week starting Sunday 2026-10-18
        assert stats["weeklyHours"] == {"2026-10-25": 4.0}

    def test_new_week_gets_its_own_bucket(self, ctx, db, users, clock):
        ctx.posts.create_post(users.alice, "Monday", hours=2)
        clock.set(START + timedelta(days=6))
        ctx.posts.create_post(users.alice, "Sunday", hours=1)
        assert stats_of(db, users.alice)["weeklyHours"] == {"2026-10-25": 2.0, "2026-11-01": 1.0}

    def test_image_is_uploaded(self, ctx, db, users):
        post = ctx.posts.create_post(users.alice, "With picture", minutes=20, image=b"\xff\xd8jpeg")
        assert post.imageUrl.startswith("memory://post_images/alice-uid/")
        assert list(db.blobs.values()) == [b"\xff\xd8jpeg"]

    @pytest.mark.parametrize("kwargs", [
        {"title": "   ", "minutes": 10},
        {"title": "x" * 101, "minutes": 10},
        {"title": "ok", "minutes": 10, "visibility": "friends"},
        {"title": "ok"},
    ])
    def test_invalid_posts_change_nothing(self, ctx, db, users, kwargs):
        with pytest.raises(ValidationError):
            ctx.posts.create_post(users.alice, **kwargs)
        assert db.query("posts") == []
        assert stats_of(db, users.alice)["totalPosts"] == 0


class TestVisibility:
    @pytest.fixture
    def posts(self, ctx, users):
        return {
            visibility: ctx.posts.create_post(users.alice, visibility, minutes=10, visibility=visibility).id
            for visibility in ("public", "buddies_only", "private")
        }

    def test_owner_sees_everything(self, ctx, users, posts):
        assert len(ctx.posts.get_user_posts(users.alice, users.alice)) == 3

    def test_stranger_sees_public_only(self, ctx, users, posts):
        assert [p.id for p in ctx.posts.get_user_posts(users.alice, users.bob)] == [posts["public"]]
        with pytest.raises(NotFoundError):
            ctx.posts.get_post(posts["buddies_only"], users.bob)

    def test_follower_sees_buddies_only_posts(self, ctx, users, posts):
        ctx.relationships.send_request(users.bob, users.alice)
        visible = {p.id for p in ctx.posts.get_user_posts(users.alice, users.bob)}
        assert visible == {posts["public"], posts["buddies_only"]}
        assert ctx.posts.get_post(posts["buddies_only"], users.bob).id == posts["buddies_only"]
        with pytest.raises(NotFoundError):
            ctx.posts.get_post(posts["private"], users.bob)


class TestEditAndDelete:
    def test_owner_can_edit(self, ctx, users):
        post = ctx.posts.create_post(users.alice, "Draft", minutes=10)
        updated = ctx.posts.update_post(post.id, users.alice, title="Final", tags=["Done"], visibility="private")
        assert (updated.title, updated.tags, updated.visibility) == ("Final", ["done"], "private")

    def test_other_users_cannot_edit_or_delete(self, ctx, users):
        post = ctx.posts.create_post(users.alice, "Mine", minutes=10)
        with pytest.raises(PermissionDeniedError):
            ctx.posts.update_post(post.id, users.bob, title="Yours")
        with pytest.raises(PermissionDeniedError):
            ctx.posts.delete_post(post.id, users.bob)

    def test_delete_is_soft_and_decrements(self, ctx, db, users):
        post = ctx.posts.create_post(users.alice, "Temporary", minutes=10)

        assert ctx.posts.delete_post(post.id, users.alice) is True

        assert db.get("posts", post.id)["isActive"] is False
        assert stats_of(db, users.alice)["totalPosts"] == 0
        assert ctx.posts.get_user_posts(users.alice, users.alice) == []
        with pytest.raises(NotFoundError):
            ctx.posts.delete_post(post.id, users.alice)
        with pytest.raises(NotFoundError):
            ctx.posts.update_post(post.id, users.alice, title="Back")
