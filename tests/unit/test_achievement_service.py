"""Tests for achievements and the userStats trigger handler."""

import pytest

from locki.brokers.triggered.on_user_stats_written import handle_user_stats_written
from locki.exceptions import NotFoundError, ValidationError
from locki.services.achievement_service import user_achievement_id_for
from tests.util.service_setup import stats_of


@pytest.fixture
def first_steps(ctx):
    return ctx.achievements.create_achievement(
        "First Steps", "Log three sessions", "milestone", 3, icon_name="flag", metric="totalPosts"
    )


def achievement_notifications(ctx, user_id):
    return [n for n in ctx.notifications.get_notifications(user_id) if n.notificationType == "achievement"]


class TestCatalog:
    def test_secret_achievements_are_hidden(self, ctx, first_steps):
        secret = ctx.achievements.create_achievement("Night Owl", "???", "time", 1, is_secret=True)
        assert [a.id for a in ctx.achievements.get_all_achievements()] == [first_steps.id]
        assert [a.id for a in ctx.achievements.get_all_achievements(include_secret=True)] == [first_steps.id, secret.id]

    @pytest.mark.parametrize("title, category, requirement, metric", [
        ("", "milestone", 1, None),
        ("Bad category", "cooking", 1, None),
        ("Zero", "milestone", 0, None),
        ("Bad metric", "milestone", 1, "totalSteps"),
    ])
    def test_invalid_definitions(self, ctx, title, category, requirement, metric):
        with pytest.raises(ValidationError):
            ctx.achievements.create_achievement(title, "", category, requirement, metric=metric)


class TestProgress:
    def test_completion_notifies_once(self, ctx, users, first_steps):
        record = ctx.achievements.update_progress(users.alice, first_steps.id, 1)
        assert record.id == user_achievement_id_for(users.alice, first_steps.id)
        assert not record.isCompleted
        assert achievement_notifications(ctx, users.alice) == []

        record = ctx.achievements.update_progress(users.alice, first_steps.id, 3)
        assert record.isCompleted
        assert record.unlockedDate is not None
        unlocked_at = record.unlockedDate

        record = ctx.achievements.update_progress(users.alice, first_steps.id, 5)
        assert record.isCompleted
        assert record.unlockedDate == unlocked_at
        assert len(achievement_notifications(ctx, users.alice)) == 1

    def test_completion_is_never_revoked(self, ctx, users, first_steps):
        ctx.achievements.update_progress(users.alice, first_steps.id, 3)
        assert ctx.achievements.update_progress(users.alice, first_steps.id, 1).isCompleted

    def test_unknown_achievement(self, ctx, users):
        with pytest.raises(NotFoundError):
            ctx.achievements.update_progress(users.alice, "missing", 1)

    def test_negative_progress(self, ctx, users, first_steps):
        with pytest.raises(ValidationError):
            ctx.achievements.update_progress(users.alice, first_steps.id, -1)


class TestStatsTrigger:
    def test_posts_drive_progress(self, ctx, db, users, first_steps):
        for i in range(3):
            ctx.posts.create_post(users.alice, f"Session {i}", minutes=30)
            updated = handle_user_stats_written(ctx, users.alice, stats_of(db, users.alice))
            assert [r.progress for r in updated] == [i + 1]

        records = ctx.achievements.get_user_achievements(users.alice)
        assert len(records) == 1 and records[0].isCompleted
        assert len(achievement_notifications(ctx, users.alice)) == 1

    def test_unchanged_stats_write_nothing(self, ctx, db, users, first_steps):
        ctx.posts.create_post(users.alice, "Session", minutes=30)
        handle_user_stats_written(ctx, users.alice, stats_of(db, users.alice))
        assert handle_user_stats_written(ctx, users.alice, stats_of(db, users.alice)) == []

    def test_zero_progress_creates_no_record(self, ctx, db, users, first_steps):
        assert handle_user_stats_written(ctx, users.bob, stats_of(db, users.bob)) == []
        assert ctx.achievements.get_user_achievements(users.bob) == []

    def test_deleted_stats(self, ctx, users, first_steps):
        assert handle_user_stats_written(ctx, users.alice, None) == []
