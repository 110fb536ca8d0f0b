"""Tests for likes, comments and their counters."""

import threading

import pytest

from locki.exceptions import AlreadyLikedError, NetworkError, NotFoundError, PermissionDeniedError, ValidationError
from locki.services.engagement_service import like_id_for
from tests.util.service_setup import stats_of


@pytest.fixture
def post_id(ctx, users):
    return ctx.posts.create_post(users.alice, "Deep work", hours=1, minutes=30).id


def like_count(db, post_id):
    return db.get("posts", post_id)["likeCount"]


class TestLikes:
    def test_like_then_unlike_restores_counters(self, ctx, db, users, post_id):
        before = stats_of(db, users.bob)["totalLikes"]

        like = ctx.engagement.like(post_id, users.bob)
        assert like.id == like_id_for(post_id, users.bob)
        assert like.username == "bob"
        assert like_count(db, post_id) == 1
        assert stats_of(db, users.bob)["totalLikes"] == before + 1
        assert ctx.engagement.is_liked(post_id, users.bob)

        assert ctx.engagement.unlike(post_id, users.bob) is True
        assert like_count(db, post_id) == 0
        assert stats_of(db, users.bob)["totalLikes"] == before
        assert not ctx.engagement.is_liked(post_id, users.bob)

    def test_second_like_fails_and_leaves_counters_unchanged(self, ctx, db, users, post_id):
        ctx.engagement.like(post_id, users.bob)
        with pytest.raises(AlreadyLikedError) as exc_info:
            ctx.engagement.like(post_id, users.bob)
        assert exc_info.value.code == "ALREADY_LIKED"
        assert like_count(db, post_id) == 1
        assert stats_of(db, users.bob)["totalLikes"] == 1

    def test_unlike_without_like_is_a_noop(self, ctx, db, users, post_id):
        assert ctx.engagement.unlike(post_id, users.bob) is False
        assert like_count(db, post_id) == 0
        assert stats_of(db, users.bob)["totalLikes"] == 0

    def test_counters_never_go_negative(self, ctx, db, users, post_id):
        ctx.engagement.like(post_id, users.bob)
        db.seed("posts", post_id, {**db.get("posts", post_id), "likeCount": 0})
        ctx.engagement.unlike(post_id, users.bob)
        assert like_count(db, post_id) == 0

    def test_like_on_deleted_post_raises(self, ctx, users, post_id):
        ctx.posts.delete_post(post_id, users.alice)
        with pytest.raises(NotFoundError):
            ctx.engagement.like(post_id, users.bob)

    def test_concurrent_likes_create_one_record(self, ctx, db, users, post_id):
        results = []
        barrier = threading.Barrier(8)

        def _like():
            barrier.wait()
            try:
                ctx.engagement.like(post_id, users.bob)
                results.append("liked")
            except AlreadyLikedError:
                results.append("duplicate")

        threads = [threading.Thread(target=_like) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count("liked") == 1
        assert results.count("duplicate") == 7
        assert like_count(db, post_id) == 1
        assert len(db.query("postLikes", [("postId", "==", post_id)])) == 1

    def test_like_notifies_owner(self, ctx, users, post_id):
        ctx.engagement.like(post_id, users.bob)
        notifications = ctx.notifications.get_notifications(users.alice)
        assert len(notifications) == 1
        assert notifications[0].notificationType == "like"
        assert notifications[0].relatedUserId == users.bob
        assert notifications[0].relatedPostId == post_id

    def test_self_like_does_not_notify(self, ctx, users, post_id):
        ctx.engagement.like(post_id, users.alice)
        assert ctx.notifications.get_notifications(users.alice) == []

    def test_notification_failure_keeps_the_like(self, ctx, db, users, post_id):
        db.fail_writes("notifications", NetworkError("notifications offline"))
        ctx.engagement.like(post_id, users.bob)
        assert like_count(db, post_id) == 1
        assert ctx.engagement.is_liked(post_id, users.bob)

    def test_liked_post_ids_spans_chunks(self, ctx, users):
        post_ids = [ctx.posts.create_post(users.alice, f"Session {i}", minutes=10).id for i in range(15)]
        for post_id in post_ids[::2]:
            ctx.engagement.like(post_id, users.bob)
        assert ctx.engagement.liked_post_ids(users.bob, post_ids) == set(post_ids[::2])
        assert ctx.engagement.liked_post_ids(users.bob, []) == set()


class TestComments:
    def test_add_comment_updates_counters_and_notifies(self, ctx, db, users, post_id):
        comment = ctx.engagement.add_comment(post_id, users.bob, "  Nice session!  ")
        assert comment.content == "Nice session!"
        assert db.get("posts", post_id)["commentCount"] == 1
        assert stats_of(db, users.bob)["totalComments"] == 1

        notification = ctx.notifications.get_notifications(users.alice)[0]
        assert notification.notificationType == "comment"
        assert notification.message == "bob: Nice session!"

    def test_comment_preview_is_truncated(self, ctx, users, post_id):
        ctx.engagement.add_comment(post_id, users.bob, "x" * 200)
        notification = ctx.notifications.get_notifications(users.alice)[0]
        assert notification.message == "bob: " + "x" * ctx.settings.notification_preview_length

    def test_empty_comment_is_rejected(self, ctx, db, users, post_id):
        with pytest.raises(ValidationError):
            ctx.engagement.add_comment(post_id, users.bob, "   ")
        assert db.get("posts", post_id)["commentCount"] == 0

    def test_comments_are_listed_oldest_first(self, ctx, users, post_id):
        for text in ("first", "second", "third"):
            ctx.engagement.add_comment(post_id, users.bob, text)
        assert [c.content for c in ctx.engagement.get_post_comments(post_id)] == ["first", "second", "third"]

    def test_only_author_can_edit_or_delete(self, ctx, users, post_id):
        comment = ctx.engagement.add_comment(post_id, users.bob, "hello")
        with pytest.raises(PermissionDeniedError):
            ctx.engagement.update_comment(comment.id, users.carol, "hijack")
        with pytest.raises(PermissionDeniedError):
            ctx.engagement.delete_comment(comment.id, users.carol)
        assert ctx.engagement.update_comment(comment.id, users.bob, "edited").content == "edited"

    def test_delete_comment_decrements_counters(self, ctx, db, users, post_id):
        comment = ctx.engagement.add_comment(post_id, users.bob, "hello")
        assert ctx.engagement.delete_comment(comment.id, users.bob) is True
        assert db.get("posts", post_id)["commentCount"] == 0
        assert stats_of(db, users.bob)["totalComments"] == 0
        assert ctx.engagement.get_post_comments(post_id) == []
        with pytest.raises(NotFoundError):
            ctx.engagement.delete_comment(comment.id, users.bob)
