"""Engagement ledger: likes, comments and their counters."""

from typing import List, Set

from locki.apis.Db import ASCENDING, DESCENDING, Db, Transaction
from locki.exceptions import AlreadyLikedError, NotFoundError, PermissionDeniedError, ValidationError
from locki.models.firestore_types import PostCommentDoc, PostLikeDoc
from locki.services.counters import clamped_decrements
from locki.util.logger import get_logger

logger = get_logger(__name__)

COMMENT_MAX_LENGTH = 1000


def like_id_for(post_id: str, user_id: str) -> str:
    return f"{post_id}_{user_id}"


def _require_active_post(post_data, post_id: str):
    if post_data is None or not post_data.get("isActive", True):
        raise NotFoundError("Post", post_id)


def _clean_comment(content: str) -> str:
    content = (content or "").strip()
    if not content:
        raise ValidationError("Comment cannot be empty", field="content")
    if len(content) > COMMENT_MAX_LENGTH:
        raise ValidationError(f"Comment must be at most {COMMENT_MAX_LENGTH} characters", field="content")
    return content


class EngagementService:
    """Likes and comments on posts.

    Every ledger write and its counter updates commit in one transaction
    over deterministic ids, so at most one like exists per (post, user)
    even under concurrent calls.
    """

    def __init__(self, ctx):
        self.ctx = ctx
        self.db = ctx.db

    def like(self, post_id: str, actor_id: str) -> PostLikeDoc:
        """Like a post.

        Args:
            post_id: Post to like
            actor_id: User liking the post

        Returns:
            The created PostLikeDoc

        Raises:
            NotFoundError: If the post is missing or deleted
            AlreadyLikedError: If the user already likes the post
        """
        actor = self.ctx.identity.resolve(actor_id)
        like_id = like_id_for(post_id, actor_id)
        now = self.db.timestamp_now()
        like = PostLikeDoc(
            id=like_id,
            postId=post_id,
            userId=actor_id,
            username=actor.username,
            createdAt=now,
            lastUpdatedAt=now,
        )

        def _like(txn: Transaction) -> str:
            post_data = txn.get("posts", post_id)
            _require_active_post(post_data, post_id)
            if txn.get("postLikes", like_id) is not None:
                raise AlreadyLikedError(post_id, actor_id)
            txn.create("postLikes", like_id, like.model_dump())
            txn.update("posts", post_id, {"likeCount": Db.increment(1), "lastUpdatedAt": now})
            txn.update("userStats", actor_id, {"totalLikes": Db.increment(1), "lastActivityDate": now, "lastUpdatedAt": now})
            return post_data["userId"]

        owner_id = self.db.run_transaction(_like)
        logger.info(f"User {actor_id} liked post {post_id}")

        self.ctx.notifications.notify_like(owner_id, actor_id, actor.username, post_id)
        return like

    def unlike(self, post_id: str, actor_id: str) -> bool:
        """Remove a like. Returns False without writing when there is none."""
        like_id = like_id_for(post_id, actor_id)
        now = self.db.timestamp_now()

        def _unlike(txn: Transaction) -> bool:
            like_data = txn.get("postLikes", like_id)
            if like_data is None:
                return False
            post_data = txn.get("posts", post_id)
            stats_data = txn.get("userStats", actor_id)
            txn.delete("postLikes", like_id)
            post_update = clamped_decrements(post_data, "likeCount")
            if post_update:
                txn.update("posts", post_id, {**post_update, "lastUpdatedAt": now})
            stats_update = clamped_decrements(stats_data, "totalLikes")
            if stats_update:
                txn.update("userStats", actor_id, {**stats_update, "lastUpdatedAt": now})
            return True

        removed = self.db.run_transaction(_unlike)
        if removed:
            logger.info(f"User {actor_id} unliked post {post_id}")
        return removed

    def is_liked(self, post_id: str, actor_id: str) -> bool:
        return self.db.get("postLikes", like_id_for(post_id, actor_id)) is not None

    def liked_post_ids(self, actor_id: str, post_ids: List[str]) -> Set[str]:
        """Subset of post_ids the actor likes, one chunked query per in-filter batch."""
        if not post_ids:
            return set()
        rows = self.db.query_chunked("postLikes", "postId", post_ids, filters=[("userId", "==", actor_id)])
        return {row["postId"] for row in rows}

    def get_post_likes(self, post_id: str, limit: int = 50) -> List[PostLikeDoc]:
        rows = self.db.query("postLikes", [("postId", "==", post_id)], order_by=[("createdAt", DESCENDING)], limit=limit)
        return [PostLikeDoc(**row) for row in rows]

    def add_comment(self, post_id: str, actor_id: str, content: str) -> PostCommentDoc:
        """Comment on a post.

        Raises:
            ValidationError: If the content is empty after trimming
            NotFoundError: If the post is missing or deleted
        """
        content = _clean_comment(content)
        actor = self.ctx.identity.resolve(actor_id)
        now = self.db.timestamp_now()
        comment = PostCommentDoc(
            id=self.db.new_id("postComments"),
            postId=post_id,
            userId=actor_id,
            username=actor.username,
            content=content,
            createdAt=now,
            lastUpdatedAt=now,
        )

        def _comment(txn: Transaction) -> str:
            post_data = txn.get("posts", post_id)
            _require_active_post(post_data, post_id)
            txn.create("postComments", comment.id, comment.model_dump())
            txn.update("posts", post_id, {"commentCount": Db.increment(1), "lastUpdatedAt": now})
            txn.update("userStats", actor_id, {"totalComments": Db.increment(1), "lastActivityDate": now, "lastUpdatedAt": now})
            return post_data["userId"]

        owner_id = self.db.run_transaction(_comment)
        logger.info(f"User {actor_id} commented on post {post_id}")

        self.ctx.notifications.notify_comment(owner_id, actor_id, actor.username, post_id, content)
        return comment

    def update_comment(self, comment_id: str, actor_id: str, content: str) -> PostCommentDoc:
        content = _clean_comment(content)
        data = self.db.get("postComments", comment_id)
        if data is None or not data.get("isActive", True):
            raise NotFoundError("Comment", comment_id)
        if data["userId"] != actor_id:
            raise PermissionDeniedError("Only the author can edit this comment", resource=f"postComments/{comment_id}")
        now = self.db.timestamp_now()
        self.db.batch().update("postComments", comment_id, {"content": content, "lastUpdatedAt": now}).commit()
        return PostCommentDoc(**{**data, "content": content, "lastUpdatedAt": now})

    def delete_comment(self, comment_id: str, actor_id: str) -> bool:
        """Soft-delete a comment and decrement its counters."""
        now = self.db.timestamp_now()

        def _delete(txn: Transaction) -> bool:
            comment = txn.get("postComments", comment_id)
            if comment is None or not comment.get("isActive", True):
                raise NotFoundError("Comment", comment_id)
            if comment["userId"] != actor_id:
                raise PermissionDeniedError("Only the author can delete this comment", resource=f"postComments/{comment_id}")
            post_id = comment["postId"]
            post_data = txn.get("posts", post_id)
            stats_data = txn.get("userStats", actor_id)
            txn.update("postComments", comment_id, {"isActive": False, "lastUpdatedAt": now})
            post_update = clamped_decrements(post_data, "commentCount")
            if post_update:
                txn.update("posts", post_id, {**post_update, "lastUpdatedAt": now})
            stats_update = clamped_decrements(stats_data, "totalComments")
            if stats_update:
                txn.update("userStats", actor_id, {**stats_update, "lastUpdatedAt": now})
            return True

        deleted = self.db.run_transaction(_delete)
        logger.info(f"User {actor_id} deleted comment {comment_id}")
        return deleted

    def get_post_comments(self, post_id: str, limit: int = 50) -> List[PostCommentDoc]:
        """Active comments of a post, oldest first."""
        rows = self.db.query(
            "postComments",
            [("postId", "==", post_id), ("isActive", "==", True)],
            order_by=[("createdAt", ASCENDING)],
            limit=limit,
        )
        return [PostCommentDoc(**row) for row in rows]
