"""Post creation with atomic stats maintenance, edits and soft deletes."""

import uuid
from datetime import datetime
from typing import Any, List, Optional

from locki.apis.Db import DESCENDING, Db, Transaction
from locki.documents.posts import Post
from locki.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from locki.models.firestore_types import PostDoc
from locki.models.util_types import PostVisibility
from locki.services.counters import clamped_decrements
from locki.util.dates import days_between, month_key, week_key
from locki.util.logger import get_logger

logger = get_logger(__name__)

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 2000
MAX_TAGS = 10


def parse_whole_number(value: Any, field: str) -> int:
    """Accept ints, integral floats and numeric strings; reject everything else."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a whole number", field=field)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ValidationError(f"{field} must be a whole number", field=field)


def parse_duration(hours: Any, minutes: Any) -> int:
    """Validate a logged duration and return it in minutes."""
    hours = parse_whole_number(hours if hours not in (None, "") else 0, "hours")
    minutes = parse_whole_number(minutes if minutes not in (None, "") else 0, "minutes")
    if hours < 0:
        raise ValidationError("hours cannot be negative", field="hours")
    if not 0 <= minutes < 60:
        raise ValidationError("minutes must be between 0 and 59", field="minutes")
    if hours * 60 + minutes <= 0:
        raise ValidationError("Duration must be greater than zero", field="minutes")
    return hours * 60 + minutes


def parse_visibility(value: Any) -> str:
    try:
        return PostVisibility(value or PostVisibility.PUBLIC.value).value
    except ValueError:
        raise ValidationError(f"Unknown visibility '{value}'", field="visibility")


def parse_tags(tags: Optional[List[str]]) -> List[str]:
    if tags is None:
        return []
    if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
        raise ValidationError("tags must be a list of strings", field="tags")
    cleaned = list(dict.fromkeys(tag.strip().lower() for tag in tags if tag.strip()))
    if len(cleaned) > MAX_TAGS:
        raise ValidationError(f"At most {MAX_TAGS} tags are allowed", field="tags")
    return cleaned


def next_streak(last_post_date: Optional[datetime], current_streak: int, now: datetime) -> int:
    """Streak after posting at now.

    Same day keeps the streak, the next day extends it, any gap restarts it.
    """
    if last_post_date is None:
        return 1
    gap = days_between(last_post_date, now)
    if gap <= 0:
        return max(current_streak, 1)
    if gap == 1:
        return current_streak + 1
    return 1


class PostService:
    def __init__(self, ctx):
        self.ctx = ctx
        self.db = ctx.db

    def create_post(
        self,
        actor_id: str,
        title: str,
        description: str = "",
        hours: Any = 0,
        minutes: Any = 0,
        visibility: str = PostVisibility.PUBLIC.value,
        image: Optional[bytes] = None,
        tags: Optional[List[str]] = None,
    ) -> PostDoc:
        """Create a post and fold its duration into the author's stats.

        The post write and the stats update (totals, week and month buckets,
        streaks) commit in the same transaction.

        Args:
            actor_id: Author
            title: Non-empty title
            description: Optional description
            hours: Whole hours, >= 0
            minutes: Whole minutes, 0-59
            visibility: public, buddies_only or private
            image: Optional JPEG bytes uploaded before the post is written
            tags: Optional tags

        Returns:
            The created PostDoc

        Raises:
            ValidationError: For malformed input
        """
        title = (title or "").strip()
        if not title:
            raise ValidationError("Title is required", field="title")
        if len(title) > TITLE_MAX_LENGTH:
            raise ValidationError(f"Title must be at most {TITLE_MAX_LENGTH} characters", field="title")
        description = (description or "").strip()
        if len(description) > DESCRIPTION_MAX_LENGTH:
            raise ValidationError(f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters", field="description")
        duration = parse_duration(hours, minutes)
        visibility = parse_visibility(visibility)
        tags = parse_tags(tags)
        actor = self.ctx.identity.resolve(actor_id)

        image_url = None
        if image:
            image_url = self.db.upload_blob(f"post_images/{actor_id}/{uuid.uuid4()}.jpg", image)

        now = self.db.timestamp_now()
        post = PostDoc(
            id=self.db.new_id("posts"),
            userId=actor_id,
            username=actor.username,
            title=title,
            description=description,
            hours=duration // 60,
            minutes=duration % 60,
            imageUrl=image_url,
            visibility=visibility,
            tags=tags,
            createdAt=now,
            lastUpdatedAt=now,
        )
        logged_hours = duration / 60

        def _create(txn: Transaction):
            stats = txn.get("userStats", actor_id)
            if stats is None:
                raise NotFoundError("UserStats", actor_id)
            total_minutes = (stats.get("totalMinutes") or 0) + duration
            streak = next_streak(stats.get("lastPostDate"), stats.get("currentStreak") or 0, now)
            txn.create("posts", post.id, post.model_dump())
            txn.update("userStats", actor_id, {
                "totalPosts": Db.increment(1),
                "totalMinutes": Db.increment(duration),
                "totalHours": total_minutes // 60,
                Db.field_path("weeklyHours", week_key(now)): Db.increment(logged_hours),
                Db.field_path("monthlyHours", month_key(now)): Db.increment(logged_hours),
                "currentStreak": streak,
                "longestStreak": max(stats.get("longestStreak") or 0, streak),
                "lastPostDate": now,
                "lastActivityDate": now,
                "lastUpdatedAt": now,
            })

        self.db.run_transaction(_create)
        logger.info(f"User {actor_id} created post {post.id} ({duration} minutes)")
        return post

    def get_post(self, post_id: str, viewer_id: str) -> PostDoc:
        """Read a post the viewer is allowed to see.

        Raises:
            NotFoundError: If the post is missing, deleted or hidden from the viewer
        """
        post = Post(self.db, post_id)
        followed = set(self.ctx.relationships.get_buddy_ids(viewer_id)) if post.doc.userId != viewer_id else set()
        if not post.doc.isActive or not post.is_visible_to(viewer_id, followed):
            raise NotFoundError("Post", post_id)
        return post.doc

    def get_user_posts(self, user_id: str, viewer_id: str, limit: int = 20) -> List[PostDoc]:
        """A user's active posts visible to the viewer, newest first."""
        rows = self.db.query(
            "posts",
            [("userId", "==", user_id), ("isActive", "==", True)],
            order_by=[("createdAt", DESCENDING)],
            limit=limit,
        )
        followed = set(self.ctx.relationships.get_buddy_ids(viewer_id)) if user_id != viewer_id else set()
        posts = [Post(self.db, row["id"], row) for row in rows]
        return [post.doc for post in posts if post.is_visible_to(viewer_id, followed)]

    def update_post(
        self,
        post_id: str,
        actor_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        visibility: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> PostDoc:
        """Edit the descriptive fields of an owned post. Durations are immutable."""
        post = Post.get_active(self.db, post_id)
        if not post.validate_permissions(actor_id):
            raise PermissionDeniedError("Only the author can edit this post", resource=post.get_doc_path())

        changes = {}
        if title is not None:
            title = title.strip()
            if not title or len(title) > TITLE_MAX_LENGTH:
                raise ValidationError(f"Title must be 1-{TITLE_MAX_LENGTH} characters", field="title")
            changes["title"] = title
        if description is not None:
            if len(description.strip()) > DESCRIPTION_MAX_LENGTH:
                raise ValidationError(f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters", field="description")
            changes["description"] = description.strip()
        if visibility is not None:
            changes["visibility"] = parse_visibility(visibility)
        if tags is not None:
            changes["tags"] = parse_tags(tags)

        if changes:
            post.update_doc(changes)
            logger.info(f"Updated post {post_id}: {sorted(changes)}")
        return post.doc

    def delete_post(self, post_id: str, actor_id: str) -> bool:
        """Soft-delete an owned post and decrement the author's totalPosts."""
        now = self.db.timestamp_now()

        def _delete(txn: Transaction) -> bool:
            post = txn.get("posts", post_id)
            if post is None or not post.get("isActive", True):
                raise NotFoundError("Post", post_id)
            if post["userId"] != actor_id:
                raise PermissionDeniedError("Only the author can delete this post", resource=f"posts/{post_id}")
            stats = txn.get("userStats", actor_id)
            txn.update("posts", post_id, {"isActive": False, "lastUpdatedAt": now})
            update = clamped_decrements(stats, "totalPosts")
            if update:
                txn.update("userStats", actor_id, {**update, "lastUpdatedAt": now})
            return True

        deleted = self.db.run_transaction(_delete)
        logger.info(f"User {actor_id} deleted post {post_id}")
        return deleted
