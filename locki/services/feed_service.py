"""Feed composition over the actor's own and buddies' posts."""

from typing import List, Optional

from locki.apis.Db import DESCENDING
from locki.documents.posts import FEED_VISIBILITIES
from locki.models.firestore_types import FeedPost
from locki.util.logger import get_logger

logger = get_logger(__name__)


class FeedService:
    def __init__(self, ctx):
        self.ctx = ctx
        self.db = ctx.db

    def _visible_posts(self, author_ids: List[str], limit: int) -> List[dict]:
        """Up to limit newest feed-visible posts of one chunk of authors.

        Pages of limit * 2 rows are read until enough visible posts are
        found, so a run of private posts cannot hide older visible ones.
        """
        page_size = limit * 2
        visible: List[dict] = []
        cursor = None
        while len(visible) < limit:
            rows = self.db.query(
                "posts",
                [("isActive", "==", True), ("userId", "in", author_ids)],
                order_by=[("createdAt", DESCENDING)],
                limit=page_size,
                start_after=cursor,
            )
            visible += [row for row in rows if row.get("visibility") in FEED_VISIBILITIES]
            if len(rows) < page_size:
                break
            cursor = rows[-1]["id"]
        return visible[:limit]

    def get_feed(self, actor_id: str, limit: Optional[int] = None) -> List[FeedPost]:
        """Newest visible posts of the actor and the users they follow.

        The author ids are queried in chunks of the store's "in" filter cap.
        Every chunk is ordered and limited on its own, so the merged result
        is re-sorted by createdAt and truncated afterwards.

        Args:
            actor_id: User the feed is built for
            limit: Maximum number of posts, settings.feed_default_limit if omitted

        Returns:
            Posts newest first, annotated with isLikedByUser
        """
        limit = limit or self.ctx.settings.feed_default_limit
        author_ids = list(dict.fromkeys([actor_id, *self.ctx.relationships.get_buddy_ids(actor_id)]))

        merged = {}
        for chunk in self.db.chunked(author_ids):
            for row in self._visible_posts(chunk, limit):
                merged.setdefault(row["id"], row)
        visible = sorted(merged.values(), key=lambda row: row["createdAt"], reverse=True)[:limit]

        liked = self.ctx.engagement.liked_post_ids(actor_id, [row["id"] for row in visible])
        logger.info(f"Built feed of {len(visible)} posts for {actor_id} from {len(author_ids)} authors")
        return [FeedPost(**row, isLikedByUser=row["id"] in liked) for row in visible]
