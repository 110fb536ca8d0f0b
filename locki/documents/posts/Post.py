"""Post document class."""

from typing import Optional

from locki.apis.Db import Db
from locki.documents.DocumentBase import DocumentBase
from locki.exceptions import NotFoundError
from locki.models.firestore_types import PostDoc
from locki.models.util_types import PostVisibility

FEED_VISIBILITIES = (PostVisibility.PUBLIC.value, PostVisibility.BUDDIES_ONLY.value)


class Post(DocumentBase[PostDoc]):
    """Logged work session. Posts are soft-deleted through isActive."""

    collection = "posts"
    pydantic_model = PostDoc

    def __init__(self, db: Db, id: str, doc: Optional[dict] = None):
        super().__init__(db, id, doc)

    @property
    def doc(self) -> PostDoc:
        return super().doc

    @classmethod
    def get_active(cls, db: Db, post_id: str) -> "Post":
        """Load a post that has not been deleted.

        Raises:
            NotFoundError: If the post is missing or inactive
        """
        post = cls(db, post_id)
        if not post.doc.isActive:
            raise NotFoundError("Post", post_id)
        return post

    def is_visible_to(self, viewer_id: str, followed_ids: Optional[set] = None) -> bool:
        """Check whether viewer may see this post.

        Args:
            viewer_id: User asking to read the post
            followed_ids: Users the viewer follows (active outbound edges)
        """
        if self.doc.userId == viewer_id:
            return True
        if not self.doc.isActive:
            return False
        if self.doc.visibility == PostVisibility.PUBLIC.value:
            return True
        if self.doc.visibility == PostVisibility.BUDDIES_ONLY.value:
            return self.doc.userId in (followed_ids or set())
        return False
