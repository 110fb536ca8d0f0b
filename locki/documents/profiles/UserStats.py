"""UserStats document class."""

from typing import Optional

from locki.apis.Db import Db
from locki.documents.DocumentBase import DocumentBase
from locki.models.firestore_types import UserStatsDoc

# Numeric userStats fields an achievement can track
METRIC_FIELDS = (
    "totalHours",
    "totalMinutes",
    "currentStreak",
    "longestStreak",
    "totalPosts",
    "totalLikes",
    "totalComments",
    "buddyCount",
)


class UserStats(DocumentBase[UserStatsDoc]):
    collection = "userStats"
    pydantic_model = UserStatsDoc

    def __init__(self, db: Db, id: str, doc: Optional[dict] = None):
        super().__init__(db, id, doc)

    @property
    def doc(self) -> UserStatsDoc:
        return super().doc
