"""Leaderboards ranked over userStats."""

from typing import List, Tuple

from locki.apis.Db import DESCENDING, Db
from locki.documents.profiles import UserStats
from locki.exceptions import ValidationError
from locki.models.util_types import LeaderboardEntry, LeaderboardSortType
from locki.util.dates import month_key, week_key
from locki.util.logger import get_logger

logger = get_logger(__name__)


class LeaderboardService:
    def __init__(self, ctx):
        self.ctx = ctx
        self.db = ctx.db

    def _order_field(self, sort_type: str) -> Tuple[str, List[str]]:
        """Field path to rank by and its segments for reading the value back."""
        try:
            sort_type = LeaderboardSortType(sort_type)
        except ValueError:
            raise ValidationError(f"Unknown leaderboard type '{sort_type}'", field="sortType")
        now = self.db.timestamp_now()
        if sort_type == LeaderboardSortType.HOURS:
            segments = ["totalHours"]
        elif sort_type == LeaderboardSortType.STREAK:
            segments = ["currentStreak"]
        elif sort_type == LeaderboardSortType.WEEKLY:
            segments = ["weeklyHours", week_key(now)]
        else:
            segments = ["monthlyHours", month_key(now)]
        return Db.field_path(*segments), segments

    @staticmethod
    def _value(data: dict, segments: List[str]) -> float:
        for segment in segments:
            if not isinstance(data, dict):
                return 0
            data = data.get(segment)
        return data if isinstance(data, (int, float)) else 0

    def get_leaderboard(self, sort_type: str = LeaderboardSortType.HOURS.value, limit: int = 50) -> List[LeaderboardEntry]:
        """Top users by the chosen metric, ranked from 1.

        Stats rows whose profile is missing or deactivated are skipped and
        do not consume a rank.
        """
        field, segments = self._order_field(sort_type)
        rows = self.db.query("userStats", order_by=[(field, DESCENDING)], limit=limit)
        profiles = {
            profile["id"]: profile
            for profile in self.db.query_chunked("users", "id", [row["userId"] for row in rows])
        }

        entries = []
        for row in rows:
            profile = profiles.get(row["userId"])
            if profile is None or not profile.get("isActive", True):
                continue
            entries.append(LeaderboardEntry(
                rank=len(entries) + 1,
                userId=row["userId"],
                username=profile.get("username", ""),
                displayName=profile.get("displayName", ""),
                profileImageUrl=profile.get("profileImageUrl"),
                value=self._value(row, segments),
            ))
        logger.info(f"Built {sort_type} leaderboard with {len(entries)} entries")
        return entries

    def get_user_rank(self, user_id: str, sort_type: str = LeaderboardSortType.HOURS.value) -> int:
        """1 + number of active users strictly ahead of user_id.

        Deactivated users are left out, as in get_leaderboard.
        """
        field, segments = self._order_field(sort_type)
        stats = UserStats(self.db, user_id)
        value = self._value(stats.doc.model_dump(), segments)
        ahead = self.db.count("userStats", [(field, ">", value)])

        inactive_ids = [row["id"] for row in self.db.query("users", [("isActive", "==", False)])]
        if inactive_ids:
            ahead -= len(self.db.query_chunked("userStats", "userId", inactive_ids, filters=[(field, ">", value)]))
        return ahead + 1
