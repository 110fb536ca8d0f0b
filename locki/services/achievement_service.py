"""Achievement catalog and per-user progress."""

from typing import Any, Dict, List, Optional

from locki.apis.Db import ASCENDING, Transaction, WriteOp
from locki.documents.profiles import METRIC_FIELDS
from locki.exceptions import NotFoundError, ValidationError
from locki.models.firestore_types import AchievementDoc, UserAchievementDoc
from locki.models.util_types import AchievementCategory
from locki.util.logger import get_logger

logger = get_logger(__name__)


def user_achievement_id_for(user_id: str, achievement_id: str) -> str:
    return f"{user_id}_{achievement_id}"


class AchievementService:
    """Unlocks achievements as their tracked progress reaches the requirement.

    A progress record is completed at most once; the unlock notification is
    sent only for the update that completed it.
    """

    def __init__(self, ctx):
        self.ctx = ctx
        self.db = ctx.db

    def create_achievement(
        self,
        title: str,
        description: str,
        category: str,
        requirement: int,
        icon_name: str = "",
        metric: Optional[str] = None,
        points: int = 10,
        is_secret: bool = False,
    ) -> AchievementDoc:
        """Add an achievement to the catalog.

        Args:
            title: Display title
            description: What unlocks it
            category: AchievementCategory value
            requirement: Progress needed, must be positive
            icon_name: Client icon name
            metric: userStats counter tracked automatically, if any
            points: Points awarded
            is_secret: Hidden from the catalog until unlocked

        Raises:
            ValidationError: For an empty title, unknown category or metric,
                or a non-positive requirement
        """
        title = (title or "").strip()
        if not title:
            raise ValidationError("Title is required", field="title")
        if isinstance(requirement, bool) or not isinstance(requirement, int) or requirement <= 0:
            raise ValidationError("requirement must be a positive integer", field="requirement")
        try:
            category = AchievementCategory(category).value
        except ValueError:
            raise ValidationError(f"Unknown category '{category}'", field="category")
        if metric is not None and metric not in METRIC_FIELDS:
            raise ValidationError(f"Unknown metric '{metric}'", field="metric")

        now = self.db.timestamp_now()
        achievement = AchievementDoc(
            id=self.db.new_id("achievements"),
            title=title,
            description=description or "",
            iconName=icon_name,
            category=category,
            requirement=requirement,
            metric=metric,
            isSecret=is_secret,
            points=points,
            createdAt=now,
            lastUpdatedAt=now,
        )
        self.db.commit([WriteOp.create("achievements", achievement.id, achievement.model_dump())])
        logger.info(f"Created achievement {achievement.id} ({title})")
        return achievement

    def get_all_achievements(self, include_secret: bool = False) -> List[AchievementDoc]:
        rows = self.db.query("achievements", order_by=[("createdAt", ASCENDING)])
        achievements = [AchievementDoc(**row) for row in rows]
        if include_secret:
            return achievements
        return [achievement for achievement in achievements if not achievement.isSecret]

    def get_user_achievements(self, user_id: str) -> List[UserAchievementDoc]:
        rows = self.db.query("userAchievements", [("userId", "==", user_id)])
        return [UserAchievementDoc(**row) for row in rows]

    def update_progress(self, user_id: str, achievement_id: str, progress: int) -> UserAchievementDoc:
        """Record progress and complete the achievement once the requirement is met.

        Returns:
            The stored progress record

        Raises:
            NotFoundError: If the achievement does not exist
            ValidationError: If progress is negative
        """
        if isinstance(progress, bool) or not isinstance(progress, int) or progress < 0:
            raise ValidationError("progress must be a non-negative integer", field="progress")
        record_id = user_achievement_id_for(user_id, achievement_id)
        now = self.db.timestamp_now()

        def _update(txn: Transaction):
            achievement = txn.get("achievements", achievement_id)
            if achievement is None:
                raise NotFoundError("Achievement", achievement_id)
            existing = txn.get("userAchievements", record_id)
            was_completed = bool(existing and existing.get("isCompleted"))
            completed = was_completed or progress >= achievement["requirement"]
            record = UserAchievementDoc(
                id=record_id,
                userId=user_id,
                achievementId=achievement_id,
                progress=progress,
                isCompleted=completed,
                unlockedDate=(existing or {}).get("unlockedDate") or (now if completed else None),
                createdAt=(existing or {}).get("createdAt") or now,
                lastUpdatedAt=now,
            )
            txn.set("userAchievements", record_id, record.model_dump())
            return record, achievement, completed and not was_completed

        record, achievement, newly_completed = self.db.run_transaction(_update)
        if newly_completed:
            logger.info(f"User {user_id} unlocked achievement {achievement_id}")
            self.ctx.notifications.notify_achievement(
                user_id, achievement_id, achievement["title"], achievement.get("description", "")
            )
        return record

    def check_stats(self, user_id: str, stats: Dict[str, Any]) -> List[UserAchievementDoc]:
        """Feed the metric-tracked achievements with the user's current stats.

        Records whose progress did not change are left untouched.

        Returns:
            The progress records that were written
        """
        tracked = [a for a in self.get_all_achievements(include_secret=True) if a.metric]
        if not tracked:
            return []
        current = {record.achievementId: record for record in self.get_user_achievements(user_id)}

        updated = []
        for achievement in tracked:
            value = stats.get(achievement.metric) or 0
            progress = int(value) if isinstance(value, (int, float)) and not isinstance(value, bool) else 0
            record = current.get(achievement.id)
            if record is not None and (record.progress == progress or record.isCompleted):
                continue
            if record is None and progress == 0:
                continue
            updated.append(self.update_progress(user_id, achievement.id, progress))
        return updated
