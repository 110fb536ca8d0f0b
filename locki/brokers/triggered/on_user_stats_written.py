"""Trigger keeping achievement progress in step with userStats."""

from typing import List, Optional

from firebase_functions import firestore_fn

from locki.models.firestore_types import UserAchievementDoc
from locki.services.context import ServiceContext, get_default_context
from locki.util.logger import get_logger

logger = get_logger(__name__)


def handle_user_stats_written(ctx: ServiceContext, user_id: str, after_data: Optional[dict]) -> List[UserAchievementDoc]:
    """Handle a userStats write.

    Args:
        ctx: Service context
        user_id: Owner of the stats document
        after_data: Stats after the write, None when the document was deleted

    Returns:
        Achievement progress records that changed
    """
    if not after_data:
        logger.info(f"Stats of {user_id} deleted, nothing to check")
        return []

    updated = ctx.achievements.check_stats(user_id, after_data)
    unlocked = [record.achievementId for record in updated if record.isCompleted]
    logger.info(f"Checked achievements for {user_id}: {len(updated)} updated, unlocked {unlocked}")
    return updated


@firestore_fn.on_document_written(
    document="userStats/{userId}",
    timeout_sec=60,
)
def on_user_stats_written(event: firestore_fn.Event[firestore_fn.Change[firestore_fn.DocumentSnapshot]]):
    """Handle userStats write events.

    Args:
        event: Firestore document write event
    """
    try:
        user_id = event.params["userId"]
        after = event.data.after
        after_data = after.to_dict() if after is not None and after.exists else None

        handle_user_stats_written(get_default_context(), user_id, after_data)

    except Exception as e:
        logger.error(f"Error processing userStats write: {e}")
        raise
