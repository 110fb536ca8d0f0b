"""Notification fan-out and read state."""

import queue
from typing import Any, Dict, List, Optional, Set

from locki.apis.Db import DESCENDING, Subscription, WriteOp
from locki.documents.notifications import Notification
from locki.models.firestore_types import NotificationDoc
from locki.models.util_types import NotificationType
from locki.util.logger import get_logger

logger = get_logger(__name__)


class NotificationService:
    """Turns domain events into per-recipient notification records.

    Emission is best effort: a failed write is logged and swallowed so the
    operation that triggered it still succeeds.
    """

    def __init__(self, ctx):
        self.ctx = ctx
        self.db = ctx.db

    def emit(
        self,
        recipient_id: str,
        notification_type: NotificationType,
        title: str,
        message: str,
        related_user_id: Optional[str] = None,
        related_username: Optional[str] = None,
        related_post_id: Optional[str] = None,
        action_data: Optional[Dict[str, Any]] = None,
    ) -> Optional[NotificationDoc]:
        """Write one notification.

        Returns:
            The created NotificationDoc, or None if the write failed
        """
        try:
            now = self.db.timestamp_now()
            notification = NotificationDoc(
                id=self.db.new_id("notifications"),
                userId=recipient_id,
                title=title,
                message=message,
                notificationType=notification_type,
                relatedUserId=related_user_id,
                relatedUsername=related_username,
                relatedPostId=related_post_id,
                actionData=action_data,
                createdAt=now,
                lastUpdatedAt=now,
            )
            self.db.commit([WriteOp.create("notifications", notification.id, notification.model_dump())])
            logger.info(f"Sent {notification.notificationType} notification to {recipient_id}")
            return notification
        except Exception as e:
            logger.warning(f"Failed to send {notification_type} notification to {recipient_id}: {e}")
            return None

    # Event table
    def notify_like(self, owner_id: str, actor_id: str, actor_username: str, post_id: str):
        if owner_id == actor_id:
            return None
        return self.emit(
            owner_id,
            NotificationType.LIKE,
            "New Like",
            f"{actor_username} liked your post",
            related_user_id=actor_id,
            related_username=actor_username,
            related_post_id=post_id,
        )

    def notify_comment(self, owner_id: str, actor_id: str, actor_username: str, post_id: str, content: str):
        if owner_id == actor_id:
            return None
        preview = content[: self.ctx.settings.notification_preview_length]
        return self.emit(
            owner_id,
            NotificationType.COMMENT,
            "New Comment",
            f"{actor_username}: {preview}",
            related_user_id=actor_id,
            related_username=actor_username,
            related_post_id=post_id,
        )

    def notify_buddy_request(self, target_id: str, requester_id: str, requester_username: str):
        return self.emit(
            target_id,
            NotificationType.FOLLOW,
            "New Buddy Request",
            f"{requester_username} wants to be your buddy",
            related_user_id=requester_id,
            related_username=requester_username,
            action_data={"action": "buddy_request", "requesterId": requester_id},
        )

    def notify_buddy_accepted(self, requester_id: str, accepter_id: str, accepter_username: str):
        return self.emit(
            requester_id,
            NotificationType.FOLLOW,
            "Buddy Request Accepted",
            f"{accepter_username} accepted your buddy request",
            related_user_id=accepter_id,
            related_username=accepter_username,
        )

    def notify_message(self, receiver_id: str, sender_id: str, sender_username: str, content: str, conversation_id: str):
        return self.emit(
            receiver_id,
            NotificationType.MESSAGE,
            "New Message",
            f"{sender_username}: {content}",
            related_user_id=sender_id,
            related_username=sender_username,
            action_data={"conversationId": conversation_id},
        )

    def notify_achievement(self, user_id: str, achievement_id: str, title: str, description: str):
        return self.emit(
            user_id,
            NotificationType.ACHIEVEMENT,
            "Achievement Unlocked! 🏆",
            f"{title}: {description}",
            action_data={"achievementId": achievement_id},
        )

    # Read state
    def get_notifications(self, user_id: str, limit: int = 50, unread_only: bool = False) -> List[NotificationDoc]:
        filters = [("userId", "==", user_id)]
        if unread_only:
            filters.append(("isRead", "==", False))
        rows = self.db.query("notifications", filters, order_by=[("createdAt", DESCENDING)], limit=limit)
        return [NotificationDoc(**row) for row in rows]

    def get_unread_count(self, user_id: str) -> int:
        return self.db.count("notifications", [("userId", "==", user_id), ("isRead", "==", False)])

    def mark_as_read(self, notification_id: str, reader_id: str) -> bool:
        """Mark one notification read.

        Returns:
            True if it was unread before, False if it was already read

        Raises:
            NotFoundError: If the notification does not exist
            PermissionDeniedError: If reader_id is not the recipient
        """
        notification = Notification(self.db, notification_id)
        notification.require_recipient(reader_id)
        return notification.mark_read()

    def mark_all_as_read(self, user_id: str) -> int:
        """Mark every unread notification of the user read; returns how many changed."""
        unread = self.db.query("notifications", [("userId", "==", user_id), ("isRead", "==", False)])
        now = self.db.timestamp_now()
        ops = [WriteOp.update("notifications", row["id"], {"isRead": True, "lastUpdatedAt": now}) for row in unread]
        for start in range(0, len(ops), self.db.BATCH_LIMIT):
            self.db.commit(ops[start:start + self.db.BATCH_LIMIT])
        logger.info(f"Marked {len(ops)} notifications read for {user_id}")
        return len(ops)

    def delete_notification(self, notification_id: str, user_id: str):
        notification = Notification(self.db, notification_id)
        notification.require_recipient(user_id)
        notification.delete()
        logger.info(f"Deleted notification {notification_id}")

    def subscribe(self, user_id: str, limit: int = 50) -> Subscription[NotificationDoc]:
        """Live view of the user's newest notifications."""
        return self.db.subscribe(
            "notifications",
            [("userId", "==", user_id)],
            order_by=[("createdAt", DESCENDING)],
            limit=limit,
            transform=lambda row: NotificationDoc(**row),
        )


class NotificationInbox:
    """Client-side notification cache with a locally maintained unread count.

    The count is never recomputed after load(). Live updates from the
    notification subscription are folded in per item: a new unread
    notification increments it, a read transition decrements it, and
    mark_all_as_read zeroes it. Read state is monotonic, so a stale update
    never turns a read notification unread again.
    """

    def __init__(self, service: NotificationService, user_id: str):
        self.service = service
        self.user_id = user_id
        self.notifications: List[NotificationDoc] = []
        self.unread_count = 0
        self._read_ids: Set[str] = set()
        self._subscription: Optional[Subscription[NotificationDoc]] = None

    def load(self, limit: int = 50) -> List[NotificationDoc]:
        self.close()
        self._subscription = self.service.subscribe(self.user_id, limit=limit)
        self.unread_count = self.service.get_unread_count(self.user_id)
        self.notifications = self.service.get_notifications(self.user_id, limit=limit)
        self._read_ids = {n.id for n in self.notifications if n.isRead}
        return self.notifications

    def refresh(self) -> List[NotificationDoc]:
        """Fold every pending live update into the cache."""
        if self._subscription is None:
            return self.notifications
        while True:
            try:
                snapshot = self._subscription.get(timeout=0)
            except queue.Empty:
                break
            self._fold(snapshot)
        return self.notifications

    def _fold(self, snapshot: List[NotificationDoc]):
        known = {n.id: n for n in self.notifications}
        merged = []
        for notification in snapshot:
            previous = known.get(notification.id)
            if notification.id in self._read_ids:
                notification = notification.model_copy(update={"isRead": True})
            elif notification.isRead:
                self._read_ids.add(notification.id)
                if previous is not None:
                    self.unread_count = max(0, self.unread_count - 1)
            elif previous is None:
                self.unread_count += 1
            merged.append(notification)
        self.notifications = merged

    def mark_as_read(self, notification_id: str) -> bool:
        self.refresh()
        changed = self.service.mark_as_read(notification_id, self.user_id)
        if changed and notification_id not in self._read_ids:
            self.unread_count = max(0, self.unread_count - 1)
        self._read_ids.add(notification_id)
        self.notifications = [
            n.model_copy(update={"isRead": True}) if n.id == notification_id else n
            for n in self.notifications
        ]
        return changed

    def mark_all_as_read(self) -> int:
        self.refresh()
        changed = self.service.mark_all_as_read(self.user_id)
        self.unread_count = 0
        self._read_ids.update(n.id for n in self.notifications)
        self.notifications = [n.model_copy(update={"isRead": True}) for n in self.notifications]
        return changed

    def close(self):
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
