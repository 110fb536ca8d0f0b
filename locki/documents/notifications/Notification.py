"""Notification document class."""

from typing import Optional

from locki.apis.Db import Db
from locki.documents.DocumentBase import DocumentBase
from locki.exceptions import PermissionDeniedError
from locki.models.firestore_types import NotificationDoc


class Notification(DocumentBase[NotificationDoc]):
    """Per-recipient notification record; userId is the recipient."""

    collection = "notifications"
    pydantic_model = NotificationDoc

    def __init__(self, db: Db, id: str, doc: Optional[dict] = None):
        super().__init__(db, id, doc)

    @property
    def doc(self) -> NotificationDoc:
        return super().doc

    def require_recipient(self, user_id: str):
        if not self.validate_permissions(user_id):
            raise PermissionDeniedError("Notification belongs to another user", resource=self.get_doc_path())

    def mark_read(self) -> bool:
        """Flip isRead; returns False when it was already read."""
        if self.doc.isRead:
            return False
        self.update_doc({"isRead": True})
        return True
