"""Profile document class."""

from typing import Optional

from locki.apis.Db import Db
from locki.documents.DocumentBase import DocumentBase
from locki.models.firestore_types import ProfileDoc
from locki.util.logger import get_logger

logger = get_logger(__name__)


class Profile(DocumentBase[ProfileDoc]):
    """User profile stored in the users collection, keyed by uid."""

    collection = "users"
    pydantic_model = ProfileDoc
    owner_field = "id"

    def __init__(self, db: Db, id: str, doc: Optional[dict] = None):
        super().__init__(db, id, doc)

    @property
    def doc(self) -> ProfileDoc:
        return super().doc

    @property
    def username(self) -> str:
        return self.doc.username

    def touch_last_active(self):
        """Stamp the profile as active now."""
        self.update_doc({"lastActiveDate": self.db.timestamp_now()})

    def deactivate(self):
        """Soft-deactivate the profile; profiles are never hard-deleted."""
        self.update_doc({"isActive": False})
        logger.info(f"Deactivated profile {self.id}")
