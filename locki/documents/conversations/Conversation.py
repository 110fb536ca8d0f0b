"""Conversation document class."""

from typing import List, Optional

from locki.apis.Db import Db
from locki.documents.DocumentBase import DocumentBase
from locki.exceptions import PermissionDeniedError, ValidationError
from locki.models.firestore_types import ConversationDoc


def canonical_participants(user_a: str, user_b: str) -> List[str]:
    """Sorted participant pair; the same two users always map to one pair."""
    if not user_a or not user_b:
        raise ValidationError("Both participants are required", field="participants")
    if user_a == user_b:
        raise ValidationError("Cannot start a conversation with yourself", field="participants")
    return sorted([user_a, user_b])


def conversation_id_for(user_a: str, user_b: str) -> str:
    return "_".join(canonical_participants(user_a, user_b))


class Conversation(DocumentBase[ConversationDoc]):
    collection = "conversations"
    pydantic_model = ConversationDoc

    def __init__(self, db: Db, id: str, doc: Optional[dict] = None):
        super().__init__(db, id, doc)

    @property
    def doc(self) -> ConversationDoc:
        return super().doc

    def validate_permissions(self, user_id: str) -> bool:
        return user_id in self.doc.participants

    def require_participant(self, user_id: str) -> str:
        """Return the other participant, or raise if user_id is not a participant."""
        if not self.validate_permissions(user_id):
            raise PermissionDeniedError("Not a participant of this conversation", resource=self.get_doc_path())
        return self.doc.other_participant(user_id)
