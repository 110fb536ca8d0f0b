"""Conversations, messages and per-participant unread counters."""

from typing import List, Optional

from locki.apis.Db import ASCENDING, DESCENDING, Db, Subscription, Transaction
from locki.documents.conversations import Conversation, canonical_participants
from locki.documents.profiles import Profile
from locki.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from locki.models.firestore_types import ConversationDoc, MessageDoc
from locki.models.util_types import MessageType
from locki.util.logger import get_logger

logger = get_logger(__name__)

MESSAGE_MAX_LENGTH = 2000


class MessagingService:
    """Two-party conversations.

    A conversation id is derived from the sorted participant pair, so
    get-or-create is a single transaction and never produces duplicates.
    """

    def __init__(self, ctx):
        self.ctx = ctx
        self.db = ctx.db

    def get_or_create_conversation(self, user_a: str, user_b: str) -> str:
        """Return the id of the conversation between the users, creating it if needed.

        Raises:
            ValidationError: If both ids are the same user
            NotFoundError: If the other user has no profile
            PermissionDeniedError: If the other user does not accept messages
        """
        participants = canonical_participants(user_a, user_b)
        conversation_id = "_".join(participants)
        actor = self.ctx.identity.resolve(user_a)
        other = Profile.find(self.db, user_b)
        if other is None or not other.doc.isActive:
            raise NotFoundError("Profile", user_b)
        now = self.db.timestamp_now()
        conversation = ConversationDoc(
            id=conversation_id,
            participants=participants,
            participantUsernames={user_a: actor.username, user_b: other.username},
            lastMessageTimestamp=now,
            unreadCount={user_a: 0, user_b: 0},
            createdAt=now,
            lastUpdatedAt=now,
        )

        def _get_or_create(txn: Transaction) -> bool:
            existing = txn.get("conversations", conversation_id)
            if existing is not None:
                if not existing.get("isActive", True):
                    txn.update("conversations", conversation_id, {"isActive": True, "lastUpdatedAt": now})
                return False
            if not other.doc.allowsMessages:
                raise PermissionDeniedError(f"{other.username} does not accept messages", resource=f"users/{user_b}")
            txn.create("conversations", conversation_id, conversation.model_dump())
            return True

        created = self.db.run_transaction(_get_or_create)
        if created:
            logger.info(f"Created conversation {conversation_id}")
        return conversation_id

    def send_message(
        self,
        conversation_id: str,
        sender_id: str,
        content: str,
        message_type: str = MessageType.TEXT.value,
    ) -> MessageDoc:
        """Write a message, refresh the lastMessage snapshot and bump the receiver's unread count.

        Raises:
            ValidationError: For empty content or an unknown message type
            NotFoundError: If the conversation does not exist
            PermissionDeniedError: If the sender is not a participant
        """
        content = (content or "").strip()
        if not content:
            raise ValidationError("Message cannot be empty", field="content")
        if len(content) > MESSAGE_MAX_LENGTH:
            raise ValidationError(f"Message must be at most {MESSAGE_MAX_LENGTH} characters", field="content")
        try:
            message_type = MessageType(message_type).value
        except ValueError:
            raise ValidationError(f"Unknown message type '{message_type}'", field="messageType")

        conversation = Conversation(self.db, conversation_id)
        receiver_id = conversation.require_participant(sender_id)
        usernames = conversation.doc.participantUsernames
        sender_username = usernames.get(sender_id) or self.ctx.identity.username_of(sender_id)

        now = self.db.timestamp_now()
        message = MessageDoc(
            id=self.db.new_id("messages"),
            conversationId=conversation_id,
            senderId=sender_id,
            senderUsername=sender_username,
            receiverId=receiver_id,
            receiverUsername=usernames.get(receiver_id, ""),
            content=content,
            messageType=message_type,
            createdAt=now,
            lastUpdatedAt=now,
        )

        batch = self.db.batch()
        batch.create("messages", message.id, message.model_dump())
        batch.update("conversations", conversation_id, {
            "lastMessage": content,
            "lastMessageTimestamp": now,
            "lastMessageSenderId": sender_id,
            Db.field_path("unreadCount", receiver_id): Db.increment(1),
            "isActive": True,
            "lastUpdatedAt": now,
        })
        batch.commit()
        logger.info(f"Message {message.id} sent in {conversation_id}")

        self.ctx.notifications.notify_message(receiver_id, sender_id, sender_username, content, conversation_id)
        return message

    def _unread_for(self, conversation_id: str, reader_id: str) -> List[dict]:
        return self.db.query(
            "messages",
            [("conversationId", "==", conversation_id), ("receiverId", "==", reader_id), ("isRead", "==", False)],
        )

    def mark_read(self, conversation_id: str, reader_id: str) -> int:
        """Mark every unread message addressed to the reader read and reset their counter.

        Each round runs in a transaction that reads the conversation first, so
        a message sent concurrently forces a retry instead of being wiped from
        the counter. A round writes at most one batch worth of flags and sets
        the counter to the number of unread messages still left.

        Returns:
            Number of messages marked read
        """
        conversation = Conversation(self.db, conversation_id)
        conversation.require_participant(reader_id)
        counter_field = Db.field_path("unreadCount", reader_id)

        def _mark_round(txn: Transaction):
            txn.get("conversations", conversation_id)
            unread = self._unread_for(conversation_id, reader_id)
            now = self.db.timestamp_now()
            chunk = unread[:self.db.BATCH_LIMIT - 1]
            for row in chunk:
                txn.update("messages", row["id"], {"isRead": True, "lastUpdatedAt": now})
            remaining = len(unread) - len(chunk)
            txn.update("conversations", conversation_id, {counter_field: remaining, "lastUpdatedAt": now})
            return len(chunk), remaining

        marked = 0
        while True:
            written, remaining = self.db.run_transaction(_mark_round)
            marked += written
            if not remaining:
                break

        logger.info(f"{reader_id} read {marked} messages in {conversation_id}")
        return marked

    def get_conversation(self, conversation_id: str, user_id: str) -> ConversationDoc:
        conversation = Conversation(self.db, conversation_id)
        conversation.require_participant(user_id)
        return conversation.doc

    def get_conversations(self, user_id: str, limit: int = 50) -> List[ConversationDoc]:
        """Active conversations of the user, most recent activity first."""
        rows = self.db.query(
            "conversations",
            [("participants", "array_contains", user_id), ("isActive", "==", True)],
            order_by=[("lastMessageTimestamp", DESCENDING)],
            limit=limit,
        )
        return [ConversationDoc(**row) for row in rows]

    def get_messages(
        self,
        conversation_id: str,
        user_id: str,
        limit: int = 50,
        start_after: Optional[str] = None,
    ) -> List[MessageDoc]:
        """One page of messages in chronological order.

        Args:
            conversation_id: Conversation to read
            user_id: Participant reading the page
            limit: Page size
            start_after: Id of the oldest message of the previous page

        Returns:
            Messages oldest first
        """
        self.get_conversation(conversation_id, user_id)
        rows = self.db.query(
            "messages",
            [("conversationId", "==", conversation_id)],
            order_by=[("createdAt", DESCENDING)],
            limit=limit,
            start_after=start_after,
        )
        return [MessageDoc(**row) for row in reversed(rows)]

    def delete_conversation(self, conversation_id: str, user_id: str):
        """Hide the conversation; it reappears when a new message is sent."""
        conversation = Conversation(self.db, conversation_id)
        conversation.require_participant(user_id)
        conversation.update_doc({"isActive": False})
        logger.info(f"Conversation {conversation_id} deactivated by {user_id}")

    def subscribe_messages(self, conversation_id: str, user_id: str) -> Subscription[MessageDoc]:
        """Live view of the conversation's messages, oldest first."""
        self.get_conversation(conversation_id, user_id)
        return self.db.subscribe(
            "messages",
            [("conversationId", "==", conversation_id)],
            order_by=[("createdAt", ASCENDING)],
            transform=lambda row: MessageDoc(**row),
        )

    def subscribe_conversations(self, user_id: str, limit: int = 50) -> Subscription[ConversationDoc]:
        return self.db.subscribe(
            "conversations",
            [("participants", "array_contains", user_id), ("isActive", "==", True)],
            order_by=[("lastMessageTimestamp", DESCENDING)],
            limit=limit,
            transform=lambda row: ConversationDoc(**row),
        )
