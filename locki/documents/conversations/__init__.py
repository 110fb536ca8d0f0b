"""Conversation documents."""

from .Conversation import Conversation, canonical_participants, conversation_id_for

__all__ = ["Conversation", "canonical_participants", "conversation_id_for"]
