"""Callable function request type definitions."""

from typing import Optional, List, Dict, Any, TypedDict


class SignUpRequest(TypedDict):
    """Request structure for sign_up_callable."""
    email: str
    password: str
    username: str
    displayName: Optional[str]
    profession: Optional[str]


class CreatePostRequest(TypedDict):
    """Request structure for create_post_callable."""
    title: str
    description: Optional[str]
    hours: int
    minutes: int
    visibility: Optional[str]
    tags: Optional[List[str]]
    imageBase64: Optional[str]


class PostActionRequest(TypedDict):
    """Request structure for like_post_callable and unlike_post_callable."""
    postId: str


class AddCommentRequest(TypedDict):
    postId: str
    content: str


class BuddyActionRequest(TypedDict):
    """Request structure for send_buddy_request_callable and remove_buddy_callable."""
    userId: str


class SendMessageRequest(TypedDict):
    """Request structure for send_message_callable."""
    conversationId: str
    content: str
    messageType: Optional[str]


class GetMessagesRequest(TypedDict):
    conversationId: str
    limit: Optional[int]
    startAfter: Optional[str]


class UpdateRequest(TypedDict):
    """Request structure for update_profile_callable and update_settings_callable."""
    changes: Dict[str, Any]


class SearchRequest(TypedDict):
    """Request structure for search_callable."""
    query: str
    type: Optional[str]
    limit: Optional[int]
    saveHistory: Optional[bool]
