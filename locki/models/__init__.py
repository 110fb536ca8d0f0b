"""Models package initialization."""

from .firestore_types import (
    BaseDoc,
    ProfileDoc,
    UsernameDoc,
    UserStatsDoc,
    UserSettingsDoc,
    PostDoc,
    FeedPost,
    PostLikeDoc,
    PostCommentDoc,
    BuddyRelationshipDoc,
    ConversationDoc,
    MessageDoc,
    NotificationDoc,
    AchievementDoc,
    UserAchievementDoc,
    SearchHistoryDoc,
)
from .function_types import (
    SignUpRequest,
    CreatePostRequest,
    PostActionRequest,
    AddCommentRequest,
    BuddyActionRequest,
    SendMessageRequest,
    GetMessagesRequest,
    UpdateRequest,
    SearchRequest,
)
from .util_types import (
    PostVisibility,
    MessageType,
    NotificationType,
    AchievementCategory,
    LeaderboardSortType,
    SearchResultType,
    SuccessResponse,
    LeaderboardEntry,
    SearchResult,
)

__all__ = [
    # Firestore types
    "BaseDoc",
    "ProfileDoc",
    "UsernameDoc",
    "UserStatsDoc",
    "UserSettingsDoc",
    "PostDoc",
    "FeedPost",
    "PostLikeDoc",
    "PostCommentDoc",
    "BuddyRelationshipDoc",
    "ConversationDoc",
    "MessageDoc",
    "NotificationDoc",
    "AchievementDoc",
    "UserAchievementDoc",
    "SearchHistoryDoc",
    # Function types
    "SignUpRequest",
    "CreatePostRequest",
    "PostActionRequest",
    "AddCommentRequest",
    "BuddyActionRequest",
    "SendMessageRequest",
    "GetMessagesRequest",
    "UpdateRequest",
    "SearchRequest",
    # Utility types
    "PostVisibility",
    "MessageType",
    "NotificationType",
    "AchievementCategory",
    "LeaderboardSortType",
    "SearchResultType",
    "SuccessResponse",
    "LeaderboardEntry",
    "SearchResult",
]
