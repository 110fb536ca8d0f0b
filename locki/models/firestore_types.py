"""Firestore document type definitions using Pydantic."""

from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field

from locki.models.util_types import (
    AchievementCategory,
    AppTheme,
    DataUsageMode,
    MessageType,
    NotificationType,
    PostVisibility,
    ProfileVisibility,
    SearchResultType,
)


class BaseDoc(BaseModel):
    """Base document type for all Firestore documents."""

    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    createdAt: datetime
    lastUpdatedAt: datetime


class ProfileDoc(BaseDoc):
    """User profile, keyed by the auth principal uid."""

    id: str
    username: str
    displayName: str = ""
    profession: str = ""
    bio: str = ""
    email: Optional[str] = None
    profileImageUrl: Optional[str] = None
    isVerified: bool = False
    isActive: bool = True
    isProfilePublic: bool = True
    allowsMessages: bool = True
    notificationsEnabled: bool = True
    lastActiveDate: Optional[datetime] = None


class UsernameDoc(BaseDoc):
    """Uniqueness claim for a username; the document id is the username."""

    id: str
    userId: str


class UserStatsDoc(BaseDoc):
    """Aggregate counters for one user."""

    id: str
    userId: str
    totalHours: int = 0
    totalMinutes: int = 0
    currentStreak: int = 0
    longestStreak: int = 0
    totalPosts: int = 0
    totalLikes: int = 0
    totalComments: int = 0
    buddyCount: int = 0
    lastPostDate: Optional[datetime] = None
    lastActivityDate: Optional[datetime] = None
    # week key (Sunday, YYYY-MM-DD) -> hours
    weeklyHours: Dict[str, float] = Field(default_factory=dict)
    # month key (YYYY-MM) -> hours
    monthlyHours: Dict[str, float] = Field(default_factory=dict)


class UserSettingsDoc(BaseDoc):
    id: str
    userId: str
    pushNotificationsEnabled: bool = True
    emailNotificationsEnabled: bool = True
    likeNotifications: bool = True
    commentNotifications: bool = True
    followNotifications: bool = True
    messageNotifications: bool = True
    achievementNotifications: bool = True
    profileVisibility: ProfileVisibility = ProfileVisibility.PUBLIC
    showOnlineStatus: bool = True
    allowSearchByEmail: bool = True
    allowSearchByUsername: bool = True
    theme: AppTheme = AppTheme.DARK
    language: str = "en"
    autoSaveEnabled: bool = True
    dataUsageMode: DataUsageMode = DataUsageMode.NORMAL


class PostDoc(BaseDoc):
    """A logged work session."""

    id: str
    userId: str
    username: str
    title: str
    description: str = ""
    hours: int = 0
    minutes: int = 0
    imageUrl: Optional[str] = None
    isActive: bool = True
    likeCount: int = 0
    commentCount: int = 0
    shareCount: int = 0
    visibility: PostVisibility = PostVisibility.PUBLIC
    tags: List[str] = Field(default_factory=list)

    @property
    def total_minutes(self) -> int:
        return self.hours * 60 + self.minutes


class FeedPost(PostDoc):
    """Post annotated for the requesting user."""

    isLikedByUser: bool = False


class PostLikeDoc(BaseDoc):
    """Like record; the id is {postId}_{userId}."""

    id: str
    postId: str
    userId: str
    username: str = ""


class PostCommentDoc(BaseDoc):
    id: str
    postId: str
    userId: str
    username: str = ""
    content: str
    likeCount: int = 0
    isActive: bool = True


class BuddyRelationshipDoc(BaseDoc):
    """Directed follow edge; the id is {followerId}_{followingId}."""

    id: str
    followerId: str
    followerUsername: str = ""
    followingId: str
    followingUsername: str = ""
    isActive: bool = True
    isMutual: bool = False


class ConversationDoc(BaseDoc):
    """Conversation between two users; the id is the sorted pair joined by '_'."""

    id: str
    participants: List[str]
    participantUsernames: Dict[str, str] = Field(default_factory=dict)
    lastMessage: str = ""
    lastMessageTimestamp: Optional[datetime] = None
    lastMessageSenderId: Optional[str] = None
    isActive: bool = True
    unreadCount: Dict[str, int] = Field(default_factory=dict)

    def other_participant(self, user_id: str) -> Optional[str]:
        others = [p for p in self.participants if p != user_id]
        return others[0] if others else None


class MessageDoc(BaseDoc):
    id: str
    conversationId: str
    senderId: str
    senderUsername: str = ""
    receiverId: str
    receiverUsername: str = ""
    content: str
    messageType: MessageType = MessageType.TEXT
    isRead: bool = False
    isDelivered: bool = True


class NotificationDoc(BaseDoc):
    id: str
    userId: str
    title: str
    message: str
    notificationType: NotificationType
    relatedUserId: Optional[str] = None
    relatedUsername: Optional[str] = None
    relatedPostId: Optional[str] = None
    isRead: bool = False
    actionData: Optional[Dict[str, Any]] = None


class AchievementDoc(BaseDoc):
    """Catalog entry. metric names the userStats counter tracked, if any."""

    id: str
    title: str
    description: str = ""
    iconName: str = ""
    category: AchievementCategory
    requirement: int
    metric: Optional[str] = None
    isSecret: bool = False
    points: int = 0


class UserAchievementDoc(BaseDoc):
    """Progress record; the id is {userId}_{achievementId}."""

    id: str
    userId: str
    achievementId: str
    progress: int = 0
    isCompleted: bool = False
    unlockedDate: Optional[datetime] = None


class SearchHistoryDoc(BaseDoc):
    id: str
    userId: str
    searchTerm: str
    resultType: SearchResultType = SearchResultType.USER
