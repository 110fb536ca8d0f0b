"""Utility type definitions."""

from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel


class PostVisibility(str, Enum):
    """Who can see a post."""
    PUBLIC = "public"
    BUDDIES_ONLY = "buddies_only"
    PRIVATE = "private"


class ProfileVisibility(str, Enum):
    PUBLIC = "public"
    BUDDIES_ONLY = "buddies_only"
    PRIVATE = "private"


class AppTheme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    AUTO = "auto"


class DataUsageMode(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class MessageType(str, Enum):
    """Message payload kind."""
    TEXT = "text"
    IMAGE = "image"
    POST = "post"
    SYSTEM = "system"


class NotificationType(str, Enum):
    """Notification kind."""
    LIKE = "like"
    COMMENT = "comment"
    FOLLOW = "follow"
    MESSAGE = "message"
    ACHIEVEMENT = "achievement"
    REMINDER = "reminder"
    SYSTEM = "system"
    BUDDY_REQUEST = "buddyRequest"
    POST = "post"


class AchievementCategory(str, Enum):
    PRODUCTIVITY = "productivity"
    SOCIAL = "social"
    STREAK = "streak"
    TIME = "time"
    MILESTONE = "milestone"


class LeaderboardSortType(str, Enum):
    """Leaderboard ranking criterion."""
    HOURS = "hours"
    STREAK = "streak"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class SearchResultType(str, Enum):
    USER = "user"
    POST = "post"
    TAG = "tag"


class SuccessResponse(BaseModel):
    """Standard success response structure."""
    success: bool = True
    data: Optional[Dict[str, Any]] = None
    message: Optional[str] = None


class LeaderboardEntry(BaseModel):
    """One ranked row of a leaderboard."""
    rank: int
    userId: str
    username: str
    displayName: str = ""
    profileImageUrl: Optional[str] = None
    value: float


class SearchResult(BaseModel):
    """Scored search hit."""
    id: str
    type: SearchResultType
    title: str
    subtitle: str = ""
    imageUrl: Optional[str] = None
    relevanceScore: float
