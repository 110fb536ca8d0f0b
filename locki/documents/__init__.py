"""Documents package initialization."""

from .DocumentBase import DocumentBase
from .profiles import Profile, ProfileFactory, UserStats
from .posts import Post
from .conversations import Conversation
from .notifications import Notification

__all__ = ["DocumentBase", "Profile", "ProfileFactory", "UserStats", "Post", "Conversation", "Notification"]
