"""Service context: the explicit dependency bundle handed to every service."""

import time
from functools import cached_property, lru_cache
from typing import Any, Callable, Optional

from locki.apis.Db import Db
from locki.config import Settings, load_settings


class ServiceContext:
    """Document store, settings and auth client shared by the services.

    Services are created lazily and cached per context, so one context
    corresponds to one consistent object graph.
    """

    def __init__(
        self,
        db: Db,
        settings: Optional[Settings] = None,
        auth: Any = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize ServiceContext.

        Args:
            db: Document store client
            settings: Runtime settings, defaults when omitted
            auth: firebase_admin.auth compatible client
            sleep: Sleep function used by the auth settle retry
        """
        self.db = db
        self.settings = settings or Settings()
        self.auth = auth
        self.sleep = sleep

    @cached_property
    def identity(self):
        from locki.services.identity_service import IdentityResolver
        return IdentityResolver(self)

    @cached_property
    def accounts(self):
        from locki.services.identity_service import AccountService
        return AccountService(self)

    @cached_property
    def notifications(self):
        from locki.services.notification_service import NotificationService
        return NotificationService(self)

    @cached_property
    def engagement(self):
        from locki.services.engagement_service import EngagementService
        return EngagementService(self)

    @cached_property
    def relationships(self):
        from locki.services.relationship_service import RelationshipService
        return RelationshipService(self)

    @cached_property
    def feed(self):
        from locki.services.feed_service import FeedService
        return FeedService(self)

    @cached_property
    def messaging(self):
        from locki.services.messaging_service import MessagingService
        return MessagingService(self)

    @cached_property
    def posts(self):
        from locki.services.post_service import PostService
        return PostService(self)

    @cached_property
    def profiles(self):
        from locki.services.profile_service import ProfileService
        return ProfileService(self)

    @cached_property
    def achievements(self):
        from locki.services.achievement_service import AchievementService
        return AchievementService(self)

    @cached_property
    def leaderboard(self):
        from locki.services.leaderboard_service import LeaderboardService
        return LeaderboardService(self)

    @cached_property
    def search(self):
        from locki.services.search_service import SearchService
        return SearchService(self)


@lru_cache(maxsize=1)
def get_default_context() -> ServiceContext:
    """Context used by the deployed functions, built once per function instance."""
    from firebase_admin import auth
    from locki.apis.FirestoreDb import FirestoreDb

    settings = load_settings()
    db = FirestoreDb(bucket_name=settings.storage_bucket, max_attempts=settings.transaction_max_attempts)
    return ServiceContext(db, settings=settings, auth=auth)
