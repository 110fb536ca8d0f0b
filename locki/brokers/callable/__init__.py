"""Callable brokers package."""

from .account import (
    sign_up_callable,
    create_profile_callable,
    check_username_callable,
    reset_password_callable,
    record_sign_in_callable,
    deactivate_account_callable,
)
from .engagement import (
    like_post_callable,
    unlike_post_callable,
    get_post_likes_callable,
    add_comment_callable,
    update_comment_callable,
    delete_comment_callable,
    get_post_comments_callable,
)
from .relationships import (
    send_buddy_request_callable,
    accept_buddy_request_callable,
    decline_buddy_request_callable,
    remove_buddy_callable,
    get_buddies_callable,
    get_pending_requests_callable,
    get_relationship_status_callable,
)
from .feed import get_feed_callable
from .posts import (
    create_post_callable,
    get_post_callable,
    get_user_posts_callable,
    update_post_callable,
    delete_post_callable,
)
from .messaging import (
    get_or_create_conversation_callable,
    send_message_callable,
    mark_conversation_read_callable,
    get_conversations_callable,
    get_messages_callable,
    delete_conversation_callable,
)
from .notifications import (
    get_notifications_callable,
    get_unread_count_callable,
    mark_notification_read_callable,
    mark_all_notifications_read_callable,
    delete_notification_callable,
)
from .profiles import (
    get_profile_callable,
    get_user_stats_callable,
    update_profile_callable,
    change_username_callable,
    upload_profile_image_callable,
    get_settings_callable,
    update_settings_callable,
)
from .discovery import (
    get_achievements_callable,
    get_leaderboard_callable,
    search_callable,
    get_search_history_callable,
    clear_search_history_callable,
)

__all__ = [
    "sign_up_callable",
    "create_profile_callable",
    "check_username_callable",
    "reset_password_callable",
    "record_sign_in_callable",
    "deactivate_account_callable",
    "like_post_callable",
    "unlike_post_callable",
    "get_post_likes_callable",
    "add_comment_callable",
    "update_comment_callable",
    "delete_comment_callable",
    "get_post_comments_callable",
    "send_buddy_request_callable",
    "accept_buddy_request_callable",
    "decline_buddy_request_callable",
    "remove_buddy_callable",
    "get_buddies_callable",
    "get_pending_requests_callable",
    "get_relationship_status_callable",
    "get_feed_callable",
    "create_post_callable",
    "get_post_callable",
    "get_user_posts_callable",
    "update_post_callable",
    "delete_post_callable",
    "get_or_create_conversation_callable",
    "send_message_callable",
    "mark_conversation_read_callable",
    "get_conversations_callable",
    "get_messages_callable",
    "delete_conversation_callable",
    "get_notifications_callable",
    "get_unread_count_callable",
    "mark_notification_read_callable",
    "mark_all_notifications_read_callable",
    "delete_notification_callable",
    "get_profile_callable",
    "get_user_stats_callable",
    "update_profile_callable",
    "change_username_callable",
    "upload_profile_image_callable",
    "get_settings_callable",
    "update_settings_callable",
    "get_achievements_callable",
    "get_leaderboard_callable",
    "search_callable",
    "get_search_history_callable",
    "clear_search_history_callable",
]
