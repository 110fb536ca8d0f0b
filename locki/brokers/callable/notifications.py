"""Notification callables."""

from firebase_functions import https_fn

from locki.brokers.callable.call_handler import (
    CORS,
    INGRESS,
    dump_all,
    handle_call,
    optional_bool,
    optional_int,
    require_str,
)


def handle_get_notifications(ctx, uid, data):
    notifications = ctx.notifications.get_notifications(
        uid,
        limit=optional_int(data, "limit", 50, maximum=100),
        unread_only=optional_bool(data, "unreadOnly"),
    )
    return {"notifications": dump_all(notifications), "unreadCount": ctx.notifications.get_unread_count(uid)}


def handle_get_unread_count(ctx, uid, data):
    return {"unreadCount": ctx.notifications.get_unread_count(uid)}


def handle_mark_notification_read(ctx, uid, data):
    return {"changed": ctx.notifications.mark_as_read(require_str(data, "notificationId"), uid)}


def handle_mark_all_notifications_read(ctx, uid, data):
    return {"markedCount": ctx.notifications.mark_all_as_read(uid)}


def handle_delete_notification(ctx, uid, data):
    ctx.notifications.delete_notification(require_str(data, "notificationId"), uid)
    return {"deleted": True}


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def get_notifications_callable(req: https_fn.CallableRequest):
    """Newest notifications of the caller with the unread count."""
    return handle_call(req, "get notifications", handle_get_notifications)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def get_unread_count_callable(req: https_fn.CallableRequest):
    return handle_call(req, "get unread count", handle_get_unread_count)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def mark_notification_read_callable(req: https_fn.CallableRequest):
    return handle_call(req, "mark notification read", handle_mark_notification_read)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def mark_all_notifications_read_callable(req: https_fn.CallableRequest):
    return handle_call(req, "mark all notifications read", handle_mark_all_notifications_read)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def delete_notification_callable(req: https_fn.CallableRequest):
    return handle_call(req, "delete notification", handle_delete_notification)
