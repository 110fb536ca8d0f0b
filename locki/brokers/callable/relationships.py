"""Buddy relationship callables."""

from firebase_functions import https_fn

from locki.brokers.callable.call_handler import (
    CORS,
    INGRESS,
    dump,
    dump_all,
    handle_call,
    optional_int,
    require_str,
)
from locki.models.function_types import BuddyActionRequest


def handle_send_buddy_request(ctx, uid, data: BuddyActionRequest):
    edge = ctx.relationships.send_request(uid, require_str(data, "userId"))
    return {"relationship": dump(edge)}


def handle_accept_buddy_request(ctx, uid, data):
    edge = ctx.relationships.accept_request(require_str(data, "requesterId"), uid)
    return {"relationship": dump(edge)}


def handle_decline_buddy_request(ctx, uid, data):
    return {"declined": ctx.relationships.decline_request(require_str(data, "requesterId"), uid)}


def handle_remove_buddy(ctx, uid, data: BuddyActionRequest):
    return {"removed": ctx.relationships.remove_buddy(uid, require_str(data, "userId"))}


def handle_get_buddies(ctx, uid, data):
    user_id = data.get("userId") or uid
    buddies = ctx.relationships.get_buddies(user_id, limit=optional_int(data, "limit", 50, maximum=200))
    return {"buddies": dump_all(buddies)}


def handle_get_pending_requests(ctx, uid, data):
    return {"requests": dump_all(ctx.relationships.get_pending_requests(uid))}


def handle_get_relationship_status(ctx, uid, data):
    return {"status": ctx.relationships.get_status(uid, require_str(data, "userId"))}


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def send_buddy_request_callable(req: https_fn.CallableRequest):
    """Send a buddy request to data.userId."""
    return handle_call(req, "send buddy request", handle_send_buddy_request)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def accept_buddy_request_callable(req: https_fn.CallableRequest):
    """Accept the pending request sent by data.requesterId."""
    return handle_call(req, "accept buddy request", handle_accept_buddy_request)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def decline_buddy_request_callable(req: https_fn.CallableRequest):
    return handle_call(req, "decline buddy request", handle_decline_buddy_request)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def remove_buddy_callable(req: https_fn.CallableRequest):
    return handle_call(req, "remove buddy", handle_remove_buddy)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def get_buddies_callable(req: https_fn.CallableRequest):
    return handle_call(req, "get buddies", handle_get_buddies)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def get_pending_requests_callable(req: https_fn.CallableRequest):
    return handle_call(req, "get pending requests", handle_get_pending_requests)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def get_relationship_status_callable(req: https_fn.CallableRequest):
    return handle_call(req, "get relationship status", handle_get_relationship_status)
