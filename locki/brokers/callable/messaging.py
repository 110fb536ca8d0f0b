"""Messaging callables."""

from firebase_functions import https_fn

from locki.brokers.callable.call_handler import (
    CORS,
    INGRESS,
    dump,
    dump_all,
    handle_call,
    optional_int,
    optional_str,
    require_str,
)
from locki.models.function_types import GetMessagesRequest, SendMessageRequest


def handle_get_or_create_conversation(ctx, uid, data):
    conversation_id = ctx.messaging.get_or_create_conversation(uid, require_str(data, "userId"))
    return {"conversationId": conversation_id}


def handle_send_message(ctx, uid, data: SendMessageRequest):
    message = ctx.messaging.send_message(
        require_str(data, "conversationId"),
        uid,
        require_str(data, "content"),
        message_type=optional_str(data, "messageType", "text"),
    )
    return {"message": dump(message)}


def handle_mark_conversation_read(ctx, uid, data):
    return {"markedCount": ctx.messaging.mark_read(require_str(data, "conversationId"), uid)}


def handle_get_conversations(ctx, uid, data):
    conversations = ctx.messaging.get_conversations(uid, limit=optional_int(data, "limit", 50, maximum=100))
    return {"conversations": dump_all(conversations)}


def handle_get_messages(ctx, uid, data: GetMessagesRequest):
    messages = ctx.messaging.get_messages(
        require_str(data, "conversationId"),
        uid,
        limit=optional_int(data, "limit", 50, maximum=200),
        start_after=optional_str(data, "startAfter"),
    )
    return {"messages": dump_all(messages)}


def handle_delete_conversation(ctx, uid, data):
    ctx.messaging.delete_conversation(require_str(data, "conversationId"), uid)
    return {"deleted": True}


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def get_or_create_conversation_callable(req: https_fn.CallableRequest):
    """Return the conversation id shared with data.userId."""
    return handle_call(req, "get or create conversation", handle_get_or_create_conversation)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def send_message_callable(req: https_fn.CallableRequest):
    return handle_call(req, "send message", handle_send_message)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def mark_conversation_read_callable(req: https_fn.CallableRequest):
    return handle_call(req, "mark conversation read", handle_mark_conversation_read)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def get_conversations_callable(req: https_fn.CallableRequest):
    return handle_call(req, "get conversations", handle_get_conversations)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def get_messages_callable(req: https_fn.CallableRequest):
    """One page of messages, oldest first; data.startAfter pages further back."""
    return handle_call(req, "get messages", handle_get_messages)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def delete_conversation_callable(req: https_fn.CallableRequest):
    return handle_call(req, "delete conversation", handle_delete_conversation)
