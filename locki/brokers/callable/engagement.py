"""Like and comment callables."""

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
from locki.models.function_types import AddCommentRequest, PostActionRequest


def handle_like_post(ctx, uid, data: PostActionRequest):
    like = ctx.engagement.like(require_str(data, "postId"), uid)
    return {"like": dump(like)}


def handle_unlike_post(ctx, uid, data: PostActionRequest):
    return {"removed": ctx.engagement.unlike(require_str(data, "postId"), uid)}


def handle_get_post_likes(ctx, uid, data):
    likes = ctx.engagement.get_post_likes(require_str(data, "postId"), limit=optional_int(data, "limit", 50, maximum=100))
    return {"likes": dump_all(likes)}


def handle_add_comment(ctx, uid, data: AddCommentRequest):
    comment = ctx.engagement.add_comment(require_str(data, "postId"), uid, require_str(data, "content"))
    return {"comment": dump(comment)}


def handle_update_comment(ctx, uid, data):
    comment = ctx.engagement.update_comment(require_str(data, "commentId"), uid, require_str(data, "content"))
    return {"comment": dump(comment)}


def handle_delete_comment(ctx, uid, data):
    return {"deleted": ctx.engagement.delete_comment(require_str(data, "commentId"), uid)}


def handle_get_post_comments(ctx, uid, data):
    comments = ctx.engagement.get_post_comments(require_str(data, "postId"), limit=optional_int(data, "limit", 50, maximum=100))
    return {"comments": dump_all(comments)}


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def like_post_callable(req: https_fn.CallableRequest):
    """Like a post; fails with ALREADY_EXISTS when the caller already likes it."""
    return handle_call(req, "like post", handle_like_post)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def unlike_post_callable(req: https_fn.CallableRequest):
    return handle_call(req, "unlike post", handle_unlike_post)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def get_post_likes_callable(req: https_fn.CallableRequest):
    return handle_call(req, "get post likes", handle_get_post_likes)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def add_comment_callable(req: https_fn.CallableRequest):
    return handle_call(req, "add comment", handle_add_comment)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def update_comment_callable(req: https_fn.CallableRequest):
    return handle_call(req, "update comment", handle_update_comment)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def delete_comment_callable(req: https_fn.CallableRequest):
    return handle_call(req, "delete comment", handle_delete_comment)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def get_post_comments_callable(req: https_fn.CallableRequest):
    return handle_call(req, "get post comments", handle_get_post_comments)
