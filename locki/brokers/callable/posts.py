"""Post callables."""

from firebase_functions import https_fn, options

from locki.brokers.callable.call_handler import (
    CORS,
    INGRESS,
    decode_image,
    dump,
    dump_all,
    handle_call,
    optional_int,
    optional_str,
    require_str,
)
from locki.models.function_types import CreatePostRequest


def handle_create_post(ctx, uid, data: CreatePostRequest):
    post = ctx.posts.create_post(
        uid,
        title=require_str(data, "title"),
        description=optional_str(data, "description", "") or "",
        hours=data.get("hours", 0),
        minutes=data.get("minutes", 0),
        visibility=optional_str(data, "visibility", "public"),
        image=decode_image(data),
        tags=data.get("tags"),
    )
    return {"post": dump(post)}


def handle_get_post(ctx, uid, data):
    return {"post": dump(ctx.posts.get_post(require_str(data, "postId"), uid))}


def handle_get_user_posts(ctx, uid, data):
    user_id = data.get("userId") or uid
    posts = ctx.posts.get_user_posts(user_id, uid, limit=optional_int(data, "limit", 20, maximum=100))
    return {"posts": dump_all(posts)}


def handle_update_post(ctx, uid, data):
    post = ctx.posts.update_post(
        require_str(data, "postId"),
        uid,
        title=optional_str(data, "title"),
        description=optional_str(data, "description"),
        visibility=optional_str(data, "visibility"),
        tags=data.get("tags"),
    )
    return {"post": dump(post)}


def handle_delete_post(ctx, uid, data):
    return {"deleted": ctx.posts.delete_post(require_str(data, "postId"), uid)}


@https_fn.on_call(cors=CORS, ingress=INGRESS, memory=options.MemoryOption.MB_512)
def create_post_callable(req: https_fn.CallableRequest):
    """Create a post; data.imageBase64 optionally carries a JPEG."""
    return handle_call(req, "create post", handle_create_post)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def get_post_callable(req: https_fn.CallableRequest):
    return handle_call(req, "get post", handle_get_post)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def get_user_posts_callable(req: https_fn.CallableRequest):
    return handle_call(req, "get user posts", handle_get_user_posts)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def update_post_callable(req: https_fn.CallableRequest):
    return handle_call(req, "update post", handle_update_post)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def delete_post_callable(req: https_fn.CallableRequest):
    return handle_call(req, "delete post", handle_delete_post)
