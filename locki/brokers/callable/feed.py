"""Feed callable."""

from firebase_functions import https_fn

from locki.brokers.callable.call_handler import CORS, INGRESS, dump_all, handle_call

FEED_MAX_LIMIT = 100


def handle_get_feed(ctx, uid, data):
    limit = data.get("limit")
    if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0):
        limit = None
    posts = ctx.feed.get_feed(uid, limit=min(limit, FEED_MAX_LIMIT) if limit else None)
    return {"posts": dump_all(posts)}


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def get_feed_callable(req: https_fn.CallableRequest):
    """Newest posts of the caller and the users they follow."""
    return handle_call(req, "get feed", handle_get_feed)
