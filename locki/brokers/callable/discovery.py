"""Achievement, leaderboard and search callables."""

from firebase_functions import https_fn

from locki.brokers.callable.call_handler import (
    CORS,
    INGRESS,
    dump_all,
    handle_call,
    optional_bool,
    optional_int,
    optional_str,
    require_str,
)
from locki.models.function_types import SearchRequest


def handle_get_achievements(ctx, uid, data):
    achievements = ctx.achievements.get_all_achievements()
    return {
        "achievements": dump_all(achievements),
        "userAchievements": dump_all(ctx.achievements.get_user_achievements(uid)),
    }


def handle_get_leaderboard(ctx, uid, data):
    sort_type = optional_str(data, "sortType", "hours")
    entries = ctx.leaderboard.get_leaderboard(sort_type, limit=optional_int(data, "limit", 50, maximum=100))
    return {"entries": dump_all(entries), "userRank": ctx.leaderboard.get_user_rank(uid, sort_type)}


def handle_search(ctx, uid, data: SearchRequest):
    query = require_str(data, "query")
    result_type = optional_str(data, "type", "user")
    limit = optional_int(data, "limit", 20, maximum=50)
    if result_type == "post":
        results = ctx.search.search_posts(query, limit=limit)
    else:
        results = ctx.search.search_users(query, limit=limit)
    if optional_bool(data, "saveHistory", True):
        ctx.search.save_search(uid, query, result_type)
    return {"results": dump_all(results)}


def handle_get_search_history(ctx, uid, data):
    return {"history": dump_all(ctx.search.get_search_history(uid))}


def handle_clear_search_history(ctx, uid, data):
    return {"clearedCount": ctx.search.clear_search_history(uid)}


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def get_achievements_callable(req: https_fn.CallableRequest):
    """Visible achievement catalog with the caller's progress records."""
    return handle_call(req, "get achievements", handle_get_achievements)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def get_leaderboard_callable(req: https_fn.CallableRequest):
    """Leaderboard for data.sortType (hours, streak, weekly or monthly) and the caller's rank."""
    return handle_call(req, "get leaderboard", handle_get_leaderboard)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def search_callable(req: https_fn.CallableRequest):
    """Search users (default) or posts when data.type is "post"."""
    return handle_call(req, "search", handle_search)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def get_search_history_callable(req: https_fn.CallableRequest):
    return handle_call(req, "get search history", handle_get_search_history)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def clear_search_history_callable(req: https_fn.CallableRequest):
    return handle_call(req, "clear search history", handle_clear_search_history)
