"""Tests for the callable plumbing and a sample of handlers."""

import base64
from types import SimpleNamespace

import pytest
from firebase_functions import https_fn

from locki.brokers.callable.account import handle_check_username, handle_reset_password
from locki.brokers.callable.call_handler import decode_image, handle_call, optional_int, require_str
from locki.brokers.callable.discovery import handle_get_leaderboard, handle_search
from locki.brokers.callable.engagement import handle_like_post
from locki.brokers.callable.feed import handle_get_feed
from locki.brokers.callable.notifications import handle_get_notifications
from locki.brokers.callable.posts import handle_create_post
from locki.brokers.https.health_check import check_health
from locki.exceptions import ValidationError

Code = https_fn.FunctionsErrorCode


def make_request(data=None, uid=None, method="POST", headers=None):
    return SimpleNamespace(
        data=data if data is not None else {},
        auth=SimpleNamespace(uid=uid) if uid else None,
        raw_request=SimpleNamespace(method=method, headers=headers or {}),
    )


def call(ctx, handler, data=None, uid=None, **kwargs):
    return handle_call(make_request(data, uid), "test action", handler, ctx=ctx, **kwargs)


class TestHandleCall:
    def test_success_envelope(self, ctx, users):
        response = call(ctx, handle_create_post, {"title": "Focus", "hours": 1, "minutes": 15}, uid=users.alice)
        assert response["success"] is True
        post = response["data"]["post"]
        assert post["title"] == "Focus"
        assert post["createdAt"].startswith("2026-10-19T")

    def test_unauthenticated(self, ctx):
        with pytest.raises(https_fn.HttpsError) as exc_info:
            call(ctx, handle_create_post, {"title": "Focus", "minutes": 15})
        assert exc_info.value.code == Code.UNAUTHENTICATED

    def test_user_id_header_in_development(self, ctx, users):
        req = make_request({"title": "Focus", "minutes": 15}, headers={"User-Id": users.bob})
        response = handle_call(req, "create post", handle_create_post, ctx=ctx)
        assert response["data"]["post"]["userId"] == users.bob

    def test_user_id_header_ignored_in_production(self, ctx, users):
        ctx.settings.env = "production"
        req = make_request({"title": "Focus", "minutes": 15}, headers={"User-Id": users.bob})
        with pytest.raises(https_fn.HttpsError) as exc_info:
            handle_call(req, "create post", handle_create_post, ctx=ctx)
        assert exc_info.value.code == Code.UNAUTHENTICATED

    def test_preflight_short_circuits(self, ctx):
        def _never_called(ctx, uid, data):
            raise AssertionError("handler must not run for OPTIONS")

        body, status, headers = handle_call(make_request(method="OPTIONS"), "preflight", _never_called, ctx=ctx)
        assert status == 204
        assert headers["Access-Control-Allow-Origin"] == "*"

    @pytest.mark.parametrize("data, expected", [
        ({"postId": "missing"}, Code.NOT_FOUND),
        ({}, Code.INVALID_ARGUMENT),
    ])
    def test_project_errors_are_mapped(self, ctx, users, data, expected):
        with pytest.raises(https_fn.HttpsError) as exc_info:
            call(ctx, handle_like_post, data, uid=users.bob)
        assert exc_info.value.code == expected

    def test_already_liked_maps_to_already_exists(self, ctx, users):
        post = ctx.posts.create_post(users.alice, "Focus", minutes=10)
        call(ctx, handle_like_post, {"postId": post.id}, uid=users.bob)
        with pytest.raises(https_fn.HttpsError) as exc_info:
            call(ctx, handle_like_post, {"postId": post.id}, uid=users.bob)
        assert exc_info.value.code == Code.ALREADY_EXISTS
        assert exc_info.value.details["code"] == "ALREADY_LIKED"

    def test_unexpected_errors_become_internal(self, ctx, users):
        def _boom(ctx, uid, data):
            raise RuntimeError("database exploded")

        with pytest.raises(https_fn.HttpsError) as exc_info:
            call(ctx, _boom, uid=users.alice)
        assert exc_info.value.code == Code.INTERNAL
        assert "database exploded" not in exc_info.value.message

    def test_non_dict_payload_is_treated_as_empty(self, ctx):
        response = handle_call(make_request(data=["not", "a", "dict"]), "check", lambda c, u, d: {"keys": sorted(d)},
                               require_auth=False, ctx=ctx)
        assert response["data"] == {"keys": []}


class TestFieldHelpers:
    def test_require_str(self):
        assert require_str({"name": "  x "}, "name") == "x"
        with pytest.raises(ValidationError):
            require_str({"name": 3}, "name")

    def test_optional_int_is_capped(self):
        assert optional_int({}, "limit", 20) == 20
        assert optional_int({"limit": 500}, "limit", 20, maximum=100) == 100
        with pytest.raises(ValidationError):
            optional_int({"limit": 0}, "limit", 20)

    def test_decode_image(self):
        assert decode_image({"imageBase64": base64.b64encode(b"jpeg").decode()}) == b"jpeg"
        assert decode_image({}) is None
        with pytest.raises(ValidationError):
            decode_image({"imageBase64": "***"})


class TestHandlers:
    def test_public_account_handlers(self, ctx, auth, users):
        assert call(ctx, handle_check_username, {"username": "alice"}, require_auth=False)["data"] == {"available": False}
        auth.generate_password_reset_link.return_value = "https://reset.example/abc"
        response = call(ctx, handle_reset_password, {"email": "alice@example.com"}, require_auth=False)
        assert response["data"] == {"requested": True}

    def test_feed_ignores_invalid_limit(self, ctx, users):
        ctx.posts.create_post(users.alice, "Focus", minutes=10)
        response = call(ctx, handle_get_feed, {"limit": "lots"}, uid=users.alice)
        assert len(response["data"]["posts"]) == 1

    def test_notifications_include_unread_count(self, ctx, users):
        post = ctx.posts.create_post(users.alice, "Focus", minutes=10)
        ctx.engagement.like(post.id, users.bob)
        response = call(ctx, handle_get_notifications, uid=users.alice)
        assert response["data"]["unreadCount"] == 1
        assert response["data"]["notifications"][0]["notificationType"] == "like"

    def test_leaderboard_includes_caller_rank(self, ctx, users):
        ctx.posts.create_post(users.bob, "Focus", hours=2)
        response = call(ctx, handle_get_leaderboard, {"sortType": "hours"}, uid=users.alice)
        assert response["data"]["entries"][0]["username"] == "bob"
        assert response["data"]["userRank"] == 2

    def test_search_saves_history(self, ctx, users):
        call(ctx, handle_search, {"query": "bob"}, uid=users.alice)
        call(ctx, handle_search, {"query": "carol", "saveHistory": False}, uid=users.alice)
        assert [h.searchTerm for h in ctx.search.get_search_history(users.alice)] == ["bob"]


def test_health_check(ctx, db):
    body, status = check_health(ctx)
    assert status == 200
    assert body["services"]["database"] == "healthy"


def test_health_check_reports_degraded_store(ctx, monkeypatch):
    def _broken(*args, **kwargs):
        raise ConnectionError("unreachable")

    monkeypatch.setattr(ctx.db, "query", _broken)
    body, status = check_health(ctx)
    assert status == 503
    assert body["status"] == "degraded"
