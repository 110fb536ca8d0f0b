"""End-to-end tests against the Functions emulator."""

import uuid

import pytest
import requests


def call(base_url, name, data, user_id=None):
    headers = {"User-Id": user_id} if user_id else {}
    return requests.post(f"{base_url}/{name}", json={"data": data}, headers=headers, timeout=30)


def result_of(response):
    assert response.status_code == 200, response.text
    result = response.json()["result"]
    assert result["success"] is True
    return result["data"]


@pytest.fixture
def two_users(firebase_emulator):
    base_url = firebase_emulator["base_url"]
    suffix = uuid.uuid4().hex[:8]
    ids = {}
    for name in ("writer", "reader"):
        user_id = f"{name}-{suffix}"
        result_of(call(base_url, "create_profile_callable", {"username": f"{name}{suffix}"}, user_id))
        ids[name] = user_id
    return ids


@pytest.mark.integration
class TestHttpsBrokers:
    def test_health_check_endpoint(self, firebase_emulator):
        response = requests.get(f"{firebase_emulator['base_url']}/health_check", timeout=10)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["services"]["functions"] == "healthy"


@pytest.mark.integration
class TestSocialFlow:
    def test_post_like_and_notification(self, firebase_emulator, two_users):
        base_url = firebase_emulator["base_url"]
        writer, reader = two_users["writer"], two_users["reader"]

        post = result_of(call(base_url, "create_post_callable", {"title": "Deep work", "hours": 1, "minutes": 30}, writer))["post"]
        stats = result_of(call(base_url, "get_user_stats_callable", {}, writer))["stats"]
        assert stats["totalPosts"] == 1
        assert stats["totalMinutes"] == 90

        result_of(call(base_url, "like_post_callable", {"postId": post["id"]}, reader))
        duplicate = call(base_url, "like_post_callable", {"postId": post["id"]}, reader)
        assert duplicate.status_code == 409
        assert duplicate.json()["error"]["status"] == "ALREADY_EXISTS"

        notifications = result_of(call(base_url, "get_notifications_callable", {}, writer))
        assert notifications["unreadCount"] == 1
        assert notifications["notifications"][0]["notificationType"] == "like"

        assert result_of(call(base_url, "unlike_post_callable", {"postId": post["id"]}, reader))["removed"] is True

    def test_buddies_and_feed(self, firebase_emulator, two_users):
        base_url = firebase_emulator["base_url"]
        writer, reader = two_users["writer"], two_users["reader"]

        result_of(call(base_url, "send_buddy_request_callable", {"userId": writer}, reader))
        result_of(call(base_url, "accept_buddy_request_callable", {"requesterId": reader}, writer))
        status = result_of(call(base_url, "get_relationship_status_callable", {"userId": writer}, reader))["status"]
        assert status == "mutual"

        post = result_of(call(base_url, "create_post_callable", {
            "title": "Buddies only session",
            "minutes": 45,
            "visibility": "buddies_only",
        }, writer))["post"]
        feed = result_of(call(base_url, "get_feed_callable", {"limit": 10}, reader))["posts"]
        assert post["id"] in [p["id"] for p in feed]

    def test_messaging(self, firebase_emulator, two_users):
        base_url = firebase_emulator["base_url"]
        writer, reader = two_users["writer"], two_users["reader"]

        conversation_id = result_of(call(base_url, "get_or_create_conversation_callable", {"userId": writer}, reader))["conversationId"]
        result_of(call(base_url, "send_message_callable", {"conversationId": conversation_id, "content": "hi"}, reader))

        conversations = result_of(call(base_url, "get_conversations_callable", {}, writer))["conversations"]
        assert conversations[0]["unreadCount"][writer] == 1
        assert result_of(call(base_url, "mark_conversation_read_callable", {"conversationId": conversation_id}, writer))["markedCount"] == 1

    def test_unauthenticated_call_is_rejected(self, firebase_emulator):
        response = call(firebase_emulator["base_url"], "get_feed_callable", {})
        assert response.status_code == 401
