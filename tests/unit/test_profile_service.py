"""Tests for profiles, username changes and settings."""

import pytest

from locki.exceptions import DuplicateError, NetworkError, PermissionDeniedError, ValidationError
from tests.util.service_setup import make_buddies


def test_update_profile_edits_allowed_fields(ctx, db, users):
    profile = ctx.profiles.update_profile(users.alice, users.alice, {"bio": "  Ships things  ", "allowsMessages": False})
    assert profile.bio == "Ships things"
    assert profile.allowsMessages is False
    assert db.get("users", users.alice)["bio"] == "Ships things"


@pytest.mark.parametrize("changes", [
    {"username": "hacker"},
    {"isVerified": True},
    {"bio": 42},
    {"allowsMessages": "no"},
])
def test_update_profile_rejects_protected_or_mistyped_fields(ctx, db, users, changes):
    with pytest.raises(ValidationError):
        ctx.profiles.update_profile(users.alice, users.alice, changes)
    assert db.get("users", users.alice)["username"] == "alice"


def test_only_owner_can_update_profile(ctx, users):
    with pytest.raises(PermissionDeniedError):
        ctx.profiles.update_profile(users.alice, users.bob, {"bio": "hijacked"})


class TestChangeUsername:
    def test_moves_claim_and_refreshes_snapshots(self, ctx, db, users):
        post = ctx.posts.create_post(users.alice, "Focus", minutes=30)
        ctx.engagement.like(post.id, users.alice)
        ctx.engagement.add_comment(post.id, users.alice, "note to self")
        make_buddies(ctx, users.alice, users.bob)

        profile = ctx.profiles.change_username(users.alice, "ally")

        assert profile.username == "ally"
        assert db.get("usernames", "alice") is None
        assert db.get("usernames", "ally")["userId"] == users.alice
        assert db.get("posts", post.id)["username"] == "ally"
        assert db.query("postComments")[0]["username"] == "ally"
        assert db.query("postLikes")[0]["username"] == "ally"
        assert db.get("buddyRelationships", f"{users.alice}_{users.bob}")["followerUsername"] == "ally"
        assert db.get("buddyRelationships", f"{users.bob}_{users.alice}")["followingUsername"] == "ally"
        assert ctx.accounts.is_username_available("alice")

    def test_taken_username(self, ctx, db, users):
        with pytest.raises(DuplicateError) as exc_info:
            ctx.profiles.change_username(users.alice, "bob")
        assert exc_info.value.code == "USERNAME_TAKEN"
        assert db.get("users", users.alice)["username"] == "alice"
        assert db.get("usernames", "bob")["userId"] == users.bob

    def test_same_username_is_a_noop(self, ctx, db, users):
        assert ctx.profiles.change_username(users.alice, "alice").username == "alice"
        assert db.get("usernames", "alice")["userId"] == users.alice

    def test_snapshot_failure_keeps_the_rename(self, ctx, db, users):
        ctx.posts.create_post(users.alice, "Focus", minutes=30)
        db.fail_writes("posts", NetworkError("offline"))

        assert ctx.profiles.change_username(users.alice, "ally").username == "ally"
        assert db.get("usernames", "ally")["userId"] == users.alice


def test_upload_profile_image(ctx, db, users):
    url = ctx.profiles.upload_profile_image(users.bob, b"\xff\xd8")
    assert url == "memory://profile_images/bob-uid.jpg"
    assert db.get("users", users.bob)["profileImageUrl"] == url
    with pytest.raises(ValidationError):
        ctx.profiles.upload_profile_image(users.bob, b"")


class TestSettings:
    def test_defaults_when_missing(self, ctx):
        settings = ctx.profiles.get_settings("no-settings-uid")
        assert settings.theme == "dark"
        assert settings.likeNotifications is True

    def test_update_merges_changes(self, ctx, db, users):
        updated = ctx.profiles.update_settings(users.alice, {"theme": "light", "likeNotifications": False})
        assert updated.theme == "light"
        stored = db.get("userSettings", users.alice)
        assert stored["theme"] == "light"
        assert stored["likeNotifications"] is False
        assert stored["commentNotifications"] is True

    @pytest.mark.parametrize("changes", [
        {"userId": "someone-else"},
        {"favouriteColour": "blue"},
        {"theme": "neon"},
    ])
    def test_invalid_changes_are_rejected(self, ctx, db, users, changes):
        with pytest.raises(ValidationError):
            ctx.profiles.update_settings(users.alice, changes)
        assert db.get("userSettings", users.alice)["theme"] == "dark"
