"""Tests for search and search history."""

import pytest

from locki.exceptions import ValidationError
from locki.documents.profiles import ProfileFactory
from locki.services.search_service import post_relevance, user_relevance


def test_user_relevance_order():
    assert user_relevance("alice", "alice", "Alice Archer") == 100
    assert user_relevance("alice archer", "ally", "Alice Archer") == 90
    assert user_relevance("ali", "alice", "") == 80
    assert user_relevance("ali", "zed", "Alice") == 70
    assert user_relevance("ice", "alice", "") == 60
    assert user_relevance("arch", "zed", "Alice Archer") == 50
    assert user_relevance("bob", "alice", "Alice") == 0


def test_post_relevance_order():
    assert post_relevance("focus", "Deep Focus", "", []) == 80
    assert post_relevance("focus", "Morning", "keeping focus", []) == 40
    assert post_relevance("focus", "Morning", "", ["Focus"]) == 20
    assert post_relevance("focus", "Morning", "", []) == 0


def test_search_users_ranks_exact_match_first(ctx, db, users):
    ProfileFactory(db).create("bobby-uid", "bobby", display_name="Bobby Tables")

    results = ctx.search.search_users("bob")

    assert [r.title for r in results] == ["bob", "bobby"]
    assert results[0].relevanceScore == 100
    assert results[0].subtitle == "Bob Builder"


def test_search_users_keeps_the_typed_case(ctx, db, users):
    ProfileFactory(db).create("dave-uid", "DaveK", display_name="Dave King")

    results = ctx.search.search_users("DaveK")

    assert [r.title for r in results] == ["DaveK"]
    assert results[0].relevanceScore == 100
    assert [r.title for r in ctx.search.search_users("Dave")] == ["DaveK"]


def test_search_users_skips_deactivated(ctx, db, users):
    db.batch().update("users", users.bob, {"isActive": False}).commit()
    assert ctx.search.search_users("bob") == []


def test_search_posts_by_title_and_tag(ctx, users):
    by_title = ctx.posts.create_post(users.alice, "deep work", minutes=30)
    by_tag = ctx.posts.create_post(users.bob, "Evening", minutes=30, tags=["deep"])
    ctx.posts.create_post(users.bob, "deep secrets", minutes=30, visibility="private")

    results = ctx.search.search_posts("deep")

    assert [r.id for r in results] == [by_title.id, by_tag.id]
    assert results[0].subtitle == "alice"
    assert results[1].relevanceScore == 20


def test_search_posts_by_capitalised_title(ctx, users):
    post = ctx.posts.create_post(users.alice, "Morning Pages", minutes=20, tags=["Writing"])

    assert [r.id for r in ctx.search.search_posts("Morning")] == [post.id]
    assert [r.id for r in ctx.search.search_posts("Writing")] == [post.id]


def test_empty_query(ctx):
    with pytest.raises(ValidationError):
        ctx.search.search_users("  ")


def test_history_is_newest_first_and_clearable(ctx, users):
    for term in ("bob", "focus", "carol"):
        ctx.search.save_search(users.alice, term)
    ctx.search.save_search(users.bob, "alice")

    assert [h.searchTerm for h in ctx.search.get_search_history(users.alice)] == ["carol", "focus", "bob"]
    assert ctx.search.clear_search_history(users.alice) == 3
    assert ctx.search.get_search_history(users.alice) == []
    assert len(ctx.search.get_search_history(users.bob)) == 1


def test_history_rejects_unknown_result_type(ctx, users):
    with pytest.raises(ValidationError):
        ctx.search.save_search(users.alice, "bob", result_type="video")
