"""Prefix search over users and posts, and per-user search history."""

from typing import Dict, List

from locki.apis.Db import DESCENDING, WriteOp
from locki.exceptions import ValidationError
from locki.models.firestore_types import SearchHistoryDoc
from locki.models.util_types import PostVisibility, SearchResult, SearchResultType
from locki.util.logger import get_logger

logger = get_logger(__name__)

# Upper bound appended to a prefix for range queries
PREFIX_END = "\uf8ff"
HISTORY_LIMIT = 20


def user_relevance(query: str, username: str, display_name: str) -> float:
    """Score a user hit; username matches outrank display name matches."""
    query = query.lower()
    username = (username or "").lower()
    display_name = (display_name or "").lower()
    if username == query:
        return 100
    if display_name == query:
        return 90
    if username.startswith(query):
        return 80
    if display_name.startswith(query):
        return 70
    if query in username:
        return 60
    if query in display_name:
        return 50
    return 0


def post_relevance(query: str, title: str, description: str, tags: List[str]) -> float:
    query = query.lower()
    if query in (title or "").lower():
        return 80
    if query in (description or "").lower():
        return 40
    if query in [tag.lower() for tag in tags or []]:
        return 20
    return 0


def _clean_query(query: str) -> str:
    query = (query or "").strip()
    if not query:
        raise ValidationError("Search query is required", field="query")
    return query


class SearchService:
    def __init__(self, ctx):
        self.ctx = ctx
        self.db = ctx.db

    def _prefix_query(self, collection: str, field: str, prefix: str, filters: list, limit: int) -> List[dict]:
        return self.db.query(
            collection,
            [*filters, (field, ">=", prefix), (field, "<=", prefix + PREFIX_END)],
            limit=limit,
        )

    def search_users(self, query: str, limit: int = 20) -> List[SearchResult]:
        """Active users whose username or display name starts with the query.

        Returns:
            Results sorted by relevance, at most limit entries
        """
        query = _clean_query(query)
        # Stored fields are case-sensitive keys, so the range bound is the query as typed
        rows = self._prefix_query("users", "username", query, [("isActive", "==", True)], limit)
        rows += self._prefix_query("users", "displayName", query, [("isActive", "==", True)], limit)

        results: Dict[str, SearchResult] = {}
        for row in rows:
            if row["id"] in results:
                continue
            results[row["id"]] = SearchResult(
                id=row["id"],
                type=SearchResultType.USER,
                title=row.get("username", ""),
                subtitle=row.get("displayName", ""),
                imageUrl=row.get("profileImageUrl"),
                relevanceScore=user_relevance(query, row.get("username", ""), row.get("displayName", "")),
            )
        ranked = sorted(results.values(), key=lambda result: result.relevanceScore, reverse=True)
        return ranked[:limit]

    def search_posts(self, query: str, limit: int = 20) -> List[SearchResult]:
        """Public active posts matched by title prefix or by tag."""
        query = _clean_query(query)
        filters = [("isActive", "==", True), ("visibility", "==", PostVisibility.PUBLIC.value)]
        rows = self._prefix_query("posts", "title", query, filters, limit)
        # Tags are stored lowercased
        rows += self.db.query("posts", [*filters, ("tags", "array_contains", query.lower())], limit=limit)

        results: Dict[str, SearchResult] = {}
        for row in rows:
            if row["id"] in results:
                continue
            results[row["id"]] = SearchResult(
                id=row["id"],
                type=SearchResultType.POST,
                title=row.get("title", ""),
                subtitle=row.get("username", ""),
                imageUrl=row.get("imageUrl"),
                relevanceScore=post_relevance(query, row.get("title", ""), row.get("description", ""), row.get("tags", [])),
            )
        ranked = sorted(results.values(), key=lambda result: result.relevanceScore, reverse=True)
        return ranked[:limit]

    def save_search(self, user_id: str, term: str, result_type: str = SearchResultType.USER.value) -> SearchHistoryDoc:
        term = _clean_query(term)
        try:
            result_type = SearchResultType(result_type).value
        except ValueError:
            raise ValidationError(f"Unknown result type '{result_type}'", field="resultType")
        now = self.db.timestamp_now()
        entry = SearchHistoryDoc(
            id=self.db.new_id("searchHistory"),
            userId=user_id,
            searchTerm=term,
            resultType=result_type,
            createdAt=now,
            lastUpdatedAt=now,
        )
        self.db.commit([WriteOp.create("searchHistory", entry.id, entry.model_dump())])
        return entry

    def get_search_history(self, user_id: str, limit: int = HISTORY_LIMIT) -> List[SearchHistoryDoc]:
        rows = self.db.query(
            "searchHistory",
            [("userId", "==", user_id)],
            order_by=[("createdAt", DESCENDING)],
            limit=limit,
        )
        return [SearchHistoryDoc(**row) for row in rows]

    def clear_search_history(self, user_id: str) -> int:
        rows = self.db.query("searchHistory", [("userId", "==", user_id)])
        ops = [WriteOp.delete("searchHistory", row["id"]) for row in rows]
        for batch_ops in self.db.chunked(ops, self.db.BATCH_LIMIT):
            self.db.commit(batch_ops)
        logger.info(f"Cleared {len(ops)} search history entries for {user_id}")
        return len(ops)
