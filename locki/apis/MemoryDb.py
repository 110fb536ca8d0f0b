"""In-process document store used for local development and unit tests."""

import copy
import threading
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from locki.apis.Db import (
    DESCENDING,
    FILTER_OPERATORS,
    Db,
    Filter,
    Order,
    Subscription,
    Transaction,
    WriteOp,
)
from locki.exceptions import DuplicateError, NetworkError, NotFoundError, ValidationError
from locki.util.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_MISSING = object()


def get_path(data: Dict[str, Any], path: str) -> Any:
    """Read a dotted field path, returning _MISSING when absent."""
    current: Any = data
    for part in Db.split_field_path(path):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _sort_key(value: Any):
    # Nulls order before every other value
    return (value is not None, value)


@dataclass
class _Listener:
    collection: str
    filters: List[Filter]
    order_by: List[Order]
    limit: Optional[int]
    subscription: Subscription


class MemoryTransaction(Transaction):
    """Optimistic transaction: remembers the version of every document read."""

    def __init__(self, db: "MemoryDb"):
        super().__init__()
        self._db = db
        self.read_versions: Dict[Tuple[str, str], int] = {}

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        if self.ops:
            raise ValidationError("Transaction reads must happen before writes")
        data, version = self._db._read(collection, doc_id)
        self.read_versions[(collection, doc_id)] = version
        return data


class MemoryDb(Db):
    """Thread-safe dictionary-backed implementation of the Db contract.

    Transactions are optimistic: a commit is rejected and the transaction
    function re-run when any document it read has changed in between.
    """

    IN_FILTER_LIMIT = 10

    def __init__(self, clock: Optional[Callable] = None, max_attempts: int = 5):
        super().__init__(clock=clock, max_attempts=max_attempts)
        self._lock = threading.RLock()
        self._docs: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self._versions: Dict[Tuple[str, str], int] = {}
        self._listeners: List[_Listener] = []
        self._failures: Dict[str, Exception] = {}
        self.blobs: Dict[str, bytes] = {}

    # Test helpers
    def seed(self, collection: str, doc_id: str, data: Dict[str, Any]):
        """Write a document directly, bypassing validation."""
        self.commit([WriteOp.set(collection, doc_id, {"id": doc_id, **data})])

    def fail_writes(self, collection: str, error: Exception):
        """Make every later write touching the collection raise error."""
        with self._lock:
            self._failures[collection] = error

    def clear_failures(self):
        with self._lock:
            self._failures.clear()

    # Primitives
    def new_id(self, collection: str) -> str:
        return uuid.uuid4().hex[:20]

    def _read(self, collection: str, doc_id: str) -> Tuple[Optional[Dict[str, Any]], int]:
        key = (collection, doc_id)
        with self._lock:
            data = self._docs.get(key)
            version = self._versions.get(key, 0)
            return (self._export(doc_id, data) if data is not None else None), version

    @staticmethod
    def _export(doc_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        result = copy.deepcopy(data)
        result.setdefault("id", doc_id)
        return result

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        data, _ = self._read(collection, doc_id)
        return data

    def _validate_filters(self, filters: List[Filter]):
        for field_path, op, value in filters:
            if op not in FILTER_OPERATORS:
                raise ValidationError(f"Unsupported filter operator '{op}'", field=field_path)
            if op == "in":
                if not value:
                    raise ValidationError("'in' filter requires a non-empty list", field=field_path)
                if len(value) > self.IN_FILTER_LIMIT:
                    raise ValidationError(
                        f"'in' filter accepts at most {self.IN_FILTER_LIMIT} values, got {len(value)}",
                        field=field_path,
                    )

    @staticmethod
    def _matches(data: Dict[str, Any], flt: Filter) -> bool:
        field_path, op, value = flt
        actual = get_path(data, field_path)
        if actual is _MISSING:
            return False
        try:
            if op == "==":
                return actual == value
            if op == "!=":
                return actual != value
            if op == "<":
                return actual < value
            if op == "<=":
                return actual <= value
            if op == ">":
                return actual > value
            if op == ">=":
                return actual >= value
            if op == "in":
                return actual in value
            if op == "array_contains":
                return isinstance(actual, list) and value in actual
        except TypeError:
            return False
        return False

    def _run_query(
        self,
        collection: str,
        filters: List[Filter],
        order_by: List[Order],
        limit: Optional[int],
        start_after: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        with self._lock:
            rows = [
                self._export(doc_id, data)
                for (coll, doc_id), data in self._docs.items()
                if coll == collection
            ]

        rows = [row for row in rows if all(self._matches(row, flt) for flt in filters)]
        rows.sort(key=lambda row: row["id"])

        for field_path, _ in order_by:
            rows = [row for row in rows if get_path(row, field_path) is not _MISSING]
        for field_path, direction in reversed(order_by):
            rows.sort(key=lambda row: _sort_key(get_path(row, field_path)), reverse=direction == DESCENDING)

        if start_after is not None:
            ids = [row["id"] for row in rows]
            if start_after not in ids:
                raise NotFoundError(collection, start_after, message=f"Cursor document '{start_after}' not found")
            rows = rows[ids.index(start_after) + 1:]

        if limit is not None:
            rows = rows[:limit]
        return rows

    def query(
        self,
        collection: str,
        filters: Optional[List[Filter]] = None,
        order_by: Optional[List[Order]] = None,
        limit: Optional[int] = None,
        start_after: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        filters = filters or []
        self._validate_filters(filters)
        return self._run_query(collection, filters, order_by or [], limit, start_after)

    def count(self, collection: str, filters: Optional[List[Filter]] = None) -> int:
        return len(self.query(collection, filters))

    # Writes
    def _resolve(self, target: Dict[str, Any], key: str, value: Any, now):
        if value is Db.delete_field:
            target.pop(key, None)
        elif value is Db.server_timestamp:
            target[key] = now
        elif Db.is_increment(value):
            existing = target.get(key)
            if isinstance(existing, bool) or not isinstance(existing, (int, float)):
                existing = 0
            target[key] = existing + value.value
        else:
            target[key] = copy.deepcopy(value)

    def _merge_fields(self, target: Dict[str, Any], data: Dict[str, Any], now):
        for key, value in data.items():
            if isinstance(value, dict):
                nested = target.get(key)
                if not isinstance(nested, dict):
                    nested = {}
                target[key] = nested
                self._merge_fields(nested, value, now)
            else:
                self._resolve(target, key, value, now)
        return target

    def _update_fields(self, target: Dict[str, Any], data: Dict[str, Any], now):
        for path, value in data.items():
            parts = self.split_field_path(path)
            current = target
            for part in parts[:-1]:
                nested = current.get(part)
                if not isinstance(nested, dict):
                    nested = {}
                    current[part] = nested
                current = nested
            self._resolve(current, parts[-1], value, now)
        return target

    def _commit(self, ops: List[WriteOp], read_versions: Optional[Dict[Tuple[str, str], int]] = None) -> bool:
        with self._lock:
            for op in ops:
                if op.collection in self._failures:
                    raise self._failures[op.collection]

            for key, version in (read_versions or {}).items():
                if self._versions.get(key, 0) != version:
                    return False

            now = self.timestamp_now()
            staged: Dict[Tuple[str, str], Optional[Dict[str, Any]]] = {}
            for op in ops:
                current = staged[op.key] if op.key in staged else self._docs.get(op.key)
                if op.kind == "create":
                    if current is not None:
                        raise DuplicateError(op.collection, op.doc_id)
                    staged[op.key] = self._merge_fields({}, op.data, now)
                elif op.kind == "set":
                    base = copy.deepcopy(current) if (op.merge and current is not None) else {}
                    staged[op.key] = self._merge_fields(base, op.data, now)
                elif op.kind == "update":
                    if current is None:
                        raise NotFoundError(op.collection, op.doc_id)
                    staged[op.key] = self._update_fields(copy.deepcopy(current), op.data, now)
                elif op.kind == "delete":
                    staged[op.key] = None
                else:
                    raise ValidationError(f"Unknown write kind '{op.kind}'")

            for key, data in staged.items():
                if data is None:
                    self._docs.pop(key, None)
                else:
                    self._docs[key] = data
                self._versions[key] = self._versions.get(key, 0) + 1

            touched = {key[0] for key in staged}
            listeners = [listener for listener in self._listeners if listener.collection in touched]

        for listener in listeners:
            self._notify(listener)
        return True

    def commit(self, ops: List[WriteOp]):
        self._commit(ops)

    def run_transaction(self, fn: Callable[[Transaction], T], max_attempts: Optional[int] = None) -> T:
        attempts = max_attempts or self.max_attempts
        for attempt in range(1, attempts + 1):
            transaction = MemoryTransaction(self)
            result = fn(transaction)
            if self._commit(transaction.ops, transaction.read_versions):
                return result
            logger.info(f"Transaction contention, retrying (attempt {attempt}/{attempts})")
        raise NetworkError(f"Transaction aborted after {attempts} attempts", service="firestore")

    # Live queries
    def _notify(self, listener: _Listener):
        rows = self._run_query(listener.collection, listener.filters, listener.order_by, listener.limit)
        listener.subscription.push(rows)

    def subscribe(
        self,
        collection: str,
        filters: Optional[List[Filter]] = None,
        order_by: Optional[List[Order]] = None,
        limit: Optional[int] = None,
        transform: Optional[Callable[[Dict[str, Any]], T]] = None,
    ) -> Subscription[T]:
        filters = filters or []
        self._validate_filters(filters)
        subscription: Subscription[T] = Subscription(transform)
        listener = _Listener(collection, filters, order_by or [], limit, subscription)

        def _unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        subscription.bind(_unsubscribe)
        with self._lock:
            self._listeners.append(listener)
        self._notify(listener)
        return subscription

    # Storage
    def upload_blob(self, path: str, data: bytes, content_type: str = "image/jpeg") -> str:
        path = path.lstrip("/")
        with self._lock:
            self.blobs[path] = bytes(data)
        return f"memory://{path}"
