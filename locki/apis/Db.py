"""Document store contract shared by the Firestore and in-memory backends."""

import queue
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, Sequence, Tuple, TypeVar

from firebase_admin import firestore
from google.cloud.firestore_v1.field_path import FieldPath

T = TypeVar("T")

ASCENDING = "ASCENDING"
DESCENDING = "DESCENDING"

FILTER_OPERATORS = ("==", "!=", "<", "<=", ">", ">=", "in", "array_contains")

# (field, op, value)
Filter = Tuple[str, str, Any]
# (field, direction)
Order = Tuple[str, str]


@dataclass
class WriteOp:
    """One write inside a batch or transaction."""

    kind: str  # create, set, update, delete
    collection: str
    doc_id: str
    data: Dict[str, Any] = field(default_factory=dict)
    merge: bool = False

    @property
    def key(self) -> Tuple[str, str]:
        return (self.collection, self.doc_id)

    @classmethod
    def create(cls, collection: str, doc_id: str, data: Dict[str, Any]) -> "WriteOp":
        return cls("create", collection, doc_id, data)

    @classmethod
    def set(cls, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> "WriteOp":
        return cls("set", collection, doc_id, data, merge)

    @classmethod
    def update(cls, collection: str, doc_id: str, data: Dict[str, Any]) -> "WriteOp":
        return cls("update", collection, doc_id, data)

    @classmethod
    def delete(cls, collection: str, doc_id: str) -> "WriteOp":
        return cls("delete", collection, doc_id)


class WriteBatch:
    """Collects writes and commits them all-or-nothing."""

    def __init__(self, db: "Db"):
        self._db = db
        self.ops: List[WriteOp] = []

    def __len__(self):
        return len(self.ops)

    def create(self, collection: str, doc_id: str, data: Dict[str, Any]) -> "WriteBatch":
        self.ops.append(WriteOp.create(collection, doc_id, data))
        return self

    def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> "WriteBatch":
        self.ops.append(WriteOp.set(collection, doc_id, data, merge))
        return self

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> "WriteBatch":
        self.ops.append(WriteOp.update(collection, doc_id, data))
        return self

    def delete(self, collection: str, doc_id: str) -> "WriteBatch":
        self.ops.append(WriteOp.delete(collection, doc_id))
        return self

    def commit(self):
        if self.ops:
            self._db.commit(self.ops)


class Transaction(ABC):
    """Read-then-write unit of work.

    All reads must happen before the first write. Writes are buffered and
    applied when the transaction function returns.
    """

    def __init__(self):
        self.ops: List[WriteOp] = []

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Read a document inside the transaction."""

    def create(self, collection: str, doc_id: str, data: Dict[str, Any]):
        self.ops.append(WriteOp.create(collection, doc_id, data))

    def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False):
        self.ops.append(WriteOp.set(collection, doc_id, data, merge))

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]):
        self.ops.append(WriteOp.update(collection, doc_id, data))

    def delete(self, collection: str, doc_id: str):
        self.ops.append(WriteOp.delete(collection, doc_id))


_CLOSED = object()


class Subscription(Generic[T]):
    """Cancellable stream of live query results.

    Every update is the full current result set of the subscribed query,
    passed through the optional transform. The caller owns the lifetime:
    use it as a context manager, iterate it, or call ``cancel()``.
    """

    def __init__(self, transform: Optional[Callable[[Dict[str, Any]], T]] = None):
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._transform = transform
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._cancelled = threading.Event()

    def bind(self, unsubscribe: Callable[[], None]):
        self._unsubscribe = unsubscribe

    def push(self, docs: List[Dict[str, Any]]):
        if self._cancelled.is_set():
            return
        if self._transform:
            self._queue.put([self._transform(d) for d in docs])
        else:
            self._queue.put(list(docs))

    def get(self, timeout: Optional[float] = None) -> List[T]:
        """Wait for the next update.

        Raises:
            queue.Empty: If no update arrived within ``timeout`` or the
                subscription was cancelled.
        """
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            self._queue.put(_CLOSED)
            raise queue.Empty()
        return item

    def cancel(self):
        if self._cancelled.is_set():
            return
        self._cancelled.set()
        if self._unsubscribe:
            self._unsubscribe()
        self._queue.put(_CLOSED)

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def __iter__(self) -> Iterator[List[T]]:
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                self._queue.put(_CLOSED)
                return
            yield item

    def __enter__(self) -> "Subscription[T]":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.cancel()


class Db(ABC):
    """Document store operations.

    Concrete stores implement the primitives below. Services only talk to
    this contract so they can run against Firestore or the in-memory store.
    """

    # Maximum number of values accepted by an "in" filter
    IN_FILTER_LIMIT = 10
    # Maximum number of writes in a single batch
    BATCH_LIMIT = 500

    server_timestamp = firestore.firestore.SERVER_TIMESTAMP
    delete_field = firestore.firestore.DELETE_FIELD

    def __init__(self, clock: Optional[Callable[[], datetime]] = None, max_attempts: int = 5):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.max_attempts = max_attempts

    # Timestamp functions
    def timestamp_now(self) -> datetime:
        return self._clock()

    @staticmethod
    def increment(value: int | float = 1):
        return firestore.firestore.Increment(value)

    @staticmethod
    def is_increment(value: Any) -> bool:
        return isinstance(value, firestore.firestore.Increment)

    @staticmethod
    def is_sentinel(value: Any) -> bool:
        return (
            Db.is_increment(value)
            or value is firestore.firestore.SERVER_TIMESTAMP
            or value is firestore.firestore.DELETE_FIELD
        )

    @staticmethod
    def field_path(*segments: str) -> str:
        """Dotted field path, quoting segments such as dates or uids with dashes."""
        return FieldPath(*segments).to_api_repr()

    @staticmethod
    def split_field_path(path: str) -> List[str]:
        try:
            return list(FieldPath.from_string(path).parts)
        except ValueError:
            return path.split(".")

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    def chunked(self, values: Sequence[T], size: Optional[int] = None) -> List[List[T]]:
        """Split values into chunks accepted by an "in" filter."""
        size = size or self.IN_FILTER_LIMIT
        return [list(values[i:i + size]) for i in range(0, len(values), size)]

    def query_chunked(
        self,
        collection: str,
        field_path: str,
        values: Sequence[Any],
        filters: Optional[List[Filter]] = None,
        order_by: Optional[List[Order]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Run one "in" query per chunk of values and merge the results.

        Each chunk is limited and ordered on its own, so callers that need a
        global order must re-sort and truncate the merged list.

        Returns:
            Documents from every chunk, de-duplicated by id, in chunk order
        """
        unique_values = list(dict.fromkeys(values))
        seen = set()
        merged: List[Dict[str, Any]] = []
        for chunk in self.chunked(unique_values):
            rows = self.query(collection, [*(filters or []), (field_path, "in", chunk)], order_by, limit)
            for row in rows:
                if row["id"] in seen:
                    continue
                seen.add(row["id"])
                merged.append(row)
        return merged

    # Primitives
    @abstractmethod
    def new_id(self, collection: str) -> str:
        """Return a fresh document id for the collection."""

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Return the document data, or None if it does not exist."""

    @abstractmethod
    def query(
        self,
        collection: str,
        filters: Optional[List[Filter]] = None,
        order_by: Optional[List[Order]] = None,
        limit: Optional[int] = None,
        start_after: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Run a query.

        Args:
            collection: Collection name
            filters: (field, op, value) triples combined with AND
            order_by: (field, direction) pairs
            limit: Maximum number of documents
            start_after: Id of the document the page starts after

        Returns:
            List of document dicts
        """

    @abstractmethod
    def count(self, collection: str, filters: Optional[List[Filter]] = None) -> int:
        """Count the documents matching the filters."""

    @abstractmethod
    def commit(self, ops: List[WriteOp]):
        """Apply the writes atomically."""

    @abstractmethod
    def run_transaction(self, fn: Callable[[Transaction], T], max_attempts: Optional[int] = None) -> T:
        """Run fn inside a transaction, retrying on contention.

        Raises:
            NetworkError: If the transaction keeps aborting
        """

    @abstractmethod
    def subscribe(
        self,
        collection: str,
        filters: Optional[List[Filter]] = None,
        order_by: Optional[List[Order]] = None,
        limit: Optional[int] = None,
        transform: Optional[Callable[[Dict[str, Any]], T]] = None,
    ) -> Subscription[T]:
        """Open a live query."""

    @abstractmethod
    def upload_blob(self, path: str, data: bytes, content_type: str = "image/jpeg") -> str:
        """Store bytes at path and return a download URL."""
