"""Firestore implementation of the document store contract."""

import uuid
from typing import Any, Callable, Dict, List, Optional, TypeVar
from urllib.parse import quote

from firebase_admin import firestore, storage
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore_v1.base_query import FieldFilter

from locki.apis.Db import Db, Filter, Order, Subscription, Transaction, WriteOp
from locki.exceptions import (
    DuplicateError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    ProjectError,
    UnauthenticatedError,
    UnknownError,
    ValidationError,
)
from locki.util.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def translate_error(error: Exception) -> ProjectError:
    """Map a google.api_core error onto the project exception hierarchy."""
    message = getattr(error, "message", None) or str(error)
    if isinstance(error, google_exceptions.AlreadyExists):
        return DuplicateError("Document", "", message=message)
    if isinstance(error, google_exceptions.NotFound):
        return NotFoundError("Document", "", message=message)
    if isinstance(error, google_exceptions.PermissionDenied):
        return PermissionDeniedError(message)
    if isinstance(error, google_exceptions.Unauthenticated):
        return UnauthenticatedError(message)
    if isinstance(error, google_exceptions.InvalidArgument):
        return ValidationError(message)
    if isinstance(
        error,
        (
            google_exceptions.ServiceUnavailable,
            google_exceptions.DeadlineExceeded,
            google_exceptions.Aborted,
            google_exceptions.RetryError,
        ),
    ):
        return NetworkError(message, service="firestore")
    return UnknownError(message)


class FirestoreTransaction(Transaction):
    def __init__(self, db: "FirestoreDb", transaction):
        super().__init__()
        self._db = db
        self._transaction = transaction

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        snapshot = self._db.doc_ref(collection, doc_id).get(transaction=self._transaction)
        return self._db.snapshot_to_dict(snapshot)


class FirestoreDb(Db):
    """Db backed by the firebase_admin Firestore client and default bucket."""

    IN_FILTER_LIMIT = 30

    def __init__(
        self,
        client=None,
        bucket_name: Optional[str] = None,
        clock: Optional[Callable] = None,
        max_attempts: int = 5,
    ):
        super().__init__(clock=clock, max_attempts=max_attempts)
        self.firestore = client or firestore.client()
        self.bucket_name = bucket_name
        logger.info("Firestore initialized")

    def doc_ref(self, collection: str, doc_id: str):
        return self.firestore.collection(collection).document(doc_id)

    @staticmethod
    def snapshot_to_dict(snapshot) -> Optional[Dict[str, Any]]:
        if not snapshot.exists:
            return None
        data = snapshot.to_dict() or {}
        data.setdefault("id", snapshot.id)
        return data

    def new_id(self, collection: str) -> str:
        return self.firestore.collection(collection).document().id

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self.snapshot_to_dict(self.doc_ref(collection, doc_id).get())
        except google_exceptions.GoogleAPICallError as e:
            raise translate_error(e) from e

    def _build_query(
        self,
        collection: str,
        filters: Optional[List[Filter]],
        order_by: Optional[List[Order]],
        limit: Optional[int],
        start_after: Optional[str] = None,
    ):
        query = self.firestore.collection(collection)
        for field_path, op, value in filters or []:
            if op == "in" and len(value) > self.IN_FILTER_LIMIT:
                raise ValidationError(
                    f"'in' filter accepts at most {self.IN_FILTER_LIMIT} values, got {len(value)}",
                    field=field_path,
                )
            query = query.where(filter=FieldFilter(field_path, op, value))
        for field_path, direction in order_by or []:
            query = query.order_by(field_path, direction=direction)
        if start_after:
            cursor = self.doc_ref(collection, start_after).get()
            if not cursor.exists:
                raise NotFoundError(collection, start_after, message=f"Cursor document '{start_after}' not found")
            query = query.start_after(cursor)
        if limit:
            query = query.limit(limit)
        return query

    def query(
        self,
        collection: str,
        filters: Optional[List[Filter]] = None,
        order_by: Optional[List[Order]] = None,
        limit: Optional[int] = None,
        start_after: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        try:
            query = self._build_query(collection, filters, order_by, limit, start_after)
            return [self.snapshot_to_dict(snapshot) for snapshot in query.stream()]
        except google_exceptions.GoogleAPICallError as e:
            raise translate_error(e) from e

    def count(self, collection: str, filters: Optional[List[Filter]] = None) -> int:
        try:
            result = self._build_query(collection, filters, None, None).count().get()
            return int(result[0][0].value) if result else 0
        except google_exceptions.GoogleAPICallError as e:
            raise translate_error(e) from e

    def _apply(self, writer, op: WriteOp):
        ref = self.doc_ref(op.collection, op.doc_id)
        if op.kind == "create":
            writer.create(ref, op.data)
        elif op.kind == "set":
            writer.set(ref, op.data, merge=op.merge)
        elif op.kind == "update":
            writer.update(ref, op.data)
        elif op.kind == "delete":
            writer.delete(ref)
        else:
            raise ValidationError(f"Unknown write kind '{op.kind}'")

    def commit(self, ops: List[WriteOp]):
        batch = self.firestore.batch()
        for op in ops:
            self._apply(batch, op)
        try:
            batch.commit()
        except google_exceptions.GoogleAPICallError as e:
            raise translate_error(e) from e

    def run_transaction(self, fn: Callable[[Transaction], T], max_attempts: Optional[int] = None) -> T:
        attempts = max_attempts or self.max_attempts
        transaction = self.firestore.transaction(max_attempts=attempts)

        @firestore.transactional
        def _run(txn):
            wrapper = FirestoreTransaction(self, txn)
            result = fn(wrapper)
            for op in wrapper.ops:
                self._apply(txn, op)
            return result

        try:
            return _run(transaction)
        except ProjectError:
            raise
        except google_exceptions.GoogleAPICallError as e:
            raise translate_error(e) from e
        except ValueError as e:
            # The client gives up on contention with a ValueError
            if "attempts" in str(e):
                raise NetworkError(f"Transaction aborted after {attempts} attempts", service="firestore") from e
            raise

    def subscribe(
        self,
        collection: str,
        filters: Optional[List[Filter]] = None,
        order_by: Optional[List[Order]] = None,
        limit: Optional[int] = None,
        transform: Optional[Callable[[Dict[str, Any]], T]] = None,
    ) -> Subscription[T]:
        subscription: Subscription[T] = Subscription(transform)
        query = self._build_query(collection, filters, order_by, limit)

        def _on_snapshot(snapshots, changes, read_time):
            subscription.push([self.snapshot_to_dict(snapshot) for snapshot in snapshots])

        watch = query.on_snapshot(_on_snapshot)
        subscription.bind(watch.unsubscribe)
        return subscription

    def upload_blob(self, path: str, data: bytes, content_type: str = "image/jpeg") -> str:
        path = path.lstrip("/")
        bucket = storage.bucket(self.bucket_name)
        blob = bucket.blob(path)
        token = str(uuid.uuid4())
        blob.metadata = {"firebaseStorageDownloadTokens": token}
        try:
            blob.upload_from_string(data, content_type=content_type)
        except google_exceptions.GoogleAPICallError as e:
            raise translate_error(e) from e
        logger.info(f"Uploaded {len(data)} bytes to {path}")
        return (
            f"https://firebasestorage.googleapis.com/v0/b/{bucket.name}/o/"
            f"{quote(path, safe='')}?alt=media&token={token}"
        )
