"""Document base class for Firestore operations."""

from typing import Type, Optional, TypeVar, Generic

from locki.apis.Db import Db, WriteOp
from locki.exceptions import NotFoundError, ProjectError
from locki.models.firestore_types import BaseDoc

DocLike = TypeVar('DocLike', bound=BaseDoc)


def remove_none_values(d):
    """Recursively remove None values from dictionaries."""
    if isinstance(d, dict):
        return {k: remove_none_values(v) for k, v in d.items() if v is not None}
    elif isinstance(d, list):
        return [remove_none_values(v) for v in d if v is not None]
    else:
        return d


def ignore_none(func):
    """Decorator to remove None values from the data argument."""

    def wrapper(self, data, *args, **kwargs):
        return func(self, remove_none_values(data), *args, **kwargs)

    return wrapper


class DocumentBase(Generic[DocLike]):
    collection: str = None  # type: ignore
    pydantic_model: Type[DocLike] = None  # type: ignore
    # Field naming the owning user, used by validate_permissions
    owner_field: str = "userId"

    def __init__(self, db: Db, id: str, doc: dict | None = None):
        """
        Initialize the document.
        :param db: Document store the document lives in
        :param id: Id of the document, if id and doc are Falsy, the id will be created.
        :param doc: Already fetched data, skips the read when given
        """
        self.db = db
        self.id = id
        self._doc: Optional[DocLike] = None

        if not doc:
            self._init_doc()  # fetches the document with the provided ID
        else:
            self._doc = self.pydantic_model(**doc)

    def _init_doc(self):
        if not self.pydantic_model:
            raise ProjectError("You forgot to set pydantic_model.")
        if not self.collection:
            raise ProjectError("You forgot to set collection.")
        if not self.id:
            self.id = self.db.new_id(self.collection)

        doc_dict = self.db.get(self.collection, self.id)
        if doc_dict is None:
            raise NotFoundError(self.pydantic_model.__name__.replace("Doc", ""), self.id)

        if "lastUpdatedAt" not in doc_dict and "createdAt" in doc_dict:
            doc_dict["lastUpdatedAt"] = doc_dict["createdAt"]

        self._doc = self.pydantic_model(**doc_dict)

    @classmethod
    def find(cls, db: Db, id: str):
        """Load the document, returning None instead of raising when absent."""
        try:
            return cls(db, id)
        except NotFoundError:
            return None

    @property
    def doc(self) -> DocLike:
        if self._doc:
            return self._doc
        else:
            raise ProjectError("Document is None")

    def _apply_locally(self, data: dict):
        # Dotted paths and sentinels resolve server side; keep the rest in sync
        local = {k: v for k, v in data.items() if "." not in k and not Db.is_sentinel(v)}
        if self._doc is not None:
            self._doc = self._doc.model_copy(update=local)

    @ignore_none
    def update_doc(self, data: dict):
        now = self.db.timestamp_now()
        data["lastUpdatedAt"] = now
        self.db.commit([WriteOp.update(self.collection, self.id, data)])
        self._apply_locally(data)

    def delete(self):
        self.db.commit([WriteOp.delete(self.collection, self.id)])
        self._doc = None

    def validate_permissions(self, user_id: str) -> bool:
        """Check if user owns this document.

        Args:
            user_id: ID of the user to check

        Returns:
            True if user owns the document, False otherwise
        """
        return getattr(self.doc, self.owner_field, None) == user_id

    def get_doc_path(self):
        return f"{self.collection}/{self.id}"
