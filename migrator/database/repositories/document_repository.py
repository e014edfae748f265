from collections.abc import Iterator
from typing import Any

from pymongo.collection import Collection
from pymongo.cursor import Cursor
from pymongo.errors import PyMongoError

from migrator.database.connection import get_database
from migrator.media.exceptions import CursorError, PersistenceError


class DocumentCursor:
    """Iterates a pymongo cursor, turning driver errors into CursorError."""

    def __init__(self, cursor: Cursor, collection_name: str) -> None:
        self._cursor = cursor
        self._collection_name = collection_name

    def __iter__(self) -> Iterator[dict[str, Any]]:
        while True:
            try:
                document = next(self._cursor)
            except StopIteration:
                return
            except PyMongoError as exc:
                raise CursorError(
                    f"failed to iterate collection '{self._collection_name}': {exc}"
                ) from exc
            yield document

    def close(self) -> None:
        self._cursor.close()


class DocumentRepository:
    """Database operations for one schema-less collection."""

    def __init__(self, collection_name: str) -> None:
        self._collection_name = collection_name

    @property
    def collection_name(self) -> str:
        return self._collection_name

    def _collection(self) -> Collection:
        return get_database()[self._collection_name]

    def find(self, filter: dict[str, Any] | None = None) -> DocumentCursor:
        """Open a cursor over matching documents. Caller closes it.

        Raises:
            CursorError: if the collection cannot be queried.
        """
        try:
            cursor = self._collection().find(filter or {})
        except PyMongoError as exc:
            raise CursorError(
                f"failed to query collection '{self._collection_name}': {exc}"
            ) from exc
        return DocumentCursor(cursor, self._collection_name)

    def replace_by_id(self, doc_id: Any, document: dict[str, Any]) -> None:
        """Replace a whole document by its _id.

        Raises:
            PersistenceError: on driver failure or if no document has this _id.
        """
        try:
            result = self._collection().replace_one({"_id": doc_id}, document)
        except PyMongoError as exc:
            raise PersistenceError(f"replace of {doc_id} failed: {exc}") from exc
        if result.matched_count == 0:
            raise PersistenceError(f"Document {doc_id} not found")

    def insert_many(self, documents: list[dict[str, Any]]) -> int:
        """Insert documents and return how many were inserted."""
        if not documents:
            return 0
        result = self._collection().insert_many(documents)
        return len(result.inserted_ids)

    def drop(self) -> None:
        self._collection().drop()
