from collections.abc import Generator, Iterator
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from pymongo.errors import AutoReconnect, PyMongoError

from migrator.database.repositories.document_repository import DocumentCursor, DocumentRepository
from migrator.media.exceptions import CursorError, PersistenceError


@pytest.fixture()
def collection() -> Generator[MagicMock, None, None]:
    """Patch get_database so every collection lookup returns one mock."""
    mock_collection = MagicMock()
    mock_db = MagicMock()
    mock_db.__getitem__.return_value = mock_collection
    with patch(
        "migrator.database.repositories.document_repository.get_database",
        return_value=mock_db,
    ):
        yield mock_collection


def _driver_cursor(documents: list[dict[str, Any]], fail_after: int | None = None) -> Iterator[dict[str, Any]]:
    for index, document in enumerate(documents):
        if fail_after is not None and index == fail_after:
            raise AutoReconnect("connection reset")
        yield document


class TestFind:
    def test_iterates_documents(self, collection: MagicMock) -> None:
        collection.find.return_value = _driver_cursor([{"_id": 1}, {"_id": 2}])

        cursor = DocumentRepository("metadata").find({"type": "retail"})

        assert list(cursor) == [{"_id": 1}, {"_id": 2}]
        collection.find.assert_called_once_with({"type": "retail"})

    def test_defaults_to_empty_filter(self, collection: MagicMock) -> None:
        collection.find.return_value = _driver_cursor([])

        DocumentRepository("metadata").find()

        collection.find.assert_called_once_with({})

    def test_query_failure_raises_cursor_error(self, collection: MagicMock) -> None:
        collection.find.side_effect = PyMongoError("not authorized")

        with pytest.raises(CursorError, match="not authorized"):
            DocumentRepository("metadata").find()

    def test_iteration_failure_raises_cursor_error(self, collection: MagicMock) -> None:
        collection.find.return_value = _driver_cursor([{"_id": 1}, {"_id": 2}], fail_after=1)
        cursor = DocumentRepository("metadata").find()
        seen = []

        with pytest.raises(CursorError, match="metadata"):
            for document in cursor:
                seen.append(document)

        assert seen == [{"_id": 1}]


class TestDocumentCursor:
    def test_close_closes_driver_cursor(self) -> None:
        driver = MagicMock()
        DocumentCursor(driver, "metadata").close()
        driver.close.assert_called_once()


class TestReplaceById:
    def test_replaces_by_id(self, collection: MagicMock) -> None:
        collection.replace_one.return_value = MagicMock(matched_count=1)

        DocumentRepository("metadata").replace_by_id(5, {"_id": 5, "a": 1})

        collection.replace_one.assert_called_once_with({"_id": 5}, {"_id": 5, "a": 1})

    def test_missing_document_raises(self, collection: MagicMock) -> None:
        collection.replace_one.return_value = MagicMock(matched_count=0)

        with pytest.raises(PersistenceError, match="not found"):
            DocumentRepository("metadata").replace_by_id(5, {"_id": 5})

    def test_driver_error_raises_persistence_error(self, collection: MagicMock) -> None:
        collection.replace_one.side_effect = PyMongoError("write concern")

        with pytest.raises(PersistenceError, match="write concern"):
            DocumentRepository("metadata").replace_by_id(5, {"_id": 5})


class TestInsertAndDrop:
    def test_insert_many_returns_count(self, collection: MagicMock) -> None:
        collection.insert_many.return_value = MagicMock(inserted_ids=[1, 2, 3])

        assert DocumentRepository("products").insert_many([{}, {}, {}]) == 3

    def test_insert_nothing_skips_driver(self, collection: MagicMock) -> None:
        assert DocumentRepository("products").insert_many([]) == 0
        collection.insert_many.assert_not_called()

    def test_drop(self, collection: MagicMock) -> None:
        DocumentRepository("products").drop()
        collection.drop.assert_called_once()
