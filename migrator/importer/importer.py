import json
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pymongo.errors import PyMongoError

from migrator.database.repositories.document_repository import DocumentRepository
from migrator.importer.exceptions import ImporterError, ImportFileError
from migrator.importer.normalizer import DocumentNormalizer
from migrator.logging.logger import Log


@dataclass(frozen=True)
class ImportResult:
    """Outcome of importing one collection."""

    collection: str
    inserted: int = 0
    skipped: bool = False
    error: str | None = None


class JsonImporter:
    """Imports `<data_dir>/<collection>.json` exports into the document store."""

    def __init__(
        self,
        data_dir: Path,
        normalizer: DocumentNormalizer,
        repository_factory: Callable[[str], DocumentRepository] = DocumentRepository,
        drop_existing: bool = True,
    ) -> None:
        self._data_dir = data_dir
        self._normalizer = normalizer
        self._repository_factory = repository_factory
        self._drop_existing = drop_existing

    def import_collection(self, name: str) -> ImportResult:
        """Normalize and insert every object of one export file.

        Raises:
            ImportFileError: if the file is not valid JSON or not an array of objects.
            PyMongoError: if the store rejects the drop or insert.
        """
        path = self._data_dir / f"{name}.json"
        if not path.is_file():
            Log.warning(f"Export file not found: {path} (skipping)")
            return ImportResult(collection=name, skipped=True)

        raw = self._load(path)
        if not raw:
            Log.warning(f"No documents found in {path}")
            return ImportResult(collection=name)

        documents = [self._normalizer.normalize(item) for item in raw]
        repo = self._repository_factory(name)
        if self._drop_existing:
            repo.drop()
        inserted = repo.insert_many(documents)
        Log.info(f"Imported {inserted} documents into {name}")
        return ImportResult(collection=name, inserted=inserted)

    def import_all(self, names: Iterable[str]) -> list[ImportResult]:
        """Import each collection; a failing collection does not stop the rest."""
        results: list[ImportResult] = []
        for name in names:
            try:
                results.append(self.import_collection(name))
            except (ImporterError, PyMongoError) as exc:
                Log.warning(f"Failed to import {name}: {exc}")
                results.append(ImportResult(collection=name, error=str(exc)))
        return results

    @staticmethod
    def _load(path: Path) -> list[dict[str, Any]]:
        try:
            parsed = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as exc:
            raise ImportFileError(f"failed to read {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ImportFileError(f"failed to parse {path}: {exc}") from exc

        if not isinstance(parsed, list):
            raise ImportFileError(f"{path} must contain a JSON array")
        for index, item in enumerate(parsed):
            if not isinstance(item, dict):
                raise ImportFileError(f"{path}: element {index} is not an object")
        return parsed
