from collections.abc import Callable, Sequence
from contextlib import closing
from typing import Any

from migrator.clock import Clock, utc_now
from migrator.database.repositories.document_repository import DocumentRepository
from migrator.logging.logger import Log
from migrator.media.exceptions import CursorError, PersistenceError
from migrator.media.models import MigrationStats
from migrator.media.rules import ExtractionRule
from migrator.media.walker import TreeWalker


class MigrationOrchestrator:
    """Runs the extract-and-rewrite pipeline over every document of a collection.

    Pipeline per document: fetch -> transform -> persist (only if changed).
    Item-level failures are collected into the stats; a cursor failure ends
    the run early and is reported as `fatal_error`.
    """

    def __init__(
        self,
        walker: TreeWalker,
        clock: Clock = utc_now,
        stamp_updated_at: bool = True,
    ) -> None:
        self._walker = walker
        self._clock = clock
        self._stamp_updated_at = stamp_updated_at

    def run(
        self,
        source: DocumentRepository,
        rules: Sequence[ExtractionRule],
        filter: dict[str, Any] | None = None,
        should_stop: Callable[[], bool] | None = None,
    ) -> MigrationStats:
        stats = MigrationStats()
        if should_stop is not None and should_stop():
            Log.warning("Migration cancelled before start")
            return stats

        try:
            with closing(source.find(filter or {})) as cursor:
                for document in cursor:
                    stats.processed += 1
                    self._migrate_document(source, document, rules, stats)
                    if should_stop is not None and should_stop():
                        Log.warning(
                            f"Migration cancelled after {stats.processed} documents"
                        )
                        break
        except CursorError as exc:
            stats.fatal_error = str(exc)
            Log.error(f"Migration aborted after {stats.processed} documents: {exc}")

        Log.info(
            "Migration finished:",
            processed=stats.processed,
            migrated=stats.migrated,
            extracted=stats.extracted,
            errors=len(stats.errors),
        )
        return stats

    def _migrate_document(
        self,
        source: DocumentRepository,
        document: dict[str, Any],
        rules: Sequence[ExtractionRule],
        stats: MigrationStats,
    ) -> None:
        doc_id = document.get("_id")
        if doc_id is None:
            stats.errors.append("document without _id skipped")
            Log.warning("Skipping document without _id")
            return

        result = self._walker.transform(document, rules)
        stats.errors.extend(f"document {doc_id}: {error}" for error in result.errors)
        if not result.changed:
            Log.debug(f"Document {doc_id} unchanged")
            return

        if self._stamp_updated_at:
            document["updatedAt"] = self._clock()
        try:
            source.replace_by_id(doc_id, document)
        except PersistenceError as exc:
            stats.errors.append(f"document {doc_id}: failed to persist: {exc}")
            Log.error(f"Failed to persist document {doc_id}: {exc}")
            return

        stats.migrated += 1
        stats.extracted += result.extracted
        Log.info(f"Document {doc_id} migrated ({result.extracted} images)")
