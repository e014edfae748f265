import threading
from collections.abc import Callable, Sequence
from typing import Any

from migrator.database.repositories.document_repository import DocumentRepository
from migrator.logging.logger import Log
from migrator.media.exceptions import MigrationInProgressError
from migrator.media.models import MigrationStats
from migrator.media.orchestrator import MigrationOrchestrator
from migrator.media.rules import ExtractionRule

# At most one migration in flight per process.
_RUN_LOCK = threading.Lock()


class MigrationRunner:
    """Run one migration over a collection, one run at a time."""

    def __init__(
        self,
        orchestrator: MigrationOrchestrator,
        rules: Sequence[ExtractionRule],
        repository_factory: Callable[[str], DocumentRepository] = DocumentRepository,
    ) -> None:
        self._orchestrator = orchestrator
        self._rules = list(rules)
        self._repository_factory = repository_factory

    def run(
        self,
        collection: str,
        filter: dict[str, Any] | None = None,
        should_stop: Callable[[], bool] | None = None,
    ) -> MigrationStats:
        """Execute a migration run.

        Raises:
            MigrationInProgressError: if another run holds the lock.
        """
        if not _RUN_LOCK.acquire(blocking=False):
            raise MigrationInProgressError("a migration is already running")
        try:
            Log.info(
                f"Migrating embedded images in '{collection}' "
                f"with {len(self._rules)} rules"
            )
            source = self._repository_factory(collection)
            stats = self._orchestrator.run(
                source,
                self._rules,
                filter=filter,
                should_stop=should_stop,
            )
        finally:
            _RUN_LOCK.release()

        if stats.fatal_error is not None:
            Log.error(f"Migration of '{collection}' failed: {stats.fatal_error}")
        elif stats.errors:
            Log.warning(
                f"Migration of '{collection}' completed with {len(stats.errors)} errors"
            )
        else:
            Log.info(f"Migration of '{collection}' completed successfully")
        return stats
