from unittest.mock import MagicMock

import pytest

from migrator.media.exceptions import MigrationInProgressError
from migrator.media.models import MigrationStats
from migrator.media.orchestrator import MigrationOrchestrator
from migrator.media.rules import default_rules
from migrator.runner import migration_runner
from migrator.runner.migration_runner import MigrationRunner


def _make_runner(
    stats: MigrationStats | None = None,
) -> tuple[MigrationRunner, MagicMock, MagicMock]:
    """Create a MigrationRunner with mocked dependencies."""
    orchestrator = MagicMock(spec=MigrationOrchestrator)
    orchestrator.run.return_value = stats or MigrationStats(processed=1, migrated=1)
    repository_factory = MagicMock()
    runner = MigrationRunner(orchestrator, default_rules(), repository_factory)
    return runner, orchestrator, repository_factory


class TestRun:
    def test_builds_repository_for_collection(self) -> None:
        runner, _orchestrator, repository_factory = _make_runner()

        runner.run("metadata")

        repository_factory.assert_called_once_with("metadata")

    def test_delegates_to_orchestrator(self) -> None:
        runner, orchestrator, repository_factory = _make_runner()
        stop = MagicMock(return_value=False)

        runner.run("metadata", filter={"type": "retail"}, should_stop=stop)

        args, kwargs = orchestrator.run.call_args
        assert args[0] is repository_factory.return_value
        assert [r.name for r in args[1]] == ["images", "pricing", "features", "products"]
        assert kwargs == {"filter": {"type": "retail"}, "should_stop": stop}

    def test_returns_stats(self) -> None:
        expected = MigrationStats(processed=3, migrated=2, errors=["x"])
        runner, _orchestrator, _factory = _make_runner(expected)

        assert runner.run("metadata") is expected

    def test_returns_fatal_stats_without_raising(self) -> None:
        runner, _orchestrator, _factory = _make_runner(MigrationStats(fatal_error="down"))

        stats = runner.run("metadata")

        assert stats.fatal_error == "down"


class TestRunLock:
    def test_rejects_concurrent_run(self) -> None:
        runner, orchestrator, _factory = _make_runner()
        migration_runner._RUN_LOCK.acquire()
        try:
            with pytest.raises(MigrationInProgressError):
                runner.run("metadata")
        finally:
            migration_runner._RUN_LOCK.release()

        orchestrator.run.assert_not_called()

    def test_releases_lock_after_failure(self) -> None:
        runner, orchestrator, _factory = _make_runner()
        orchestrator.run.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            runner.run("metadata")

        assert not migration_runner._RUN_LOCK.locked()

    def test_sequential_runs_are_allowed(self) -> None:
        runner, orchestrator, _factory = _make_runner()

        runner.run("metadata")
        runner.run("metadata")

        assert orchestrator.run.call_count == 2
