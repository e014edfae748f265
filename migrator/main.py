import argparse
import json
import signal
import sys
import threading
from pathlib import Path

from migrator.config.settings import Settings
from migrator.database.connection import close_client, init_client
from migrator.importer.importer import JsonImporter
from migrator.importer.normalizer import DocumentNormalizer
from migrator.logging.logger import Log
from migrator.media.blob_sink import LocalBlobSink
from migrator.media.orchestrator import MigrationOrchestrator
from migrator.media.rules import default_rules
from migrator.media.walker import TreeWalker
from migrator.runner.migration_runner import MigrationRunner


def build_runner(settings: Settings) -> MigrationRunner:
    """Build a MigrationRunner with the local blob sink and built-in rules."""
    sink = LocalBlobSink(
        Path(settings.uploads_dir),
        public_prefix=settings.uploads_public_prefix,
        random_bytes=settings.blob_random_bytes,
    )
    orchestrator = MigrationOrchestrator(
        TreeWalker(sink),
        stamp_updated_at=settings.stamp_updated_at,
    )
    return MigrationRunner(orchestrator, default_rules())


def build_importer(settings: Settings) -> JsonImporter:
    return JsonImporter(
        Path(settings.import_data_dir),
        DocumentNormalizer(),
        drop_existing=settings.import_drop_existing,
    )


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="migrator")
    sub = parser.add_subparsers(dest="command", required=True)

    media = sub.add_parser(
        "migrate-media", help="Extract embedded base64 images to the uploads directory"
    )
    media.add_argument("--collection", help="Collection to migrate")
    media.add_argument("--type", dest="doc_type", help="Only documents with this 'type'")

    imp = sub.add_parser("import", help="Import JSON exports into the document store")
    imp.add_argument(
        "--collections",
        help="Comma-separated collection names (default from settings)",
    )
    return parser.parse_args(argv)


def _run_migration(settings: Settings, args: argparse.Namespace) -> int:
    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop.set())

    collection = args.collection or settings.migration_collection
    query = {"type": args.doc_type} if args.doc_type else None
    stats = build_runner(settings).run(collection, filter=query, should_stop=stop.is_set)
    print(json.dumps(stats.to_dict(), indent=2))
    return 1 if stats.fatal_error is not None else 0


def _run_import(settings: Settings, args: argparse.Namespace) -> int:
    names = (
        [n.strip() for n in args.collections.split(",") if n.strip()]
        if args.collections
        else settings.import_collections
    )
    results = build_importer(settings).import_all(names)
    failed = [r for r in results if r.error is not None]
    for result in results:
        Log.info(
            f"Import {result.collection}:",
            inserted=result.inserted,
            skipped=result.skipped,
            error=result.error,
        )
    return 1 if failed else 0


def main(argv: list[str] | None = None) -> int:
    """Entry point: configure -> connect -> run the requested command."""
    args = _parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)
    init_client(settings)

    try:
        if args.command == "migrate-media":
            return _run_migration(settings, args)
        return _run_import(settings, args)
    finally:
        close_client()


if __name__ == "__main__":
    sys.exit(main())
