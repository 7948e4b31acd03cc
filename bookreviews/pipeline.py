import argparse
import os
from pathlib import Path
from typing import Iterable, List, Optional

from bookreviews.config import Settings, configure_logging
from bookreviews.db.database import BookRepository, DatabaseManager
from bookreviews.enrichment.openlibrary import OpenLibraryClient
from bookreviews.sync.listener import BookSynchronizationListener
from bookreviews.sync.types import SynchronizationRequest
from bookreviews.sync.worker import SyncReport, SyncWorker


def read_isbns(isbns: Iterable[str], file: Optional[str] = None) -> List[str]:
    """Collect ISBNs from the command line and an optional file, one per line."""
    collected = [isbn.strip() for isbn in isbns]
    if file:
        for line in Path(file).read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if line and not line.startswith("#"):
                collected.append(line)
    return collected


def init_db(use_sqlite: bool = False) -> None:
    settings = Settings.from_env(use_sqlite=use_sqlite)
    db = DatabaseManager(settings.database_url)
    db.create_schema()
    db.close()


def run_sync(isbns: List[str], use_sqlite: bool = False, workers: Optional[int] = None) -> SyncReport:
    """
    Runs one synchronization batch:
    1. Validate and de-duplicate against the catalog (listener).
    2. Fetch missing books from Open Library.
    3. Store them, redelivering failed requests.
    """
    settings = Settings.from_env(use_sqlite=use_sqlite)
    db = DatabaseManager(settings.database_url)
    db.create_schema()

    listener = BookSynchronizationListener(BookRepository(db), OpenLibraryClient.from_settings(settings))
    worker = SyncWorker(
        listener,
        workers=workers or settings.sync_workers,
        max_deliveries=settings.sync_max_deliveries,
    )
    try:
        report = worker.run(SynchronizationRequest(isbn) for isbn in isbns)
    finally:
        db.close()

    print(
        f"Synchronization complete. Processed: {report.processed}, failed: {report.failed}, "
        f"cancelled: {len(report.cancelled)}"
    )
    for request in report.dead_letters:
        print(f"  failed: {request.isbn}")
    return report


def run_api(host: str = "0.0.0.0", port: int = 8000, use_sqlite: bool = False):
    import uvicorn

    if use_sqlite:
        os.environ["USE_SQLITE"] = "1"
        print("Starting API in SQLite mode")
    else:
        print("Starting API in PostgreSQL mode")

    uvicorn.run("bookreviews.api.main:app", host=host, port=port)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Book Reviews catalog CLI")
    subparsers = parser.add_subparsers(dest='command', required=True)

    init_parser = subparsers.add_parser('init-db', help='Create the database schema')
    init_parser.add_argument('--sqlite', action='store_true', help='Use SQLite instead of PostgreSQL')

    sync_parser = subparsers.add_parser('sync', help='Fetch and store books from Open Library')
    sync_parser.add_argument('isbns', nargs='*', help='13-digit ISBNs')
    sync_parser.add_argument('--file', default=None, help='File with one ISBN per line')
    sync_parser.add_argument('--workers', type=int, default=None, help='Number of concurrent consumers')
    sync_parser.add_argument('--sqlite', action='store_true', help='Use SQLite instead of PostgreSQL')

    api_parser = subparsers.add_parser('api', help='Run the REST API')
    api_parser.add_argument('--host', default="0.0.0.0")
    api_parser.add_argument('--port', type=int, default=8000)
    api_parser.add_argument('--sqlite', action='store_true', help='Use SQLite instead of PostgreSQL')

    args = parser.parse_args(argv)
    configure_logging()

    if args.command == 'init-db':
        init_db(args.sqlite)
    elif args.command == 'sync':
        isbns = read_isbns(args.isbns, args.file)
        if not isbns:
            parser.error("no ISBNs given")
        report = run_sync(isbns, use_sqlite=args.sqlite, workers=args.workers)
        return 1 if report.failed or report.cancelled else 0
    elif args.command == 'api':
        run_api(args.host, args.port, args.sqlite)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
