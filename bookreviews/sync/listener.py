"""
Consumes "synchronize this ISBN" requests and stores newly fetched books.
"""
import logging
import threading
from typing import Optional

from bookreviews.errors import DuplicateBookError
from bookreviews.sync.types import (
    BookCatalogStore,
    MetadataFetcher,
    SynchronizationRequest,
    SyncOutcome,
    is_valid_isbn,
)

logger = logging.getLogger(__name__)


class BookSynchronizationListener:
    """
    Each request ends Rejected (malformed ISBN), Skipped (already cataloged)
    or Stored. Fetch failures propagate unchanged so the event source can
    redeliver. The listener holds no mutable state and may be called from
    several threads at once.
    """

    def __init__(self, book_repository: BookCatalogStore, openlibrary_client: MetadataFetcher):
        self.book_repository = book_repository
        self.openlibrary_client = openlibrary_client

    def consume(self, request: SynchronizationRequest, cancel_event: Optional[threading.Event] = None) -> None:
        self.synchronize(request.isbn, cancel_event)

    def synchronize(self, isbn: Optional[str], cancel_event: Optional[threading.Event] = None) -> SyncOutcome:
        logger.info("Incoming book synchronization request isbn=%r", isbn)

        if not is_valid_isbn(isbn):
            logger.info("Rejecting malformed isbn=%r", isbn)
            return SyncOutcome.REJECTED

        if self.book_repository.find_by_isbn(isbn) is not None:
            logger.info("Book isbn=%s already cataloged, skipping", isbn)
            return SyncOutcome.SKIPPED

        book = self.openlibrary_client.fetch_metadata_for_book(isbn, cancel_event=cancel_event)

        try:
            stored = self.book_repository.save(book)
        except DuplicateBookError:
            logger.warning("Book isbn=%s was stored concurrently by another consumer, skipping", isbn)
            return SyncOutcome.SKIPPED

        logger.info("Stored book isbn=%s id=%s title=%r", isbn, stored.id, stored.title)
        return SyncOutcome.STORED
