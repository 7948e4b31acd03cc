"""
Open Library API Integration
----------------------------
Fetches bibliographic metadata for a single ISBN from the Books API.

Transient failures (timeouts, connection errors, 5xx and 429 answers) are
retried a fixed number of times with a fixed pause; anything else fails at
once. Callers only ever see a ``Book`` or a ``FetchFailure``.
"""

import logging
import threading
from typing import Any, Optional

import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    stop_when_event_set,
    wait_fixed,
)

from bookreviews.db.models import Book
from bookreviews.enrichment.parser import bibliographic_key, loads_lenient, parse_book_metadata
from bookreviews.errors import FetchCancelled, FetchFailure, MetadataParseError, TransientFetchError

logger = logging.getLogger(__name__)


class OpenLibraryClient:
    """Client for the Open Library Books API"""

    BASE_URL = "https://openlibrary.org"
    BOOKS_PATH = "/api/books"

    def __init__(
        self,
        base_url: Optional[str] = None,
        connect_timeout: float = 2.0,
        read_timeout: float = 2.0,
        max_attempts: int = 3,
        retry_wait: float = 0.2,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = (connect_timeout, read_timeout)
        self.max_attempts = max(1, max_attempts)
        self.retry_wait = max(0.0, retry_wait)
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": "BookReviews/1.0 (Catalog Synchronization)",
            "Accept": "application/json",
        })

    @classmethod
    def from_settings(cls, settings) -> "OpenLibraryClient":
        return cls(
            base_url=settings.openlibrary_base_url,
            connect_timeout=settings.connect_timeout,
            read_timeout=settings.read_timeout,
            max_attempts=settings.max_attempts,
            retry_wait=settings.retry_wait,
        )

    def _request(self, isbn: str, cancel_event: Optional[threading.Event]) -> Any:
        if cancel_event is not None and cancel_event.is_set():
            raise FetchCancelled(isbn, "Fetch cancelled")

        params = {
            "jscmd": "data",
            "format": "json",
            "bibkeys": bibliographic_key(isbn),
        }
        try:
            resp = self.session.get(
                f"{self.base_url}{self.BOOKS_PATH}",
                params=params,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise TransientFetchError(isbn, f"Open Library timed out: {e}") from e
        except requests.ConnectionError as e:
            raise TransientFetchError(isbn, f"Open Library unreachable: {e}") from e
        except requests.RequestException as e:
            raise FetchFailure(isbn, f"Open Library request failed: {e}") from e

        status = resp.status_code
        if status >= 500 or status == 429:
            raise TransientFetchError(isbn, f"Open Library answered {status}")
        if status >= 400:
            raise FetchFailure(isbn, f"Open Library rejected the request with {status}")

        try:
            return loads_lenient(resp.content)
        except MetadataParseError as e:
            raise FetchFailure(isbn, f"Malformed Open Library response: {e}") from e

    def fetch_metadata_for_book(self, isbn: str, cancel_event: Optional[threading.Event] = None) -> Book:
        """
        Fetch and normalize metadata for a well-formed ISBN.

        Args:
            isbn: 13-digit ISBN, validated by the caller
            cancel_event: when set, no further attempt is started

        Returns:
            Book with identity unset

        Raises:
            FetchFailure: retries exhausted, non-retryable answer or unusable payload
        """
        stop = stop_after_attempt(self.max_attempts)
        sleep_kwargs = {}
        if cancel_event is not None:
            stop = stop | stop_when_event_set(cancel_event)
            sleep_kwargs["sleep"] = cancel_event.wait

        retrying = Retrying(
            stop=stop,
            wait=wait_fixed(self.retry_wait),
            retry=retry_if_exception_type(TransientFetchError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
            **sleep_kwargs,
        )

        try:
            payload = retrying(self._request, isbn, cancel_event)
        except TransientFetchError as e:
            if cancel_event is not None and cancel_event.is_set():
                raise FetchCancelled(isbn, f"Fetch cancelled after transient error: {e}") from e
            raise FetchFailure(isbn, f"Giving up after {self.max_attempts} attempts: {e}") from e

        try:
            book = parse_book_metadata(payload, isbn)
        except MetadataParseError as e:
            raise FetchFailure(isbn, f"No usable metadata: {e}") from e

        logger.debug("Fetched metadata for %s: title=%r author=%r", isbn, book.title, book.author)
        return book
