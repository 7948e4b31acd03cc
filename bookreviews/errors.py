"""
Exceptions shared across the catalog, synchronization and review layers.
"""


class BookReviewsError(Exception):
    """Base class for every error raised by this package."""


class FetchFailure(BookReviewsError):
    """Metadata could not be fetched for an ISBN. Callers must not swallow it."""

    def __init__(self, isbn: str, message: str):
        super().__init__(f"{message} (isbn={isbn})")
        self.isbn = isbn


class TransientFetchError(FetchFailure):
    """Timeout, connection problem or 5xx answer. Retried inside the client."""


class FetchCancelled(FetchFailure):
    """The caller cancelled the fetch before a usable answer arrived."""


class MetadataParseError(BookReviewsError):
    """The payload holds no record that a book could be built from."""


class DuplicateBookError(BookReviewsError):
    """The store already holds a book with this ISBN."""

    def __init__(self, isbn: str):
        super().__init__(f"Book with isbn {isbn} already exists")
        self.isbn = isbn


class BookNotFoundError(BookReviewsError):
    def __init__(self, isbn: str):
        super().__init__(f"No book with isbn {isbn}")
        self.isbn = isbn


class BadReviewRequestError(BookReviewsError):
    """The review text does not meet the quality standards."""
