import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from bookreviews.db.models import Book


ISBN_PATTERN = re.compile(r"[0-9]{13}")


def is_valid_isbn(isbn: Optional[str]) -> bool:
    return isinstance(isbn, str) and ISBN_PATTERN.fullmatch(isbn) is not None


@dataclass(frozen=True)
class SynchronizationRequest:
    """Ask for one ISBN to be fetched and cataloged. The ISBN is untrusted."""
    isbn: Optional[str]


class SyncOutcome(str, Enum):
    REJECTED = "rejected"
    SKIPPED = "skipped"
    STORED = "stored"


class BookCatalogStore(Protocol):
    def find_by_isbn(self, isbn: str) -> Optional[Book]:
        ...

    def save(self, book: Book) -> Book:
        ...


class MetadataFetcher(Protocol):
    def fetch_metadata_for_book(self, isbn: str, cancel_event=None) -> Book:
        ...
