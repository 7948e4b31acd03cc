from typing import List

from bookreviews.db.database import BookRepository
from bookreviews.db.models import Book


class BookManagementService:
    def __init__(self, book_repository: BookRepository):
        self.book_repository = book_repository

    def get_all_books(self) -> List[Book]:
        return self.book_repository.find_all()
